"""Domain Interfaces (Ports):

Defines the contracts (Abstract Base Classes) that infrastructure components
must implement. The invocation engine depends on these interfaces, not
concrete implementations.
"""
