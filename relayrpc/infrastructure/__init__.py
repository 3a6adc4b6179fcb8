"""Infrastructure Layer: Contains concrete implementations and adapters.

Connects the application to the outside world (HTTP, configuration files,
logging, the terminal) by implementing the interfaces defined in the domain layer.
"""
