"""Domain Event definitions.

Represents significant occurrences during an invocation that other parts
of the system might react to (e.g., metrics, audit trails).
"""
