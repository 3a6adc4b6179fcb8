"""Domain Layer: ports, value objects and events shared by every other layer."""
