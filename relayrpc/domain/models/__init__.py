"""Domain Models: immutable value objects describing remote calls and their outcomes."""
