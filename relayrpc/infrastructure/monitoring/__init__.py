"""Logging setup and the logging-backed diagnostics sink."""
