"""relayrpc: resilient, rate-limited invocation of authenticated Web API operations."""

__version__ = "0.1.0"
