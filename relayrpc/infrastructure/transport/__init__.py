"""HTTP transport adapters for Web API style services."""
