"""Application services built on top of the invocation engine."""
