"""API Resilience Implementations.

Contains the retry policy, the keyed rate limiter and the invocation engine
that combines them into one bounded attempt loop.
Bounded Context: API Resilience
"""
