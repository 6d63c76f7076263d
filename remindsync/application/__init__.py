"""
Application layer - use cases, DTOs, and service factories.

The API routes and the CLI only talk to the core through this layer.
"""
