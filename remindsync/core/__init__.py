"""Core domain layer: entities, interfaces, services."""
