"""Configuration, security primitives, roles and domain errors."""
