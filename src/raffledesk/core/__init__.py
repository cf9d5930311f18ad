"""Configuration, constants, errors and logging."""
