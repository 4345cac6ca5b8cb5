"""Core utilities: logging, exceptions, constants, dependencies."""
