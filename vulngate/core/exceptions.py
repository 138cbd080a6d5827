"""Exceptions shared across VulnGate layers."""


class ConfigurationError(ValueError):
    """Raised when a configuration value cannot be parsed or is missing."""
