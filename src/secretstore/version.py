"""Version information for SecretStore."""

__version__ = "1.0.0"
