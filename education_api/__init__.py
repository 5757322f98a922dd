"""Education API: authentication and credential service."""

__version__ = "1.0.0"
