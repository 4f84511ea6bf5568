"""userdeck: user accounts, authentication and profile API."""

__version__ = "0.1.0"
