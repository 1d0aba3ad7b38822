"""secretsync - mirror CI secrets and variables into a cloud secret store."""

__version__ = "0.1.0"
