"""Exception hierarchy for secretsync."""


class SecretSyncError(Exception):
    """Base class for all secretsync errors."""
    pass


class ConfigError(SecretSyncError):
    """Configuration error exception."""
    pass


class ConfigurationError(ConfigError):
    """Required pipeline context (e.g. branch) is missing. Aborts the run."""
    pass


class SecretStoreError(SecretSyncError):
    """A single call against the external secret store failed."""
    pass


class DeployError(SecretSyncError):
    """Static site deployment failed."""
    pass
