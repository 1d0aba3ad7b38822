"""Secret store protocol and backend selection."""
from typing import TYPE_CHECKING, Optional, Protocol

from .errors import ConfigError

if TYPE_CHECKING:
    from .aws_client import CredentialContext


class SecretStore(Protocol):
    """Protocol every secret backend satisfies.

    Both methods raise SecretStoreError on any failure.
    """

    def create(self, path: str, value: str) -> None:
        """Create a new secret at path."""
        ...

    def update(self, path: str, value: str) -> None:
        """Store a new value for an existing secret at path."""
        ...


def build_store(
    backend: str,
    context: Optional["CredentialContext"] = None,
    project_id: Optional[str] = None,
) -> SecretStore:
    # Backend SDKs are imported only for the backend in use
    if backend == "aws":
        from .aws_client import AWSSecretStore

        return AWSSecretStore(context=context)
    if backend == "gcp":
        from .gcp_client import GCPSecretStore

        return GCPSecretStore(project_id=project_id)
    raise ConfigError(f"Unsupported backend: {backend}")
