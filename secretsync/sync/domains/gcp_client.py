"""GCP Secret Manager client wrapper."""
import os
import logging
from typing import Optional
from google.api_core.exceptions import GoogleAPIError
from google.auth.exceptions import GoogleAuthError
from google.cloud import secretmanager

from .errors import ConfigError, SecretStoreError

logger = logging.getLogger(__name__)


def to_secret_id(path: str) -> str:
    """
    Map a store path onto a GCP secret id.

    GCP Secret Manager allows only [a-zA-Z0-9_-], so path separators
    become hyphens: secret/site/main/dev_DB_URL -> secret-site-main-dev_DB_URL
    """
    return path.strip("/").replace("/", "-")


class GCPSecretStore:
    """Secret store backed by GCP Secret Manager."""

    def __init__(self, project_id: Optional[str] = None, client=None):
        self.project_id = project_id or os.getenv("GCP_PROJECT")
        if not self.project_id:
            raise ConfigError(
                "GCP project ID not found. Pass --project-id, set GCP_PROJECT "
                "or configure gcp.project_id in the config file"
            )
        self._client = client

    @property
    def client(self) -> secretmanager.SecretManagerServiceClient:
        """Lazy-initialize client."""
        if self._client is None:
            self._client = secretmanager.SecretManagerServiceClient()
        return self._client

    def _add_version(self, secret_id: str, value: str) -> None:
        parent = f"projects/{self.project_id}/secrets/{secret_id}"
        self.client.add_secret_version(
            request={"parent": parent, "payload": {"data": value.encode("UTF-8")}}
        )

    def create(self, path: str, value: str) -> None:
        secret_id = to_secret_id(path)
        try:
            self.client.create_secret(
                request={
                    "parent": f"projects/{self.project_id}",
                    "secret_id": secret_id,
                    "secret": {"replication": {"automatic": {}}},
                }
            )
            self._add_version(secret_id, value)
        except (GoogleAPIError, GoogleAuthError) as e:
            raise SecretStoreError(f"create_secret failed for {secret_id}: {e}") from e

    def update(self, path: str, value: str) -> None:
        secret_id = to_secret_id(path)
        try:
            self._add_version(secret_id, value)
        except (GoogleAPIError, GoogleAuthError) as e:
            raise SecretStoreError(f"add_secret_version failed for {secret_id}: {e}") from e
