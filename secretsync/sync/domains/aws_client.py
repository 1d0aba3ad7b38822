"""AWS session and Secrets Manager client wrapper."""
import os
import logging
from dataclasses import dataclass
from typing import Optional

import boto3
from botocore.exceptions import BotoCoreError, ClientError

from .errors import ConfigError, SecretStoreError

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class CredentialContext:
    """Region and credentials for every cloud call in one run.

    Credentials left empty fall back to boto3's standard credential chain.
    """
    region: str
    access_key_id: str = ""
    secret_access_key: str = ""
    session_token: str = ""

    @classmethod
    def load(cls, region: Optional[str] = None) -> "CredentialContext":
        """
        Build the context from an explicit region and the standard AWS env vars.

        Raises:
            ConfigError: If no region is given or found in AWS_REGION/AWS_DEFAULT_REGION
        """
        region = (region or os.getenv("AWS_REGION") or os.getenv("AWS_DEFAULT_REGION") or "").strip()
        if not region:
            raise ConfigError(
                "AWS region is required. Pass --region or set AWS_REGION."
            )
        context = cls(
            region=region,
            access_key_id=(os.getenv("AWS_ACCESS_KEY_ID") or "").strip(),
            secret_access_key=(os.getenv("AWS_SECRET_ACCESS_KEY") or "").strip(),
            session_token=(os.getenv("AWS_SESSION_TOKEN") or "").strip(),
        )
        logger.info(f"Target AWS Region: {region}")
        return context

    def session(self) -> boto3.session.Session:
        kwargs = {"region_name": self.region}
        if self.access_key_id and self.secret_access_key:
            kwargs["aws_access_key_id"] = self.access_key_id
            kwargs["aws_secret_access_key"] = self.secret_access_key
            if self.session_token:
                kwargs["aws_session_token"] = self.session_token
        else:
            logger.debug("No static AWS keys in environment, using default credential chain")
        return boto3.session.Session(**kwargs)

    def client(self, service_name: str):
        return self.session().client(service_name)


class AWSSecretStore:
    """Secret store backed by AWS Secrets Manager."""

    def __init__(self, context: Optional[CredentialContext] = None, client=None):
        self._context = context
        self._client = client

    @property
    def client(self):
        """Lazy-initialize client."""
        if self._client is None:
            if self._context is None:
                raise ConfigError("AWSSecretStore needs a CredentialContext or a client")
            self._client = self._context.client("secretsmanager")
        return self._client

    def create(self, path: str, value: str) -> None:
        try:
            self.client.create_secret(Name=path, SecretString=value)
        except (ClientError, BotoCoreError) as e:
            raise SecretStoreError(f"create-secret failed for {path}: {e}") from e

    def update(self, path: str, value: str) -> None:
        try:
            self.client.put_secret_value(SecretId=path, SecretString=value)
        except (ClientError, BotoCoreError) as e:
            raise SecretStoreError(f"put-secret-value failed for {path}: {e}") from e
