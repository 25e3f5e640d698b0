# secret_encryptor/store.py
"""
Secret Store

This module defines the interface the encryptor uses to read and overwrite
secrets, the AWS Secrets Manager implementation of it, and the batch helpers
that move SecretRecords in and out of a store.
"""

import logging
from abc import ABC, abstractmethod

import boto3
from botocore.exceptions import BotoCoreError, ClientError

from .exceptions import ConfigurationError, SecretNotFoundError, SecretStoreError
from .models import InputSecrets, SecretRecord

logger = logging.getLogger(__name__)


class SecretStore(ABC):
    """
    Abstract name-keyed secret store.

    Implementations raise SecretNotFoundError for unknown names and
    SecretStoreError for any other failure.
    """

    @abstractmethod
    def get_secret_string(self, name: str) -> str | None:
        """
        Fetch the string value of a secret.

        Args:
            name: The secret's name or ARN.

        Returns:
            str | None: The value, or None if the secret holds no string.
        """
        ...

    @abstractmethod
    def update_secret(self, name: str, value: str) -> None:
        """
        Overwrite the string value of an existing secret.

        Args:
            name: The secret's name or ARN.
            value: The new value.
        """
        ...

    def close(self) -> None:
        """Release any underlying client resources."""

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc, tb):
        self.close()


class AwsSecretsManagerStore(SecretStore):
    """
    SecretStore backed by AWS Secrets Manager.

    Credentials are resolved by boto3's default chain (environment, shared
    config, instance profile).
    """

    def __init__(self, region: str, client=None):
        """
        Create the store for one region.

        Args:
            region: AWS region name, e.g. "eu-west-1".
            client: An existing ``secretsmanager`` client to use instead of
                creating one.
        """
        if not region or not region.strip():
            raise ConfigurationError("AWS region not configured.")
        self.region = region.strip()
        if client is None:
            logger.info("Creating AWS Secrets Manager client for region: %s", self.region)
            try:
                client = boto3.client("secretsmanager", region_name=self.region)
            except (BotoCoreError, ValueError) as exc:
                raise SecretStoreError(f"Could not create AWS Secrets Manager client for region {self.region}: {exc}") from exc
        self._client = client

    def get_secret_string(self, name: str) -> str | None:
        logger.debug("Retrieving secret: %s", name)
        try:
            response = self._client.get_secret_value(SecretId=name)
        except ClientError as exc:
            raise self._translate(exc, name, "retrieving") from exc
        except BotoCoreError as exc:
            raise SecretStoreError(f"AWS error retrieving secret {name}: {exc}") from exc
        return response.get("SecretString")

    def update_secret(self, name: str, value: str) -> None:
        logger.debug("Updating secret: %s", name)
        try:
            self._client.update_secret(SecretId=name, SecretString=value)
        except ClientError as exc:
            raise self._translate(exc, name, "updating") from exc
        except BotoCoreError as exc:
            raise SecretStoreError(f"AWS error updating secret {name}: {exc}") from exc

    def close(self) -> None:
        logger.info("Closing AWS Secrets Manager client.")
        self._client.close()

    @staticmethod
    def _translate(exc: ClientError, name: str, action: str) -> SecretStoreError:
        error = exc.response.get("Error", {})
        if error.get("Code") == "ResourceNotFoundException":
            logger.error("Secret '%s' not found in AWS Secrets Manager.", name)
            return SecretNotFoundError(name)
        logger.error("Error %s secret '%s' in AWS Secrets Manager: %s", action, name, error.get("Message", exc))
        return SecretStoreError(f"AWS error {action} secret: {name}")


def retrieve_plaintext_secrets(store: SecretStore, input_secrets: InputSecrets) -> list[SecretRecord]:
    """
    Fetch the plaintext value of every listed secret, in order.

    A secret without a string value is treated as empty so the encryptor
    skips it.

    Args:
        store: Where the secrets live.
        input_secrets: Names to fetch.

    Returns:
        list[SecretRecord]: One record per name, encrypted_password unset.
    """
    names = input_secrets.secrets
    if not names:
        logger.warning("No secret names provided in input secrets file.")
        return []

    logger.info("Retrieving %d plain text secrets...", len(names))
    records = []
    for name in names:
        value = store.get_secret_string(name)
        if value is None:
            logger.warning("Secret '%s' has no string value. Treating as empty.", name)
            value = ""
        records.append(SecretRecord(identifier=name, password=value))
    logger.info("Successfully retrieved %d plain text secrets.", len(records))
    return records


def get_certificate_string(store: SecretStore, name: str | None) -> str:
    """
    Fetch the raw text of the secret holding the encryption certificate.

    Raises:
        ConfigurationError: If no secret name is configured.
        SecretStoreError: If the secret has no string value.
    """
    if not name or not name.strip():
        raise ConfigurationError("Public PEM certificate secret name not configured.")
    logger.info("Retrieving certificate secret: %s", name)
    value = store.get_secret_string(name)
    if value is None:
        raise SecretStoreError(f"Secret '{name}' is not a string secret.")
    logger.debug("Retrieved certificate string from '%s'. Length: %d", name, len(value))
    return value


def update_secrets_with_encrypted_value(store: SecretStore, records: list[SecretRecord]) -> int:
    """
    Overwrite each secret with its encrypted value.

    Records with nothing encrypted are left untouched in the store.

    Returns:
        int: Number of secrets updated.
    """
    if not records:
        logger.warning("No secrets provided to update.")
        return 0

    logger.warning("Starting update process. This will OVERWRITE existing secrets.")
    updated = 0
    for record in records:
        if not record.encrypted_password:
            logger.warning("Secret '%s' has no encrypted value. Skipping update.", record.identifier)
            continue
        store.update_secret(record.identifier, record.encrypted_password)
        updated += 1
    logger.warning("Completed update process. Successfully updated %d secrets.", updated)
    return updated
