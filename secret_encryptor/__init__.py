"""Encrypt plaintext secrets in AWS Secrets Manager with a certificate's public key."""

from .crypto import (
    DEFAULT_TRANSFORMATION,
    EncryptionContext,
    create_encryption_context,
    extract_certificate,
)
from .encryptor import encrypt_secrets
from .models import InputSecrets, SecretRecord

__all__ = [
    "DEFAULT_TRANSFORMATION",
    "EncryptionContext",
    "InputSecrets",
    "SecretRecord",
    "create_encryption_context",
    "encrypt_secrets",
    "extract_certificate",
]
