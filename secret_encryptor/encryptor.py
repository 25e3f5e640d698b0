"""Batch encryption of secret records."""

import base64
import logging

from .crypto import DEFAULT_TRANSFORMATION, EncryptionContext, create_encryption_context
from .exceptions import EncryptionOperationError
from .models import SecretRecord

logger = logging.getLogger(__name__)


def encrypt_secrets(
    records: list[SecretRecord] | None,
    context: EncryptionContext | str,
    transformation: str = DEFAULT_TRANSFORMATION,
) -> list[SecretRecord]:
    """Encrypt every record's plaintext in input order.

    Records with no plaintext get the empty-string marker and never reach the
    cipher. The first record that fails to encrypt aborts the batch.

    Args:
        records: Records to encrypt; updated in place.
        context: An EncryptionContext, or a PEM certificate block to build one from.
        transformation: Used only when ``context`` is a certificate block.

    Returns:
        The same records, each with ``encrypted_password`` set.

    Raises:
        EncryptionOperationError: If a record's plaintext cannot be encrypted.
    """
    if not records:
        logger.warning("No input secrets provided to encrypt.")
        return records if records is not None else []

    if not isinstance(context, EncryptionContext):
        logger.info("Initializing cipher for encryption...")
        context = create_encryption_context(context, transformation)

    for record in records:
        if not record.password:
            logger.warning(
                "Plain text password for secret '%s' is empty. Skipping encryption.",
                record.identifier,
            )
            record.encrypted_password = ""
            continue
        logger.debug("Encrypting secret: %s", record.identifier)
        record.encrypted_password = _encrypt_value(context, record)
        logger.debug("Successfully encrypted secret: %s", record.identifier)

    logger.info("Completed encryption for %d secrets.", len(records))
    return records


def _encrypt_value(context: EncryptionContext, record: SecretRecord) -> str:
    try:
        plaintext = record.password.encode("utf-8")
        ciphertext = context.encrypt(plaintext)
    except UnicodeEncodeError as exc:
        logger.error("Secret '%s' is not valid UTF-8 text: %s", record.identifier, exc)
        raise EncryptionOperationError(record.identifier) from exc
    except ValueError as exc:
        logger.error(
            "Error encrypting secret '%s' (%d bytes, limit %d): %s",
            record.identifier,
            len(plaintext),
            context.max_payload_size,
            exc,
        )
        raise EncryptionOperationError(record.identifier) from exc
    return base64.b64encode(ciphertext).decode("ascii")
