#!/usr/bin/env python3
"""
Rotate plaintext secrets in AWS Secrets Manager into encrypted form.

Flow: load names → fetch plaintexts → fetch certificate → extract PEM →
build cipher → encrypt batch → write back.
"""

import argparse
import logging
import sys

from .config import Settings
from .crypto import create_encryption_context, extract_certificate, register_default_transformations
from .encryptor import encrypt_secrets
from .exceptions import SecretEncryptorError
from .loader import load_input_secrets
from .store import (
    AwsSecretsManagerStore,
    SecretStore,
    get_certificate_string,
    retrieve_plaintext_secrets,
    update_secrets_with_encrypted_value,
)

logger = logging.getLogger(__name__)


def run(settings: Settings, store: SecretStore | None = None) -> int:
    """
    Execute one rotation run.

    Args:
        settings: Resolved settings; validated here.
        store: Store to use instead of creating an AWS one. It is closed
            once validation has passed, whether the run succeeds or not.

    Returns:
        int: Number of secrets written back.
    """
    settings.validate()
    register_default_transformations()

    if store is None:
        store = AwsSecretsManagerStore(settings.aws_region)

    try:
        input_secrets = load_input_secrets(settings.secrets_file)
        if not input_secrets.secrets:
            logger.warning("Nothing to encrypt.")
            return 0

        records = retrieve_plaintext_secrets(store, input_secrets)
        if not records:
            logger.warning("No secrets retrieved. Nothing to encrypt.")
            return 0

        raw_certificate = get_certificate_string(store, settings.certificate_secret_name)
        pem = extract_certificate(raw_certificate, source=f"secret {settings.certificate_secret_name}")

        logger.info("Initializing cipher for encryption...")
        context = create_encryption_context(pem, settings.cipher_transformation)
        encrypt_secrets(records, context)

        if settings.dry_run:
            logger.info("Dry run: skipping write-back of %d secrets.", len(records))
            return 0
        return update_secrets_with_encrypted_value(store, records)
    finally:
        store.close()


def _describe(exc: BaseException) -> str:
    """Render an exception and its causes as one line."""
    parts = []
    seen = set()
    while exc is not None and id(exc) not in seen:
        seen.add(id(exc))
        parts.append(f"{type(exc).__name__}: {exc}")
        exc = exc.__cause__ or exc.__context__
    return " <- ".join(parts)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="secret-encryptor",
        description="Encrypt plaintext secrets in AWS Secrets Manager with a certificate's public key",
    )
    parser.add_argument(
        "--config",
        type=str,
        default=None,
        help="YAML config file (values may reference ${ENV_VARS})",
    )
    parser.add_argument(
        "--region",
        dest="aws_region",
        type=str,
        default=None,
        help="AWS region of the Secrets Manager",
    )
    parser.add_argument(
        "--cert-secret-name",
        dest="certificate_secret_name",
        type=str,
        default=None,
        help="Name of the secret holding the PEM certificate",
    )
    parser.add_argument(
        "--transformation",
        dest="cipher_transformation",
        type=str,
        default=None,
        help="Cipher transformation (default: RSA/ECB/PKCS1Padding)",
    )
    parser.add_argument(
        "--secrets-file",
        type=str,
        default=None,
        help="JSON file listing the secrets to encrypt (default: secrets.json)",
    )
    parser.add_argument(
        "--dry-run",
        action="store_true",
        default=None,
        help="Encrypt but do not update any secret",
    )
    parser.add_argument(
        "--debug",
        action="store_true",
        help="Enable debug logging",
    )
    return parser


def main(argv: list[str] | None = None) -> int:
    args = build_parser().parse_args(argv)

    logging.basicConfig(
        level=logging.INFO,
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        datefmt="%H:%M:%S",
    )
    if args.debug:
        logging.getLogger().setLevel(logging.DEBUG)

    logger.info("Starting secret encryption process...")
    try:
        settings = Settings.load(
            config_path=args.config,
            aws_region=args.aws_region,
            certificate_secret_name=args.certificate_secret_name,
            cipher_transformation=args.cipher_transformation,
            secrets_file=args.secrets_file,
            dry_run=args.dry_run,
        )
        run(settings)
    except SecretEncryptorError as e:
        logger.error("Process failed: %s", _describe(e))
        return 1
    except Exception as e:
        logger.exception("An unexpected error occurred during the process: %s", e)
        return 1

    logger.info("Secret encryption process completed successfully.")
    return 0


if __name__ == "__main__":
    sys.exit(main())
