# secret_encryptor/models.py
"""
Secret Models

Dataclasses passed between the loader, the secret store and the encryptor.
"""

from dataclasses import dataclass, field


@dataclass
class InputSecrets:
    """
    Names of the secrets to rotate, as listed in the input file.

    Attributes:
        secrets: Secret names (or ARNs) in processing order.
    """

    secrets: list[str] = field(default_factory=list)


@dataclass
class SecretRecord:
    """
    A secret during the course of a single run.

    Attributes:
        identifier: Name of the secret in the store, unique within a batch.
        password: Plaintext value fetched from the store. Never modified.
        encrypted_password: Base64 ciphertext once encrypted, or "" when there
            was nothing to encrypt. None until the encryptor has run.
    """

    identifier: str
    password: str | None = field(default=None, repr=False)
    encrypted_password: str | None = field(default=None, repr=False)
