"""Errors raised while rotating secrets into encrypted form."""


class SecretEncryptorError(Exception):
    """Base exception for every failure that aborts a run."""


class ConfigurationError(SecretEncryptorError):
    """Raised when a required setting (region, secret names) is missing."""


class InputSecretsError(SecretEncryptorError):
    """Raised when the input secrets file cannot be read or parsed."""


class MalformedCertificateError(SecretEncryptorError):
    """Raised when certificate text lacks a usable BEGIN/END block."""


class CipherInitializationError(SecretEncryptorError):
    """Base exception for failures while building an encryption context."""


class CertificateParseError(CipherInitializationError):
    """Raised when a PEM block is not a valid X.509 certificate."""


class UnsupportedTransformationError(CipherInitializationError):
    """Raised when a transformation name has no registered padding scheme."""


class KeyInitializationError(CipherInitializationError):
    """Raised when the certificate key cannot be used with the transformation."""


class EncryptionOperationError(SecretEncryptorError):
    """Raised when a single secret could not be encrypted."""

    def __init__(self, identifier: str, message: str | None = None):
        self.identifier = identifier
        super().__init__(message or f"Error when encrypting secret '{identifier}'")


class SecretStoreError(SecretEncryptorError):
    """Raised when the secret store rejects or fails a request."""


class SecretNotFoundError(SecretStoreError):
    """Raised when a named secret does not exist in the store."""

    def __init__(self, secret_name: str):
        self.secret_name = secret_name
        super().__init__(f"Secret not found: {secret_name}")
