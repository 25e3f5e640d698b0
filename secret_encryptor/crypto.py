"""Certificate extraction and public-key encryption contexts.

Pipeline:
    raw secret text
        └── extract_certificate()        -> PEM block between the markers
                └── create_encryption_context() -> X.509 public key + padding
                        └── EncryptionContext.encrypt() -> ciphertext bytes

Transformation names follow the algorithm/mode/padding convention used by
JCE providers (e.g. ``RSA/ECB/PKCS1Padding``) so ciphertext produced here can
be decrypted by services that configure their ciphers by the same names.
"""

import logging
import threading
from dataclasses import dataclass
from typing import Callable

from cryptography import x509
from cryptography.exceptions import UnsupportedAlgorithm
from cryptography.hazmat.primitives import hashes
from cryptography.hazmat.primitives.asymmetric import padding, rsa
from cryptography.hazmat.primitives.asymmetric.padding import AsymmetricPadding

from .exceptions import (
    CertificateParseError,
    KeyInitializationError,
    MalformedCertificateError,
    UnsupportedTransformationError,
)

logger = logging.getLogger(__name__)

PEM_BEGIN_MARKER = "-----BEGIN CERTIFICATE-----"
PEM_END_MARKER = "-----END CERTIFICATE-----"

DEFAULT_TRANSFORMATION = "RSA/ECB/PKCS1Padding"

PKCS1_OVERHEAD = 11  # RFC 8017 section 7.2.1


@dataclass(frozen=True)
class Transformation:
    """A registered algorithm/mode/padding triple."""

    name: str
    key_type: type
    padding: Callable[[], AsymmetricPadding]
    overhead: int  # bytes of each block consumed by the padding scheme


def _oaep(algorithm: hashes.HashAlgorithm) -> Callable[[], AsymmetricPadding]:
    def factory() -> AsymmetricPadding:
        return padding.OAEP(
            mgf=padding.MGF1(algorithm=algorithm),
            algorithm=algorithm,
            label=None,
        )

    return factory


def _oaep_overhead(algorithm: hashes.HashAlgorithm) -> int:
    return 2 * algorithm.digest_size + 2


_transformations: dict[str, Transformation] = {}
_registry_lock = threading.Lock()
_defaults_registered = False


def register_transformation(transformation: Transformation) -> None:
    """Make a transformation available under its (case-insensitive) name."""
    with _registry_lock:
        _transformations[transformation.name.upper()] = transformation


def register_default_transformations() -> None:
    """Register the built-in RSA transformations.

    Safe to call any number of times; only the first call registers anything.
    """
    global _defaults_registered
    with _registry_lock:
        if _defaults_registered:
            return
        logger.info("Registering default cipher transformations.")
        defaults = [
            Transformation("RSA/ECB/PKCS1Padding", rsa.RSAPublicKey, padding.PKCS1v15, PKCS1_OVERHEAD),
            Transformation("RSA/NONE/PKCS1Padding", rsa.RSAPublicKey, padding.PKCS1v15, PKCS1_OVERHEAD),
            Transformation(
                "RSA/ECB/OAEPPadding",
                rsa.RSAPublicKey,
                _oaep(hashes.SHA1()),
                _oaep_overhead(hashes.SHA1()),
            ),
            Transformation(
                "RSA/ECB/OAEPWithSHA-1AndMGF1Padding",
                rsa.RSAPublicKey,
                _oaep(hashes.SHA1()),
                _oaep_overhead(hashes.SHA1()),
            ),
            Transformation(
                "RSA/ECB/OAEPWithSHA-256AndMGF1Padding",
                rsa.RSAPublicKey,
                _oaep(hashes.SHA256()),
                _oaep_overhead(hashes.SHA256()),
            ),
        ]
        for transformation in defaults:
            _transformations.setdefault(transformation.name.upper(), transformation)
        _defaults_registered = True


def get_transformation(name: str) -> Transformation:
    """Look up a registered transformation by name.

    Raises:
        UnsupportedTransformationError: If no transformation has that name.
    """
    register_default_transformations()
    key = (name or "").strip().upper()
    if key == "RSA":
        key = DEFAULT_TRANSFORMATION.upper()
    with _registry_lock:
        transformation = _transformations.get(key)
    if transformation is None:
        raise UnsupportedTransformationError(f"Unsupported cipher transformation: {name!r}")
    return transformation


def extract_certificate(raw: str, source: str | None = None) -> str:
    """Isolate the PEM certificate block from text that may carry metadata.

    The first BEGIN marker and the first END marker delimit the block; both
    markers are included in the result.

    Args:
        raw: Text containing a PEM certificate, possibly wrapped in other data.
        source: Where the text came from, used in error messages.

    Returns:
        The substring from the BEGIN marker through the end of the END marker.

    Raises:
        MalformedCertificateError: If either marker is missing, or the END
            marker comes before the BEGIN marker.
    """
    origin = f" from {source}" if source else ""
    if not raw:
        raise MalformedCertificateError(f"Certificate data{origin} is empty.")

    begin = raw.find(PEM_BEGIN_MARKER)
    end = raw.find(PEM_END_MARKER)

    if begin == -1:
        logger.error("Could not find '%s' marker in certificate data%s.", PEM_BEGIN_MARKER, origin)
        raise MalformedCertificateError(f"Certificate data{origin} is missing the BEGIN marker.")
    if end == -1:
        logger.error("Could not find '%s' marker in certificate data%s.", PEM_END_MARKER, origin)
        raise MalformedCertificateError(f"Certificate data{origin} is missing the END marker.")
    if end < begin:
        logger.warning("END marker at offset %d precedes BEGIN marker at offset %d%s.", end, begin, origin)
        raise MalformedCertificateError(f"Certificate data{origin} has the END marker before the BEGIN marker.")

    block = raw[begin : end + len(PEM_END_MARKER)]
    logger.info("Extracted PEM certificate block. Length: %d", len(block))
    return block


class EncryptionContext:
    """A public key bound to a transformation, ready for repeated encryption.

    Each ``encrypt`` call holds the context's lock for the duration of the
    primitive call, so one context may be shared between callers.
    """

    def __init__(self, public_key: rsa.RSAPublicKey, transformation: Transformation):
        self._public_key = public_key
        self._transformation = transformation
        self._padding = transformation.padding()
        self._lock = threading.Lock()

    @property
    def transformation(self) -> str:
        return self._transformation.name

    @property
    def key_size(self) -> int:
        return self._public_key.key_size

    @property
    def max_payload_size(self) -> int:
        """Largest plaintext, in bytes, a single encrypt call accepts."""
        return (self._public_key.key_size + 7) // 8 - self._transformation.overhead

    def encrypt(self, data: bytes) -> bytes:
        """Encrypt one block of data.

        Raises:
            ValueError: If the primitive rejects the payload (e.g. too long
                for the key size and padding).
        """
        with self._lock:
            return self._public_key.encrypt(data, self._padding)

    def __repr__(self) -> str:
        return f"EncryptionContext(transformation={self.transformation!r}, key_size={self.key_size})"


def load_certificate(pem: str) -> x509.Certificate:
    """Parse a PEM block as an X.509 certificate.

    Raises:
        CertificateParseError: If the block is empty or not a valid certificate.
    """
    if not pem:
        raise CertificateParseError("Certificate string provided for encryption is empty.")
    try:
        return x509.load_pem_x509_certificate(pem.encode("utf-8"))
    except ValueError as exc:
        raise CertificateParseError(f"Could not parse X.509 certificate: {exc}") from exc


def create_encryption_context(pem: str, transformation: str = DEFAULT_TRANSFORMATION) -> EncryptionContext:
    """Build an encryption context from a certificate's public key.

    Args:
        pem: A PEM certificate block (see ``extract_certificate``).
        transformation: Algorithm/mode/padding name, e.g. ``RSA/ECB/PKCS1Padding``.

    Returns:
        An EncryptionContext for the certificate's public key.

    Raises:
        CertificateParseError: If ``pem`` is not a valid X.509 certificate.
        UnsupportedTransformationError: If ``transformation`` is unknown.
        KeyInitializationError: If the key cannot be used with the transformation.
    """
    logger.info("Using cipher transformation: %s", transformation)
    certificate = load_certificate(pem)
    resolved = get_transformation(transformation)

    try:
        public_key = certificate.public_key()
    except (ValueError, UnsupportedAlgorithm) as exc:
        raise KeyInitializationError(f"Could not load certificate public key: {exc}") from exc

    if not isinstance(public_key, resolved.key_type):
        raise KeyInitializationError(
            f"Certificate key of type {type(public_key).__name__} "
            f"cannot be used with transformation {resolved.name}"
        )

    context = EncryptionContext(public_key, resolved)
    if context.max_payload_size <= 0:
        raise KeyInitializationError(
            f"A {context.key_size}-bit key is too small for transformation {resolved.name}"
        )
    logger.info("Cipher initialized: %s, %d-bit key.", resolved.name, context.key_size)
    return context
