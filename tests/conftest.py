import datetime

import pytest
from cryptography import x509
from cryptography.hazmat.primitives import hashes, serialization
from cryptography.hazmat.primitives.asymmetric import ec, rsa
from cryptography.x509.oid import NameOID


def _self_signed_pem(private_key, common_name: str) -> str:
    name = x509.Name([x509.NameAttribute(NameOID.COMMON_NAME, common_name)])
    now = datetime.datetime.now(datetime.timezone.utc)
    certificate = (
        x509.CertificateBuilder()
        .subject_name(name)
        .issuer_name(name)
        .public_key(private_key.public_key())
        .serial_number(x509.random_serial_number())
        .not_valid_before(now - datetime.timedelta(days=1))
        .not_valid_after(now + datetime.timedelta(days=30))
        .sign(private_key, hashes.SHA256())
    )
    return certificate.public_bytes(serialization.Encoding.PEM).decode("ascii")


@pytest.fixture(scope="session")
def rsa_private_key():
    return rsa.generate_private_key(public_exponent=65537, key_size=2048)


@pytest.fixture(scope="session")
def rsa_certificate_pem(rsa_private_key):
    """PEM block of a self-signed certificate for ``rsa_private_key``."""
    return _self_signed_pem(rsa_private_key, "secret-encryptor-test").strip()


@pytest.fixture(scope="session")
def ec_certificate_pem():
    return _self_signed_pem(ec.generate_private_key(ec.SECP256R1()), "ec-test").strip()


@pytest.fixture
def wrapped_certificate(rsa_certificate_pem):
    """Certificate text as stored in the secret, with metadata around the block."""
    return f"junk-prefix{rsa_certificate_pem}junk-suffix"
