"""Tests for secret_encryptor.encryptor: batch encryption and skip semantics."""

import base64
from unittest.mock import patch

import pytest
from cryptography.hazmat.primitives.asymmetric import padding

from secret_encryptor.crypto import create_encryption_context, extract_certificate
from secret_encryptor.encryptor import encrypt_secrets
from secret_encryptor.exceptions import EncryptionOperationError
from secret_encryptor.models import SecretRecord


@pytest.fixture
def context(rsa_certificate_pem):
    return create_encryption_context(rsa_certificate_pem)


def decrypt(private_key, value: str) -> str:
    return private_key.decrypt(base64.b64decode(value), padding.PKCS1v15()).decode("utf-8")


class TestEncryptSecrets:
    def test_batch_preserves_order_and_skips_empty(self, context, rsa_private_key):
        records = [
            SecretRecord("first", "a"),
            SecretRecord("second", ""),
            SecretRecord("third", "b"),
        ]
        result = encrypt_secrets(records, context)

        assert [r.identifier for r in result] == ["first", "second", "third"]
        assert decrypt(rsa_private_key, result[0].encrypted_password) == "a"
        assert result[1].encrypted_password == ""
        assert decrypt(rsa_private_key, result[2].encrypted_password) == "b"

    def test_returns_same_records(self, context):
        records = [SecretRecord("only", "value")]
        assert encrypt_secrets(records, context) is records

    def test_plaintext_left_untouched(self, context):
        records = [SecretRecord("db", "p@ssw0rd")]
        encrypt_secrets(records, context)
        assert records[0].password == "p@ssw0rd"
        assert records[0].encrypted_password != "p@ssw0rd"

    @pytest.mark.parametrize("password", ["", None])
    def test_empty_plaintext_never_reaches_cipher(self, context, password):
        records = [SecretRecord("empty", password)]
        with patch.object(context, "encrypt", wraps=context.encrypt) as spy:
            encrypt_secrets(records, context)
        assert spy.call_count == 0
        assert records[0].encrypted_password == ""

    def test_cipher_called_once_per_non_empty(self, context):
        records = [SecretRecord("a", "1"), SecretRecord("b", ""), SecretRecord("c", "3")]
        with patch.object(context, "encrypt", wraps=context.encrypt) as spy:
            encrypt_secrets(records, context)
        assert spy.call_count == 2

    def test_every_record_processed(self, context):
        records = [SecretRecord(str(i), "x" * i) for i in range(5)]
        encrypt_secrets(records, context)
        assert all(r.encrypted_password is not None for r in records)

    def test_output_is_standard_base64(self, context):
        records = [SecretRecord("k", "value")]
        encrypt_secrets(records, context)
        raw = base64.b64decode(records[0].encrypted_password, validate=True)
        assert len(raw) == 256

    def test_unicode_plaintext(self, context, rsa_private_key):
        records = [SecretRecord("k", "pässwörd-密码")]
        encrypt_secrets(records, context)
        assert decrypt(rsa_private_key, records[0].encrypted_password) == "pässwörd-密码"

    def test_same_plaintext_twice_decrypts_to_same(self, context, rsa_private_key):
        records = [SecretRecord("one", "repeat"), SecretRecord("two", "repeat")]
        encrypt_secrets(records, context)
        assert decrypt(rsa_private_key, records[0].encrypted_password) == "repeat"
        assert decrypt(rsa_private_key, records[1].encrypted_password) == "repeat"

    def test_no_records(self, context):
        assert encrypt_secrets(None, context) == []

    def test_empty_list_returned_as_is(self, context):
        records = []
        assert encrypt_secrets(records, context) is records


class TestFailFast:
    def test_oversized_plaintext_names_record(self, context):
        records = [
            SecretRecord("small", "ok"),
            SecretRecord("too-big", "x" * (context.max_payload_size + 1)),
            SecretRecord("never", "reached"),
        ]
        with pytest.raises(EncryptionOperationError) as excinfo:
            encrypt_secrets(records, context)

        assert excinfo.value.identifier == "too-big"
        assert "too-big" in str(excinfo.value)
        assert isinstance(excinfo.value.__cause__, ValueError)
        assert records[0].encrypted_password
        assert records[2].encrypted_password is None

    def test_unencodable_plaintext_names_record(self, context):
        records = [SecretRecord("ok", "fine"), SecretRecord("surrogate", "\ud800")]
        with pytest.raises(EncryptionOperationError) as excinfo:
            encrypt_secrets(records, context)
        assert excinfo.value.identifier == "surrogate"
        assert isinstance(excinfo.value.__cause__, UnicodeEncodeError)

    def test_multibyte_length_counts_bytes(self, context):
        # 123 two-byte characters = 246 bytes, one over the 245-byte limit
        records = [SecretRecord("wide", "é" * 123)]
        with pytest.raises(EncryptionOperationError):
            encrypt_secrets(records, context)


class TestCertificateInput:
    def test_builds_context_from_pem(self, rsa_certificate_pem, rsa_private_key):
        records = [SecretRecord("k", "v")]
        encrypt_secrets(records, rsa_certificate_pem)
        assert decrypt(rsa_private_key, records[0].encrypted_password) == "v"

    def test_end_to_end_from_wrapped_certificate(self, wrapped_certificate, rsa_certificate_pem, rsa_private_key):
        pem = extract_certificate(wrapped_certificate)
        assert pem == rsa_certificate_pem

        records = [SecretRecord("admin", "p@ssw0rd")]
        encrypt_secrets(records, create_encryption_context(pem))
        assert decrypt(rsa_private_key, records[0].encrypted_password) == "p@ssw0rd"
