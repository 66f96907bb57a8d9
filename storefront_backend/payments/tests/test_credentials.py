# payments/tests/test_credentials.py

import base64

from django.test import SimpleTestCase, override_settings

from payments.exceptions import CredentialDecryptionError, GatewayConfigurationError
from payments.services.credentials import decrypt_secret, encrypt_secret, generate_key


class CredentialEncryptionTests(SimpleTestCase):
    def setUp(self):
        self.key = generate_key()

    def test_encrypt_then_decrypt(self):
        token = encrypt_secret("rzp_secret_value", key=self.key)

        self.assertNotIn("rzp_secret_value", token)
        self.assertEqual(decrypt_secret(token, key=self.key), "rzp_secret_value")

    def test_same_plaintext_encrypts_differently(self):
        self.assertNotEqual(
            encrypt_secret("same", key=self.key),
            encrypt_secret("same", key=self.key),
        )

    def test_tampered_ciphertext_fails_authentication(self):
        raw = bytearray(base64.b64decode(encrypt_secret("secret", key=self.key)))
        raw[-1] ^= 0x01

        with self.assertRaises(CredentialDecryptionError):
            decrypt_secret(base64.b64encode(bytes(raw)).decode("ascii"), key=self.key)

    def test_wrong_key_fails(self):
        token = encrypt_secret("secret", key=self.key)
        with self.assertRaises(CredentialDecryptionError):
            decrypt_secret(token, key=generate_key())

    def test_truncated_and_garbage_tokens(self):
        with self.assertRaises(CredentialDecryptionError):
            decrypt_secret(base64.b64encode(b"short").decode("ascii"), key=self.key)
        with self.assertRaises(CredentialDecryptionError):
            decrypt_secret("not base64 !!", key=self.key)

    @override_settings(CREDENTIALS_ENCRYPTION_KEY="")
    def test_missing_key_is_configuration_error(self):
        with self.assertRaises(GatewayConfigurationError):
            encrypt_secret("secret")

    def test_key_must_be_32_bytes(self):
        short_key = base64.b64encode(b"x" * 16).decode("ascii")
        with self.assertRaises(GatewayConfigurationError):
            encrypt_secret("secret", key=short_key)
