"""Encryption utilities for storing data source secrets."""
import base64
import hashlib

from cryptography.fernet import Fernet

from insightflow.modules.security.domain.ports import SecretsVaultPort


class CredentialEncryption(SecretsVaultPort):
    """Encrypt/decrypt connection secrets with a Fernet key derived from the configured passphrase."""

    def __init__(self, key: str):
        if not key:
            raise ValueError("ENCRYPTION_KEY not set in environment")
        derived = base64.urlsafe_b64encode(hashlib.sha256(key.encode()).digest())
        self.cipher = Fernet(derived)

    def encrypt(self, plaintext: str) -> str:
        return self.cipher.encrypt(plaintext.encode()).decode()

    def decrypt(self, ciphertext: str) -> str:
        return self.cipher.decrypt(ciphertext.encode()).decode()
