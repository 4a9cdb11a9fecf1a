from insightflow.modules.security.adapters.fernet_encryptor import CredentialEncryption
from insightflow.modules.security.domain.ports import SecretsVaultPort

__all__ = ["CredentialEncryption", "SecretsVaultPort"]
