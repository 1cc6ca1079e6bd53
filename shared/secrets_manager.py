"""
Secrets management for the token proxy services.
"""

import os
import json
import base64
from typing import Dict, Optional
from cryptography.fernet import Fernet
from cryptography.hazmat.primitives import hashes
from cryptography.hazmat.primitives.kdf.pbkdf2 import PBKDF2HMAC
import logging

from .config import OneMapCredentials, ServiceConfig

logger = logging.getLogger(__name__)

ONEMAP_EMAIL_KEY = "ONEMAP_EMAIL"
ONEMAP_PASSWORD_KEY = "ONEMAP_PASSWORD"

KNOWN_SECRETS = (ONEMAP_EMAIL_KEY, ONEMAP_PASSWORD_KEY)


class SecretsManager:
    """
    Resolves secrets from the environment or an encrypted secrets file.
    """

    def __init__(self, master_key: Optional[str] = None, secrets_file: Optional[str] = None):
        """
        Initialize the secrets manager.

        Args:
            master_key: Master key for encryption/decryption. Only needed
                when secrets are read from or written to the secrets file.
            secrets_file: Path to the JSON secrets file
        """
        self.master_key = master_key or os.getenv("TOKEN_PROXY_MASTER_KEY")
        self.secrets_file = secrets_file or os.getenv("TOKEN_PROXY_SECRETS_FILE")
        self._fernet = self._create_fernet() if self.master_key else None

    def _create_fernet(self) -> Fernet:
        """
        Create a Fernet cipher instance.

        Returns:
            Fernet cipher instance
        """
        kdf = PBKDF2HMAC(
            algorithm=hashes.SHA256(),
            length=32,
            salt=b'onemap_token_proxy_salt',
            iterations=100000,
        )
        key = base64.urlsafe_b64encode(kdf.derive(self.master_key.encode()))
        return Fernet(key)

    def _require_fernet(self) -> Fernet:
        if self._fernet is None:
            raise ValueError("Master key is required")
        return self._fernet

    def encrypt_secret(self, secret: str) -> str:
        """
        Encrypt a secret.

        Args:
            secret: Secret to encrypt

        Returns:
            Encrypted secret
        """
        encrypted = self._require_fernet().encrypt(secret.encode())
        return base64.urlsafe_b64encode(encrypted).decode()

    def decrypt_secret(self, encrypted_secret: str) -> str:
        """
        Decrypt a secret.

        Args:
            encrypted_secret: Encrypted secret

        Returns:
            Decrypted secret
        """
        decoded = base64.urlsafe_b64decode(encrypted_secret.encode())
        return self._require_fernet().decrypt(decoded).decode()

    def _read_secrets_file(self, path: Optional[str] = None) -> Dict[str, str]:
        path = path or self.secrets_file
        if not path or not os.path.exists(path):
            return {}
        try:
            with open(path, 'r') as f:
                return json.load(f)
        except (OSError, ValueError) as e:
            logger.warning(f"Failed to read secrets file: {e}")
            return {}

    def get_secret(self, key: str, default: Optional[str] = None) -> Optional[str]:
        """
        Get a secret by key.

        The environment variable of the same name wins over the secrets file.

        Args:
            key: Secret key
            default: Default value if secret not found

        Returns:
            Secret value or default
        """
        secret = os.getenv(key.upper())
        if secret:
            return secret

        secrets = self._read_secrets_file()
        if key in secrets:
            try:
                return self.decrypt_secret(secrets[key])
            except Exception as e:
                logger.warning(f"Failed to decrypt secret '{key}': {e}")

        return default

    def set_secret(self, key: str, value: str, encrypt: bool = True) -> None:
        """
        Set a secret in the secrets file.

        Args:
            key: Secret key
            value: Secret value
            encrypt: Whether to encrypt the secret
        """
        stored_value = self.encrypt_secret(value) if encrypt else value

        secret_file = self.secrets_file or "secrets.json"
        secrets = self._read_secrets_file(secret_file)
        secrets[key] = stored_value

        with open(secret_file, 'w') as f:
            json.dump(secrets, f, indent=2)
        logger.info(f"Secret '{key}' saved to {secret_file}")

    def get_onemap_credentials(self, config: Optional[ServiceConfig] = None) -> OneMapCredentials:
        """
        Resolve the OneMap login credentials.

        Values already loaded into ``config`` take precedence over the
        environment and the secrets file.
        """
        email = config.onemap_email if config else None
        password = config.onemap_password if config else None
        return OneMapCredentials(
            email=email or self.get_secret(ONEMAP_EMAIL_KEY),
            password=password or self.get_secret(ONEMAP_PASSWORD_KEY),
        )

    def list_secrets(self) -> Dict[str, bool]:
        """
        List known secrets and whether each one can be resolved.

        Returns:
            Dictionary mapping secret keys to availability status
        """
        secrets = {key: bool(os.getenv(key)) for key in KNOWN_SECRETS}
        for key in self._read_secrets_file():
            secrets[key] = True
        return secrets


def get_secrets_manager(config: Optional[ServiceConfig] = None) -> SecretsManager:
    """
    Build a secrets manager from service configuration.

    Returns:
        SecretsManager instance
    """
    if config is None:
        return SecretsManager()
    return SecretsManager(master_key=config.master_key, secrets_file=config.secrets_file)
