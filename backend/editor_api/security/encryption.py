"""
Token encryption at rest using Fernet (AES-128-CBC with HMAC-SHA256).

GitHub access tokens are only ever written to the token store encrypted.
"""

from cryptography.fernet import Fernet, InvalidToken
from typing import Optional
from editor_api.core.config import settings
import hashlib
import base64
import logging

logger = logging.getLogger(__name__)

_fernet_instance: Optional[Fernet] = None


def _get_fernet() -> Fernet:
    global _fernet_instance
    if _fernet_instance is not None:
        return _fernet_instance

    key = settings.ENCRYPTION_KEY
    if key:
        try:
            _fernet_instance = Fernet(key.encode())
            return _fernet_instance
        except ValueError:
            logger.warning("ENCRYPTION_KEY is not a valid Fernet key; deriving one from it")
            derived = hashlib.sha256(key.encode()).digest()
            _fernet_instance = Fernet(base64.urlsafe_b64encode(derived))
            return _fernet_instance

    if settings.is_production:
        raise ValueError("No encryption key configured. Set ENCRYPTION_KEY in environment.")

    # Local dev only: a per-process key, tokens do not survive a restart
    logger.warning("No ENCRYPTION_KEY set; using an ephemeral key (development only)")
    _fernet_instance = Fernet(Fernet.generate_key())
    return _fernet_instance


def reset_encryption() -> None:
    """Forget the cached Fernet instance (settings changed)."""
    global _fernet_instance
    _fernet_instance = None


def encrypt_github_token(token: str) -> str:
    """Encrypt GitHub token using Fernet (AES)."""
    f = _get_fernet()
    return f.encrypt(token.encode()).decode()


def decrypt_github_token(encrypted_token: str) -> str:
    """Decrypt GitHub token using Fernet (AES)."""
    f = _get_fernet()
    try:
        return f.decrypt(encrypted_token.encode()).decode()
    except InvalidToken:
        logger.error("Failed to decrypt token -- key may have changed or token is corrupted")
        raise ValueError("Token decryption failed")
