"""Whole-file encryption for the credential cache.

Security Model:
- Key derived from the operator's cache password with PBKDF2-HMAC-SHA256
- Content encrypted with Fernet (AES-128-CBC + HMAC-SHA256)
- A fresh random salt on every write, stored next to the token
- Files written by ``openssl enc -aes-256-cbc -salt -pbkdf2`` are still
  readable so existing caches keep working; they are rewritten in the
  Fernet format on the next write

On-disk layouts:

    Fernet__ | salt (16 bytes) | Fernet token
    Salted__ | salt (8 bytes)  | AES-256-CBC ciphertext (legacy, read only)
"""

import base64
import logging
import secrets

from cryptography.fernet import Fernet, InvalidToken
from cryptography.hazmat.primitives import hashes, padding
from cryptography.hazmat.primitives.ciphers import Cipher, algorithms, modes
from cryptography.hazmat.primitives.kdf.pbkdf2 import PBKDF2HMAC

from .exceptions import AuthenticationError

logger = logging.getLogger(__name__)

FERNET_SIGNATURE = b"Fernet__"
LEGACY_SIGNATURE = b"Salted__"

SALT_SIZE = 16
LEGACY_SALT_SIZE = 8

# OWASP recommendation for SHA-256
KDF_ITERATIONS = 480_000
# openssl enc -pbkdf2 default
LEGACY_KDF_ITERATIONS = 10_000


def is_encrypted(data: bytes) -> bool:
    """Check whether raw cache content carries an encryption signature.

    Args:
        data: Raw bytes read from the backing file

    Returns:
        True if the content starts with a known signature
    """
    return data.startswith((FERNET_SIGNATURE, LEGACY_SIGNATURE))


class CacheCipher:
    """Encrypt and decrypt the cache content as a single blob.

    Example:
        >>> cipher = CacheCipher("correct horse")
        >>> blob = cipher.encrypt("GITHUB_TOKEN=ghp_abc\\n")
        >>> cipher.decrypt(blob)
        'GITHUB_TOKEN=ghp_abc\\n'
    """

    def __init__(self, passphrase: str) -> None:
        """Initialize cipher.

        Args:
            passphrase: Cache password supplied by the operator
        """
        if not passphrase:
            raise ValueError("Cache password cannot be empty")

        self._passphrase = passphrase.encode("utf-8")
        self._fernets: dict[bytes, Fernet] = {}

    def _fernet_for(self, salt: bytes) -> Fernet:
        """Derive (or reuse) the Fernet instance for a salt."""
        fernet = self._fernets.get(salt)
        if fernet is None:
            kdf = PBKDF2HMAC(
                algorithm=hashes.SHA256(),
                length=32,
                salt=salt,
                iterations=KDF_ITERATIONS,
            )
            key = kdf.derive(self._passphrase)
            # Fernet requires base64-encoded key
            fernet = Fernet(base64.urlsafe_b64encode(key))
            self._fernets[salt] = fernet
        return fernet

    def encrypt(self, plaintext: str) -> bytes:
        """Encrypt the full cache content.

        Args:
            plaintext: Serialized ``KEY=VALUE`` lines

        Returns:
            Signed blob ready to be written to disk
        """
        salt = secrets.token_bytes(SALT_SIZE)
        token = self._fernet_for(salt).encrypt(plaintext.encode("utf-8"))
        return FERNET_SIGNATURE + salt + token

    def decrypt(self, data: bytes) -> str:
        """Decrypt cache content in either supported layout.

        Args:
            data: Raw bytes read from the backing file

        Returns:
            The plaintext ``KEY=VALUE`` content

        Raises:
            AuthenticationError: If the password is wrong or the file is corrupted
        """
        if data.startswith(FERNET_SIGNATURE):
            return self._decrypt_fernet(data[len(FERNET_SIGNATURE) :])
        if data.startswith(LEGACY_SIGNATURE):
            return self._decrypt_legacy(data[len(LEGACY_SIGNATURE) :])

        raise AuthenticationError(
            "Cache file is not encrypted with a known format",
            suggestion="Reset the cache with --no-cache",
        )

    def _decrypt_fernet(self, payload: bytes) -> str:
        salt, token = payload[:SALT_SIZE], payload[SALT_SIZE:]
        if len(salt) != SALT_SIZE or not token:
            raise AuthenticationError(
                "Cache file is corrupted",
                suggestion="Reset the cache with --no-cache",
            )

        try:
            decrypted = self._fernet_for(salt).decrypt(token)
            return decrypted.decode("utf-8")
        except (InvalidToken, UnicodeDecodeError) as e:
            raise AuthenticationError(
                "Invalid cache password or corrupted cache file",
                suggestion="Verify your cache password or reset the cache with --no-cache",
            ) from e

    def _decrypt_legacy(self, payload: bytes) -> str:
        salt, ciphertext = payload[:LEGACY_SALT_SIZE], payload[LEGACY_SALT_SIZE:]

        try:
            kdf = PBKDF2HMAC(
                algorithm=hashes.SHA256(),
                length=48,  # 32-byte key followed by 16-byte IV
                salt=salt,
                iterations=LEGACY_KDF_ITERATIONS,
            )
            material = kdf.derive(self._passphrase)
            decryptor = Cipher(algorithms.AES(material[:32]), modes.CBC(material[32:])).decryptor()
            padded = decryptor.update(ciphertext) + decryptor.finalize()

            unpadder = padding.PKCS7(algorithms.AES.block_size).unpadder()
            plaintext = unpadder.update(padded) + unpadder.finalize()
            text = plaintext.decode("utf-8")
        except (ValueError, UnicodeDecodeError) as e:
            raise AuthenticationError(
                "Invalid cache password or corrupted cache file",
                suggestion="Verify your cache password or reset the cache with --no-cache",
            ) from e

        # CBC has no integrity check; a wrong key can still unpad cleanly
        if any(line and "=" not in line for line in text.splitlines()):
            raise AuthenticationError(
                "Invalid cache password or corrupted cache file",
                suggestion="Verify your cache password or reset the cache with --no-cache",
            )

        logger.debug("Decrypted legacy OpenSSL cache file")
        return text
