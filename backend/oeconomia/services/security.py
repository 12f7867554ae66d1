"""
Security Service - Password hashing for dashboard users.

Passwords are stored as PBKDF2-HMAC-SHA256 hashes with a random per-user
salt, encoded as ``pbkdf2_sha256$<iterations>$<salt b64>$<hash b64>``.
"""
import hmac
import logging
import secrets
from base64 import b64encode, b64decode

from cryptography.hazmat.primitives.kdf.pbkdf2 import PBKDF2HMAC
from cryptography.hazmat.primitives import hashes

logger = logging.getLogger(__name__)

ALGORITHM = "pbkdf2_sha256"
KEY_SIZE = 32  # 256 bits
SALT_SIZE = 16  # 128 bits
PBKDF2_ITERATIONS = 100000


class SecurityError(Exception):
    """Raised when a stored password hash cannot be parsed."""
    pass


def _derive(password: str, salt: bytes, iterations: int) -> bytes:
    kdf = PBKDF2HMAC(
        algorithm=hashes.SHA256(),
        length=KEY_SIZE,
        salt=salt,
        iterations=iterations,
    )
    return kdf.derive(password.encode("utf-8"))


def hash_password(password: str, iterations: int = PBKDF2_ITERATIONS) -> str:
    """Hash a plain-text password with a fresh random salt."""
    salt = secrets.token_bytes(SALT_SIZE)
    key = _derive(password, salt, iterations)
    return f"{ALGORITHM}${iterations}${b64encode(salt).decode()}${b64encode(key).decode()}"


def verify_password(password: str, hashed_password: str) -> bool:
    """
    Check a plain-text password against a stored hash.

    Returns:
        True if the password matches, False otherwise

    Raises:
        SecurityError: If the stored hash is not in the expected format
    """
    try:
        algorithm, iterations, salt_b64, key_b64 = hashed_password.split("$")
        if algorithm != ALGORITHM:
            raise ValueError(f"unsupported algorithm {algorithm!r}")
        salt = b64decode(salt_b64)
        expected = b64decode(key_b64)
        rounds = int(iterations)
    except ValueError as e:
        logger.error(f"Malformed password hash: {e}")
        raise SecurityError("Stored password hash is malformed") from e

    return hmac.compare_digest(_derive(password, salt, rounds), expected)
