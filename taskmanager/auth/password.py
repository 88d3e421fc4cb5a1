"""
Password hashing with Argon2id.

Argon2id is memory-hard and side-channel resistant. Parameters are tuned
for roughly 250ms per hash and 64MB of memory on modern hardware.
"""

from argon2 import PasswordHasher
from argon2.exceptions import VerifyMismatchError, VerificationError, InvalidHashError

# Configure Argon2id with secure parameters
ph = PasswordHasher(
    time_cost=3,        # Number of iterations
    memory_cost=65536,  # 64 MB memory usage
    parallelism=4,      # Number of parallel threads
    hash_len=32,        # Length of the hash in bytes
    salt_len=16,        # Length of the random salt
)


def hash_password(password: str) -> str:
    """
    Hash a password using Argon2id.

    Args:
        password: The plaintext password to hash

    Returns:
        The hashed password string (includes algorithm, params, salt, and hash)
    """
    return ph.hash(password)


def verify_password(password: str, password_hash: str) -> bool:
    """
    Verify a password against its hash.

    Returns:
        True if password matches, False otherwise (including a malformed hash)
    """
    try:
        return ph.verify(password_hash, password)
    except VerifyMismatchError:
        return False
    except (VerificationError, InvalidHashError):
        # Hash is malformed - treat as verification failure
        return False


def needs_rehash(password_hash: str) -> bool:
    """
    Check if a password hash was produced with outdated parameters.
    Login rehashes transparently when this is True.
    """
    try:
        return ph.check_needs_rehash(password_hash)
    except InvalidHashError:
        return True
