import base64
import secrets
from typing import Optional

from passlib.crypto.digest import pbkdf2_hmac
from passlib.utils import consteq

from ticketdesk.core.errors import InvalidArgumentError

# Digest name -> (hashlib name, derived key length in bytes)
SUPPORTED_ALGORITHMS = {
    "SHA1": ("sha1", 20),
    "SHA256": ("sha256", 32),
    "SHA384": ("sha384", 48),
    "SHA512": ("sha512", 64),
}


def _resolve_algorithm(algorithm: str):
    try:
        return SUPPORTED_ALGORITHMS[(algorithm or "").upper()]
    except KeyError:
        raise InvalidArgumentError(f"Unsupported hash algorithm: {algorithm!r}")


class PasswordHasher:
    """PBKDF2 password hashing with per-credential parameters.

    The defaults only apply to new credentials. Verification always uses
    the salt, iteration count and algorithm recorded with the credential,
    so raising the defaults never invalidates stored hashes.
    """

    def __init__(
        self,
        *,
        iterations: int = 100000,
        algorithm: str = "SHA256",
        salt_size: int = 32,
    ):
        if iterations <= 0:
            raise InvalidArgumentError("Iteration count must be greater than 0.")
        _resolve_algorithm(algorithm)
        self.iterations = iterations
        self.algorithm = algorithm.upper()
        self.salt_size = salt_size

    def generate_salt(self, size: Optional[int] = None) -> bytes:
        """Return ``size`` bytes from the OS CSPRNG."""
        size = self.salt_size if size is None else size
        if size <= 0:
            raise InvalidArgumentError("Salt size must be greater than 0.")
        return secrets.token_bytes(size)

    def hash_password(
        self, password: str, salt: bytes, iterations: int, algorithm: str
    ) -> str:
        """Derive a base64-encoded PBKDF2 digest.

        The output length follows the digest family: 20, 32, 48 or 64 bytes
        for SHA1, SHA256, SHA384 and SHA512.
        """
        if not password:
            raise InvalidArgumentError("Password cannot be null or empty.")
        if salt is None:
            raise InvalidArgumentError("Salt cannot be null.")
        if iterations <= 0:
            raise InvalidArgumentError("Iteration count must be greater than 0.")
        digest, keylen = _resolve_algorithm(algorithm)

        derived = pbkdf2_hmac(
            digest, password.encode("utf-8"), bytes(salt), iterations, keylen
        )
        return base64.b64encode(derived).decode("ascii")

    def verify_password(
        self,
        password: str,
        stored_hash: str,
        salt: bytes,
        iterations: int,
        algorithm: str,
    ) -> bool:
        """Recompute the hash with the stored parameters and compare."""
        if not password:
            return False
        calculated = self.hash_password(password, salt, iterations, algorithm)
        return consteq(calculated, stored_hash or "")

    def needs_rehash(self, iterations: int, algorithm: str) -> bool:
        """True when stored parameters are weaker than the current defaults."""
        if (algorithm or "").upper() not in SUPPORTED_ALGORITHMS:
            return True
        current_len = SUPPORTED_ALGORITHMS[self.algorithm][1]
        stored_len = SUPPORTED_ALGORITHMS[algorithm.upper()][1]
        return iterations < self.iterations or stored_len < current_len


def encode_salt(salt: bytes) -> str:
    return base64.b64encode(salt).decode("ascii")


def decode_salt(value: str) -> bytes:
    return base64.b64decode(value.encode("ascii"))
