import logging
from dataclasses import dataclass
from typing import List, Optional

from ticketdesk.core.credentials import CredentialStore
from ticketdesk.core.errors import InvalidArgumentError
from ticketdesk.core.security import PasswordHasher, decode_salt, encode_salt
from ticketdesk.models.models import User, UserType

LOG = logging.getLogger(__name__)

INVALID_CREDENTIALS_MESSAGE = "Invalid username or password"


@dataclass(frozen=True)
class LoginResult:
    success: bool
    user_id: Optional[int] = None
    user_type: Optional[UserType] = None
    error_message: str = ""

    @classmethod
    def failed(cls) -> "LoginResult":
        return cls(success=False, error_message=INVALID_CREDENTIALS_MESSAGE)


class AuthenticationService:
    """Registers users and verifies login attempts."""

    def __init__(self, store: CredentialStore, hasher: PasswordHasher):
        self.store = store
        self.hasher = hasher

    def register(self, username: str, password: str, user_type: UserType) -> User:
        """Hash ``password`` with the current defaults and persist the user.

        Raises ConflictError when the username is taken.
        """
        if not username or not username.strip():
            raise InvalidArgumentError("Username cannot be empty.")
        user = User(
            username=username,
            user_type=int(UserType(user_type)),
            **self._credential_fields(password),
        )
        created = self.store.create(user)
        LOG.info("Registered user %s (id=%s)", created.username, created.id)
        return created

    def login(self, username: str, password: str) -> LoginResult:
        """Check ``password`` against the stored credential.

        Unknown users and wrong passwords give the same result so callers
        cannot tell which usernames exist.
        """
        user = self.store.get_by_username(username) if username else None
        if user is None or not password:
            LOG.info("Failed login for %r", username)
            return LoginResult.failed()

        try:
            valid = self.hasher.verify_password(
                password,
                user.password_hash,
                decode_salt(user.salt),
                user.iterations,
                user.hash_algorithm,
            )
        except (InvalidArgumentError, ValueError) as exc:
            LOG.warning("Unusable stored credential for user id=%s: %s", user.id, exc)
            valid = False

        if not valid:
            LOG.info("Failed login for %r", username)
            return LoginResult.failed()
        if self.hasher.needs_rehash(user.iterations, user.hash_algorithm):
            LOG.info("Credential for user id=%s uses outdated hash parameters", user.id)
        return LoginResult(success=True, user_id=user.id, user_type=user.type)

    def change_password(self, user_id: int, new_password: str) -> bool:
        """Rehash with a fresh salt and the current defaults."""
        user = self.store.get_by_id(user_id)
        if user is None:
            return False
        for name, value in self._credential_fields(new_password).items():
            setattr(user, name, value)
        return self.store.update(user)

    def list_users(self) -> List[User]:
        return self.store.list_users()

    def delete_user(self, user_id: int) -> bool:
        return self.store.delete(user_id)

    def _credential_fields(self, password: str) -> dict:
        salt = self.hasher.generate_salt()
        return {
            "password_hash": self.hasher.hash_password(
                password, salt, self.hasher.iterations, self.hasher.algorithm
            ),
            "salt": encode_salt(salt),
            "iterations": self.hasher.iterations,
            "hash_algorithm": self.hasher.algorithm,
        }
