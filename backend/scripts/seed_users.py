#!/usr/bin/env python3
"""Script to seed the credential database with initial accounts.

Reads SEED_ADMIN_USERNAME / SEED_ADMIN_PASSWORD (and optionally
SEED_STAFF_USERNAME / SEED_STAFF_PASSWORD) from the environment.
"""
import logging
import os
import sys

from ticketdesk.core.config import get_settings
from ticketdesk.core.credentials import CredentialStore
from ticketdesk.core.errors import ConflictError
from ticketdesk.core.security import PasswordHasher
from ticketdesk.core.users import AuthenticationService
from ticketdesk.db.session import create_credential_engine
from ticketdesk.models.models import UserType

LOG = logging.getLogger("seed_users")
logging.basicConfig(
    level=logging.INFO, format="%(asctime)s - %(name)s - %(levelname)s - %(message)s"
)


def build_auth_service(settings) -> AuthenticationService:
    engine = create_credential_engine(settings.USER_DB_PATH)
    hasher = PasswordHasher(
        iterations=settings.PASSWORD_HASH_ITERATIONS,
        algorithm=settings.PASSWORD_HASH_ALGORITHM,
        salt_size=settings.PASSWORD_SALT_SIZE,
    )
    return AuthenticationService(CredentialStore(engine), hasher)


def seed_users(auth: AuthenticationService, accounts) -> int:
    """Register each (username, password, user_type); existing usernames are skipped."""
    created = 0
    for username, password, user_type in accounts:
        try:
            user = auth.register(username, password, user_type)
        except ConflictError:
            LOG.info("User %s already exists, skipping", username)
            continue
        LOG.info("Created %s account %s (id=%s)", user_type.name.lower(), username, user.id)
        created += 1
    return created


def accounts_from_env(environ=os.environ):
    accounts = []
    for prefix, user_type in (("SEED_ADMIN", UserType.ADMIN), ("SEED_STAFF", UserType.USER)):
        username = environ.get(f"{prefix}_USERNAME")
        password = environ.get(f"{prefix}_PASSWORD")
        if username and password:
            accounts.append((username, password, user_type))
    return accounts


if __name__ == "__main__":
    accounts = accounts_from_env()
    if not accounts:
        LOG.error("Set SEED_ADMIN_USERNAME and SEED_ADMIN_PASSWORD to seed users.")
        sys.exit(1)
    seed_users(build_auth_service(get_settings()), accounts)
