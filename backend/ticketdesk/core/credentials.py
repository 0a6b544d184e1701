import logging
from typing import List, Optional

from sqlalchemy.engine import Engine
from sqlalchemy.exc import IntegrityError, SQLAlchemyError

from ticketdesk.core.errors import ConflictError, StorageError
from ticketdesk.db.session import init_db, make_session_factory
from ticketdesk.models.models import User

LOG = logging.getLogger(__name__)


class CredentialStore:
    """CRUD over the ``Users`` table.

    Each call opens and closes its own session. Returned rows are detached
    plain objects; modifying them has no effect until passed to update().
    """

    def __init__(self, engine: Engine):
        self._engine = engine
        self._session_factory = make_session_factory(engine)
        try:
            init_db(engine)
        except SQLAlchemyError as exc:
            raise StorageError(f"Failed to initialize credential database: {exc}") from exc

    def create(self, user: User) -> User:
        """Insert ``user`` and return it with its assigned id."""
        with self._session_factory() as session:
            session.add(user)
            try:
                session.commit()
            except IntegrityError as exc:
                session.rollback()
                raise ConflictError(f"Username '{user.username}' already exists.") from exc
            except SQLAlchemyError as exc:
                session.rollback()
                LOG.error("Database error during user creation: %s", exc)
                raise StorageError("Database error during user creation") from exc
            try:
                session.refresh(user)
            except SQLAlchemyError as exc:
                LOG.error("Database error while reloading created user: %s", exc)
                raise StorageError("Database error during user creation") from exc
            session.expunge(user)
            return user

    def list_users(self) -> List[User]:
        with self._session_factory() as session:
            try:
                users = session.query(User).order_by(User.id).all()
            except SQLAlchemyError as exc:
                LOG.error("Database error while retrieving users: %s", exc)
                raise StorageError("Database error while retrieving users") from exc
            session.expunge_all()
            return users

    def get_by_id(self, user_id: int) -> Optional[User]:
        return self._get_one(User.id == user_id)

    def get_by_username(self, username: str) -> Optional[User]:
        return self._get_one(User.username == username)

    def update(self, user: User) -> bool:
        """Write every column of ``user`` to the row with the same id."""
        with self._session_factory() as session:
            try:
                rows = (
                    session.query(User)
                    .filter(User.id == user.id)
                    .update(
                        {
                            User.username: user.username,
                            User.user_type: int(user.user_type),
                            User.password_hash: user.password_hash,
                            User.iterations: user.iterations,
                            User.salt: user.salt,
                            User.hash_algorithm: user.hash_algorithm,
                        },
                        synchronize_session=False,
                    )
                )
                session.commit()
            except IntegrityError as exc:
                session.rollback()
                raise ConflictError(f"Username '{user.username}' already exists.") from exc
            except SQLAlchemyError as exc:
                session.rollback()
                LOG.error("Database error during user update: %s", exc)
                raise StorageError("Database error during user update") from exc
            return rows > 0

    def delete(self, user_id: int) -> bool:
        with self._session_factory() as session:
            try:
                rows = (
                    session.query(User)
                    .filter(User.id == user_id)
                    .delete(synchronize_session=False)
                )
                session.commit()
            except SQLAlchemyError as exc:
                session.rollback()
                LOG.error("Database error while deleting user %s: %s", user_id, exc)
                raise StorageError("Database error while deleting user") from exc
            return rows > 0

    def _get_one(self, criterion) -> Optional[User]:
        with self._session_factory() as session:
            try:
                user = session.query(User).filter(criterion).first()
            except SQLAlchemyError as exc:
                LOG.error("Database error while retrieving user: %s", exc)
                raise StorageError("Database error while retrieving user") from exc
            if user is not None:
                session.expunge(user)
            return user
