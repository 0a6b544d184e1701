import enum

from sqlalchemy import Column, Integer, String

from ticketdesk.db.session import Base


class UserType(enum.IntEnum):
    """Account classification. The integer value is the storage encoding."""

    CUSTOMER = 0
    USER = 1
    ADMIN = 2

    @property
    def is_staff(self) -> bool:
        return self in (UserType.USER, UserType.ADMIN)


class User(Base):
    __tablename__ = "Users"
    __table_args__ = {"sqlite_autoincrement": True}

    id = Column("Id", Integer, primary_key=True, autoincrement=True)
    username = Column("Username", String, unique=True, nullable=False)
    user_type = Column("UserType", Integer, nullable=False, default=int(UserType.CUSTOMER))
    password_hash = Column("PasswordHash", String, nullable=False)
    iterations = Column("Iterations", Integer, nullable=False)
    salt = Column("Salt", String, nullable=False)  # base64 of the raw salt bytes
    hash_algorithm = Column("HashAlgorithm", String, nullable=False)

    @property
    def type(self) -> UserType:
        return UserType(self.user_type)

    def __repr__(self):
        return f"<User {self.username}>"
