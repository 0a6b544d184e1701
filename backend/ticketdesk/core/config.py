from functools import lru_cache

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    APP_NAME: str = "ticketdesk-api"
    ENV: str = "dev"
    LOG_LEVEL: str = "INFO"

    # Storage
    TICKET_STORE_PATH: str = "App_Data/tickets.json"
    USER_DB_PATH: str = "App_Data/users.db"

    # Authentication. SECRET_KEY has no default: startup fails if it is unset.
    SECRET_KEY: str = Field(..., min_length=1)
    ALGORITHM: str = "HS256"
    ACCESS_TOKEN_EXPIRE_MINUTES: int = 1440
    TOKEN_ISSUER: str = "TicketSystem"
    TOKEN_AUDIENCE: str = "TicketSystemUsers"
    AUTH_COOKIE_NAME: str = "AuthToken"

    # Password hashing defaults for new credentials
    PASSWORD_HASH_ITERATIONS: int = Field(100000, gt=0)
    PASSWORD_HASH_ALGORITHM: str = "SHA256"
    PASSWORD_SALT_SIZE: int = Field(32, gt=0)

    model_config = SettingsConfigDict(env_file=".env", extra="ignore")


@lru_cache()
def get_settings() -> Settings:
    return Settings()
