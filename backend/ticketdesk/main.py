"""Application factory.

Run with ``uvicorn --factory ticketdesk.main:create_app``. Settings are
loaded once here; a missing SECRET_KEY stops the process at startup.
"""
import logging
from typing import Optional

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from ticketdesk.api.router import api_router
from ticketdesk.core.config import Settings, get_settings
from ticketdesk.core.credentials import CredentialStore
from ticketdesk.core.errors import StorageError
from ticketdesk.core.file_store import FileRecordStore
from ticketdesk.core.security import PasswordHasher
from ticketdesk.core.tickets import TicketService
from ticketdesk.core.tokens import TokenService
from ticketdesk.core.users import AuthenticationService
from ticketdesk.db.session import create_credential_engine
from ticketdesk.models.records import Ticket

LOG = logging.getLogger(__name__)


def configure_logging(level: str) -> None:
    logging.basicConfig(
        level=level.upper(),
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )


async def storage_error_handler(request: Request, exc: StorageError):
    LOG.error("Storage failure on %s %s: %s", request.method, request.url.path, exc)
    return JSONResponse(
        status_code=503,
        content={"error": "The service is temporarily unavailable. Please try again."},
    )


def create_app(settings: Optional[Settings] = None) -> FastAPI:
    settings = settings or get_settings()
    configure_logging(settings.LOG_LEVEL)

    engine = create_credential_engine(settings.USER_DB_PATH)
    hasher = PasswordHasher(
        iterations=settings.PASSWORD_HASH_ITERATIONS,
        algorithm=settings.PASSWORD_HASH_ALGORITHM,
        salt_size=settings.PASSWORD_SALT_SIZE,
    )

    app = FastAPI(title=settings.APP_NAME)
    app.state.settings = settings
    app.state.credential_engine = engine
    app.state.ticket_service = TicketService(
        FileRecordStore(settings.TICKET_STORE_PATH, Ticket)
    )
    app.state.auth_service = AuthenticationService(CredentialStore(engine), hasher)
    app.state.token_service = TokenService(
        settings.SECRET_KEY,
        issuer=settings.TOKEN_ISSUER,
        audience=settings.TOKEN_AUDIENCE,
        algorithm=settings.ALGORITHM,
    )

    app.add_exception_handler(StorageError, storage_error_handler)
    app.include_router(api_router)
    LOG.info("%s started (env=%s)", settings.APP_NAME, settings.ENV)
    return app
