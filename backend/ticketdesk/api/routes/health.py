from datetime import datetime, timezone

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.engine import Engine

from ticketdesk.core.config import Settings
from ticketdesk.core.dependencies import (
    get_app_settings,
    get_credential_engine,
    get_ticket_service,
)
from ticketdesk.core.tickets import TicketService
from ticketdesk.db.health import check_db, check_ticket_store

router = APIRouter()


def _timestamp() -> str:
    return datetime.now(timezone.utc).isoformat()


@router.get("/healthz")
def healthz(settings: Settings = Depends(get_app_settings)):
    return {
        "status": "ok",
        "app": settings.APP_NAME,
        "env": settings.ENV,
        "timestamp": _timestamp(),
    }


@router.get("/readyz")
def readyz(
    engine: Engine = Depends(get_credential_engine),
    tickets: TicketService = Depends(get_ticket_service),
):
    checks = {
        "database": "ok" if check_db(engine) else "fail",
        "ticket_store": "ok" if check_ticket_store(tickets) else "fail",
    }
    if all(v == "ok" for v in checks.values()):
        return {"status": "ready", "checks": checks, "timestamp": _timestamp()}
    raise HTTPException(
        status_code=503,
        detail={"status": "unavailable", "checks": checks, "timestamp": _timestamp()},
    )
