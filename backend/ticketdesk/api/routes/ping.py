from fastapi import APIRouter, Depends

from ticketdesk.core.config import Settings
from ticketdesk.core.dependencies import get_app_settings

router = APIRouter()


@router.get("/ping")
def ping(settings: Settings = Depends(get_app_settings)):
    return {"status": "ok", "app": settings.APP_NAME, "env": settings.ENV}
