from fastapi import APIRouter

from ticketdesk.api.routes.admin import router as admin_router
from ticketdesk.api.routes.auth import router as auth_router
from ticketdesk.api.routes.health import router as health_router
from ticketdesk.api.routes.ping import router as ping_router
from ticketdesk.api.routes.tickets import router as tickets_router

api_router = APIRouter()
api_router.include_router(ping_router)
api_router.include_router(health_router)
api_router.include_router(auth_router)
api_router.include_router(admin_router)
api_router.include_router(tickets_router)
