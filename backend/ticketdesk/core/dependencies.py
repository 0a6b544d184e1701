"""FastAPI dependencies resolving the services built in create_app().

Tests may override any of these through ``app.dependency_overrides``.
"""
from fastapi import Request
from sqlalchemy.engine import Engine

from ticketdesk.core.config import Settings
from ticketdesk.core.tickets import TicketService
from ticketdesk.core.tokens import TokenService
from ticketdesk.core.users import AuthenticationService


def get_app_settings(request: Request) -> Settings:
    return request.app.state.settings


def get_ticket_service(request: Request) -> TicketService:
    return request.app.state.ticket_service


def get_auth_service(request: Request) -> AuthenticationService:
    return request.app.state.auth_service


def get_token_service(request: Request) -> TokenService:
    return request.app.state.token_service


def get_credential_engine(request: Request) -> Engine:
    return request.app.state.credential_engine
