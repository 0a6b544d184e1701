import re
from typing import Optional
from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, status
from fastapi.responses import JSONResponse
from pydantic import BaseModel, ConfigDict, field_validator
from pydantic.alias_generators import to_camel

from ticketdesk.core.auth import require_staff
from ticketdesk.core.dependencies import get_ticket_service
from ticketdesk.core.tickets import TicketService
from ticketdesk.models.records import Ticket, TicketStatus

router = APIRouter(prefix="/api/tickets")

EMAIL_RE = re.compile(r"^[^@\s]+@[^@\s]+\.[^@\s]+$")


class CreateTicketRequest(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    full_name: str = ""
    email: str = ""
    issue_description: str = ""
    image_url: Optional[str] = None


class UpdateTicketRequest(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    name: Optional[str] = None
    email: Optional[str] = None
    description: Optional[str] = None
    summary: Optional[str] = None
    image_url: Optional[str] = None
    status: Optional[TicketStatus] = None
    resolution: Optional[str] = None

    @field_validator("status", mode="before")
    @classmethod
    def _parse_status(cls, v):
        return None if v is None else TicketStatus.parse(v)


def _validate_new_ticket(payload: CreateTicketRequest) -> dict:
    errors = {}
    if not payload.full_name.strip():
        errors["fullName"] = "Full name is required"
    elif len(payload.full_name.strip()) < 2:
        errors["fullName"] = "Full name must be at least 2 characters"

    if not payload.email.strip():
        errors["email"] = "Email is required"
    elif not EMAIL_RE.match(payload.email):
        errors["email"] = "Invalid email format"

    if not payload.issue_description.strip():
        errors["issueDescription"] = "Issue description is required"
    elif len(payload.issue_description.strip()) < 10:
        errors["issueDescription"] = "Issue description must be at least 10 characters"
    return errors


def _to_json(ticket: Ticket) -> dict:
    return ticket.model_dump(mode="json", by_alias=True)


def _not_found() -> HTTPException:
    return HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Ticket not found")


@router.post("", status_code=201)
def create_ticket(
    payload: CreateTicketRequest,
    tickets: TicketService = Depends(get_ticket_service),
):
    """Public ticket submission."""
    errors = _validate_new_ticket(payload)
    if errors:
        return JSONResponse(
            status_code=status.HTTP_400_BAD_REQUEST,
            content={"error": "Validation failed", "details": errors},
        )
    ticket = tickets.create(
        payload.full_name, payload.email, payload.issue_description, payload.image_url
    )
    return _to_json(ticket)


@router.get("")
def list_tickets(
    tickets: TicketService = Depends(get_ticket_service),
    claims=Depends(require_staff),
):
    return [_to_json(t) for t in tickets.get_all()]


@router.get("/{ticket_id}")
def get_ticket(
    ticket_id: UUID,
    tickets: TicketService = Depends(get_ticket_service),
    claims=Depends(require_staff),
):
    ticket = tickets.get_by_id(ticket_id)
    if ticket is None:
        raise _not_found()
    return _to_json(ticket)


@router.put("/{ticket_id}")
def update_ticket(
    ticket_id: UUID,
    payload: UpdateTicketRequest,
    tickets: TicketService = Depends(get_ticket_service),
    claims=Depends(require_staff),
):
    """Apply the supplied fields to the ticket; omitted fields keep their value."""
    existing = tickets.get_by_id(ticket_id)
    if existing is None:
        raise _not_found()
    changes = payload.model_dump(exclude_unset=True, exclude_none=True)
    updated = tickets.update(existing.model_copy(update=changes))
    if updated is None:
        raise _not_found()
    return _to_json(updated)


@router.delete("/{ticket_id}", status_code=204)
def delete_ticket(
    ticket_id: UUID,
    tickets: TicketService = Depends(get_ticket_service),
    claims=Depends(require_staff),
):
    if not tickets.delete(ticket_id):
        raise _not_found()
