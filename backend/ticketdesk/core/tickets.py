from typing import List, Optional, Union
from uuid import UUID

from ticketdesk.core.file_store import FileRecordStore
from ticketdesk.models.records import Ticket, TicketStatus


class TicketService:
    def __init__(self, store: FileRecordStore[Ticket]):
        self.store = store

    def create(
        self, name: str, email: str, description: str, image_url: Optional[str] = None
    ) -> Ticket:
        """Create a ticket in status NEW with empty summary and resolution."""
        ticket = Ticket(
            name=name,
            email=email,
            description=description,
            image_url=image_url or "",
            status=TicketStatus.NEW,
            summary="",
            resolution="",
        )
        return self.store.create(ticket)

    def get_all(self) -> List[Ticket]:
        return self.store.get_all()

    def get_by_id(self, ticket_id: Union[UUID, str]) -> Optional[Ticket]:
        return self.store.get_by_id(ticket_id)

    def update(self, ticket: Ticket) -> Optional[Ticket]:
        """Persist the mutable fields of ``ticket``; None if it no longer exists."""
        return self.store.update_and_get(ticket)

    def delete(self, ticket_id: Union[UUID, str]) -> bool:
        return self.store.delete(ticket_id)
