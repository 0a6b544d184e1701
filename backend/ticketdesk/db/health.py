import logging

from sqlalchemy import text
from sqlalchemy.engine import Engine
from sqlalchemy.exc import SQLAlchemyError

from ticketdesk.core.errors import StorageError
from ticketdesk.core.tickets import TicketService

LOG = logging.getLogger(__name__)


def check_db(engine: Engine) -> bool:
    try:
        with engine.connect() as conn:
            conn.execute(text("SELECT 1"))
        return True
    except SQLAlchemyError as exc:
        LOG.warning("Credential database check failed: %s", exc)
        return False


def check_ticket_store(tickets: TicketService) -> bool:
    try:
        tickets.get_all()
        return True
    except StorageError as exc:
        LOG.warning("Ticket store check failed: %s", exc)
        return False
