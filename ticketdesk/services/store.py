"""
Ticket Desk Store

One durable record, keyed by a fixed name, holding the whole ticket
collection as a JSON array. Reads and writes are whole-collection:
save() replaces the record atomically, never patches it.
"""

import os
import tempfile
from pathlib import Path
from typing import Any, Dict, Iterable, List, Optional

from pydantic import TypeAdapter
from pydantic import ValidationError as SchemaError
from pydantic_core import PydanticSerializationError

from ..config import Settings, get_settings
from ..models.ticket import Ticket
from ..utils.logger import setup_logger
from .errors import StoreError

logger = setup_logger(__name__)

_collection = TypeAdapter(List[Ticket])
_raw_records = TypeAdapter(List[Dict[str, Any]])


class TicketStore:
    """
    JSON-file store for the ticket collection.

    load() treats a missing or corrupt record as "no prior data" and
    drops individual tickets that fail validation.
    save() raises StoreError and leaves the previous record in place
    when anything goes wrong.
    """

    def __init__(self, path: Optional[Path] = None, settings: Optional[Settings] = None):
        settings = settings or get_settings()
        self.path = Path(path) if path is not None else settings.store_path

    def load(self) -> List[Ticket]:
        if not self.path.exists():
            logger.info(f"No ticket record at {self.path}, starting fresh")
            return []

        try:
            raw = self.path.read_bytes()
            records = _raw_records.validate_json(raw)
        except (OSError, SchemaError) as e:
            logger.warning(f"Ticket record at {self.path} is unreadable, starting fresh: {e}")
            return []

        return self._dedupe(self._parse(records))

    def save(self, tickets: Iterable[Ticket]) -> None:
        try:
            payload = _collection.dump_json(list(tickets), by_alias=True, indent=2)
        except (PydanticSerializationError, SchemaError, TypeError, ValueError) as e:
            logger.error(f"Failed to serialize tickets: {e}")
            raise StoreError(f"Could not serialize tickets: {e}") from e

        tmp_name = None
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            with tempfile.NamedTemporaryFile(
                dir=self.path.parent,
                prefix=f".{self.path.stem}-",
                suffix=".tmp",
                delete=False,
            ) as fh:
                tmp_name = fh.name
                fh.write(payload)
                fh.flush()
                os.fsync(fh.fileno())
            os.replace(tmp_name, self.path)
        except OSError as e:
            if tmp_name and os.path.exists(tmp_name):
                os.unlink(tmp_name)
            logger.error(f"Failed to write ticket record {self.path}: {e}")
            raise StoreError(f"Could not save tickets: {e}") from e

        logger.debug(f"Saved {len(payload)} bytes to {self.path}")

    @staticmethod
    def _parse(records: List[Dict[str, Any]]) -> List[Ticket]:
        tickets = []
        for position, record in enumerate(records):
            try:
                tickets.append(Ticket.model_validate(record))
            except SchemaError as e:
                logger.warning(f"Dropping invalid ticket at position {position} from record: {e}")
        return tickets

    @staticmethod
    def _dedupe(tickets: List[Ticket]) -> List[Ticket]:
        seen = set()
        unique = []
        for ticket in tickets:
            if ticket.ticket_id in seen:
                logger.warning(f"Dropping duplicate ticket {ticket.ticket_id} from record")
                continue
            seen.add(ticket.ticket_id)
            unique.append(ticket)
        return unique
