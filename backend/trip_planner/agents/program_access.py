# backend/trip_planner/agents/program_access.py

import sqlite3
from typing import Any, Dict, Iterable, List, Optional

from trip_planner.core.errors import NotFound
from trip_planner.core.logger import get_logger
from trip_planner.db.storage import StorageError
from trip_planner.models.program_models import Program
from trip_planner.utils.sanitize import sanitize_object

log = get_logger("agents")


# stored program text is user-authored, so it is bounded like request text
PROGRAM_FIELD_TYPES: Dict[str, str] = {
    "title": "title",
    "address": "address",
    "description": "description",
    "notes": "notes",
    "ai_suggestions": "suggestions",
    "question": "topic",
    "answer": "context",
    "details": "context",
}


def load_program(storage, user_id: str, program_id: str) -> Program:
    row = storage.get("programs", {"id": program_id, "user_id": user_id})
    if row is None:
        raise NotFound(f"Program {program_id} not found for user {user_id}", "Programa não encontrado")
    return Program.model_validate(row)


def sanitized(program: Program) -> Program:
    return Program.model_validate(sanitize_object(program.model_dump(), PROGRAM_FIELD_TYPES))


def region_of(address: Optional[str]) -> Optional[str]:
    """First comma-separated segment of an address, e.g. 'SoHo' for 'SoHo, New York'."""
    if not address:
        return None
    return address.split(",")[0].strip() or None


def public_program(row: Optional[Dict[str, Any]]) -> Optional[Dict[str, Any]]:
    if row is None:
        return None
    return {k: v for k, v in row.items() if k != "user_id"}


def persist_messages(storage, table: str, records: Iterable[Dict[str, Any]]) -> None:
    """Best-effort history write: a failure is logged and never reaches the caller."""
    for record in records:
        try:
            storage.insert(table, record)
        except (StorageError, sqlite3.Error) as e:
            log.error(f"Failed to persist {record.get('role')} message to {table}: {e}")


def messages_for(system: str, user: str) -> List[Dict[str, str]]:
    return [
        {"role": "system", "content": system},
        {"role": "user", "content": user},
    ]


def delete_program_and_chat(storage, user_id: str, program_id: str) -> int:
    """Delete a program the caller already owns, with its per-program chat. Returns the messages removed."""
    storage.delete("programs", program_id)
    messages = storage.list("program_chat_messages", {"program_id": program_id, "user_id": user_id})
    for message in messages:
        storage.delete("program_chat_messages", message["id"])
    log.info(f"Deleted program {program_id} and {len(messages)} chat messages")
    return len(messages)
