# backend/trip_planner/api/routes_programs.py

from typing import Optional

from fastapi import APIRouter, Depends

from trip_planner.agents.program_access import (
    PROGRAM_FIELD_TYPES,
    delete_program_and_chat,
    load_program,
    public_program,
)
from trip_planner.api.deps import get_current_user, get_storage
from trip_planner.core.errors import InvalidRequest
from trip_planner.core.logger import get_logger
from trip_planner.models.program_models import ProgramIn, ProgramPatch
from trip_planner.utils.sanitize import sanitize_object
from trip_planner.utils.time_utils import is_valid_day

log = get_logger("api.programs")
router = APIRouter(prefix="/programs", tags=["programs"])


@router.get("")
def list_programs(
    date: Optional[str] = None,
    user_id: str = Depends(get_current_user),
    storage=Depends(get_storage),
):
    filters = {"user_id": user_id}
    if date is not None:
        if not is_valid_day(date):
            raise InvalidRequest("Data deve estar no formato AAAA-MM-DD")
        filters["date"] = date

    rows = storage.list("programs", filters, order_by=[("date", "asc"), ("start_time", "asc")])
    return {"programs": [public_program(r) for r in rows]}


@router.post("", status_code=201)
def create_program(
    data: ProgramIn,
    user_id: str = Depends(get_current_user),
    storage=Depends(get_storage),
):
    record = sanitize_object(data.model_dump(), PROGRAM_FIELD_TYPES)
    if not record["title"]:
        raise InvalidRequest("Título é obrigatório")

    row = storage.insert("programs", {**record, "user_id": user_id})
    log.info(f"Created program {row['id']} for user={user_id} on {row['date']}")
    return {"program": public_program(row)}


@router.patch("/{program_id}")
def update_program(
    program_id: str,
    data: ProgramPatch,
    user_id: str = Depends(get_current_user),
    storage=Depends(get_storage),
):
    load_program(storage, user_id, program_id)

    changes = sanitize_object(data.changes(), PROGRAM_FIELD_TYPES)
    if "title" in changes and not changes["title"]:
        raise InvalidRequest("Título não pode ficar vazio")
    if not changes:
        raise InvalidRequest("Nenhum campo para atualizar")

    row = storage.update("programs", program_id, changes)
    log.info(f"Updated program {program_id} fields={sorted(changes)}")
    return {"program": public_program(row)}


@router.delete("/{program_id}")
def delete_program(
    program_id: str,
    user_id: str = Depends(get_current_user),
    storage=Depends(get_storage),
):
    load_program(storage, user_id, program_id)
    delete_program_and_chat(storage, user_id, program_id)
    return {"deleted": True}
