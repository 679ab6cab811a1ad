# backend/trip_planner/api/routes_profile.py

from fastapi import APIRouter, Depends

from trip_planner.api.deps import get_current_user, get_storage
from trip_planner.core.errors import InvalidRequest
from trip_planner.core.logger import get_logger
from trip_planner.models.profile_models import TravelProfile, TripConfig
from trip_planner.utils.sanitize import sanitize_object
from trip_planner.utils.time_utils import is_valid_day

log = get_logger("api.profile")
router = APIRouter(tags=["profile"])

PROFILE_FIELD_TYPES = {
    "name": "title",
    "mobility_notes": "notes",
    "notes": "notes",
    "transportation_preference": "description",
    "weather_sensitivity": "description",
    "morning_preference": "description",
    "group_dynamics": "description",
    "dietary_restrictions": "title",
    "preferred_categories": "title",
    "avoid_topics": "title",
    "interests": "title",
    "special_occasions": "title",
}


def _strip_meta(row):
    if row is None:
        return None
    return {k: v for k, v in row.items() if k not in ("id", "user_id")}


# --------------------------------------------------------
# GET /profile  → current travel profile (null when never saved)
# --------------------------------------------------------
@router.get("/profile")
def get_profile(user_id: str = Depends(get_current_user), storage=Depends(get_storage)):
    row = storage.get("travel_profile", {"user_id": user_id})
    return {"profile": _strip_meta(row)}


# --------------------------------------------------------
# PUT /profile  → overwrite travel profile
# --------------------------------------------------------
@router.put("/profile")
def save_profile(
    data: TravelProfile,
    user_id: str = Depends(get_current_user),
    storage=Depends(get_storage),
):
    record = sanitize_object(data.model_dump(), PROFILE_FIELD_TYPES)
    row = storage.upsert("travel_profile", {**record, "user_id": user_id}, conflict_key="user_id")
    log.info(f"Saved travel profile for user={user_id}")
    return {"profile": _strip_meta(row)}


# --------------------------------------------------------
# GET /trip-config
# --------------------------------------------------------
@router.get("/trip-config")
def get_trip_config(user_id: str = Depends(get_current_user), storage=Depends(get_storage)):
    row = storage.get("trip_config", {"user_id": user_id})
    return {"trip_config": _strip_meta(row)}


# --------------------------------------------------------
# PUT /trip-config
# --------------------------------------------------------
@router.put("/trip-config")
def save_trip_config(
    data: TripConfig,
    user_id: str = Depends(get_current_user),
    storage=Depends(get_storage),
):
    if not (is_valid_day(data.start_date) and is_valid_day(data.end_date)):
        raise InvalidRequest("Datas devem estar no formato AAAA-MM-DD")
    if data.end_date < data.start_date:
        raise InvalidRequest("A data final deve ser posterior à data inicial")

    record = sanitize_object(data.model_dump(), {"hotel_address": "address", "destination": "region"})
    row = storage.upsert("trip_config", {**record, "user_id": user_id}, conflict_key="user_id")
    log.info(f"Saved trip config for user={user_id} ({data.start_date} → {data.end_date})")
    return {"trip_config": _strip_meta(row)}
