# backend/trip_planner/api/routes_itinerary.py

from fastapi import APIRouter, Depends

from trip_planner.agents.itinerary_agent import ItineraryAgent
from trip_planner.api.deps import get_current_user, get_dispatch, get_storage
from trip_planner.models.request_models import ConfirmItineraryRequest, OrganizeItineraryRequest

router = APIRouter(prefix="/organize-itinerary", tags=["itinerary"])


@router.post("", summary="Organize selected attractions into a day plan")
def organize_itinerary(
    req: OrganizeItineraryRequest,
    user_id: str = Depends(get_current_user),
    storage=Depends(get_storage),
    dispatch=Depends(get_dispatch),
):
    agent = ItineraryAgent(storage, dispatch)
    return agent.organize(
        user_id,
        req.selected_attractions,
        req.date,
        start_time=req.start_time,
        end_time=req.end_time,
        region=req.region,
    )


@router.post("/confirm", summary="Save an organized itinerary as programs")
def confirm_itinerary(
    req: ConfirmItineraryRequest,
    user_id: str = Depends(get_current_user),
    storage=Depends(get_storage),
    dispatch=Depends(get_dispatch),
):
    return ItineraryAgent(storage, dispatch).confirm(user_id, req.date, req.programs)
