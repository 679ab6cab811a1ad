# backend/trip_planner/api/routes_suggestions.py

from fastapi import APIRouter, Depends

from trip_planner.agents.faq_agent import FaqAgent
from trip_planner.agents.suggestions_agent import SuggestionsAgent
from trip_planner.api.deps import get_current_user, get_dispatch, get_storage
from trip_planner.models.request_models import ExploreTopicRequest, FaqRequest, SuggestionsRequest

router = APIRouter(tags=["suggestions"])


@router.post("/ai-suggestions", summary="Generate the region guide for a program")
def ai_suggestions(
    req: SuggestionsRequest,
    user_id: str = Depends(get_current_user),
    storage=Depends(get_storage),
    dispatch=Depends(get_dispatch),
):
    return SuggestionsAgent(storage, dispatch).generate(user_id, req.program_id)


@router.post("/generate-faq", summary="Generate FAQ pairs from a program's suggestions")
def generate_faq(
    req: FaqRequest,
    user_id: str = Depends(get_current_user),
    storage=Depends(get_storage),
    dispatch=Depends(get_dispatch),
):
    return FaqAgent(storage, dispatch).generate(user_id, req.program_id, req.suggestions)


@router.post("/explore-topic", summary="Expand one FAQ entry")
def explore_topic(
    req: ExploreTopicRequest,
    user_id: str = Depends(get_current_user),
    storage=Depends(get_storage),
    dispatch=Depends(get_dispatch),
):
    return FaqAgent(storage, dispatch).explore_topic(
        user_id, req.program_id, req.faq_index, req.topic, req.context
    )
