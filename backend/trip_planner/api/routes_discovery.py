# backend/trip_planner/api/routes_discovery.py

from typing import Optional

from fastapi import APIRouter, Depends

from trip_planner.agents.discovery_agent import DiscoveryAgent
from trip_planner.api.deps import get_cache, get_current_user, get_dispatch, get_optional_user, get_storage
from trip_planner.models.request_models import DiscoverAttractionsRequest, InvalidateCacheRequest
from trip_planner.utils.sanitize import sanitize

router = APIRouter(prefix="/discover-attractions", tags=["discovery"])


@router.post("", summary="Discover attractions for a region and date")
def discover_attractions(
    req: DiscoverAttractionsRequest,
    user_id: Optional[str] = Depends(get_optional_user),
    storage=Depends(get_storage),
    dispatch=Depends(get_dispatch),
    cache=Depends(get_cache),
):
    agent = DiscoveryAgent(storage, dispatch, cache)
    return agent.discover(
        user_id,
        req.region,
        req.date,
        user_suggestion=req.user_suggestion,
        request_more=req.request_more,
        existing_attractions=req.existing_attractions,
    )


@router.post("/invalidate", summary="Drop cached discovery results")
def invalidate_cache(
    req: InvalidateCacheRequest,
    user_id: str = Depends(get_current_user),
    cache=Depends(get_cache),
):
    # only the caller's own entries; shared anonymous results expire on their own
    region = sanitize(req.region, "region") or None
    return {"invalidated": cache.invalidate(region, req.date, user_id=user_id)}
