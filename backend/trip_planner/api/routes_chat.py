# backend/trip_planner/api/routes_chat.py

from typing import Optional

from fastapi import APIRouter, Depends

from trip_planner.agents.chat_agent import ChatAgent
from trip_planner.api.deps import get_current_user, get_dispatch, get_storage
from trip_planner.models.request_models import ChatRequest

router = APIRouter(prefix="/ai-chat", tags=["chat"])


@router.post("", summary="Chat about one program or the whole trip")
def ai_chat(
    req: ChatRequest,
    user_id: str = Depends(get_current_user),
    storage=Depends(get_storage),
    dispatch=Depends(get_dispatch),
):
    """
    With `program_id` the conversation is scoped to that program; without it
    the assistant sees every program and may add, update or delete one.
    """
    agent = ChatAgent(storage, dispatch)
    return agent.reply(user_id, req.message, req.program_id).model_dump(exclude_none=True)


@router.delete("/history", summary="Clear chat history")
def clear_history(
    program_id: Optional[str] = None,
    user_id: str = Depends(get_current_user),
    storage=Depends(get_storage),
    dispatch=Depends(get_dispatch),
):
    deleted = ChatAgent(storage, dispatch).clear_history(user_id, program_id)
    return {"deleted": deleted}
