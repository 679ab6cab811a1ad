# backend/trip_planner/models/request_models.py

from typing import Annotated, Any, Dict, List, Optional
from pydantic import AfterValidator, BaseModel, Field

from trip_planner.models.ai_models import Attraction, OrganizedProgram
from trip_planner.utils.time_utils import parse_day


def _check_day(value: str) -> str:
    parse_day(value)
    return value


CalendarDay = Annotated[str, AfterValidator(_check_day)]


# -------------------------
# Chat
# -------------------------
class ChatRequest(BaseModel):
    message: str = Field(min_length=1)
    program_id: Optional[str] = None


class ChatMessageOut(BaseModel):
    role: str       # user | assistant
    content: str


class ActionExecuted(BaseModel):
    type: str       # add_program | update_program | delete_program
    program: Optional[Dict[str, Any]] = None


class ChatResponse(BaseModel):
    message: str
    action_executed: Optional[ActionExecuted] = None


# -------------------------
# Suggestions / FAQ / topic
# -------------------------
class SuggestionsRequest(BaseModel):
    program_id: str


class FaqRequest(BaseModel):
    program_id: str
    suggestions: Optional[str] = None   # defaults to the program's cached suggestions


class ExploreTopicRequest(BaseModel):
    program_id: str
    faq_index: int = Field(ge=0)
    topic: Optional[str] = None         # defaults to the FAQ question
    context: Optional[str] = None       # defaults to the FAQ answer


# -------------------------
# Attraction discovery
# -------------------------
class DiscoverAttractionsRequest(BaseModel):
    region: str = Field(min_length=1)
    date: CalendarDay
    user_suggestion: Optional[str] = None
    request_more: bool = False
    existing_attractions: List[Attraction] = Field(default_factory=list)


class InvalidateCacheRequest(BaseModel):
    region: Optional[str] = None
    date: Optional[str] = None


# -------------------------
# Itinerary organization
# -------------------------
class OrganizeItineraryRequest(BaseModel):
    selected_attractions: List[Attraction] = Field(min_length=1)
    date: CalendarDay
    start_time: str = "09:00"
    end_time: str = "22:00"
    region: Optional[str] = None


class ConfirmItineraryRequest(BaseModel):
    date: CalendarDay
    programs: List[OrganizedProgram] = Field(min_length=1)


# -------------------------
# PDF narrative
# -------------------------
class PdfProgramIn(BaseModel):
    title: str
    address: Optional[str] = None
    description: Optional[str] = None


class PdfContentRequest(BaseModel):
    programs: List[PdfProgramIn] = Field(min_length=1)
    date: CalendarDay
    destination: Optional[str] = None
