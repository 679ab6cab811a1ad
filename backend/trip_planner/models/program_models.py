# backend/trip_planner/models/program_models.py

from typing import Any, Dict, List, Optional
from pydantic import BaseModel, ConfigDict, Field, field_validator

from trip_planner.utils.time_utils import parse_day


class FaqItem(BaseModel):
    model_config = ConfigDict(extra="ignore")

    question: str
    answer: str
    details: Optional[str] = None


class Program(BaseModel):
    """A scheduled itinerary entry as stored in the `programs` table."""

    model_config = ConfigDict(extra="ignore")

    id: str
    title: str
    date: str
    start_time: Optional[str] = None
    end_time: Optional[str] = None
    address: Optional[str] = None
    description: Optional[str] = None
    notes: Optional[str] = None
    ai_suggestions: Optional[str] = None
    ai_faq: Optional[List[FaqItem]] = None

    @field_validator("date")
    @classmethod
    def _calendar_day(cls, value: str) -> str:
        parse_day(value)
        return value

    @field_validator("ai_faq", mode="before")
    @classmethod
    def _drop_bad_faq(cls, value):
        # cached FAQ rows written by older clients may be partial
        if not isinstance(value, list):
            return None
        return [item for item in value if isinstance(item, dict) and "question" in item and "answer" in item]


# ----------------------------------------------------------
# PROGRAM CRUD PAYLOADS
# ----------------------------------------------------------
class ProgramIn(BaseModel):
    title: str = Field(min_length=1)
    date: str
    start_time: Optional[str] = None
    end_time: Optional[str] = None
    address: Optional[str] = None
    description: Optional[str] = None
    notes: Optional[str] = None

    @field_validator("date")
    @classmethod
    def _calendar_day(cls, value: str) -> str:
        parse_day(value)
        return value


class ProgramPatch(BaseModel):
    title: Optional[str] = None
    date: Optional[str] = None
    start_time: Optional[str] = None
    end_time: Optional[str] = None
    address: Optional[str] = None
    description: Optional[str] = None
    notes: Optional[str] = None

    @field_validator("date")
    @classmethod
    def _calendar_day(cls, value: Optional[str]) -> Optional[str]:
        if value is not None:
            parse_day(value)
        return value

    def changes(self) -> Dict[str, Any]:
        return self.model_dump(exclude_unset=True)
