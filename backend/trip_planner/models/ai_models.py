# backend/trip_planner/models/ai_models.py
"""
Shapes of the structured content the models are asked to return.

These double as the validation schemas used by the response parser, so the
validators here are deliberately forgiving about representation (numbers as
strings, nulls for lists) and strict about structure.
"""

import re
from typing import Any, Dict, List, Optional, Union
from pydantic import BaseModel, ConfigDict, Field, field_validator


_THOUSANDS = re.compile(r"^\d{1,3}(?:,\d{3})+$")
_DECIMAL_COMMA = re.compile(r"^\d+,\d{1,2}$")

_LEADING_NUMBER = re.compile(r"^\s*(\d+(?:[.,]\d+)?)")
_HOURS_AND_MINUTES = re.compile(r"^\s*(\d+)\s*h\s*(\d{1,2})\b", re.IGNORECASE)   # "1h30"
_HOURS_UNIT = re.compile(r"\d\s*(?:hours?|horas?|hrs?|h)\b", re.IGNORECASE)

DEFAULT_DURATION_MINUTES = 60


def _coerce_number(value: Any) -> Any:
    """'4.5' -> 4.5, '4,5' -> 4.5, '1,200' -> 1200; anything with extra text is kept verbatim."""
    if not isinstance(value, str):
        return value
    text = value.strip()
    if _THOUSANDS.match(text):
        text = text.replace(",", "")
    elif _DECIMAL_COMMA.match(text):
        text = text.replace(",", ".")
    try:
        return int(text)
    except ValueError:
        pass
    try:
        return float(text)
    except ValueError:
        return value.strip()


def duration_minutes(value: Any) -> int:
    """
    Minutes from whatever the model wrote: 90, "90 min", "2 hours",
    "1,5 horas", "1h30". Anything without a leading number gets the default.
    """
    if value is None or isinstance(value, bool):
        return DEFAULT_DURATION_MINUTES
    if isinstance(value, (int, float)):
        return int(value)

    text = str(value)
    hours_minutes = _HOURS_AND_MINUTES.match(text)
    if hours_minutes:
        return int(hours_minutes.group(1)) * 60 + int(hours_minutes.group(2))

    match = _LEADING_NUMBER.match(text)
    if not match:
        return DEFAULT_DURATION_MINUTES
    amount = float(match.group(1).replace(",", "."))
    if _HOURS_UNIT.search(text):
        amount *= 60
    return int(round(amount))


# ----------------------------------------------------------
# ATTRACTIONS (discovery output)
# ----------------------------------------------------------
class Attraction(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    id: Optional[str] = None
    name: str = Field(min_length=1)
    type: str = "atração"
    address: str = "Endereço não especificado"
    hours: str = "Verificar horários"
    description: str = "Sem descrição"
    estimated_duration: int = Field(default=DEFAULT_DURATION_MINUTES, alias="estimatedDuration")
    neighborhood: Optional[str] = None
    image_url: Optional[str] = Field(default=None, alias="imageUrl")
    info_url: Optional[str] = Field(default=None, alias="infoUrl")
    rating: Optional[Union[float, int, str]] = None
    review_count: Optional[Union[int, float, str]] = Field(default=None, alias="reviewCount")
    why_recommended: Optional[str] = Field(default=None, alias="whyRecommended")
    verification_url: Optional[str] = Field(default=None, alias="verificationUrl")

    @field_validator("type", "address", "hours", "description", mode="before")
    @classmethod
    def _blank_to_default(cls, value, info):
        if value is None or (isinstance(value, str) and not value.strip()):
            return cls.model_fields[info.field_name].default
        return str(value)

    @field_validator("estimated_duration", mode="before")
    @classmethod
    def _duration_minutes(cls, value):
        return duration_minutes(value)

    @field_validator("rating", "review_count", mode="before")
    @classmethod
    def _numeric_strings(cls, value):
        if value == "":
            return None
        return _coerce_number(value)

    def to_api(self) -> Dict[str, Any]:
        return self.model_dump(by_alias=True)


# ----------------------------------------------------------
# ORGANIZED ITINERARY (organization output)
# ----------------------------------------------------------
class OrganizedProgram(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    title: str = Field(min_length=1)
    description: str = ""
    start_time: str
    end_time: str
    address: str = ""
    notes: str = ""
    transit_to_next: Optional[str] = Field(default=None, alias="transitToNext")

    @field_validator("description", "address", "notes", mode="before")
    @classmethod
    def _none_is_blank(cls, value):
        return "" if value is None else value


class OptimizationMetadata(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    end_near_next_commitment: Optional[bool] = Field(default=None, alias="endNearNextCommitment")
    next_commitment_title: Optional[str] = Field(default=None, alias="nextCommitmentTitle")
    buffer_minutes: Optional[int] = Field(default=None, alias="bufferMinutes")
    suggested_departure: Optional[str] = Field(default=None, alias="suggestedDeparture")

    @field_validator("buffer_minutes", mode="before")
    @classmethod
    def _buffer_number(cls, value):
        coerced = _coerce_number(value)
        return int(coerced) if isinstance(coerced, (int, float)) else None


class OrganizedItinerary(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    programs: List[OrganizedProgram]
    summary: str = ""
    warnings: List[str] = Field(default_factory=list)
    optimization_applied: Optional[OptimizationMetadata] = Field(default=None, alias="optimizationApplied")

    @field_validator("summary", mode="before")
    @classmethod
    def _summary_text(cls, value):
        return "" if value is None else value

    @field_validator("warnings", mode="before")
    @classmethod
    def _warnings_list(cls, value):
        if value is None:
            return []
        if isinstance(value, str):
            return [value]
        return value

    def to_api(self) -> Dict[str, Any]:
        return self.model_dump(by_alias=True)


# ----------------------------------------------------------
# PDF NARRATIVE
# ----------------------------------------------------------
class RegionIntro(BaseModel):
    region_name: str
    intro_text: str


class LocationNarrative(BaseModel):
    program_index: int = Field(ge=0)
    guide_text: str


class PdfNarrative(BaseModel):
    region_intro: RegionIntro
    locations: List[LocationNarrative] = Field(default_factory=list)

    @field_validator("locations", mode="before")
    @classmethod
    def _locations_list(cls, value):
        return [] if value is None else value

    def guide_text_for(self, index: int, default: str) -> str:
        for location in self.locations:
            if location.program_index == index:
                return location.guide_text
        return default
