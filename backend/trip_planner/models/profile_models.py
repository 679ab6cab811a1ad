# backend/trip_planner/models/profile_models.py

from typing import List, Optional
from pydantic import BaseModel, ConfigDict, Field, field_validator


# ----------------------------------------------------------
# TRAVELERS
# ----------------------------------------------------------
class Traveler(BaseModel):
    name: str
    age: Optional[int] = None
    interests: List[str] = Field(default_factory=list)


# ----------------------------------------------------------
# TRAVEL PROFILE (one per user, overwritten on save)
# ----------------------------------------------------------
class TravelProfile(BaseModel):
    model_config = ConfigDict(extra="ignore")

    travelers: List[Traveler] = Field(default_factory=list)
    dietary_restrictions: List[str] = Field(default_factory=list)
    mobility_notes: Optional[str] = None
    pace: str = "moderate"                  # relaxed / moderate / intense
    budget_level: str = "moderate"          # budget / moderate / luxury
    preferred_categories: List[str] = Field(default_factory=list)
    avoid_topics: List[str] = Field(default_factory=list)
    interests: List[str] = Field(default_factory=list)
    transportation_preference: Optional[str] = None
    weather_sensitivity: Optional[str] = None
    morning_preference: Optional[str] = None
    group_dynamics: Optional[str] = None
    special_occasions: List[str] = Field(default_factory=list)
    notes: Optional[str] = None

    @field_validator(
        "travelers", "dietary_restrictions", "preferred_categories",
        "avoid_topics", "interests", "special_occasions",
        mode="before",
    )
    @classmethod
    def _none_is_empty(cls, value):
        return [] if value is None else value

    @field_validator("pace", mode="before")
    @classmethod
    def _normalize_pace(cls, value):
        if not value:
            return "moderate"
        value = str(value).lower()
        # older records used "active"
        return "intense" if value == "active" else value

    @field_validator("budget_level", mode="before")
    @classmethod
    def _normalize_budget(cls, value):
        return str(value).lower() if value else "moderate"


# ----------------------------------------------------------
# TRIP CONFIG (one per user)
# ----------------------------------------------------------
class TripConfig(BaseModel):
    model_config = ConfigDict(extra="ignore")

    start_date: str
    end_date: str
    hotel_address: Optional[str] = None
    destination: Optional[str] = None
