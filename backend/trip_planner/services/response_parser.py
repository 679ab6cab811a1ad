# backend/trip_planner/services/response_parser.py
"""
Turns free-form model text into validated records.

Model output is untrusted: it may be wrapped in a markdown fence, carry
numbers as strings, omit fields or simply not be JSON. Each call site picks
an OutputSchema; a schema may carry a default fallback (FAQ degrades to an
empty list), otherwise a failure raises MalformedOutputError.
"""

import json
import re
from dataclasses import dataclass
from typing import Any, Callable, List, Optional
from uuid import uuid4

from pydantic import TypeAdapter, ValidationError

from trip_planner.core.errors import MalformedOutputError
from trip_planner.core.logger import get_logger
from trip_planner.models.ai_models import Attraction, OrganizedItinerary, PdfNarrative
from trip_planner.models.program_models import FaqItem

log = get_logger("parser")

_FENCED_BLOCK = re.compile(r"```[A-Za-z0-9_-]*\s*([\s\S]*?)\s*```")

UNNAMED_ATTRACTION = "Local sem nome"


@dataclass(frozen=True)
class OutputSchema:
    name: str
    adapter: TypeAdapter
    prepare: Optional[Callable[[Any], Any]] = None          # runs on the decoded JSON
    default_fallback: Optional[Callable[[], Any]] = None    # factory, so results are never shared


# ----------------------------------------------------------
# PRE-VALIDATION FIXUPS
# ----------------------------------------------------------
def _prepare_attractions(data: Any) -> Any:
    # search models sometimes wrap the list: {"attractions": [...]}
    if isinstance(data, dict) and isinstance(data.get("attractions"), list):
        data = data["attractions"]
    if not isinstance(data, list):
        return data

    prepared = []
    for item in data:
        if not isinstance(item, dict):
            prepared.append(item)
            continue
        item = dict(item)
        if not item.get("id"):
            item["id"] = str(uuid4())
        if not str(item.get("name") or "").strip():
            item["name"] = UNNAMED_ATTRACTION
        prepared.append(item)
    return prepared


def _prepare_itinerary(data: Any) -> Any:
    if isinstance(data, dict) and "programs" not in data and isinstance(data.get("itinerary"), dict):
        return data["itinerary"]
    return data


def _prepare_faq(data: Any) -> Any:
    if isinstance(data, dict) and isinstance(data.get("faq"), list):
        return data["faq"]
    return data


ATTRACTIONS = OutputSchema("attractions", TypeAdapter(List[Attraction]), prepare=_prepare_attractions)
ITINERARY = OutputSchema("itinerary", TypeAdapter(OrganizedItinerary), prepare=_prepare_itinerary)
FAQ = OutputSchema("faq", TypeAdapter(List[FaqItem]), prepare=_prepare_faq, default_fallback=list)
PDF_NARRATIVE = OutputSchema("pdf_narrative", TypeAdapter(PdfNarrative))


# ----------------------------------------------------------
# PARSING
# ----------------------------------------------------------
_UNSET = object()


def extract_payload(raw_text: Optional[str]) -> str:
    """Content of the first fenced block if there is one, else the whole text."""
    text = (raw_text or "").strip()
    match = _FENCED_BLOCK.search(text)
    if match:
        return match.group(1).strip()
    return text


def parse_model_output(raw_text: Optional[str], schema: OutputSchema, fallback: Any = _UNSET) -> Any:
    """
    Decode and validate model text against `schema`.

    `fallback` overrides the schema default; when neither exists a failure
    raises MalformedOutputError carrying a bounded excerpt of the raw text.
    """
    payload = extract_payload(raw_text)

    try:
        data = json.loads(payload)
        if schema.prepare is not None:
            data = schema.prepare(data)
        return schema.adapter.validate_python(data)
    except (ValueError, ValidationError) as e:
        # json.JSONDecodeError is a ValueError
        error = e

    excerpt = (raw_text or "")[: MalformedOutputError.EXCERPT_LENGTH]
    if fallback is not _UNSET:
        log.warning(f"Unparseable {schema.name} output, using caller fallback: {error}")
        return fallback
    if schema.default_fallback is not None:
        log.warning(f"Unparseable {schema.name} output, using default fallback: {error}")
        return schema.default_fallback()

    log.error(f"Unparseable {schema.name} output: {error} | raw={excerpt!r}")
    raise MalformedOutputError(f"Could not parse {schema.name} output: {error}", raw_text) from error


# ----------------------------------------------------------
# POST-PARSE ENRICHMENT
# ----------------------------------------------------------
def fill_neighborhoods(attractions: List[Attraction], region: str) -> List[Attraction]:
    return [
        a if a.neighborhood else a.model_copy(update={"neighborhood": region})
        for a in attractions
    ]
