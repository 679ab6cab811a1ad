"""
Unit tests for trip_planner/services/context_builder.py
"""
from datetime import date

import pytest

from trip_planner.models.profile_models import TravelProfile, Traveler, TripConfig
from trip_planner.models.program_models import Program
from trip_planner.services.context_builder import (
    ContextBuilder,
    TravelContext,
    check_holiday,
    extract_preferences,
    format_long_date,
    get_local_context,
    get_season,
    render_prompt,
)
from trip_planner.services.nyc_knowledge import BOROUGHS, NEIGHBORHOODS


def _program(pid, title, address=None, description=None, day="2025-06-15"):
    return Program(id=pid, title=title, date=day, address=address, description=description)


@pytest.fixture
def full_context():
    return TravelContext(
        profile=TravelProfile(
            travelers=[Traveler(name="Ana", age=34, interests=["arte"]), Traveler(name="Leo", age=8)],
            dietary_restrictions=["vegetariano"],
            mobility_notes="Carrinho de bebê",
            pace="relaxed",
            budget_level="luxury",
            avoid_topics=["política"],
        ),
        trip_config=TripConfig(
            start_date="2025-06-10",
            end_date="2025-06-20",
            hotel_address="The Plaza, 768 5th Ave",
            destination="New York City",
        ),
        programs=[
            _program("p1", "Museu MoMA", "Midtown, NY"),
            _program("p2", "Central Park picnic", "Central Park, NY"),
            _program("p3", "Metropolitan Museum", "Upper East Side, NY"),
        ],
        current_date=date(2025, 6, 15),
        region="Times Square",
    )


# ---------------------------------------------------------------------------
# Season / holiday lookups
# ---------------------------------------------------------------------------

class TestSeasons:
    @pytest.mark.parametrize("month,name", [
        (1, "Inverno"), (4, "Primavera"), (7, "Verão"), (10, "Outono"),
        (12, "Inverno"), (3, "Primavera"), (6, "Verão"), (9, "Outono"),
    ])
    def test_month_to_season(self, month, name):
        assert get_season(month)["name"] == name

    def test_bands_partition_the_year(self):
        names = [get_season(m)["name"] for m in range(1, 13)]
        assert {n: names.count(n) for n in set(names)} == {
            "Inverno": 3, "Primavera": 3, "Verão": 3, "Outono": 3,
        }

    @pytest.mark.parametrize("month", [0, 13])
    def test_out_of_range_month(self, month):
        with pytest.raises(ValueError):
            get_season(month)


class TestHolidays:
    def test_fixed_date_holiday(self):
        assert "Independence Day" in check_holiday(date(2025, 7, 4))

    def test_thanksgiving_window(self):
        assert "Thanksgiving" in check_holiday(date(2025, 11, 27))

    def test_falls_back_to_month_events(self):
        assert "Pride" in check_holiday(date(2025, 6, 3))

    def test_month_without_events(self):
        assert check_holiday(date(2025, 10, 5)) is None


# ---------------------------------------------------------------------------
# Locale lookup
# ---------------------------------------------------------------------------

class TestLocalContext:
    def test_exact_and_substring_match_resolve_identically(self):
        exact = get_local_context("Times Square")
        assert exact == NEIGHBORHOODS["times square"]
        assert get_local_context("times square area") == exact

    def test_unknown_place_gets_generic_instruction(self):
        text = get_local_context("Hoboken Diner")
        assert '"Hoboken Diner"' in text
        assert "10-15 minutos a pé" in text

    def test_borough_match(self):
        assert get_local_context("Brooklyn") == BOROUGHS["brooklyn"]

    def test_longest_contained_key_wins(self):
        assert get_local_context("walking around upper west side") == NEIGHBORHOODS["upper west side"]


# ---------------------------------------------------------------------------
# Preferences
# ---------------------------------------------------------------------------

class TestExtractPreferences:
    def test_counts_categories_and_areas(self):
        programs = [
            _program("1", "Museu MoMA", "Midtown, NY"),
            _program("2", "Museum of Natural History", "Upper West Side, NY"),
            _program("3", "Jantar", "Midtown, NY", description="restaurante italiano"),
        ]
        prefs = extract_preferences(programs)
        assert prefs["categories"][0] == "museus"
        assert "gastronomia" in prefs["categories"]
        assert prefs["locations"][0] == "Midtown"

    def test_at_most_three_each(self):
        programs = [_program(str(i), t, f"Area{i}, NY") for i, t in enumerate(
            ["museum", "park", "food", "show", "shopping"]
        )]
        prefs = extract_preferences(programs)
        assert len(prefs["categories"]) == 3
        assert len(prefs["locations"]) == 3

    def test_empty(self):
        assert extract_preferences([]) == {"categories": [], "locations": []}


# ---------------------------------------------------------------------------
# render_prompt
# ---------------------------------------------------------------------------

class TestRenderPrompt:
    def test_deterministic(self, full_context):
        first = render_prompt(full_context, "Programa: MoMA")
        second = render_prompt(full_context.model_copy(), "Programa: MoMA")
        assert first == second

    def test_contains_every_section(self, full_context):
        prompt = render_prompt(full_context, "Detalhe da requisição")
        assert prompt.startswith("# CONTEXTO COMPLETO DA VIAGEM")
        for marker in [
            format_long_date(date(2025, 6, 15)),
            "Verão",
            "## REGIÃO:",
            "📍 Times Square",
            "## CONTEXTO DA VIAGEM:",
            "10/06/2025 a 20/06/2025",
            "The Plaza",
            "## VIAJANTES:",
            "Ana, 34 anos (interesses: arte)",
            "Leo, 8 anos",
            "Relaxado",
            "Luxo",
            "## RESTRIÇÕES ALIMENTARES (CRÍTICO):",
            "- vegetariano",
            "## MOBILIDADE:",
            "## TÓPICOS A EVITAR:",
            "## HISTÓRICO DE PROGRAMAS:",
            "## CONTEXTO ESPECÍFICO DESTA REQUISIÇÃO:\nDetalhe da requisição",
            "REGRAS CRÍTICAS",
            "15/06/2025",
        ]:
            assert marker in prompt, marker

    def test_sections_in_order(self, full_context):
        prompt = render_prompt(full_context, "extra")
        positions = [prompt.index(m) for m in [
            "## DATA E ESTAÇÃO:", "## REGIÃO:", "## VIAJANTES:",
            "## HISTÓRICO DE PROGRAMAS:", "## CONTEXTO ESPECÍFICO", "REGRAS CRÍTICAS",
        ]]
        assert positions == sorted(positions)

    def test_minimal_context_omits_optional_sections(self):
        context = TravelContext(current_date=date(2025, 10, 5), region="Manhattan")
        prompt = render_prompt(context)
        assert "## VIAJANTES:" not in prompt
        assert "## CONTEXTO DA VIAGEM:" not in prompt
        assert "## HISTÓRICO DE PROGRAMAS:" not in prompt
        assert "CONTEXTO ESPECÍFICO" not in prompt
        assert "EVENTO ESPECIAL" not in prompt
        assert "Outono" in prompt

    def test_holiday_banner(self):
        context = TravelContext(current_date=date(2025, 12, 25), region="Midtown")
        assert "🎉 EVENTO ESPECIAL: Natal" in render_prompt(context)


# ---------------------------------------------------------------------------
# ContextBuilder
# ---------------------------------------------------------------------------

class TestContextBuilder:
    def test_empty_user_gets_defaults(self, storage):
        context = ContextBuilder(storage).build_context("nobody", "2025-06-15")
        assert context.profile is None
        assert context.trip_config is None
        assert context.programs == []
        assert context.current_date == date(2025, 6, 15)
        assert context.region == "Manhattan"

    def test_reads_profile_config_and_sorted_programs(self, storage, user_id):
        storage.insert("travel_profile", {"user_id": user_id, "pace": "active", "dietary_restrictions": ["kosher"]})
        storage.insert("trip_config", {"user_id": user_id, "start_date": "2025-06-10", "end_date": "2025-06-20"})
        storage.insert("programs", {"user_id": user_id, "title": "B", "date": "2025-06-16", "start_time": "09:00"})
        storage.insert("programs", {"user_id": user_id, "title": "A", "date": "2025-06-15", "start_time": "18:00"})
        storage.insert("programs", {"user_id": "someone-else", "title": "X", "date": "2025-06-15"})

        context = ContextBuilder(storage).build_context(user_id, date(2025, 6, 15), "SoHo")
        assert context.profile.pace == "intense"
        assert context.profile.dietary_restrictions == ["kosher"]
        assert context.trip_config.start_date == "2025-06-10"
        assert [p.title for p in context.programs] == ["A", "B"]
        assert context.region == "SoHo"

    def test_skips_unreadable_program_rows(self, storage, user_id):
        storage.insert("programs", {"user_id": user_id, "title": "ok", "date": "2025-06-15"})
        storage.insert("programs", {"user_id": user_id, "title": "bad", "date": "15/06/2025"})
        context = ContextBuilder(storage).build_context(user_id, "2025-06-15")
        assert [p.title for p in context.programs] == ["ok"]

    def test_rejects_non_iso_date(self, storage):
        with pytest.raises(ValueError):
            ContextBuilder(storage).build_context("u", "06/15/2025")
