# backend/trip_planner/services/context_builder.py
"""
Travel context assembly.

`ContextBuilder.build_context` gathers what we know about a user (profile,
trip config, every program) plus the resolved date/region; `render_prompt`
turns that into the shared system prompt. Rendering is a pure function of
its inputs: no clock reads, no randomness, stable ordering everywhere.
"""

from collections import Counter
from datetime import date
from typing import Any, Dict, List, Optional, Union

from pydantic import BaseModel, ConfigDict, ValidationError

from trip_planner.core.config_loader import settings
from trip_planner.core.logger import get_logger
from trip_planner.models.profile_models import TravelProfile, TripConfig
from trip_planner.models.program_models import Program
from trip_planner.services.nyc_knowledge import (
    BOROUGHS,
    BUDGET_LABELS,
    CATEGORY_KEYWORDS,
    FIXED_HOLIDAYS,
    GENERIC_LOCALE,
    MONTH_EVENTS,
    MONTHS_PT,
    NEIGHBORHOODS,
    PACE_LABELS,
    SEASON_BY_MONTH,
    SEASONS,
    WEEKDAYS_PT,
)
from trip_planner.utils.time_utils import format_br_date, local_today, parse_day

log = get_logger("context")


class TravelContext(BaseModel):
    model_config = ConfigDict(frozen=True)

    profile: Optional[TravelProfile] = None
    trip_config: Optional[TripConfig] = None
    programs: List[Program] = []
    current_date: date
    region: str


# ----------------------------------------------------------
# LOOKUPS
# ----------------------------------------------------------
def get_season(month: int) -> Dict[str, str]:
    """Season descriptor for a 1-based month (January = 1)."""
    if month not in SEASON_BY_MONTH:
        raise ValueError(f"Month out of range: {month}")
    return SEASONS[SEASON_BY_MONTH[month]]


def check_holiday(day: date) -> Optional[str]:
    for month, first, last, description in FIXED_HOLIDAYS:
        if day.month == month and first <= day.day <= last:
            return description
    return MONTH_EVENTS.get(day.month)


def get_local_context(region: Optional[str]) -> str:
    """
    Resolve a free-text region to a locale description.

    Order: exact neighborhood, neighborhood contained in the text (longest
    key wins), exact borough, then the generic nearby-point-of-interest hint.
    """
    query = (region or "").strip().lower()

    if query in NEIGHBORHOODS:
        return NEIGHBORHOODS[query]

    contained = [key for key in NEIGHBORHOODS if key in query] if query else []
    if contained:
        return NEIGHBORHOODS[max(contained, key=len)]

    if query in BOROUGHS:
        return BOROUGHS[query]

    return GENERIC_LOCALE.format(region=(region or "").strip())


def extract_preferences(programs: List[Program]) -> Dict[str, List[str]]:
    """Top 3 categories and top 3 address areas across the user's programs."""
    categories: Counter = Counter()
    locations: Counter = Counter()

    for program in programs:
        if program.address:
            area = program.address.split(",")[0].strip()
            if area:
                locations[area] += 1

        text = f"{program.title} {program.description or ''}".lower()
        for category, keywords in CATEGORY_KEYWORDS.items():
            if any(keyword in text for keyword in keywords):
                categories[category] += 1

    # most_common keeps first-seen order among equal counts
    return {
        "categories": [name for name, _ in categories.most_common(3)],
        "locations": [name for name, _ in locations.most_common(3)],
    }


def format_long_date(day: date) -> str:
    return f"{WEEKDAYS_PT[day.weekday()]}, {day.day} de {MONTHS_PT[day.month - 1]} de {day.year}"


def _br_date(text: Optional[str]) -> str:
    try:
        return format_br_date(parse_day(text or ""))
    except ValueError:
        return text or "?"


# ----------------------------------------------------------
# PROMPT SECTIONS
# ----------------------------------------------------------
def _date_section(context: TravelContext) -> str:
    season = get_season(context.current_date.month)
    return "\n".join([
        "# CONTEXTO COMPLETO DA VIAGEM",
        "",
        "## DATA E ESTAÇÃO:",
        f"📅 Data atual: {format_long_date(context.current_date)}",
        f"🌡️ Estação: {season['name']}",
        f"🌡️ Temperatura: {season['temp']}",
        f"👕 Vestuário recomendado: {season['clothing']}",
        f"💡 Dicas da estação: {season['tips']}",
        f"⚠️ Evitar: {season['avoid']}",
    ])


def _holiday_section(context: TravelContext) -> str:
    holiday = check_holiday(context.current_date)
    return f"🎉 EVENTO ESPECIAL: {holiday}" if holiday else ""


def _locale_section(context: TravelContext) -> str:
    lines = ["## REGIÃO:", f"📍 {context.region}", get_local_context(context.region)]

    trip = context.trip_config
    if trip:
        lines += [
            "",
            "## CONTEXTO DA VIAGEM:",
            f"- Período: {_br_date(trip.start_date)} a {_br_date(trip.end_date)}",
        ]
        if trip.destination:
            lines.append(f"- Destino: {trip.destination}")
        if trip.hotel_address:
            lines.append(f"- Hotel: {trip.hotel_address}")
            lines.append("  → Use isto como referência para calcular distâncias e tempos de deslocamento")

    return "\n".join(lines)


def _profile_section(context: TravelContext) -> str:
    profile = context.profile
    if profile is None:
        return ""

    blocks: List[str] = []

    if profile.travelers:
        lines = ["## VIAJANTES:"]
        for traveler in profile.travelers:
            line = f"- {traveler.name}"
            if traveler.age is not None:
                line += f", {traveler.age} anos"
            if traveler.interests:
                line += f" (interesses: {', '.join(traveler.interests)})"
            lines.append(line)
        blocks.append("\n".join(lines))

    prefs = [
        "## PREFERÊNCIAS:",
        f"- Ritmo de viagem: {PACE_LABELS.get(profile.pace, profile.pace)}",
        f"- Orçamento: {BUDGET_LABELS.get(profile.budget_level, profile.budget_level)}",
    ]
    optional_prefs = [
        ("Interesses gerais", ", ".join(profile.interests)),
        ("Categorias preferidas", ", ".join(profile.preferred_categories)),
        ("Transporte preferido", profile.transportation_preference),
        ("Sensibilidade ao clima", profile.weather_sensitivity),
        ("Preferência de horário pela manhã", profile.morning_preference),
        ("Dinâmica do grupo", profile.group_dynamics),
        ("Ocasiões especiais", ", ".join(profile.special_occasions)),
        ("Notas adicionais", profile.notes),
    ]
    prefs += [f"- {label}: {value}" for label, value in optional_prefs if value]
    blocks.append("\n".join(prefs))

    if profile.dietary_restrictions:
        blocks.append("\n".join(
            ["## RESTRIÇÕES ALIMENTARES (CRÍTICO):"]
            + [f"- {item}" for item in profile.dietary_restrictions]
            + ["⚠️ NUNCA ignore estas restrições! Sempre mencione opções compatíveis."]
        ))

    if profile.mobility_notes:
        blocks.append(f"## MOBILIDADE:\n{profile.mobility_notes}")

    if profile.avoid_topics:
        blocks.append("\n".join(["## TÓPICOS A EVITAR:"] + [f"- {item}" for item in profile.avoid_topics]))

    return "\n\n".join(blocks)


def _history_section(context: TravelContext) -> str:
    prefs = extract_preferences(context.programs)
    lines = []
    if prefs["categories"]:
        lines.append(f"- Categorias que já visitaram/planejaram: {', '.join(prefs['categories'])}")
    if prefs["locations"]:
        lines.append(f"- Locais que já visitaram/planejaram: {', '.join(prefs['locations'])}")
    if not lines:
        return ""
    return "\n".join(["## HISTÓRICO DE PROGRAMAS:"] + lines)


def _addendum_section(addendum: Optional[str]) -> str:
    if not addendum:
        return ""
    return f"## CONTEXTO ESPECÍFICO DESTA REQUISIÇÃO:\n{addendum}"


def _rules_section(context: TravelContext) -> str:
    day = format_br_date(context.current_date)
    return f"""---

# REGRAS CRÍTICAS DE VALIDAÇÃO (LEIA COM ATENÇÃO):

✅ **SEMPRE FAÇA ANTES DE RESPONDER:**
1. ⚠️ VALIDE A DATA PRIMEIRO: se sugerir evento pontual (show, jogo, festival), confirme que ocorre EXATAMENTE na data {day}. Se for atração permanente, confirme que está ABERTA nesta data.
2. Verifique se a sugestão faz sentido para a ESTAÇÃO atual
3. Verifique se respeita TODAS as restrições alimentares
4. Verifique se é apropriado para as IDADES dos viajantes
5. Verifique se está alinhado com o RITMO e o ORÇAMENTO preferidos
6. Verifique se NÃO inclui tópicos a evitar
7. Verifique se a REGIÃO faz sentido (distâncias, acessibilidade)

❌ **NUNCA:**
- ⚠️ NÃO sugira eventos pontuais (shows, jogos, festivais, apresentações) de datas DIFERENTES da requisitada
- ⚠️ NÃO sugira locais FECHADOS na data especificada
- NÃO invente endereços, horários ou preços; use apenas informações verificáveis
- NÃO sugira atividades ao ar livre quando a estação não permitir (ex: piquenique no inverno)
- NÃO ignore restrições alimentares, de mobilidade ou tópicos a evitar
- NÃO sugira atividades inadequadas para crianças se houver crianças no grupo
- NÃO sugira lugares muito distantes sem mencionar o tempo de deslocamento

✅ **SEMPRE:**
- Seja específico e factual
- Mencione considerações de clima quando relevante
- Indique o tempo de deslocamento aproximado
- Sugira horários realistas considerando deslocamentos
- Adapte as sugestões ao perfil do grupo
- Seja honesto se não souber algo; não invente

---

Agora responda considerando TODO este contexto:"""


def render_prompt(context: TravelContext, addendum: Optional[str] = None) -> str:
    sections = [
        _date_section(context),
        _holiday_section(context),
        _locale_section(context),
        _profile_section(context),
        _history_section(context),
        _addendum_section(addendum),
        _rules_section(context),
    ]
    return "\n\n".join(section for section in sections if section)


# ----------------------------------------------------------
# BUILDER
# ----------------------------------------------------------
class ContextBuilder:
    def __init__(self, storage):
        self.storage = storage

    def build_context(
        self,
        user_id: str,
        as_of_date: Optional[Union[date, str]] = None,
        region: Optional[str] = None,
    ) -> TravelContext:
        if isinstance(as_of_date, str):
            as_of_date = parse_day(as_of_date)

        profile_row = self.storage.get("travel_profile", {"user_id": user_id})
        config_row = self.storage.get("trip_config", {"user_id": user_id})
        program_rows = self.storage.list(
            "programs",
            {"user_id": user_id},
            order_by=[("date", "asc"), ("start_time", "asc")],
        )

        context = TravelContext(
            profile=TravelProfile.model_validate(profile_row) if profile_row else None,
            trip_config=self._trip_config(config_row),
            programs=self._programs(program_rows),
            current_date=as_of_date or local_today(),
            region=(region or "").strip() or settings.default_region,
        )
        log.debug(
            f"Context for user={user_id}: profile={context.profile is not None} "
            f"trip_config={context.trip_config is not None} programs={len(context.programs)} "
            f"date={context.current_date} region={context.region!r}"
        )
        return context

    def _trip_config(self, row: Optional[Dict[str, Any]]) -> Optional[TripConfig]:
        if not row:
            return None
        try:
            return TripConfig.model_validate(row)
        except ValidationError as e:
            log.warning(f"Ignoring incomplete trip config {row.get('id')}: {e}")
            return None

    def _programs(self, rows: List[Dict[str, Any]]) -> List[Program]:
        programs = []
        for row in rows:
            try:
                programs.append(Program.model_validate(row))
            except ValidationError as e:
                log.warning(f"Skipping unreadable program {row.get('id')}: {e}")
        return programs
