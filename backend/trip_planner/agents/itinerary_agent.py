# backend/trip_planner/agents/itinerary_agent.py

import re
from typing import Any, Dict, List, Optional, Tuple

from trip_planner.agents.program_access import PROGRAM_FIELD_TYPES, public_program, sanitized
from trip_planner.core.errors import InvalidRequest
from trip_planner.core.logger import get_logger
from trip_planner.models.ai_models import Attraction, OrganizedItinerary, OrganizedProgram
from trip_planner.models.program_models import Program
from trip_planner.services.context_builder import ContextBuilder, render_prompt
from trip_planner.services.llm_providers import CHAT_PROVIDER
from trip_planner.services.response_parser import ITINERARY, parse_model_output
from trip_planner.utils.sanitize import sanitize, sanitize_fields, sanitize_object
from trip_planner.utils.time_utils import parse_hhmm

log = get_logger("itinerary_agent")

ATTRACTION_FIELD_TYPES = {
    "name": "title",
    "type": "generic",
    "address": "address",
    "hours": "generic",
    "description": "description",
    "neighborhood": "region",
    "why_recommended": "description",
}

EMPTY_ITINERARY_WARNING = (
    "Nenhum programa foi organizado. A IA pode não ter encontrado informações suficientes sobre a região "
    "ou as atrações selecionadas não são compatíveis com a data escolhida."
)

# "10:00-17:30", "9h às 18h", "10h30 - 22h"
_HOURS_RANGE = re.compile(
    r"(\d{1,2})(?::|h)(\d{2})?\s*h?\s*(?:-|–|às|as|a|to)\s*(\d{1,2})(?::|h)(\d{2})?",
    re.IGNORECASE,
)


# ---------------------------------------------------------------------------
# DETERMINISTIC CONFLICT CHECKS
# ---------------------------------------------------------------------------
def parse_opening_hours(hours: Optional[str]) -> Optional[Tuple[int, int]]:
    """(open, close) in minutes after midnight, or None when the text is not a plain range."""
    if not hours or re.search(r"\b[ap]\.?m\.?\b", hours, re.IGNORECASE):
        return None
    match = _HOURS_RANGE.search(hours)
    if not match:
        return None
    opens = int(match.group(1)) * 60 + int(match.group(2) or 0)
    closes = int(match.group(3)) * 60 + int(match.group(4) or 0)
    if opens >= 24 * 60 or closes > 24 * 60:
        return None
    if closes <= opens:
        closes += 24 * 60   # past midnight
    return opens, closes


def _span(start: Optional[str], end: Optional[str]) -> Tuple[Optional[int], Optional[int]]:
    return parse_hhmm(start), parse_hhmm(end)


def find_conflicts(
    organized: List[OrganizedProgram],
    existing: List[Program],
    window_start: str,
    window_end: str,
    attractions: List[Attraction],
) -> List[str]:
    warnings: List[str] = []
    win_start, win_end = _span(window_start, window_end)
    hours_by_name = {a.name.strip().lower(): a.hours for a in attractions}

    for item in organized:
        start, end = _span(item.start_time, item.end_time)
        if start is None or end is None:
            continue
        label = f'"{item.title}" ({item.start_time}-{item.end_time})'

        for program in existing:
            p_start, p_end = _span(program.start_time, program.end_time)
            if p_start is None:
                continue
            overlaps = start < p_end and p_start < end if p_end is not None else start <= p_start < end
            if overlaps:
                other = program.start_time + (f"-{program.end_time}" if program.end_time else "")
                warnings.append(f'{label} conflita com o programa existente "{program.title}" ({other}).')

        if win_start is not None and win_end is not None and (start < win_start or end > win_end):
            warnings.append(f"{label} está fora do horário desejado ({window_start}-{window_end}).")

        hours = hours_by_name.get(item.title.strip().lower())
        opening = parse_opening_hours(hours)
        if opening and (start < opening[0] or end > opening[1]):
            warnings.append(f"{label} está fora do horário de funcionamento ({hours}).")

    return warnings


def next_and_previous(day_programs: List[Program], start_time: str, end_time: str) -> Tuple[Optional[Program], Optional[Program]]:
    """First program starting after the window and last one ending before it."""
    win_start, win_end = _span(start_time, end_time)
    upcoming = None
    previous = None
    for program in day_programs:
        p_start, p_end = _span(program.start_time, program.end_time)
        if upcoming is None and p_start is not None and win_end is not None and p_start > win_end:
            upcoming = program
        if p_end is not None and win_start is not None and p_end <= win_start:
            previous = program
    return upcoming, previous


class ItineraryAgent:
    """Orders user-selected attractions into a timed day plan and turns an accepted plan into programs."""

    def __init__(self, storage, dispatch, context_builder: Optional[ContextBuilder] = None):
        self.storage = storage
        self.dispatch = dispatch
        self.context_builder = context_builder or ContextBuilder(storage)

    # -----------------------------
    # Organize
    # -----------------------------
    def organize(
        self,
        user_id: str,
        selected_attractions: List[Attraction],
        date: str,
        start_time: str = "09:00",
        end_time: str = "22:00",
        region: Optional[str] = None,
    ) -> Dict[str, Any]:
        if parse_hhmm(start_time) is None or parse_hhmm(end_time) is None:
            raise InvalidRequest("Horários devem estar no formato HH:MM")

        region = sanitize_fields(user_id, "organize-itinerary", {"region": region}, {"region": "region"})["region"]
        attractions = [
            Attraction.model_validate(sanitize_object(a.model_dump(), ATTRACTION_FIELD_TYPES))
            for a in selected_attractions
        ]

        context = self.context_builder.build_context(user_id, date, region or None)
        programs = [sanitized(p) for p in context.programs]
        day_programs = [p for p in programs if p.date == date]
        other_programs = [p for p in programs if p.date != date]

        addendum = self._addendum(context.region, date, start_time, end_time, attractions, day_programs, other_programs)
        log.info(
            f"Organizing {len(attractions)} attractions for user={user_id} date={date} "
            f"({len(day_programs)} programs already on that day)"
        )

        raw = self.dispatch.send_to_provider(
            CHAT_PROVIDER,
            {"messages": [{"role": "user", "content": render_prompt(context, addendum)}]},
        )
        itinerary: OrganizedItinerary = parse_model_output(raw, ITINERARY)

        if not itinerary.programs:
            log.warning(f"Model organized no programs for user={user_id} date={date}")
            itinerary.warnings.insert(0, EMPTY_ITINERARY_WARNING)
        else:
            for warning in find_conflicts(itinerary.programs, day_programs, start_time, end_time, attractions):
                if warning not in itinerary.warnings:
                    itinerary.warnings.append(warning)

        return {
            "itinerary": itinerary.to_api(),
            "existing_programs": [p.model_dump() for p in day_programs],
        }

    def _addendum(
        self,
        region: str,
        date: str,
        start_time: str,
        end_time: str,
        attractions: List[Attraction],
        day_programs: List[Program],
        other_programs: List[Program],
    ) -> str:
        upcoming, previous = next_and_previous(day_programs, start_time, end_time)

        parts = [
            f"Você está organizando um itinerário para o dia {date} em {region}.",
            "",
            "⚠️ VALIDAÇÃO CRÍTICA DE DATA:",
            f"1. EVENTO PONTUAL (show, jogo, festival): confirme que ocorre EXATAMENTE em {date}; se não, REJEITE e adicione um warning.",
            f"2. ATRAÇÃO PERMANENTE (museu, restaurante): confirme que está ABERTA em {date}; se fechada, REJEITE e adicione um warning.",
            "",
            "⭐ OTIMIZAÇÃO GEOGRÁFICA:",
            "- Organize por PROXIMIDADE e evite vai-e-vem",
            "- Prefira trechos caminháveis (máximo 15 min a pé)",
            "- Para lugares mais distantes, informe tempo e meio de transporte em \"notes\"",
        ]

        if upcoming:
            parts += [
                "",
                "⭐ PRÓXIMO COMPROMISSO DO DIA:",
                f"- {upcoming.title} às {upcoming.start_time} em {upcoming.address or 'local não especificado'}",
                "- O ÚLTIMO programa deve terminar GEOGRAFICAMENTE PRÓXIMO a este local",
                f"- Reserve 30-45 minutos de folga antes de {upcoming.start_time}",
                "- Preencha \"transitToNext\" do último programa com o deslocamento até lá",
            ]
        if previous:
            parts += [
                "",
                "📍 COMPROMISSO ANTERIOR DO DIA:",
                f"- {previous.title} termina às {previous.end_time} em {previous.address or 'local não especificado'}",
                "- Se possível, comece o itinerário perto deste local",
            ]

        parts += ["", f"HORÁRIO DESEJADO: {start_time} até {end_time}", "", "PROGRAMAS JÁ EXISTENTES NESTE DIA:"]
        if day_programs:
            parts += [
                f"- {p.start_time or '?'}-{p.end_time or '?'}: {p.title} em {p.address or 'endereço não especificado'}"
                for p in day_programs
            ]
        else:
            parts.append("Nenhum programa existente neste dia")

        if other_programs:
            parts += ["", "OUTROS PROGRAMAS DA VIAGEM (evite repetir lugares e temas):"]
            for p in other_programs:
                parts.append(self._program_digest(p))

        parts += ["", "ATRAÇÕES SELECIONADAS PELO USUÁRIO:"]
        for a in attractions:
            parts += [
                f"- {a.name} ({a.type})",
                f"  Endereço: {a.address}",
                f"  Horários: {a.hours}",
                f"  Duração estimada: {a.estimated_duration} minutos",
                f"  Descrição: {a.description}",
            ]

        parts += [
            "",
            "SUA TAREFA:",
            "1. Organize as atrações selecionadas respeitando horários de funcionamento e duração estimada",
            "2. Inclua 15-30 minutos de deslocamento entre locais, com estimativa realista por trecho",
            "3. NÃO sobreponha nem conflite com os programas existentes; use os intervalos livres",
            "4. Respeite as restrições e preferências do viajante",
            "",
            "FORMATO DE RESPOSTA (JSON válido, sem markdown):",
            "{",
            '  "programs": [{"title": "Nome exatamente como fornecido", "description": "1-2 linhas", '
            '"start_time": "HH:MM", "end_time": "HH:MM", "address": "Endereço completo", '
            '"notes": "Dicas práticas e transporte", "transitToNext": "Deslocamento até a próxima atividade"}],',
            '  "summary": "Resumo da lógica aplicada ao dia",',
            '  "warnings": ["Avisos sobre conflitos ou ajustes"],',
            f'  "optimizationApplied": {{"endNearNextCommitment": {"true" if upcoming else "false"}, '
            f'"nextCommitmentTitle": "{upcoming.title if upcoming else ""}", "bufferMinutes": 45, '
            '"suggestedDeparture": "HH:MM"}',
            "}",
        ]
        return "\n".join(parts)

    def _program_digest(self, program: Program) -> str:
        line = "- " + " ".join(part for part in (program.date, program.start_time, program.title) if part)
        if program.address:
            line += f" | {program.address}"
        if program.description:
            line += f"\n  {program.description}"
        for item in program.ai_faq or []:
            line += f"\n  P: {item.question} R: {item.answer}"
        return line

    # -----------------------------
    # Confirm
    # -----------------------------
    def confirm(self, user_id: str, date: str, programs: List[OrganizedProgram]) -> Dict[str, Any]:
        """Store an accepted itinerary as regular programs on `date`."""
        created = []
        for item in programs:
            record = sanitize_object(item.model_dump(), PROGRAM_FIELD_TYPES)
            notes = record.get("notes") or ""
            if record.get("transit_to_next"):
                transit = sanitize(record["transit_to_next"], "notes")
                notes = f"{notes}\n🚶 {transit}".strip()
            row = self.storage.insert("programs", {
                "user_id": user_id,
                "title": record["title"],
                "date": date,
                "start_time": record["start_time"],
                "end_time": record["end_time"],
                "address": record.get("address") or None,
                "description": record.get("description") or None,
                "notes": notes or None,
            })
            created.append(public_program(row))

        log.info(f"Inserted {len(created)} programs from organized itinerary for user={user_id} date={date}")
        return {"programs": created}
