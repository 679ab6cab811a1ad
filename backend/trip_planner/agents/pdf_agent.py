# backend/trip_planner/agents/pdf_agent.py

from typing import Any, Dict, List, Optional

from trip_planner.core.config_loader import settings
from trip_planner.core.logger import get_logger
from trip_planner.models.ai_models import LocationNarrative, PdfNarrative, RegionIntro
from trip_planner.models.request_models import PdfProgramIn
from trip_planner.services.llm_providers import CHAT_PROVIDER
from trip_planner.services.response_parser import PDF_NARRATIVE, parse_model_output
from trip_planner.utils.sanitize import sanitize_fields, sanitize_object

log = get_logger("pdf_agent")

GENERIC_BLURB = "Local especialmente selecionado para seu roteiro."

PDF_PROMPT = """Você é um guia turístico experiente e apaixonado. Com base nos programas do dia abaixo, crie conteúdo para um guia de viagem em PDF.

DESTINO: {destination}
DATA: {date}
ENDEREÇOS DOS PROGRAMAS: {addresses}

PROGRAMAS DO DIA (índice entre colchetes começa em 0):
{programs}

Responda APENAS com um JSON válido no seguinte formato:
{{
  "region_intro": {{
    "region_name": "Nome da região/bairro principal (ex: Brooklyn, Manhattan, Times Square)",
    "intro_text": "Um parágrafo de 3-4 frases apresentando a região, sua história e atmosfera."
  }},
  "locations": [
    {{
      "program_index": 0,
      "guide_text": "Um parágrafo de 4-6 frases sobre este local: história breve, curiosidades, o que o torna especial, dicas de guia local."
    }}
  ]
}}

IMPORTANTE:
- O array "locations" DEVE conter exatamente {count} objetos, um para cada programa
- program_index DEVE corresponder EXATAMENTE ao número entre colchetes de cada programa (0, 1, 2, ...)
- region_name deve ser o bairro/região onde estão concentrados os programas
- Escreva em português brasileiro"""


def fallback_narrative(destination: str, count: int) -> PdfNarrative:
    return PdfNarrative(
        region_intro=RegionIntro(
            region_name=destination,
            intro_text=(
                f"Bem-vindo a {destination}! Este roteiro foi preparado especialmente para você "
                "aproveitar ao máximo sua visita."
            ),
        ),
        locations=[LocationNarrative(program_index=i, guide_text=GENERIC_BLURB) for i in range(count)],
    )


def normalize_narrative(narrative: PdfNarrative, destination: str, count: int) -> PdfNarrative:
    """Exactly `count` locations, indexed 0..count-1 in program order; gaps get the generic blurb."""
    intro = narrative.region_intro
    if not intro.region_name.strip():
        intro = intro.model_copy(update={"region_name": destination})
    return PdfNarrative(
        region_intro=intro,
        locations=[
            LocationNarrative(program_index=i, guide_text=narrative.guide_text_for(i, GENERIC_BLURB).strip() or GENERIC_BLURB)
            for i in range(count)
        ],
    )


class PdfContentAgent:
    def __init__(self, dispatch):
        self.dispatch = dispatch

    def generate(
        self,
        user_id: str,
        programs: List[PdfProgramIn],
        date: str,
        destination: Optional[str] = None,
    ) -> Dict[str, Any]:
        fields = sanitize_fields(
            user_id, "generate-pdf-content",
            {"destination": destination or settings.default_destination, "date": date},
            {"destination": "region", "date": "generic"},
        )
        destination = fields["destination"] or settings.default_destination
        cleaned = [
            sanitize_object(p.model_dump(), {"title": "title", "address": "address", "description": "description"})
            for p in programs
        ]

        listing = []
        for i, p in enumerate(cleaned):
            line = f"[{i}] {p['title']}"
            if p.get("address"):
                line += f" - {p['address']}"
            if p.get("description"):
                line += f": {p['description']}"
            listing.append(line)

        prompt = PDF_PROMPT.format(
            destination=destination,
            date=fields["date"],
            addresses=", ".join(p["address"] for p in cleaned if p.get("address")),
            programs="\n".join(listing),
            count=len(cleaned),
        )
        raw = self.dispatch.send_to_provider(
            CHAT_PROVIDER,
            {"messages": [{"role": "user", "content": prompt}], "temperature": 0.7},
        )

        fallback = fallback_narrative(destination, len(cleaned))
        narrative = parse_model_output(raw, PDF_NARRATIVE, fallback=fallback)
        if narrative is fallback:
            log.warning(f"Using generic PDF narrative for user={user_id} date={date}")

        return normalize_narrative(narrative, destination, len(cleaned)).model_dump()
