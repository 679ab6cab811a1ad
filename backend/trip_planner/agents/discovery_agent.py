# backend/trip_planner/agents/discovery_agent.py

from typing import Any, Dict, List, Optional

from trip_planner.core.errors import InvalidRequest
from trip_planner.core.logger import get_logger
from trip_planner.models.ai_models import Attraction
from trip_planner.services.attractions_cache import AttractionsCache, make_key
from trip_planner.services.context_builder import ContextBuilder, render_prompt
from trip_planner.services.llm_providers import SEARCH_PROVIDER
from trip_planner.services.response_parser import ATTRACTIONS, fill_neighborhoods, parse_model_output
from trip_planner.utils.sanitize import sanitize, sanitize_fields

log = get_logger("discovery_agent")

SYSTEM_PROMPT = (
    "You are a NYC tourism expert. Always respond with valid JSON arrays only. "
    "Consider user preferences and restrictions when making suggestions."
)

VERIFICATION_BLOCK = """⭐ INFORMAÇÕES OBRIGATÓRIAS DE VERIFICAÇÃO:
Para CADA local, inclua dados verificáveis de fontes reais (Google Maps, Yelp, TripAdvisor, etc).
Para cada item, forneça EXATAMENTE estes campos em JSON:
- name, type, address, hours (horário no dia {date}), description, estimatedDuration (minutos), neighborhood, imageUrl, infoUrl
- rating: avaliação média (ex: "4.5/5") - OBRIGATÓRIO
- reviewCount: número aproximado de avaliações (ex: "1200+ avaliações") - OBRIGATÓRIO
- whyRecommended: motivo ESPECÍFICO da recomendação - OBRIGATÓRIO
- verificationUrl: link direto do Google Maps para verificar o local - OBRIGATÓRIO

⚠️ Se NÃO encontrar dados verificáveis (rating, reviews) para um local, NÃO o inclua na lista."""

INITIAL_PROMPT = """⚠️ VALIDAÇÃO TEMPORAL OBRIGATÓRIA
1. EVENTOS PONTUAIS (shows, jogos, festivais): APENAS os que acontecem EXATAMENTE no dia {date}.
2. ATRAÇÕES PERMANENTES (museus, restaurantes, parques): APENAS se estiverem ABERTAS no dia {date}.
3. Em caso de dúvida sobre a data, NÃO inclua o item.

Liste as principais atrações, eventos, restaurantes e atividades turísticas em ou PRÓXIMAS a {region}, Nova York, adequadas para o dia {date}.

⭐ CRITÉRIO DE PROXIMIDADE:
- Se {region} for um PONTO ESPECÍFICO (ex: "Columbus Circle", "Times Square", "SoHo"): priorize opções a no máximo 10-15 minutos A PÉ e mencione os tempos de caminhada.
- Se {region} for uma REGIÃO AMPLA (ex: "Manhattan", "Brooklyn", "Midtown"): diversifique dentro da região e mencione sub-bairros.

{verification}

Retorne um array JSON válido com 8-12 sugestões variadas E VERIFICÁVEIS. Apenas JSON, sem texto adicional."""

MORE_PROMPT = """⚠️ VALIDAÇÃO TEMPORAL OBRIGATÓRIA
APENAS eventos que acontecem EXATAMENTE em {date}; atrações permanentes devem estar ABERTAS em {date}.

Liste OUTRAS atrações, eventos, restaurantes e atividades turísticas em {region}, Nova York, adequadas para o dia {date}.
Busque opções DIFERENTES e menos conhecidas, incluindo joias escondidas.{exclude}

{verification}

Retorne um array JSON válido com 6-10 sugestões DIFERENTES E VERIFICÁVEIS. Apenas JSON, sem texto adicional."""

SUGGESTION_PROMPT = """⚠️ VALIDAÇÃO TEMPORAL CRÍTICA
Se "{suggestion}" for um evento pontual, ele DEVE ocorrer EXATAMENTE no dia {date}; se for de outra data, retorne [].
Se for uma atração permanente, confirme que está aberta em {date}.

Busque informações detalhadas sobre "{suggestion}" em Nova York, considerando a região de {region} e a data {date}.

{verification}

Retorne um array JSON válido com 1-3 resultados VERIFICÁVEIS. Apenas JSON, sem texto adicional."""


def merge_attractions(existing: List[Attraction], fresh: List[Attraction]) -> List[Attraction]:
    """`existing` followed by every fresh attraction whose name (case-insensitive) is new."""
    seen = {a.name.strip().lower() for a in existing}
    merged = list(existing)
    for attraction in fresh:
        key = attraction.name.strip().lower()
        if key in seen:
            continue
        seen.add(key)
        merged.append(attraction)
    return merged


class DiscoveryAgent:
    """
    Attraction discovery through the search-augmented provider.

    Initial mode replaces the caller's list; "more" and user-suggestion modes
    append to `existing_attractions`. Personalization only happens when the
    caller is identified.
    """

    def __init__(self, storage, dispatch, cache: AttractionsCache, context_builder: Optional[ContextBuilder] = None):
        self.storage = storage
        self.dispatch = dispatch
        self.cache = cache
        self.context_builder = context_builder or ContextBuilder(storage)

    def discover(
        self,
        user_id: Optional[str],
        region: str,
        date: str,
        user_suggestion: Optional[str] = None,
        request_more: bool = False,
        existing_attractions: Optional[List[Attraction]] = None,
    ) -> Dict[str, Any]:
        fields = sanitize_fields(
            user_id, "discover-attractions",
            {"region": region, "user_suggestion": user_suggestion},
            {"region": "region", "user_suggestion": "topic"},
        )
        region, suggestion = fields["region"], fields["user_suggestion"]
        if not region:
            raise InvalidRequest("Região e data são obrigatórias")
        existing = list(existing_attractions or [])
        appending = bool(suggestion) or request_more

        log.info(f"Discovering attractions region={region!r} date={date} suggestion={suggestion!r} more={request_more}")

        key = make_key(region, date, suggestion, request_more, user_id)
        fresh = self.cache.get_or_load(
            key,
            lambda: self._fetch(user_id, region, date, suggestion, request_more, existing),
        )

        attractions = merge_attractions(existing, fresh) if appending else merge_attractions([], fresh)
        log.info(f"Returning {len(attractions)} attractions ({len(fresh)} from provider)")
        return {"attractions": [a.to_api() for a in attractions]}

    def invalidate(
        self, region: Optional[str] = None, date: Optional[str] = None, user_id: Optional[str] = None
    ) -> int:
        return self.cache.invalidate(region, date, user_id=user_id)

    # -----------------------------
    # Provider call
    # -----------------------------
    def _fetch(
        self,
        user_id: Optional[str],
        region: str,
        date: str,
        suggestion: str,
        request_more: bool,
        existing: List[Attraction],
    ) -> List[Attraction]:
        verification = VERIFICATION_BLOCK.format(date=date)
        if suggestion:
            task = SUGGESTION_PROMPT.format(suggestion=suggestion, region=region, date=date, verification=verification)
        elif request_more:
            exclude = ""
            if existing:
                names = ", ".join(sanitize(a.name, "title") for a in existing)
                exclude = f"\nNÃO repita estes locais já sugeridos: {names}."
            task = MORE_PROMPT.format(region=region, date=date, exclude=exclude, verification=verification)
        else:
            task = INITIAL_PROMPT.format(region=region, date=date, verification=verification)

        prefix = self._personal_prefix(user_id, region, date, suggestion, request_more)
        prompt = f"{prefix}\n\n{task}" if prefix else task

        raw = self.dispatch.send_to_provider(
            SEARCH_PROVIDER,
            {
                "messages": [
                    {"role": "system", "content": SYSTEM_PROMPT},
                    {"role": "user", "content": prompt},
                ],
                "temperature": 0.2,
                "max_tokens": 2000,
            },
        )
        return fill_neighborhoods(parse_model_output(raw, ATTRACTIONS), region)

    def _personal_prefix(self, user_id: Optional[str], region: str, date: str, suggestion: str, request_more: bool) -> str:
        if not user_id:
            return ""

        context = self.context_builder.build_context(user_id, date, region)
        lines = [f"O usuário está procurando atrações para {region} em {date}."]
        if suggestion:
            lines.append(f'Sugestão específica do usuário: "{suggestion}"')
        if request_more:
            lines.append("O usuário quer opções menos conhecidas e diferentes.")
        lines += [
            "",
            "Use o contexto do viajante para personalizar as sugestões, considerando:",
            "- Restrições alimentares ao sugerir restaurantes",
            "- Interesses e preferências para selecionar atrações relevantes",
            "- Ritmo de viagem para sugerir quantidade adequada de atividades",
            "- Mobilidade para recomendar locais acessíveis",
            "- Tópicos a evitar",
        ]
        return render_prompt(context, "\n".join(lines))
