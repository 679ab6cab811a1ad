# backend/trip_planner/agents/faq_agent.py

from typing import Any, Dict, List, Optional

from trip_planner.agents.program_access import load_program, messages_for, sanitized
from trip_planner.core.errors import InvalidRequest, MalformedOutputError
from trip_planner.core.logger import get_logger
from trip_planner.models.program_models import FaqItem
from trip_planner.services.llm_providers import CHAT_PROVIDER
from trip_planner.services.response_parser import FAQ, parse_model_output
from trip_planner.utils.sanitize import sanitize_fields

log = get_logger("faq_agent")

FAQ_SYSTEM_PROMPT = (
    "Você é um assistente especializado em criar FAQs úteis e precisos sobre atrações turísticas "
    "em Nova York. Retorne apenas JSON válido."
)

TOPIC_SYSTEM_PROMPT = (
    "Você é um guia turístico experiente e confiável especializado em Nova York. "
    "Forneça informações precisas e práticas baseadas em fatos verificáveis."
)

FAQ_PROMPT = """Com base nas seguintes informações sobre uma atração em Nova York, crie um FAQ (Perguntas e Respostas Frequentes) com 4-6 perguntas relevantes que um turista poderia ter.

INFORMAÇÕES:
{suggestions}

Gere um JSON array com o seguinte formato:
[
  {{
    "question": "Pergunta aqui?",
    "answer": "Resposta clara e objetiva aqui"
  }}
]

IMPORTANTE:
- Seja factual e preciso
- Não invente informações
- Foque em perguntas práticas e úteis
- Mantenha respostas concisas mas informativas
- Retorne APENAS o JSON, sem texto adicional"""

TOPIC_PROMPT = """Um turista quer saber mais detalhes sobre o seguinte tópico:

TÓPICO: {topic}

CONTEXTO DA ATRAÇÃO:
{context}

Forneça informações adicionais detalhadas e práticas sobre este tópico específico. Seja informativo mas conciso.

IMPORTANTE:
- Seja factual e baseado em informações verificáveis
- Não invente dados ou estatísticas
- Seja específico e relevante ao tópico perguntado
- Mantenha o tom amigável e acessível"""


def _dump(faq: List[FaqItem]) -> List[Dict[str, Any]]:
    return [item.model_dump(exclude_none=True) for item in faq]


class FaqAgent:
    def __init__(self, storage, dispatch):
        self.storage = storage
        self.dispatch = dispatch

    # -----------------------------
    # FAQ generation
    # -----------------------------
    def generate(self, user_id: str, program_id: str, suggestions: Optional[str] = None) -> Dict[str, Any]:
        """4-6 Q&A pairs from the program's suggestions; an unparseable reply yields []."""
        program = sanitized(load_program(self.storage, user_id, program_id))
        source = sanitize_fields(
            user_id, "generate-faq",
            {"suggestions": suggestions or program.ai_suggestions},
            {"suggestions": "suggestions"},
        )["suggestions"]
        if not source:
            raise InvalidRequest("Gere as sugestões do programa antes de criar o FAQ")

        raw = self.dispatch.send_to_provider(
            CHAT_PROVIDER,
            {"messages": messages_for(FAQ_SYSTEM_PROMPT, FAQ_PROMPT.format(suggestions=source))},
        )
        faq = parse_model_output(raw, FAQ)

        if faq:
            self.storage.update("programs", program_id, {"ai_faq": _dump(faq)})
            log.info(f"Stored {len(faq)} FAQ entries for program={program_id}")
        else:
            # keep whatever FAQ was cached before
            log.warning(f"No FAQ entries produced for program={program_id}")
        return {"faq": _dump(faq)}

    # -----------------------------
    # Topic drill-down
    # -----------------------------
    def explore_topic(
        self,
        user_id: str,
        program_id: str,
        faq_index: int,
        topic: Optional[str] = None,
        context: Optional[str] = None,
    ) -> Dict[str, Any]:
        """
        Expand one FAQ entry and store the text in its `details`.

        The whole array is read, one index replaced and the array written
        back; two concurrent drill-downs on the same program can overwrite
        each other (last write wins).
        """
        program = load_program(self.storage, user_id, program_id)
        faq = list(program.ai_faq or [])
        if faq_index >= len(faq):
            raise InvalidRequest(f"Pergunta {faq_index} não existe no FAQ deste programa")

        entry = faq[faq_index]
        fields = sanitize_fields(
            user_id, "explore-topic",
            {"topic": topic or entry.question, "context": context or entry.answer},
            {"topic": "topic", "context": "context"},
        )

        details = self.dispatch.send_to_provider(
            CHAT_PROVIDER,
            {"messages": messages_for(TOPIC_SYSTEM_PROMPT, TOPIC_PROMPT.format(**fields))},
        ).strip()
        if not details:
            raise MalformedOutputError("Empty topic details from model", details)

        faq[faq_index] = entry.model_copy(update={"details": details})
        self.storage.update("programs", program_id, {"ai_faq": _dump(faq)})
        log.info(f"Stored details for FAQ entry {faq_index} of program={program_id}")
        return {"details": details, "faq": _dump(faq)}
