# backend/trip_planner/agents/suggestions_agent.py

from typing import Dict, Optional

from trip_planner.agents.program_access import load_program, messages_for, region_of, sanitized
from trip_planner.core.errors import MalformedOutputError
from trip_planner.core.logger import get_logger
from trip_planner.models.program_models import Program
from trip_planner.services.context_builder import ContextBuilder, render_prompt
from trip_planner.services.llm_providers import CHAT_PROVIDER

log = get_logger("suggestions_agent")

SYSTEM_PROMPT = (
    "Você é um guia turístico experiente especializado em Nova York. "
    "Forneça informações úteis, práticas e interessantes, em português brasileiro e em markdown."
)


class SuggestionsAgent:
    """Region narrative for one program, cached on `programs.ai_suggestions`."""

    def __init__(self, storage, dispatch, context_builder: Optional[ContextBuilder] = None):
        self.storage = storage
        self.dispatch = dispatch
        self.context_builder = context_builder or ContextBuilder(storage)

    def generate(self, user_id: str, program_id: str) -> Dict[str, str]:
        program = sanitized(load_program(self.storage, user_id, program_id))
        context = self.context_builder.build_context(user_id, program.date, region_of(program.address))

        prompt = render_prompt(context, self._addendum(program))
        text = self.dispatch.send_to_provider(
            CHAT_PROVIDER, {"messages": messages_for(SYSTEM_PROMPT, prompt)}
        ).strip()
        if not text:
            raise MalformedOutputError("Empty suggestions from model", text)

        # regenerating replaces the previous text
        self.storage.update("programs", program_id, {"ai_suggestions": text})
        log.info(f"Stored {len(text)} chars of suggestions for program={program_id}")
        return {"suggestions": text}

    def _addendum(self, program: Program) -> str:
        lines = ["O viajante planejou a seguinte atividade:", f"Título: {program.title}"]
        if program.description:
            lines.append(f"Descrição: {program.description}")
        if program.address:
            lines.append(f"Local: {program.address}")
        if program.start_time:
            lines.append(f"Horário: {program.start_time}" + (f" - {program.end_time}" if program.end_time else ""))
        if program.notes:
            lines.append(f"Observações do viajante: {program.notes}")

        lines += [
            "",
            "Escreva um guia em markdown com as seções:",
            "## História e contexto: o que torna este lugar/região especial",
            "## Pontos de interesse próximos: o que ver a poucos minutos a pé, com tempo de caminhada",
            "## Onde comer: opções próximas compatíveis com as restrições alimentares do grupo",
            "## Dicas práticas: melhores horários, ingressos, transporte, o que levar",
            "",
            "Seja conciso mas informativo. Não invente endereços, horários ou preços.",
        ]
        return "\n".join(lines)
