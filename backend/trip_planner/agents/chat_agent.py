# backend/trip_planner/agents/chat_agent.py

import json
from dataclasses import dataclass
from typing import Any, Dict, List, Optional

from pydantic import ValidationError

from trip_planner.agents.program_access import (
    PROGRAM_FIELD_TYPES,
    delete_program_and_chat,
    load_program,
    persist_messages,
    public_program,
    region_of,
    sanitized,
)
from trip_planner.core.errors import TripPlannerError
from trip_planner.core.logger import get_logger
from trip_planner.models.program_models import Program, ProgramIn
from trip_planner.models.request_models import ActionExecuted, ChatResponse
from trip_planner.services.context_builder import ContextBuilder, render_prompt
from trip_planner.services.llm_providers import CHAT_PROVIDER
from trip_planner.utils.sanitize import sanitize_fields, sanitize_object
from trip_planner.utils.time_utils import is_valid_day

log = get_logger("chat_agent")

HISTORY_LIMIT = 50
EMPTY_REPLY = "Desculpe, não consegui gerar uma resposta agora. Pode reformular a pergunta?"


# ---------------------------------------------------------------------------
# TOOLS (global chat only)
# ---------------------------------------------------------------------------
PROGRAM_TOOLS: List[Dict[str, Any]] = [
    {
        "type": "function",
        "function": {
            "name": "add_program",
            "description": "Adiciona um novo programa/atividade ao roteiro do usuário. Use quando o usuário pedir para adicionar algo ao roteiro.",
            "parameters": {
                "type": "object",
                "properties": {
                    "title": {"type": "string", "description": "Título do programa (ex: 'Jantar no Carbone')"},
                    "date": {"type": "string", "description": "Data no formato YYYY-MM-DD"},
                    "start_time": {"type": "string", "description": "Horário de início HH:MM"},
                    "end_time": {"type": "string", "description": "Horário de término HH:MM"},
                    "address": {"type": "string", "description": "Endereço completo do local"},
                    "description": {"type": "string", "description": "Descrição breve da atividade"},
                    "notes": {"type": "string", "description": "Observações adicionais"},
                },
                "required": ["title", "date"],
            },
        },
    },
    {
        "type": "function",
        "function": {
            "name": "update_program",
            "description": "Atualiza um programa existente no roteiro. Use quando o usuário pedir para editar um programa já cadastrado.",
            "parameters": {
                "type": "object",
                "properties": {
                    "program_id": {"type": "string", "description": "ID do programa a ser atualizado"},
                    "title": {"type": "string", "description": "Novo título (opcional)"},
                    "date": {"type": "string", "description": "Nova data YYYY-MM-DD (opcional)"},
                    "start_time": {"type": "string", "description": "Novo horário de início HH:MM (opcional)"},
                    "end_time": {"type": "string", "description": "Novo horário de término HH:MM (opcional)"},
                    "address": {"type": "string", "description": "Novo endereço (opcional)"},
                    "description": {"type": "string", "description": "Nova descrição (opcional)"},
                    "notes": {"type": "string", "description": "Novas observações (opcional)"},
                },
                "required": ["program_id"],
            },
        },
    },
    {
        "type": "function",
        "function": {
            "name": "delete_program",
            "description": "Remove um programa do roteiro. Use APENAS após confirmação explícita do usuário.",
            "parameters": {
                "type": "object",
                "properties": {
                    "program_id": {"type": "string", "description": "ID do programa a ser removido"},
                },
                "required": ["program_id"],
            },
        },
    },
]

_ACTION_DONE = {
    "add_program": "Programa adicionado",
    "update_program": "Programa atualizado",
    "delete_program": "Programa removido",
}

_OPTIONAL_FIELDS = ("start_time", "end_time", "address", "description", "notes")


@dataclass
class ToolResult:
    type: str
    program: Optional[Dict[str, Any]] = None
    error: Optional[str] = None


class ChatAgent:
    """
    Conversational replies about one program or about the whole trip.

    Global chat may ask for add/update/delete program actions through tool
    calls; only the first call of a reply is executed, always scoped to the
    requesting user.
    """

    def __init__(self, storage, dispatch, context_builder: Optional[ContextBuilder] = None):
        self.storage = storage
        self.dispatch = dispatch
        self.context_builder = context_builder or ContextBuilder(storage)

    def reply(self, user_id: str, message: str, program_id: Optional[str] = None) -> ChatResponse:
        if program_id:
            return self.program_chat(user_id, program_id, message)
        return self.global_chat(user_id, message)

    # -----------------------------
    # Program chat
    # -----------------------------
    def program_chat(self, user_id: str, program_id: str, message: str) -> ChatResponse:
        text = sanitize_fields(user_id, "ai-chat", {"message": message}, {"message": "message"})["message"]
        program = sanitized(load_program(self.storage, user_id, program_id))

        context = self.context_builder.build_context(user_id, program.date, region_of(program.address))
        system_prompt = render_prompt(context, self._program_addendum(program))

        rows = self.storage.list(
            "program_chat_messages",
            {"program_id": program_id, "user_id": user_id},
            order_by=[("created_at", "desc")],
            limit=HISTORY_LIMIT,
        )
        history = [{"role": r["role"], "content": r["content"]} for r in reversed(rows)]

        messages = [{"role": "system", "content": system_prompt}, *history, {"role": "user", "content": text}]
        answer = self.dispatch.complete(CHAT_PROVIDER, {"messages": messages}).content.strip() or EMPTY_REPLY

        persist_messages(self.storage, "program_chat_messages", [
            {"program_id": program_id, "user_id": user_id, "role": "user", "content": text},
            {"program_id": program_id, "user_id": user_id, "role": "assistant", "content": answer},
        ])
        log.info(f"Program chat reply for user={user_id} program={program_id} ({len(history)} prior messages)")
        return ChatResponse(message=answer)

    def _program_addendum(self, program: Program) -> str:
        lines = [
            "O usuário está conversando sobre um programa específico da viagem.",
            "",
            "Programa:",
            f"- Título: {program.title}",
            f"- Data: {program.date}",
        ]
        if program.start_time:
            hours = program.start_time + (f" - {program.end_time}" if program.end_time else "")
            lines.append(f"- Horário: {hours}")
        if program.address:
            lines.append(f"- Local: {program.address}")
        if program.description:
            lines.append(f"- Descrição: {program.description}")
        if program.notes:
            lines.append(f"- Observações: {program.notes}")
        if program.ai_suggestions:
            lines += ["", "Sugestões já geradas para este programa:", program.ai_suggestions]
        lines += [
            "",
            "Responda DIRETAMENTE ao usuário, em português, sem mencionar processos internos.",
        ]
        return "\n".join(lines)

    # -----------------------------
    # Global chat
    # -----------------------------
    def global_chat(self, user_id: str, message: str) -> ChatResponse:
        text = sanitize_fields(user_id, "ai-chat", {"message": message}, {"message": "message"})["message"]

        context = self.context_builder.build_context(user_id)
        programs = [sanitized(p) for p in context.programs]
        system_prompt = render_prompt(context, self._global_addendum(programs))
        history = self._merged_history(user_id, programs)

        base_messages = [{"role": "system", "content": system_prompt}, *history, {"role": "user", "content": text}]
        reply = self.dispatch.complete(
            CHAT_PROVIDER,
            {"messages": base_messages, "tools": PROGRAM_TOOLS, "tool_choice": "auto"},
        )

        action: Optional[ActionExecuted] = None
        if reply.tool_calls:
            tool_call = reply.tool_calls[0]
            result = self._execute_tool(user_id, tool_call)
            if result.error is None:
                action = ActionExecuted(type=result.type, program=result.program)
            answer = self._follow_up(base_messages, reply.message, tool_call, result)
        else:
            answer = reply.content.strip() or EMPTY_REPLY

        persist_messages(self.storage, "global_chat_messages", [
            {"user_id": user_id, "role": "user", "content": text},
            {"user_id": user_id, "role": "assistant", "content": answer},
        ])
        log.info(f"Global chat reply for user={user_id} action={action.type if action else None}")
        return ChatResponse(message=answer, action_executed=action)

    def _global_addendum(self, programs: List[Program]) -> str:
        lines = ["O usuário está conversando de forma GERAL sobre toda a viagem.", ""]
        if programs:
            lines.append("📅 PROGRAMAS EXISTENTES (com IDs para referência):")
            for p in programs:
                entry = f'- ID: "{p.id}" | {p.title} | {p.date}'
                if p.start_time:
                    entry += f" às {p.start_time}"
                if p.address:
                    entry += f" | {p.address}"
                lines.append(entry)
        else:
            lines.append("Nenhum programa foi criado ainda. Ajude o viajante a planejar a viagem.")

        lines += [
            "",
            "💬 Você tem acesso às conversas anteriores, tanto as gerais quanto as de cada programa.",
            "",
            "🛠️ FERRAMENTAS DISPONÍVEIS:",
            "- add_program: quando o usuário pedir para ADICIONAR algo ao roteiro",
            "- update_program: quando o usuário pedir para EDITAR um programa existente (use o ID da lista acima)",
            "- delete_program: quando o usuário pedir para REMOVER um programa (SEMPRE peça confirmação antes)",
            "",
            "Use uma ferramenta apenas quando o usuário pedir EXPLICITAMENTE. Depois de executar uma ação, "
            "confirme o que foi feito de forma amigável. Responda em português, sem mencionar processos internos.",
        ]
        return "\n".join(lines)

    def _merged_history(self, user_id: str, programs: List[Program]) -> List[Dict[str, str]]:
        by_id = {p.id: p for p in programs}
        global_rows = self.storage.list("global_chat_messages", {"user_id": user_id}, order_by=[("created_at", "asc")])
        program_rows = self.storage.list("program_chat_messages", {"user_id": user_id}, order_by=[("created_at", "asc")])

        merged = [(r["created_at"], r["role"], r["content"]) for r in global_rows]
        for r in program_rows:
            program = by_id.get(r["program_id"])
            if program is None:
                # messages of deleted programs are left out
                continue
            content = r["content"]
            if r["role"] == "user":
                content = f'[Conversa sobre "{program.title}" ({program.date})]: {content}'
            merged.append((r["created_at"], r["role"], content))

        merged.sort(key=lambda m: m[0] or "")
        return [{"role": role, "content": content} for _, role, content in merged[-HISTORY_LIMIT:]]

    def _follow_up(self, base_messages, assistant_message: Dict[str, Any], tool_call: Dict[str, Any], result: ToolResult) -> str:
        if result.error:
            tool_content = f"Erro ao executar ação: {result.error}"
        else:
            tool_content = f"Ação executada com sucesso: {result.type} - {json.dumps(result.program, ensure_ascii=False)}"

        messages = [
            *base_messages,
            # echo only the executed call
            {"role": "assistant", **assistant_message, "tool_calls": [tool_call]},
            {"role": "tool", "tool_call_id": tool_call.get("id", ""), "content": tool_content},
        ]
        try:
            answer = self.dispatch.complete(CHAT_PROVIDER, {"messages": messages}).content.strip()
        except TripPlannerError as e:
            log.warning(f"Follow-up after {result.type} failed, using confirmation template: {e}")
            answer = ""

        if answer:
            return answer
        if result.error:
            return f"Desculpe, ocorreu um erro: {result.error}"
        return f"Pronto! {_ACTION_DONE.get(result.type, 'Ação executada')} com sucesso."

    # -----------------------------
    # Tool execution
    # -----------------------------
    def _execute_tool(self, user_id: str, tool_call: Dict[str, Any]) -> ToolResult:
        function = tool_call.get("function") or {}
        name = function.get("name", "")
        try:
            raw_args = json.loads(function.get("arguments") or "{}")
        except ValueError:
            return ToolResult(type=name, error="argumentos inválidos")
        if not isinstance(raw_args, dict):
            return ToolResult(type=name, error="argumentos inválidos")

        args = sanitize_object(raw_args, PROGRAM_FIELD_TYPES)
        log.info(f"Executing tool {name} for user={user_id}")

        if name == "add_program":
            return self._add_program(user_id, args)
        if name == "update_program":
            return self._update_program(user_id, args)
        if name == "delete_program":
            return self._delete_program(user_id, args)
        return ToolResult(type=name or "unknown", error="ferramenta desconhecida")

    def _add_program(self, user_id: str, args: Dict[str, Any]) -> ToolResult:
        try:
            program = ProgramIn.model_validate(args)
        except ValidationError as e:
            log.warning(f"add_program rejected: {e}")
            return ToolResult(type="add_program", error="dados do programa inválidos (título e data YYYY-MM-DD são obrigatórios)")

        record = program.model_dump()
        for field in _OPTIONAL_FIELDS:
            record[field] = record[field] or None
        row = self.storage.insert("programs", {**record, "user_id": user_id})
        return ToolResult(type="add_program", program=public_program(row))

    def _update_program(self, user_id: str, args: Dict[str, Any]) -> ToolResult:
        program_id = args.get("program_id")
        if not program_id or self.storage.get("programs", {"id": program_id, "user_id": user_id}) is None:
            return ToolResult(type="update_program", error="programa não encontrado")

        patch: Dict[str, Any] = {}
        if args.get("title"):
            patch["title"] = args["title"]
        if args.get("date"):
            if not is_valid_day(args["date"]):
                return ToolResult(type="update_program", error="data inválida, use YYYY-MM-DD")
            patch["date"] = args["date"]
        for field in _OPTIONAL_FIELDS:
            if field in args:
                patch[field] = args[field] or None

        row = self.storage.update("programs", program_id, patch)
        return ToolResult(type="update_program", program=public_program(row))

    def _delete_program(self, user_id: str, args: Dict[str, Any]) -> ToolResult:
        program_id = args.get("program_id")
        row = self.storage.get("programs", {"id": program_id, "user_id": user_id}) if program_id else None
        if row is None:
            return ToolResult(type="delete_program", error="programa não encontrado")

        delete_program_and_chat(self.storage, user_id, program_id)
        return ToolResult(type="delete_program", program=public_program(row))

    # -----------------------------
    # History
    # -----------------------------
    def clear_history(self, user_id: str, program_id: Optional[str] = None) -> int:
        if program_id:
            table, filters = "program_chat_messages", {"program_id": program_id, "user_id": user_id}
        else:
            table, filters = "global_chat_messages", {"user_id": user_id}

        rows = self.storage.list(table, filters)
        for row in rows:
            self.storage.delete(table, row["id"])
        log.info(f"Cleared {len(rows)} messages from {table} for user={user_id}")
        return len(rows)
