"""
Unit tests for trip_planner/agents/chat_agent.py
"""
import pytest

from trip_planner.agents.chat_agent import EMPTY_REPLY, HISTORY_LIMIT, PROGRAM_TOOLS, ChatAgent
from trip_planner.core.errors import NotFound, RateLimited
from trip_planner.services.llm_providers import CHAT_PROVIDER, ModelReply

from conftest import tool_call_reply


@pytest.fixture
def agent(storage, dispatch):
    return ChatAgent(storage, dispatch)


def _payload(dispatch, index=-1):
    name, payload = dispatch.calls[index]
    assert name == CHAT_PROVIDER
    return payload


# ---------------------------------------------------------------------------
# Program chat
# ---------------------------------------------------------------------------

class TestProgramChat:
    def test_replies_and_persists_both_turns(self, agent, dispatch, storage, user_id, make_program):
        program = make_program(address="11 W 53rd St, New York")
        dispatch.queue("Perto do MoMA tem o The Modern.")

        response = agent.reply(user_id, "  Onde almoçar?  ", program["id"])

        assert response.message == "Perto do MoMA tem o The Modern."
        assert response.action_executed is None
        rows = storage.list("program_chat_messages", {"program_id": program["id"]})
        assert [(r["role"], r["content"]) for r in rows] == [
            ("user", "Onde almoçar?"),
            ("assistant", "Perto do MoMA tem o The Modern."),
        ]

    def test_prompt_carries_program_and_history(self, agent, dispatch, user_id, make_program):
        program = make_program(title="Jantar no Carbone", start_time="19:00", address="181 Thompson St, New York")
        dispatch.queue("Primeira", "Segunda")

        agent.reply(user_id, "Pergunta 1", program["id"])
        agent.reply(user_id, "Pergunta 2", program["id"])

        messages = _payload(dispatch)["messages"]
        assert messages[0]["role"] == "system"
        assert "Jantar no Carbone" in messages[0]["content"]
        assert "- Horário: 19:00" in messages[0]["content"]
        assert [m["content"] for m in messages[1:]] == ["Pergunta 1", "Primeira", "Pergunta 2"]
        assert "tools" not in _payload(dispatch)

    def test_history_is_capped(self, agent, dispatch, storage, user_id, make_program):
        program = make_program()
        for i in range(HISTORY_LIMIT + 10):
            storage.insert("program_chat_messages", {
                "program_id": program["id"], "user_id": user_id, "role": "user",
                "content": f"m{i:03d}", "created_at": f"2025-06-01T00:00:{i:03d}",
            })
        dispatch.queue("ok")

        agent.reply(user_id, "nova", program["id"])

        history = _payload(dispatch)["messages"][1:-1]
        assert len(history) == HISTORY_LIMIT
        assert history[0]["content"] == "m010"
        assert history[-1]["content"] == f"m{HISTORY_LIMIT + 9:03d}"

    def test_empty_model_reply_gets_placeholder(self, agent, dispatch, user_id, make_program):
        program = make_program()
        dispatch.queue("   ")
        assert agent.reply(user_id, "oi", program["id"]).message == EMPTY_REPLY

    def test_other_users_program_is_not_found(self, agent, storage):
        foreign = storage.insert("programs", {"user_id": "intruder-target", "title": "x", "date": "2025-06-15"})
        with pytest.raises(NotFound):
            agent.reply("user-1", "oi", foreign["id"])


# ---------------------------------------------------------------------------
# Global chat
# ---------------------------------------------------------------------------

class TestGlobalChat:
    def test_plain_reply_offers_tools(self, agent, dispatch, storage, user_id, make_program):
        program = make_program(title="Top of the Rock")
        dispatch.queue("Sua viagem está ótima!")

        response = agent.reply(user_id, "Como está meu roteiro?")

        payload = _payload(dispatch)
        assert payload["tools"] == PROGRAM_TOOLS
        assert payload["tool_choice"] == "auto"
        assert f'ID: "{program["id"]}"' in payload["messages"][0]["content"]
        assert response.message == "Sua viagem está ótima!"
        assert len(storage.list("global_chat_messages", {"user_id": user_id})) == 2

    def test_add_program_tool(self, agent, dispatch, storage, user_id):
        dispatch.queue(
            tool_call_reply("add_program", {
                "title": "Jantar no Carbone", "date": "2025-06-22", "start_time": "19:00",
            }),
            "Adicionei o Carbone no dia 22!",
        )

        response = agent.reply(user_id, "Adiciona o Carbone dia 22 às 19h")

        assert response.action_executed.type == "add_program"
        assert response.action_executed.program["title"] == "Jantar no Carbone"
        assert "user_id" not in response.action_executed.program
        assert response.message == "Adicionei o Carbone no dia 22!"

        [row] = storage.list("programs", {"user_id": user_id})
        assert (row["date"], row["start_time"], row["address"]) == ("2025-06-22", "19:00", None)

        follow_up = _payload(dispatch)["messages"]
        assert follow_up[-1]["role"] == "tool"
        assert follow_up[-1]["tool_call_id"] == "call_1"
        assert follow_up[-1]["content"].startswith("Ação executada com sucesso: add_program")
        assert follow_up[-2]["tool_calls"][0]["function"]["name"] == "add_program"

    def test_follow_up_failure_uses_template(self, agent, dispatch, user_id):
        dispatch.queue(
            tool_call_reply("add_program", {"title": "Brunch", "date": "2025-06-23"}),
            RateLimited("429"),
        )
        response = agent.reply(user_id, "Adiciona brunch dia 23")
        assert response.message == "Pronto! Programa adicionado com sucesso."
        assert response.action_executed.type == "add_program"

    def test_update_program_tool(self, agent, dispatch, storage, user_id, make_program):
        program = make_program(title="MoMA", start_time="10:00")
        dispatch.queue(tool_call_reply("update_program", {"program_id": program["id"], "start_time": "11:00"}), "Feito.")

        response = agent.reply(user_id, "Muda o MoMA para 11h")

        assert response.action_executed.type == "update_program"
        row = storage.get("programs", {"id": program["id"]})
        assert (row["title"], row["start_time"]) == ("MoMA", "11:00")

    def test_update_with_bad_date_is_reported(self, agent, dispatch, storage, user_id, make_program):
        program = make_program()
        dispatch.queue(tool_call_reply("update_program", {"program_id": program["id"], "date": "22/06"}), "")

        response = agent.reply(user_id, "muda a data")

        assert response.action_executed is None
        assert response.message == "Desculpe, ocorreu um erro: data inválida, use YYYY-MM-DD"
        assert storage.get("programs", {"id": program["id"]})["date"] == "2025-06-15"

    def test_delete_is_scoped_to_user(self, agent, dispatch, storage, user_id):
        foreign = storage.insert("programs", {"user_id": "someone-else", "title": "x", "date": "2025-06-15"})
        dispatch.queue(tool_call_reply("delete_program", {"program_id": foreign["id"]}), "Não encontrei.")

        response = agent.reply(user_id, "apaga esse")

        assert response.action_executed is None
        assert storage.get("programs", {"id": foreign["id"]}) is not None
        assert "Erro ao executar ação: programa não encontrado" in _payload(dispatch)["messages"][-1]["content"]

    def test_delete_program_tool(self, agent, dispatch, storage, user_id, make_program):
        program = make_program()
        dispatch.queue(tool_call_reply("delete_program", {"program_id": program["id"]}), "")

        response = agent.reply(user_id, "pode apagar, confirmo")

        assert response.action_executed.type == "delete_program"
        assert response.message == "Pronto! Programa removido com sucesso."
        assert storage.get("programs", {"id": program["id"]}) is None

    def test_delete_program_tool_removes_program_chat(self, agent, dispatch, storage, user_id, make_program):
        program = make_program()
        storage.insert("program_chat_messages", {
            "program_id": program["id"], "user_id": user_id, "role": "user", "content": "abre cedo?",
        })
        dispatch.queue(tool_call_reply("delete_program", {"program_id": program["id"]}), "Removido.")

        agent.reply(user_id, "pode apagar, confirmo")

        assert storage.list("program_chat_messages", {"program_id": program["id"]}) == []

    def test_follow_up_echoes_only_the_executed_call(self, agent, dispatch, storage, user_id):
        first = tool_call_reply("add_program", {"title": "MoMA", "date": "2025-06-22"}, call_id="call_1")
        second = tool_call_reply("add_program", {"title": "Whitney", "date": "2025-06-22"}, call_id="call_2")
        calls = first.tool_calls + second.tool_calls
        dispatch.queue(
            ModelReply(content="", tool_calls=calls, message={"role": "assistant", "content": None, "tool_calls": calls}),
            "Adicionei o MoMA.",
        )

        response = agent.reply(user_id, "adiciona MoMA e Whitney dia 22")

        assert response.message == "Adicionei o MoMA."
        assistant = _payload(dispatch)["messages"][-2]
        assert [c["id"] for c in assistant["tool_calls"]] == ["call_1"]
        assert [r["title"] for r in storage.list("programs", {"user_id": user_id})] == ["MoMA"]

    def test_invalid_add_arguments(self, agent, dispatch, storage, user_id):
        dispatch.queue(tool_call_reply("add_program", {"title": "Sem data"}), "Preciso da data.")
        response = agent.reply(user_id, "adiciona algo")
        assert response.action_executed is None
        assert storage.list("programs", {"user_id": user_id}) == []

    def test_history_merges_program_chats_and_drops_deleted_programs(self, agent, dispatch, storage, user_id, make_program):
        kept = make_program(title="MoMA")
        storage.insert("global_chat_messages", {
            "user_id": user_id, "role": "user", "content": "oi", "created_at": "2025-06-01T10:00:00",
        })
        storage.insert("program_chat_messages", {
            "program_id": kept["id"], "user_id": user_id, "role": "user",
            "content": "abre cedo?", "created_at": "2025-06-01T11:00:00",
        })
        storage.insert("program_chat_messages", {
            "program_id": "deleted-program", "user_id": user_id, "role": "user",
            "content": "fantasma", "created_at": "2025-06-01T12:00:00",
        })
        dispatch.queue("ok")

        agent.reply(user_id, "resumo?")

        contents = [m["content"] for m in _payload(dispatch)["messages"][1:]]
        assert contents == ["oi", '[Conversa sobre "MoMA" (2025-06-15)]: abre cedo?', "resumo?"]


# ---------------------------------------------------------------------------
# History clearing
# ---------------------------------------------------------------------------

class TestClearHistory:
    def test_clears_only_requested_scope(self, agent, storage, user_id, make_program):
        program = make_program()
        storage.insert("global_chat_messages", {"user_id": user_id, "role": "user", "content": "g"})
        storage.insert("program_chat_messages", {"program_id": program["id"], "user_id": user_id, "role": "user", "content": "p"})

        assert agent.clear_history(user_id, program["id"]) == 1
        assert storage.list("program_chat_messages") == []
        assert len(storage.list("global_chat_messages")) == 1

        assert agent.clear_history(user_id) == 1
        assert storage.list("global_chat_messages") == []
