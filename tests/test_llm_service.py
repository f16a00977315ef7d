"""Tests for the LangChain dialogue model adapter"""
from unittest.mock import AsyncMock, Mock

import pytest
from langchain_core.messages import AIMessage, HumanMessage, SystemMessage, ToolMessage

from conversation.session import Turn, TurnRole
from services.cost_service import CostLedger
from services.llm_service import LangChainDialogueModel, turns_to_messages


def test_turns_to_messages_pairs_tool_calls():
    turns = [
        Turn(role=TurnRole.SYSTEM, content="Be brief."),
        Turn(role=TurnRole.USER, content="My number is 555-1234"),
        Turn(
            role=TurnRole.TOOL,
            content='{"success": true}',
            tool_name="identify_user",
            tool_call_id="call_abc",
            tool_arguments={"contact_number": "5551234"},
        ),
        Turn(role=TurnRole.ASSISTANT, content="Found you."),
    ]

    messages = turns_to_messages(turns)

    assert [type(m) for m in messages] == [
        SystemMessage,
        HumanMessage,
        AIMessage,
        ToolMessage,
        AIMessage,
    ]
    assert messages[2].tool_calls[0]["name"] == "identify_user"
    assert messages[2].tool_calls[0]["id"] == "call_abc"
    assert messages[3].tool_call_id == "call_abc"


class TestLangChainDialogueModel:
    """Tests for LangChainDialogueModel.respond"""

    @pytest.mark.asyncio
    async def test_parses_tool_calls(self):
        bound = Mock()
        bound.ainvoke = AsyncMock(
            return_value=AIMessage(
                content="",
                tool_calls=[
                    {"name": "fetch_slots", "args": {"date": "2024-01-15"}, "id": "call_1"}
                ],
                usage_metadata={"input_tokens": 100, "output_tokens": 20, "total_tokens": 120},
            )
        )
        llm_client = Mock()
        llm_client.bind_tools.return_value = bound
        ledger = CostLedger()
        model = LangChainDialogueModel(llm_client, ledger)
        operations = [{"type": "function", "function": {"name": "fetch_slots"}}]

        response = await model.respond([Turn(role=TurnRole.USER, content="What's free?")], operations)

        llm_client.bind_tools.assert_called_once_with(operations)
        assert response.wants_tools
        assert response.tool_calls[0].name == "fetch_slots"
        assert response.tool_calls[0].arguments == {"date": "2024-01-15"}
        assert response.tool_calls[0].id == "call_1"
        assert len(ledger) == 2

    @pytest.mark.asyncio
    async def test_text_only_without_tools(self):
        llm_client = Mock()
        llm_client.ainvoke = AsyncMock(return_value=AIMessage(content=" Goodbye! "))
        model = LangChainDialogueModel(llm_client)

        response = await model.respond([], [], allow_tools=False)

        llm_client.bind_tools.assert_not_called()
        assert response.text == "Goodbye!"
        assert not response.wants_tools
