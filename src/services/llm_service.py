"""Model collaborator: LangChain chat model driving tool selection in text sessions."""

import json
import logging
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Protocol

from langchain_core.messages import AIMessage, BaseMessage, HumanMessage, SystemMessage, ToolMessage
from langchain_openai import AzureChatOpenAI

from conversation.session import Turn, TurnRole
from services.cost_service import CostLedger, CostService

logger = logging.getLogger(__name__)


@dataclass
class ModelToolCall:
    name: str
    arguments: Dict[str, Any] = field(default_factory=dict)
    id: Optional[str] = None


@dataclass
class ModelResponse:
    """Either a natural-language reply or one or more tool-call requests"""

    text: str = ""
    tool_calls: List[ModelToolCall] = field(default_factory=list)

    @property
    def wants_tools(self) -> bool:
        return bool(self.tool_calls)


class DialogueModel(Protocol):
    async def respond(
        self, turns: List[Turn], operations: List[Dict[str, Any]], allow_tools: bool = True
    ) -> ModelResponse: ...


def turns_to_messages(turns: List[Turn]) -> List[BaseMessage]:
    """
    Convert session turns into LangChain chat messages.

    Each tool turn becomes the assistant's tool-call request followed by the
    matching ToolMessage, so the provider sees paired ids.
    """
    messages: List[BaseMessage] = []
    for index, turn in enumerate(turns):
        if turn.role == TurnRole.SYSTEM:
            messages.append(SystemMessage(content=turn.content))
        elif turn.role == TurnRole.USER:
            messages.append(HumanMessage(content=turn.content))
        elif turn.role == TurnRole.ASSISTANT:
            messages.append(AIMessage(content=turn.content))
        elif turn.role == TurnRole.TOOL:
            call_id = turn.tool_call_id or f"call_{index}"
            messages.append(
                AIMessage(
                    content="",
                    tool_calls=[
                        {
                            "name": turn.tool_name or "unknown",
                            "args": turn.tool_arguments or {},
                            "id": call_id,
                        }
                    ],
                )
            )
            messages.append(ToolMessage(content=turn.content, tool_call_id=call_id))
    return messages


class LangChainDialogueModel:
    """
    DialogueModel backed by a LangChain chat model with bound tools.

    Methods:
    - respond(): Send the transcript, return text or tool-call requests
    """

    def __init__(self, llm_client, ledger: Optional[CostLedger] = None):
        self.llm_client = llm_client
        self.ledger = ledger

    @classmethod
    def from_config(cls, cfg, ledger: Optional[CostLedger] = None) -> "LangChainDialogueModel":
        llm_client = AzureChatOpenAI(
            azure_deployment=cfg.azure_openai_deployment,
            azure_endpoint=cfg.azure_openai_endpoint,
            api_key=cfg.azure_openai_api_key,
            api_version=cfg.azure_openai_api_version,
            temperature=0,  # Deterministic responses, strict tool calling
            max_tokens=500,
        )
        return cls(llm_client, ledger)

    async def respond(
        self, turns: List[Turn], operations: List[Dict[str, Any]], allow_tools: bool = True
    ) -> ModelResponse:
        runnable = self.llm_client.bind_tools(operations) if allow_tools else self.llm_client
        response = await runnable.ainvoke(turns_to_messages(turns))

        usage = getattr(response, "usage_metadata", None) or {}
        if self.ledger is not None and usage:
            CostService.record_llm_tokens(
                self.ledger,
                "azure_openai_chat",
                usage.get("input_tokens", 0),
                usage.get("output_tokens", 0),
            )

        tool_calls = [
            ModelToolCall(name=call["name"], arguments=call.get("args") or {}, id=call.get("id"))
            for call in (getattr(response, "tool_calls", None) or [])
        ]
        content = response.content if isinstance(response.content, str) else json.dumps(response.content)
        return ModelResponse(text=content.strip(), tool_calls=tool_calls)
