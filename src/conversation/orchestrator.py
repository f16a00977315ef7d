"""Turn-taking loop: user turns, model tool calls, folding results, finalization"""

import asyncio
import logging
import uuid
from typing import Any, Dict, Optional

from conversation.session import SessionState, ToolCallRecord, Turn, TurnRole
from database.models import ConversationSummary
from errors import AgentError, CollaboratorError, UnknownOperationError
from services.llm_service import DialogueModel
from services.summary_service import SummaryFinalizer
from services.transcript_service import TranscriptService
from tools.base import ToolResult
from tools.dispatcher import ToolDispatcher

logger = logging.getLogger(__name__)


class ConversationOrchestrator:
    """
    Drives one conversation from first contact to end_conversation.

    Methods:
    - record_user_turn() / record_assistant_turn(): Append transcript turns
    - handle_tool_call(): Dispatch one model-requested operation and fold the result
    - run_turn(): Full envelope for a user utterance using the DialogueModel

    One inbound event is processed at a time per session. After
    end_conversation succeeds the session is sealed, the finalizer runs once,
    and every further call raises SessionEndedError.
    """

    def __init__(
        self,
        session: SessionState,
        dispatcher: ToolDispatcher,
        finalizer: SummaryFinalizer,
        model: Optional[DialogueModel] = None,
        max_tool_rounds: int = 5,
        system_prompt: Optional[str] = None,
        model_timeout_seconds: Optional[float] = None,
    ):
        self.session = session
        self.dispatcher = dispatcher
        self.finalizer = finalizer
        self.model = model
        self.max_tool_rounds = max_tool_rounds
        self.model_timeout_seconds = model_timeout_seconds
        self.summary: Optional[ConversationSummary] = None
        self._finalized = False
        self._lock = asyncio.Lock()

        if system_prompt:
            self.session.add_turn(Turn(role=TurnRole.SYSTEM, content=system_prompt))

    @property
    def is_ended(self) -> bool:
        return self.session.is_ended

    async def record_user_turn(self, text: str) -> Turn:
        async with self._lock:
            return self.session.add_turn(Turn(role=TurnRole.USER, content=text))

    async def record_assistant_turn(self, text: str) -> Turn:
        async with self._lock:
            return self.session.add_turn(Turn(role=TurnRole.ASSISTANT, content=text))

    async def handle_tool_call(
        self, name: str, arguments: Optional[Dict[str, Any]] = None, call_id: Optional[str] = None
    ) -> ToolResult:
        async with self._lock:
            return await self._handle_tool_call(name, arguments or {}, call_id)

    async def _handle_tool_call(
        self, name: str, arguments: Dict[str, Any], call_id: Optional[str]
    ) -> ToolResult:
        self.session.ensure_active()
        call_id = call_id or f"call_{uuid.uuid4().hex[:12]}"

        try:
            result = await self.dispatcher.dispatch(name, arguments)
        except asyncio.CancelledError:
            logger.warning(f"Tool {name} cancelled in session {self.session.session_id}")
            self._record(
                name, arguments, call_id, ToolResult.failure(CollaboratorError(f"{name} was cancelled"))
            )
            raise
        except UnknownOperationError as e:
            logger.error(f"Model requested unknown tool {name!r}")
            result = ToolResult.failure(e)

        self._record(name, arguments, call_id, result)

        if result.success:
            await self._fold(name, result)

        return result

    def _record(self, name: str, arguments: Dict[str, Any], call_id: str, result: ToolResult):
        self.session.record_tool_call(ToolCallRecord(name=name, arguments=arguments, result=result))
        self.session.add_turn(
            Turn(
                role=TurnRole.TOOL,
                content=TranscriptService.tool_turn_content(result.to_envelope()),
                tool_name=name,
                tool_call_id=call_id,
                tool_arguments=arguments,
            )
        )

    async def _fold(self, name: str, result: ToolResult):
        payload = result.payload

        if name == "identify_user":
            self.session.set_contact_number(payload["user"]["contact_number"])
            logger.info(f"✅ Session {self.session.session_id} identified as {self.session.contact_number}")
        elif name == "book_appointment":
            self.session.upsert_booked_appointment(payload["appointment"])
        elif name in ("cancel_appointment", "modify_appointment"):
            self.session.refresh_booked_appointment(payload["appointment"])
        elif name == "end_conversation":
            await self._finalize()

    async def _finalize(self):
        if self._finalized:
            return
        self._finalized = True
        self.session.end()
        logger.info(f"Session {self.session.session_id} ended after {self.session.duration_seconds}s")
        self.summary = await self.finalizer.finalize(self.session)

    async def run_turn(self, utterance: str) -> str:
        """
        Process one user utterance to completion and return the reply.

        If the session ends during the turn, the model's farewell is returned
        but not added to the sealed transcript.
        """
        if self.model is None:
            raise RuntimeError("run_turn requires a DialogueModel")

        async with self._lock:
            self.session.add_turn(Turn(role=TurnRole.USER, content=utterance))
            operations = self.dispatcher.list_operations()

            for _ in range(self.max_tool_rounds):
                response = await self._consult(operations, allow_tools=True)
                if not response.wants_tools:
                    return self._reply(response.text)

                for tool_call in response.tool_calls:
                    await self._handle_tool_call(tool_call.name, tool_call.arguments, tool_call.id)
                    if self.session.is_ended:
                        # Calls batched after end_conversation are dropped
                        break

                if self.session.is_ended:
                    farewell = await self._consult(operations, allow_tools=False)
                    return farewell.text

            logger.warning(
                f"Session {self.session.session_id} hit {self.max_tool_rounds} tool rounds, "
                f"asking for a text reply"
            )
            response = await self._consult(operations, allow_tools=False)
            return self._reply(response.text)

    async def _consult(self, operations, allow_tools: bool):
        try:
            return await asyncio.wait_for(
                self.model.respond(self.session.transcript, operations, allow_tools=allow_tools),
                timeout=self.model_timeout_seconds,
            )
        except AgentError:
            raise
        except asyncio.TimeoutError as e:
            logger.error(f"Model call timed out after {self.model_timeout_seconds}s")
            raise CollaboratorError(
                f"Model call timed out after {self.model_timeout_seconds} seconds"
            ) from e
        except Exception as e:
            logger.error(f"Model call failed in session {self.session.session_id}: {e}", exc_info=True)
            raise CollaboratorError(f"Model call failed: {e}") from e

    def _reply(self, text: str) -> str:
        if text:
            self.session.add_turn(Turn(role=TurnRole.ASSISTANT, content=text))
        return text
