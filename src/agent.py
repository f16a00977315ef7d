import asyncio
import json
import logging
from typing import Optional

from dotenv import load_dotenv
from livekit import rtc
from livekit.agents import (
    Agent,
    AgentSession,
    ConversationItemAddedEvent,
    JobContext,
    JobProcess,
    MetricsCollectedEvent,
    RunContext,
    WorkerOptions,
    cli,
    function_tool,
    metrics,
    room_io,
)
from livekit.plugins import cartesia, deepgram, noise_cancellation, openai, silero
from livekit.plugins.turn_detector.multilingual import MultilingualModel

from config import config
from conversation.orchestrator import ConversationOrchestrator
from conversation.session import SessionState
from database.repository import SupabaseRepository
from errors import SessionEndedError
from prompts.system_prompt import get_system_instructions
from services.appointment_store import AppointmentStore
from services.cost_service import CostLedger, CostService
from services.event_service import EventService
from services.slot_catalog import SlotCatalog
from services.summary_service import SummaryFinalizer, SummaryService
from tools.dispatcher import ToolDispatcher

load_dotenv(".env.local")

logger = logging.getLogger(__name__)

GREETING = (
    "Hello! I'm Alex, your appointment assistant. I can help you book, retrieve, "
    "modify, and cancel appointments. May I have your phone number to look up your account?"
)
DISCONNECT_DELAY_SECONDS = 8


class Assistant(Agent):
    """
    Voice front end for one conversation.

    Every tool forwards to the ConversationOrchestrator, which owns the
    session state, dispatch and cost bookkeeping. The model sees each
    result as the JSON envelope {success, message | error, payload}.
    """

    def __init__(
        self,
        orchestrator: ConversationOrchestrator,
        usage_collector: metrics.UsageCollector,
        room: Optional[rtc.Room] = None,
    ) -> None:
        super().__init__(instructions=get_system_instructions())
        self.orchestrator = orchestrator
        self.usage_collector = usage_collector
        self.room = room

    async def _run_tool(self, context: RunContext, name: str, **arguments) -> str:
        # Disable interruptions during tool execution
        # Reference: https://docs.livekit.io/agents/logic/tools/#interruptions
        context.disallow_interruptions()

        try:
            result = await self.orchestrator.handle_tool_call(name, arguments)
        except SessionEndedError as e:
            logger.warning(f"Tool {name} called after the conversation ended")
            return json.dumps({"success": False, "error": e.message, "error_type": e.error_type})

        await EventService.emit_tool_call(self.room, self.orchestrator.session.tool_calls[-1])
        return json.dumps(result.to_envelope(), default=str)

    @function_tool
    async def identify_user(
        self, context: RunContext, contact_number: str, name: str = "", email: str = ""
    ) -> str:
        """
        Identifies or creates a user by phone number. Must be called before any appointment operation.

        Args:
            contact_number: User's phone number (e.g., +15551234567)
            name: User's name (optional)
            email: User's email address (optional)
        """
        return await self._run_tool(
            context, "identify_user", contact_number=contact_number, name=name, email=email
        )

    @function_tool
    async def fetch_slots(self, context: RunContext, date: str = "") -> str:
        """
        Fetches available appointment slots, optionally for one date.

        Args:
            date: Optional date filter in YYYY-MM-DD format
        """
        return await self._run_tool(context, "fetch_slots", date=date)

    @function_tool
    async def book_appointment(
        self,
        context: RunContext,
        contact_number: str,
        appointment_date: str,
        appointment_time: str,
        service_type: str = "",
        notes: str = "",
    ) -> str:
        """
        Books an appointment in a free slot for the identified user.

        Args:
            contact_number: User's contact number
            appointment_date: Appointment date in YYYY-MM-DD format
            appointment_time: Appointment time in HH:MM format (24-hour)
            service_type: Type of service (optional)
            notes: Additional notes (optional)
        """
        return await self._run_tool(
            context,
            "book_appointment",
            contact_number=contact_number,
            appointment_date=appointment_date,
            appointment_time=appointment_time,
            service_type=service_type,
            notes=notes,
        )

    @function_tool
    async def retrieve_appointments(
        self, context: RunContext, contact_number: str, status: str = ""
    ) -> str:
        """
        Lists the user's appointments, newest date and time first.

        Args:
            contact_number: User's contact number
            status: Filter by status: confirmed, cancelled, or completed (optional)
        """
        return await self._run_tool(
            context, "retrieve_appointments", contact_number=contact_number, status=status
        )

    @function_tool
    async def cancel_appointment(
        self, context: RunContext, contact_number: str, appointment_id: int
    ) -> str:
        """
        Cancels one of the user's confirmed appointments.

        Args:
            contact_number: User's contact number
            appointment_id: ID of the appointment to cancel
        """
        return await self._run_tool(
            context,
            "cancel_appointment",
            contact_number=contact_number,
            appointment_id=appointment_id,
        )

    @function_tool
    async def modify_appointment(
        self,
        context: RunContext,
        contact_number: str,
        appointment_id: int,
        new_date: str = "",
        new_time: str = "",
    ) -> str:
        """
        Moves one of the user's confirmed appointments to a new date and/or time.

        Args:
            contact_number: User's contact number
            appointment_id: ID of the appointment to modify
            new_date: New appointment date in YYYY-MM-DD format (optional)
            new_time: New appointment time in HH:MM format (optional)
        """
        return await self._run_tool(
            context,
            "modify_appointment",
            contact_number=contact_number,
            appointment_id=appointment_id,
            new_date=new_date,
            new_time=new_time,
        )

    @function_tool
    async def end_conversation(self, context: RunContext) -> str:
        """
        Ends the conversation and saves a summary. No other tool can be called afterwards.
        """
        if not self.orchestrator.is_ended:
            # Voice pipeline usage is only known here, fold it in before the summary is built
            CostService.record_usage(
                self.orchestrator.dispatcher.ledger, self.usage_collector.get_summary()
            )

        response = await self._run_tool(context, "end_conversation")

        summary = self.orchestrator.summary
        if summary is not None:
            await EventService.emit_summary(
                self.room, summary, self.orchestrator.session.duration_seconds
            )
        if self.room is not None:
            asyncio.create_task(schedule_disconnect(self.room))
        return response


async def schedule_disconnect(room: rtc.Room, delay_seconds: int = DISCONNECT_DELAY_SECONDS) -> None:
    """Disconnect from room after delay so the farewell is delivered"""
    await asyncio.sleep(delay_seconds)

    try:
        await room.disconnect()
        logger.info("Room disconnected successfully")
    except Exception as e:
        logger.error(f"Error disconnecting from room: {e}")


def prewarm(proc: JobProcess):
    """Prewarm models for faster startup"""
    proc.userdata["vad"] = silero.VAD.load()
    # Note: MultilingualModel cannot be prewarmed (requires JobContext)


def build_orchestrator(session_id: str, ledger: CostLedger) -> ConversationOrchestrator:
    """Wire the store, catalog, dispatcher and finalizer for one conversation"""
    repository = SupabaseRepository.from_settings(config.supabase_url, config.supabase_key)
    store = AppointmentStore(repository)
    dispatcher = ToolDispatcher(
        store,
        SlotCatalog.from_config(config),
        ledger,
        timeout_seconds=config.tool_timeout_seconds,
    )
    finalizer = SummaryFinalizer(
        store,
        SummaryService.from_config(config, ledger),
        ledger,
        max_words=config.summary_max_words,
        timeout_seconds=config.summary_timeout_seconds,
    )
    return ConversationOrchestrator(
        SessionState(session_id),
        dispatcher,
        finalizer,
        max_tool_rounds=config.max_tool_rounds,
    )


def setup_session_listeners(
    session: AgentSession,
    orchestrator: ConversationOrchestrator,
    usage_collector: metrics.UsageCollector,
):
    """Mirror spoken turns into the transcript and collect pipeline usage metrics"""

    @session.on("metrics_collected")
    def on_metrics_collected(ev: MetricsCollectedEvent):
        usage_collector.collect(ev.metrics)

    async def mirror_turn(role: str, text: str):
        try:
            if role == "user":
                await orchestrator.record_user_turn(text)
            else:
                await orchestrator.record_assistant_turn(text)
        except SessionEndedError:
            logger.debug(f"Dropping {role} turn spoken after the conversation ended")

    @session.on("conversation_item_added")
    def on_conversation_item_added(ev: ConversationItemAddedEvent):
        role = getattr(ev.item, "role", None)
        text = getattr(ev.item, "text_content", None)
        if role in ("user", "assistant") and text:
            asyncio.create_task(mirror_turn(role, text))


async def entrypoint(ctx: JobContext):
    """Main agent session handler"""
    ledger = CostLedger()
    usage_collector = metrics.UsageCollector()
    orchestrator = build_orchestrator(ctx.room.name, ledger)
    assistant = Assistant(orchestrator, usage_collector, room=ctx.room)

    session = AgentSession(
        stt=deepgram.STT(
            model="nova-2-conversationalai",
            language="en-US",
            api_key=config.deepgram_api_key,
        ),
        llm=openai.LLM.with_azure(
            azure_deployment=config.azure_openai_deployment,
            azure_endpoint=config.azure_openai_endpoint,
            api_key=config.azure_openai_api_key,
            api_version=config.azure_openai_api_version,
            temperature=0,  # Deterministic responses, strict tool calling
        ),
        tts=cartesia.TTS(
            model="sonic-3",
            voice="95d51f79-c397-46f9-b49a-23763d3eaa2d",
            api_key=config.cartesia_api_key,
        ),
        turn_detection=MultilingualModel(),
        vad=ctx.proc.userdata["vad"],
        allow_interruptions=False,
    )

    await ctx.connect()
    participant = await ctx.wait_for_participant()
    logger.info(f"Participant {participant.identity} joined room {ctx.room.name}")

    setup_session_listeners(session, orchestrator, usage_collector)

    await session.start(
        agent=assistant,
        room=ctx.room,
        room_options=room_io.RoomOptions(
            audio_input=room_io.AudioInputOptions(
                noise_cancellation=lambda params: noise_cancellation.BVCTelephony()
                if params.participant.kind == rtc.ParticipantKind.PARTICIPANT_KIND_SIP
                else noise_cancellation.BVC(),
            ),
        ),
    )

    await session.say(GREETING, allow_interruptions=False)


if __name__ == "__main__":
    cli.run_app(
        WorkerOptions(
            entrypoint_fnc=entrypoint,
            prewarm_fnc=prewarm,
            agent_name="scheduling-agent",
        )
    )
