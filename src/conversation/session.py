"""Per-conversation state owned by the orchestration loop"""

from datetime import datetime
from enum import Enum
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field

from errors import SessionEndedError
from tools.base import ToolResult
from utils.date_time_utils import get_local_now


class TurnRole(str, Enum):
    USER = "user"
    ASSISTANT = "assistant"
    SYSTEM = "system"
    TOOL = "tool"


class SessionStatus(str, Enum):
    ACTIVE = "active"
    ENDED = "ended"


class Turn(BaseModel):
    """One transcript entry; tool turns also carry the request that produced them"""

    model_config = ConfigDict(frozen=True)

    role: TurnRole
    content: str
    tool_name: Optional[str] = None
    tool_call_id: Optional[str] = None
    tool_arguments: Optional[Dict[str, Any]] = None
    created_at: datetime = Field(default_factory=lambda: get_local_now())


class ToolCallRecord(BaseModel):
    model_config = ConfigDict(frozen=True)

    name: str
    arguments: Dict[str, Any] = Field(default_factory=dict)
    result: ToolResult
    created_at: datetime = Field(default_factory=lambda: get_local_now())


class SessionState:
    """
    State for one conversation: identity, transcript, tool calls, bookings.

    Mutated only by ConversationOrchestrator. Every mutator raises
    SessionEndedError once the session has ended.
    """

    def __init__(self, session_id: str):
        self.session_id = session_id
        self.contact_number: Optional[str] = None
        self.transcript: List[Turn] = []
        self.tool_calls: List[ToolCallRecord] = []
        self.booked_appointments: List[Dict[str, Any]] = []
        self.status = SessionStatus.ACTIVE
        self.started_at: datetime = get_local_now()
        self.ended_at: Optional[datetime] = None

    @property
    def is_ended(self) -> bool:
        return self.status == SessionStatus.ENDED

    def ensure_active(self):
        if self.is_ended:
            raise SessionEndedError(f"Session {self.session_id} has ended")

    def add_turn(self, turn: Turn) -> Turn:
        self.ensure_active()
        self.transcript.append(turn)
        return turn

    def record_tool_call(self, record: ToolCallRecord) -> ToolCallRecord:
        self.ensure_active()
        self.tool_calls.append(record)
        return record

    def set_contact_number(self, contact_number: str):
        self.ensure_active()
        self.contact_number = contact_number

    def upsert_booked_appointment(self, appointment: Dict[str, Any]):
        """Append a booking snapshot, or replace the snapshot with the same id"""
        self.ensure_active()
        for index, existing in enumerate(self.booked_appointments):
            if existing.get("id") == appointment.get("id"):
                self.booked_appointments[index] = appointment
                return
        self.booked_appointments.append(appointment)

    def refresh_booked_appointment(self, appointment: Dict[str, Any]):
        """Replace the snapshot of an appointment booked in this session, if any"""
        self.ensure_active()
        for index, existing in enumerate(self.booked_appointments):
            if existing.get("id") == appointment.get("id"):
                self.booked_appointments[index] = appointment

    def end(self):
        self.ensure_active()
        self.status = SessionStatus.ENDED
        self.ended_at = get_local_now()

    @property
    def duration_seconds(self) -> int:
        end = self.ended_at or get_local_now()
        return int((end - self.started_at).total_seconds())
