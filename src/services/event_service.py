"""Service for emitting real-time events to frontend via LiveKit data messages."""
import json
import logging
from typing import Any, Dict, Optional

from livekit import rtc

from conversation.session import ToolCallRecord
from database.models import ConversationSummary
from utils.date_time_utils import get_local_now

logger = logging.getLogger(__name__)


class EventService:
    """
    Emit real-time events to frontend via LiveKit data channel.

    Methods:
    - emit_tool_call(): Send a completed tool call with its result envelope
    - emit_summary(): Send final conversation summary with costs and appointments

    Publishing is best effort; failures are logged and never reach the caller.
    """

    @staticmethod
    async def _publish(room: Optional[rtc.Room], event: Dict[str, Any]) -> bool:
        if not room:
            return False

        try:
            await room.local_participant.publish_data(
                json.dumps(event, default=str).encode("utf-8"),
                reliable=True,
            )
        except Exception as e:
            logger.error(f"Failed to emit {event['type']} event: {e}")
            return False
        return True

    @staticmethod
    async def emit_tool_call(room: Optional[rtc.Room], record: ToolCallRecord) -> bool:
        """
        Send tool execution event to frontend.

        Args:
            room: LiveKit room (if None, event skipped)
            record: The recorded tool call
        """
        envelope = record.result.to_envelope()
        event = {
            "type": "tool_call",
            "tool": record.name,
            "status": "success" if record.result.success else "error",
            "arguments": record.arguments,
            "data": envelope,
            "timestamp": record.created_at.isoformat(),
        }
        return await EventService._publish(room, event)

    @staticmethod
    async def emit_summary(
        room: Optional[rtc.Room], summary: ConversationSummary, duration_seconds: int = 0
    ) -> bool:
        """
        Send final conversation summary to frontend.

        Args:
            room: LiveKit room (if None, event skipped)
            summary: Persisted (or unsaved) conversation summary
            duration_seconds: Total conversation duration
        """
        event = {
            "type": "call_summary",
            "session_id": summary.session_id,
            "summary": summary.summary,
            "appointments": summary.booked_appointments,
            "user_preferences": summary.preferences,
            "cost_breakdown": summary.cost_breakdown,
            "duration_seconds": duration_seconds,
            "timestamp": get_local_now().isoformat(),
        }
        return await EventService._publish(room, event)
