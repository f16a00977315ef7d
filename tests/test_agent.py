"""Tests for the LiveKit agent adapter"""
import json
from unittest.mock import AsyncMock, Mock, patch

import pytest
from livekit import rtc
from livekit.agents import RunContext

from agent import Assistant, schedule_disconnect
from services.event_service import EventService

CONTACT = "+15551234567"


@pytest.fixture
def mock_context():
    """Create a mock RunContext"""
    return Mock(spec=RunContext)


@pytest.fixture
def mock_room():
    room = Mock(spec=rtc.Room)
    room.local_participant = Mock()
    room.local_participant.publish_data = AsyncMock()
    room.disconnect = AsyncMock()
    return room


@pytest.fixture
def assistant(orchestrator, mock_room):
    return Assistant(orchestrator, Mock(), room=mock_room)


class TestAssistantTools:
    """Tests for tool forwarding through the orchestrator"""

    @pytest.mark.asyncio
    async def test_tool_returns_envelope_json(self, assistant, mock_context, mock_room):
        response = await assistant._run_tool(mock_context, "identify_user", contact_number=CONTACT)

        envelope = json.loads(response)
        assert envelope["success"] is True
        assert envelope["payload"]["user"]["contact_number"] == CONTACT
        mock_context.disallow_interruptions.assert_called_once()
        event = json.loads(mock_room.local_participant.publish_data.call_args[0][0])
        assert event["type"] == "tool_call"
        assert event["tool"] == "identify_user"
        assert event["status"] == "success"

    @pytest.mark.asyncio
    async def test_failure_envelope(self, assistant, mock_context):
        response = await assistant._run_tool(
            mock_context, "cancel_appointment", contact_number=CONTACT, appointment_id=99
        )

        envelope = json.loads(response)
        assert envelope["success"] is False
        assert envelope["error_type"] == "not_found_error"

    @pytest.mark.asyncio
    async def test_after_end_returns_session_ended(self, assistant, mock_context):
        await assistant._run_tool(mock_context, "end_conversation")

        response = await assistant._run_tool(mock_context, "fetch_slots")

        assert json.loads(response)["error_type"] == "session_ended_error"


class TestEventService:
    """Tests for frontend event publishing"""

    @pytest.mark.asyncio
    async def test_no_room_skips(self, orchestrator):
        await orchestrator.handle_tool_call("fetch_slots", {})

        assert await EventService.emit_tool_call(None, orchestrator.session.tool_calls[-1]) is False

    @pytest.mark.asyncio
    async def test_publish_failure_is_swallowed(self, orchestrator, mock_room):
        mock_room.local_participant.publish_data.side_effect = ConnectionError("closed")
        await orchestrator.handle_tool_call("fetch_slots", {})

        assert await EventService.emit_tool_call(mock_room, orchestrator.session.tool_calls[-1]) is False


@pytest.mark.asyncio
async def test_schedule_disconnect(mock_room):
    with patch("agent.asyncio.sleep", new=AsyncMock()):
        await schedule_disconnect(mock_room, delay_seconds=8)

    mock_room.disconnect.assert_awaited_once()
