"""Service for formatting session transcripts."""
import json
import logging
from typing import List

from conversation.session import Turn, TurnRole

logger = logging.getLogger(__name__)


class TranscriptService:
    """
    Render session turns for the summarizer and for logs.

    Methods:
    - format_for_display(): Human-readable transcript with role labels
    - user_utterances(): Text of user-authored turns only
    """

    @staticmethod
    def format_for_display(turns: List[Turn]) -> str:
        """
        Format turns into a human-readable transcript.

        System turns are skipped. Tool turns show the request and its result.
        """
        lines = ["===== CONVERSATION TRANSCRIPT =====\n"]

        for turn in turns:
            if turn.role == TurnRole.USER:
                lines.append(f"User: {turn.content}")
            elif turn.role == TurnRole.ASSISTANT:
                lines.append(f"Assistant: {turn.content}")
            elif turn.role == TurnRole.TOOL:
                params = turn.tool_arguments or {}
                params_str = ", ".join(f"{k}={v}" for k, v in params.items())
                lines.append(f"[TOOL CALL] {turn.tool_name or 'unknown'}({params_str})")
                lines.append(f"[TOOL RESULT] {turn.content}")

        lines.append("\n===================================")
        return "\n".join(lines)

    @staticmethod
    def user_utterances(turns: List[Turn]) -> List[str]:
        return [turn.content for turn in turns if turn.role == TurnRole.USER]

    @staticmethod
    def tool_turn_content(envelope: dict) -> str:
        """Serialize a tool result envelope for a tool turn"""
        return json.dumps(envelope, default=str)
