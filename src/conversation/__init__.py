from .session import SessionState, SessionStatus, ToolCallRecord, Turn, TurnRole

__all__ = ["SessionState", "SessionStatus", "ToolCallRecord", "Turn", "TurnRole"]
