"""Cost ledger and provider pricing for billed operations."""

import logging
import threading
from enum import Enum
from typing import Any, Dict, List, Tuple

from pydantic import BaseModel, ConfigDict

logger = logging.getLogger(__name__)


class CostUnit(str, Enum):
    REQUEST = "request"
    TOKENS_1K = "1k_tokens"
    MINUTE = "minute"
    CHARACTER = "character"


class CostEntry(BaseModel):
    model_config = ConfigDict(frozen=True)

    service: str
    cost: float
    unit: CostUnit = CostUnit.REQUEST


class CostLedger:
    """
    Append-only list of billed operations.

    One instance per session by default; a single instance may be shared
    across sessions, appends are serialized with a lock.
    """

    def __init__(self):
        self._entries: List[CostEntry] = []
        self._lock = threading.Lock()

    def add(self, service: str, cost: float, unit: CostUnit = CostUnit.REQUEST) -> CostEntry:
        entry = CostEntry(service=service, cost=cost, unit=unit)
        with self._lock:
            self._entries.append(entry)
        return entry

    def entries(self) -> Tuple[CostEntry, ...]:
        with self._lock:
            return tuple(self._entries)

    def total(self) -> float:
        return sum(entry.cost for entry in self.entries())

    def breakdown(self) -> Dict[str, Any]:
        """Read-only snapshot for tool results and the conversation summary"""
        entries = self.entries()
        return {
            "total": round(sum(entry.cost for entry in entries), 6),
            "breakdown": [entry.model_dump(mode="json") for entry in entries],
        }

    def reset(self) -> None:
        """Clear all entries (test isolation or a fresh top-level run only)"""
        with self._lock:
            self._entries.clear()

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)


class CostService:
    """
    Pricing for tool operations and voice pipeline usage.

    Pricing (January 2026):
    - Deepgram: $0.0043/min | Azure OpenAI: $0.0015/$0.002 per 1K tokens
    - Cartesia: $0.00001/char
    """

    # Per-request price of each tool operation
    OPERATION_COSTS = {
        "identify_user": 0.001,
        "fetch_slots": 0.001,
        "book_appointment": 0.002,
        "retrieve_appointments": 0.001,
        "cancel_appointment": 0.002,
        "modify_appointment": 0.002,
        "end_conversation": 0.001,
    }
    DEFAULT_OPERATION_COST = 0.001

    DEEPGRAM_PER_MINUTE = 0.0043  # Per minute of audio transcribed
    AZURE_OPENAI_INPUT_PER_1K = 0.0015  # Per 1K input tokens
    AZURE_OPENAI_OUTPUT_PER_1K = 0.002  # Per 1K output tokens
    CARTESIA_PER_CHARACTER = 0.00001  # Per character synthesized

    @staticmethod
    def operation_cost(name: str) -> float:
        return CostService.OPERATION_COSTS.get(name, CostService.DEFAULT_OPERATION_COST)

    @staticmethod
    def record_llm_tokens(
        ledger: CostLedger, service: str, input_tokens: int, output_tokens: int
    ) -> None:
        """Record LLM token usage as two 1k-token entries"""
        if input_tokens:
            ledger.add(
                f"{service}_input",
                (input_tokens / 1000) * CostService.AZURE_OPENAI_INPUT_PER_1K,
                CostUnit.TOKENS_1K,
            )
        if output_tokens:
            ledger.add(
                f"{service}_output",
                (output_tokens / 1000) * CostService.AZURE_OPENAI_OUTPUT_PER_1K,
                CostUnit.TOKENS_1K,
            )

    @staticmethod
    def record_usage(ledger: CostLedger, usage_summary: Any) -> None:
        """
        Convert a LiveKit UsageSummary into ledger entries.

        Args:
            ledger: Ledger receiving the entries
            usage_summary: LiveKit UsageSummary with actual usage metrics
        """
        stt_seconds = getattr(usage_summary, "stt_audio_duration", 0.0) or 0.0
        llm_prompt_tokens = getattr(usage_summary, "llm_prompt_tokens", 0) or 0
        llm_completion_tokens = getattr(usage_summary, "llm_completion_tokens", 0) or 0
        tts_characters = getattr(usage_summary, "tts_characters_count", 0) or 0

        if stt_seconds:
            ledger.add(
                "deepgram_stt",
                (stt_seconds / 60) * CostService.DEEPGRAM_PER_MINUTE,
                CostUnit.MINUTE,
            )
        CostService.record_llm_tokens(
            ledger, "azure_openai_chat", llm_prompt_tokens, llm_completion_tokens
        )
        if tts_characters:
            ledger.add(
                "cartesia_tts",
                tts_characters * CostService.CARTESIA_PER_CHARACTER,
                CostUnit.CHARACTER,
            )

        logger.info(
            f"Recorded voice usage: stt={stt_seconds:.1f}s, "
            f"llm={llm_prompt_tokens}/{llm_completion_tokens} tokens, tts={tts_characters} chars"
        )
