"""Service for generating LLM-based conversation summaries and persisting them."""

import asyncio
import json
import logging
from typing import Any, Dict, List, Optional, Protocol

from langchain_core.messages import HumanMessage, SystemMessage
from langchain_openai import AzureChatOpenAI

from conversation.session import SessionState
from database.models import ConversationSummary
from errors import CollaboratorError
from services.appointment_store import AppointmentStore
from services.cost_service import CostLedger, CostService
from services.transcript_service import TranscriptService
from utils.date_time_utils import get_local_now
from utils.preference_tracker import PreferenceTracker

logger = logging.getLogger(__name__)

FALLBACK_SUMMARY = "Summary generation failed. Conversation details saved."


class Summarizer(Protocol):
    async def summarize(self, transcript: str, booked_appointments: List[Dict[str, Any]]) -> str: ...


class SummaryService:
    """
    Generate summaries from conversation transcripts using LLM via LangChain.

    Methods:
    - summarize(): Generate a digest of the transcript (under ~200 words)
    """

    def __init__(self, llm_client, ledger: Optional[CostLedger] = None):
        self.llm_client = llm_client
        self.ledger = ledger

    @classmethod
    def from_config(cls, cfg, ledger: Optional[CostLedger] = None) -> "SummaryService":
        llm_client = AzureChatOpenAI(
            azure_deployment=cfg.azure_openai_deployment,
            azure_endpoint=cfg.azure_openai_endpoint,
            api_key=cfg.azure_openai_api_key,
            api_version=cfg.azure_openai_api_version,
            temperature=0.5,
            max_tokens=300,
        )
        return cls(llm_client, ledger)

    async def summarize(self, transcript: str, booked_appointments: List[Dict[str, Any]]) -> str:
        summary_prompt = f"""Generate a concise summary of this conversation with a customer service AI agent.
Include:
1. Main topics discussed
2. Customer requests
3. Actions taken (appointments booked, retrieved, cancelled, etc.)
4. Any important details mentioned by the customer

Conversation:
{transcript}

Booked Appointments:
{json.dumps(booked_appointments, indent=2, default=str)}

Keep the summary under 200 words and be specific about dates, times, and actions taken."""

        messages = [
            SystemMessage(
                content="You are a helpful assistant that summarizes customer service conversations."
            ),
            HumanMessage(content=summary_prompt),
        ]
        response = await self.llm_client.ainvoke(messages)

        usage = getattr(response, "usage_metadata", None) or {}
        if self.ledger is not None and usage:
            CostService.record_llm_tokens(
                self.ledger,
                "summary",
                usage.get("input_tokens", 0),
                usage.get("output_tokens", 0),
            )

        summary = str(getattr(response, "content", response)).strip()
        # Remove markdown bold if present
        return summary.replace("**", "")


def bound_words(text: str, max_words: int) -> str:
    words = text.split()
    if len(words) <= max_words:
        return text
    return " ".join(words[:max_words]) + "..."


class SummaryFinalizer:
    """
    Builds and persists the ConversationSummary when a session ends.

    A session without a resolved contact number is a no-op. Summarizer
    failures fall back to a fixed digest; persistence failures are logged and
    the unsaved record is returned. Neither propagates. timeout_seconds bounds
    the summarizer call and the save separately.
    """

    def __init__(
        self,
        store: AppointmentStore,
        summarizer: Summarizer,
        ledger: CostLedger,
        max_words: int = 200,
        timeout_seconds: Optional[float] = None,
    ):
        self.store = store
        self.summarizer = summarizer
        self.ledger = ledger
        self.max_words = max_words
        self.timeout_seconds = timeout_seconds

    async def _digest(self, session: SessionState) -> str:
        transcript_text = TranscriptService.format_for_display(session.transcript)
        try:
            summary = await asyncio.wait_for(
                self.summarizer.summarize(transcript_text, session.booked_appointments),
                timeout=self.timeout_seconds,
            )
        except asyncio.TimeoutError:
            logger.error(
                f"Summarizer timed out after {self.timeout_seconds}s for session {session.session_id}"
            )
            return FALLBACK_SUMMARY
        except Exception as e:
            logger.error(f"Error generating summary with LLM: {e}", exc_info=True)
            return FALLBACK_SUMMARY

        if not summary or not summary.strip():
            logger.warning(f"Summarizer returned empty text for session {session.session_id}")
            return FALLBACK_SUMMARY
        return bound_words(summary.strip(), self.max_words)

    async def finalize(self, session: SessionState) -> Optional[ConversationSummary]:
        if not session.contact_number:
            logger.info(f"Session {session.session_id} ended without identification, no summary saved")
            return None

        summary_text = await self._digest(session)
        preferences = PreferenceTracker.extract_from_text(
            TranscriptService.user_utterances(session.transcript)
        )

        record = ConversationSummary(
            session_id=session.session_id,
            contact_number=session.contact_number,
            summary=summary_text,
            booked_appointments=list(session.booked_appointments),
            preferences=preferences,
            cost_breakdown=self.ledger.breakdown(),
            created_at=get_local_now(),
        )

        try:
            saved = await asyncio.wait_for(
                self.store.save_summary(record), timeout=self.timeout_seconds
            )
        except asyncio.TimeoutError:
            logger.error(
                f"Saving conversation summary for {session.session_id} timed out "
                f"after {self.timeout_seconds}s"
            )
            return record
        except CollaboratorError as e:
            logger.error(f"Failed to save conversation summary for {session.session_id}: {e.message}")
            return record

        logger.info(
            f"📊 Conversation summary saved for session {session.session_id} "
            f"(total cost ${record.cost_breakdown['total']:.4f})"
        )
        return saved
