"""Shared test fixtures for the scheduling agent test suite"""
import os
import sys
import threading
from datetime import date, datetime, time, timezone
from pathlib import Path
from typing import Dict, List, Optional

import pytest

sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

# Set before config.py is imported
os.environ.setdefault("SUPABASE_URL", "https://test.supabase.co")
os.environ.setdefault("SUPABASE_KEY", "test-supabase-key")
os.environ.setdefault("TIMEZONE", "UTC")

from conversation.orchestrator import ConversationOrchestrator  # noqa: E402
from conversation.session import SessionState  # noqa: E402
from database.models import (  # noqa: E402
    Appointment,
    AppointmentStatus,
    ConversationSummary,
    User,
)
from errors import ConflictError  # noqa: E402
from services.appointment_store import AppointmentStore  # noqa: E402
from services.cost_service import CostLedger  # noqa: E402
from services.llm_service import ModelResponse  # noqa: E402
from services.slot_catalog import SlotCatalog  # noqa: E402
from services.summary_service import SummaryFinalizer  # noqa: E402
from tools.dispatcher import ToolDispatcher  # noqa: E402

SLOT_DATES = ["2024-01-15", "2024-01-16", "2024-01-17"]
AVAILABLE_TIMES = ["09:00", "10:00", "11:00", "14:00", "15:00"]


class InMemoryRepository:
    """
    AppointmentRepository double with the same constraints as schema.sql:
    one confirmed appointment per (date, time), COALESCE user upserts.
    """

    def __init__(self):
        self.users: Dict[str, User] = {}
        self.appointments: Dict[int, Appointment] = {}
        self.summaries: List[ConversationSummary] = []
        self._next_id = 1
        self._lock = threading.Lock()

    def _now(self):
        return datetime.now(timezone.utc)

    def _slot_taken(self, appointment_date, appointment_time, exclude_id=None):
        for apt in self.appointments.values():
            if (
                apt.status == AppointmentStatus.CONFIRMED
                and apt.slot_key == (appointment_date, appointment_time)
                and apt.id != exclude_id
            ):
                return apt
        return None

    def upsert_user(self, contact_number, name=None, email=None) -> User:
        with self._lock:
            existing = self.users.get(contact_number)
            user = User(
                contact_number=contact_number,
                name=name or (existing.name if existing else None),
                email=email or (existing.email if existing else None),
                created_at=existing.created_at if existing else self._now(),
                updated_at=self._now(),
            )
            self.users[contact_number] = user
            return user

    def find_confirmed_appointment(self, appointment_date, appointment_time, exclude_id=None):
        with self._lock:
            return self._slot_taken(appointment_date, appointment_time, exclude_id)

    def insert_confirmed_appointment(
        self, contact_number, appointment_date, appointment_time, service_type=None, notes=None
    ) -> Appointment:
        with self._lock:
            if self._slot_taken(appointment_date, appointment_time):
                raise ConflictError("Appointment slot already booked")
            appointment = Appointment(
                id=self._next_id,
                contact_number=contact_number,
                appointment_date=appointment_date,
                appointment_time=appointment_time,
                service_type=service_type,
                notes=notes,
                created_at=self._now(),
            )
            self.appointments[appointment.id] = appointment
            self._next_id += 1
            return appointment

    def get_appointment(self, appointment_id, contact_number) -> Optional[Appointment]:
        apt = self.appointments.get(appointment_id)
        if apt is None or apt.contact_number != contact_number:
            return None
        return apt

    def list_appointments(self, contact_number, status=None) -> List[Appointment]:
        rows = [
            apt
            for apt in self.appointments.values()
            if apt.contact_number == contact_number and (status is None or apt.status == status)
        ]
        return sorted(rows, key=lambda apt: apt.slot_key, reverse=True)

    def set_status(
        self, appointment_id, contact_number, status, from_status=AppointmentStatus.CONFIRMED
    ) -> Optional[Appointment]:
        with self._lock:
            apt = self.get_appointment(appointment_id, contact_number)
            if apt is None or apt.status != from_status:
                return None
            updated = apt.model_copy(update={"status": status, "updated_at": self._now()})
            self.appointments[appointment_id] = updated
            return updated

    def update_date_time(
        self, appointment_id, contact_number, new_date=None, new_time=None
    ) -> Optional[Appointment]:
        with self._lock:
            apt = self.get_appointment(appointment_id, contact_number)
            if apt is None or apt.status != AppointmentStatus.CONFIRMED:
                return None
            target_date = new_date if new_date is not None else apt.appointment_date
            target_time = new_time if new_time is not None else apt.appointment_time
            if self._slot_taken(target_date, target_time, exclude_id=appointment_id):
                raise ConflictError("New appointment slot already booked")
            updated = apt.model_copy(
                update={
                    "appointment_date": target_date,
                    "appointment_time": target_time,
                    "updated_at": self._now(),
                }
            )
            self.appointments[appointment_id] = updated
            return updated

    def insert_summary(self, summary: ConversationSummary) -> ConversationSummary:
        with self._lock:
            saved = ConversationSummary(
                **{**summary.model_dump(), "id": len(self.summaries) + 1}
            )
            self.summaries.append(saved)
            return saved


class FakeSummarizer:
    """Summarizer double; raises when given an exception instead of text"""

    def __init__(self, result="User booked an appointment."):
        self.result = result
        self.calls = []

    async def summarize(self, transcript, booked_appointments):
        self.calls.append((transcript, list(booked_appointments)))
        if isinstance(self.result, Exception):
            raise self.result
        return self.result


class ScriptedModel:
    """DialogueModel double replaying canned responses in order"""

    def __init__(self, responses: List[ModelResponse]):
        self.responses = list(responses)
        self.calls = []

    async def respond(self, turns, operations, allow_tools=True):
        self.calls.append({"turns": list(turns), "allow_tools": allow_tools})
        if not self.responses:
            return ModelResponse(text="Is there anything else I can help you with?")
        return self.responses.pop(0)


@pytest.fixture
def repository():
    return InMemoryRepository()


@pytest.fixture
def store(repository):
    return AppointmentStore(repository)


@pytest.fixture
def slot_catalog():
    return SlotCatalog.from_calendar(SLOT_DATES, AVAILABLE_TIMES)


@pytest.fixture
def ledger():
    return CostLedger()


@pytest.fixture
def dispatcher(store, slot_catalog, ledger):
    return ToolDispatcher(store, slot_catalog, ledger, timeout_seconds=2.0)


@pytest.fixture
def summarizer():
    return FakeSummarizer()


@pytest.fixture
def finalizer(store, summarizer, ledger):
    return SummaryFinalizer(store, summarizer, ledger, max_words=200, timeout_seconds=2.0)


@pytest.fixture
def session():
    return SessionState("test-room")


@pytest.fixture
def orchestrator(session, dispatcher, finalizer):
    return ConversationOrchestrator(session, dispatcher, finalizer)


@pytest.fixture
def jan_15():
    return date(2024, 1, 15)


@pytest.fixture
def ten_am():
    return time(10, 0)
