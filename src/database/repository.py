"""Persistence collaborator for users, appointments and conversation summaries.

``AppointmentRepository`` is the narrow CRUD contract the core depends on.
``SupabaseRepository`` implements it over the Supabase (PostgREST) tables
declared in ``schema.sql``. Calls are blocking; ``AppointmentStore`` runs them
in worker threads.
"""

import logging
from datetime import date, time, datetime, timezone
from typing import Any, Dict, List, Optional, Protocol

from supabase import create_client, Client

from database.models import (
    Appointment,
    AppointmentStatus,
    ConversationSummary,
    User,
)
from errors import CollaboratorError, ConflictError

logger = logging.getLogger(__name__)

UNIQUE_VIOLATION_CODE = "23505"


class AppointmentRepository(Protocol):
    def upsert_user(
        self, contact_number: str, name: Optional[str] = None, email: Optional[str] = None
    ) -> User: ...

    def find_confirmed_appointment(
        self, appointment_date: date, appointment_time: time, exclude_id: Optional[int] = None
    ) -> Optional[Appointment]: ...

    def insert_confirmed_appointment(
        self,
        contact_number: str,
        appointment_date: date,
        appointment_time: time,
        service_type: Optional[str] = None,
        notes: Optional[str] = None,
    ) -> Appointment: ...

    def get_appointment(self, appointment_id: int, contact_number: str) -> Optional[Appointment]: ...

    def list_appointments(
        self, contact_number: str, status: Optional[AppointmentStatus] = None
    ) -> List[Appointment]: ...

    def set_status(
        self,
        appointment_id: int,
        contact_number: str,
        status: AppointmentStatus,
        from_status: AppointmentStatus = AppointmentStatus.CONFIRMED,
    ) -> Optional[Appointment]: ...

    def update_date_time(
        self,
        appointment_id: int,
        contact_number: str,
        new_date: Optional[date] = None,
        new_time: Optional[time] = None,
    ) -> Optional[Appointment]: ...

    def insert_summary(self, summary: ConversationSummary) -> ConversationSummary: ...


def is_unique_violation(error: Exception) -> bool:
    """Detect a PostgreSQL unique constraint violation in a PostgREST error"""
    error_str = str(error).lower()
    error_code = getattr(error, "code", None)
    return (
        error_code == UNIQUE_VIOLATION_CODE
        or UNIQUE_VIOLATION_CODE in error_str
        or "duplicate key" in error_str
        or "unique constraint" in error_str
    )


def _now() -> str:
    return datetime.now(timezone.utc).isoformat()


class SupabaseRepository:
    """AppointmentRepository backed by Supabase tables"""

    def __init__(self, client: Client):
        self.client = client

    @classmethod
    def from_settings(cls, supabase_url: str, supabase_key: str) -> "SupabaseRepository":
        if not supabase_url or not supabase_key:
            raise ValueError("supabase_url and supabase_key are required")
        client = create_client(supabase_url, supabase_key)
        logger.info("Supabase client initialized")
        return cls(client)

    def _execute(self, query, action: str):
        try:
            return query.execute()
        except Exception as e:
            if is_unique_violation(e):
                raise
            logger.error(f"Supabase error while trying to {action}: {e}", exc_info=True)
            raise CollaboratorError(f"Database error while trying to {action}") from e

    def upsert_user(self, contact_number, name=None, email=None) -> User:
        data: Dict[str, Any] = {"contact_number": contact_number, "updated_at": _now()}
        # Omitted columns keep their stored values on conflict
        if name:
            data["name"] = name
        if email:
            data["email"] = email

        result = self._execute(
            self.client.table("users").upsert(data, on_conflict="contact_number"),
            "save the user",
        )
        if not result.data:
            raise CollaboratorError("Database returned no user row")
        return User(**result.data[0])

    def find_confirmed_appointment(self, appointment_date, appointment_time, exclude_id=None):
        query = (
            self.client.table("appointments")
            .select("*")
            .eq("appointment_date", appointment_date.isoformat())
            .eq("appointment_time", appointment_time.isoformat())
            .eq("status", AppointmentStatus.CONFIRMED.value)
        )
        if exclude_id is not None:
            query = query.neq("id", exclude_id)

        result = self._execute(query, "check the slot")
        return Appointment(**result.data[0]) if result.data else None

    def insert_confirmed_appointment(
        self, contact_number, appointment_date, appointment_time, service_type=None, notes=None
    ) -> Appointment:
        appointment_data = {
            "contact_number": contact_number,
            "appointment_date": appointment_date.isoformat(),
            "appointment_time": appointment_time.isoformat(),
            "service_type": service_type,
            "notes": notes,
            "status": AppointmentStatus.CONFIRMED.value,
        }
        try:
            result = self._execute(
                self.client.table("appointments").insert(appointment_data),
                "book the appointment",
            )
        except CollaboratorError:
            raise
        except Exception as e:
            logger.warning(
                f"Unique violation booking {appointment_date} {appointment_time}: {e}"
            )
            raise ConflictError("Appointment slot already booked") from e

        if not result.data:
            raise CollaboratorError("Database returned no appointment row")
        return Appointment(**result.data[0])

    def get_appointment(self, appointment_id, contact_number) -> Optional[Appointment]:
        result = self._execute(
            self.client.table("appointments")
            .select("*")
            .eq("id", appointment_id)
            .eq("contact_number", contact_number),
            "look up the appointment",
        )
        return Appointment(**result.data[0]) if result.data else None

    def list_appointments(self, contact_number, status=None) -> List[Appointment]:
        query = self.client.table("appointments").select("*").eq("contact_number", contact_number)
        if status is not None:
            query = query.eq("status", AppointmentStatus(status).value)
        query = query.order("appointment_date", desc=True).order("appointment_time", desc=True)

        result = self._execute(query, "retrieve appointments")
        return [Appointment(**row) for row in result.data or []]

    def set_status(
        self, appointment_id, contact_number, status, from_status=AppointmentStatus.CONFIRMED
    ) -> Optional[Appointment]:
        result = self._execute(
            self.client.table("appointments")
            .update({"status": AppointmentStatus(status).value, "updated_at": _now()})
            .eq("id", appointment_id)
            .eq("contact_number", contact_number)
            .eq("status", AppointmentStatus(from_status).value),
            "update the appointment status",
        )
        return Appointment(**result.data[0]) if result.data else None

    def update_date_time(
        self, appointment_id, contact_number, new_date=None, new_time=None
    ) -> Optional[Appointment]:
        updates: Dict[str, Any] = {"updated_at": _now()}
        if new_date is not None:
            updates["appointment_date"] = new_date.isoformat()
        if new_time is not None:
            updates["appointment_time"] = new_time.isoformat()

        try:
            result = self._execute(
                self.client.table("appointments")
                .update(updates)
                .eq("id", appointment_id)
                .eq("contact_number", contact_number)
                .eq("status", AppointmentStatus.CONFIRMED.value),
                "modify the appointment",
            )
        except CollaboratorError:
            raise
        except Exception as e:
            logger.warning(f"Unique violation modifying appointment {appointment_id}: {e}")
            raise ConflictError("New appointment slot already booked") from e

        return Appointment(**result.data[0]) if result.data else None

    def insert_summary(self, summary: ConversationSummary) -> ConversationSummary:
        data = summary.model_dump(mode="json", exclude={"id", "created_at"})
        result = self._execute(
            self.client.table("conversation_summaries").insert(data),
            "save the conversation summary",
        )
        if not result.data:
            raise CollaboratorError("Database returned no summary row")
        row = result.data[0]
        return ConversationSummary(
            **{**summary.model_dump(), "id": row.get("id"), "created_at": row.get("created_at")}
        )
