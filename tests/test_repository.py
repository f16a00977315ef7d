"""Tests for the Supabase-backed repository"""
from datetime import date, time
from unittest.mock import MagicMock, Mock

import pytest

from database.models import AppointmentStatus, ConversationSummary
from database.repository import SupabaseRepository, is_unique_violation
from errors import CollaboratorError, ConflictError

APPOINTMENT_ROW = {
    "id": 7,
    "contact_number": "+15551234567",
    "appointment_date": "2024-01-15",
    "appointment_time": "09:00:00",
    "service_type": None,
    "notes": None,
    "status": "confirmed",
    "created_at": "2024-01-10T12:00:00+00:00",
    "updated_at": None,
}


class UniqueViolation(Exception):
    code = "23505"


def mock_client(data=None, error=None):
    """Supabase client whose fluent query builder returns itself"""
    query = MagicMock()
    for method in ("select", "eq", "neq", "order", "insert", "update", "upsert"):
        getattr(query, method).return_value = query
    if error is not None:
        query.execute.side_effect = error
    else:
        query.execute.return_value = Mock(data=data)

    client = Mock()
    client.table.return_value = query
    return client, query


class TestUsers:
    """Tests for user upserts"""

    def test_upsert_omits_absent_fields(self):
        client, query = mock_client(data=[{"contact_number": "+15551234567", "name": "Ana"}])
        repository = SupabaseRepository(client)

        user = repository.upsert_user("+15551234567")

        payload = query.upsert.call_args[0][0]
        assert "name" not in payload and "email" not in payload
        assert query.upsert.call_args[1] == {"on_conflict": "contact_number"}
        assert user.name == "Ana"

    def test_upsert_sends_present_fields(self):
        client, query = mock_client(data=[{"contact_number": "+15551234567", "name": "Ana"}])

        SupabaseRepository(client).upsert_user("+15551234567", name="Ana")

        assert query.upsert.call_args[0][0]["name"] == "Ana"


class TestAppointments:
    """Tests for appointment persistence"""

    def test_insert_returns_appointment(self):
        client, query = mock_client(data=[APPOINTMENT_ROW])

        appointment = SupabaseRepository(client).insert_confirmed_appointment(
            "+15551234567", date(2024, 1, 15), time(9, 0)
        )

        assert appointment.id == 7
        assert appointment.appointment_time == time(9, 0)
        sent = query.insert.call_args[0][0]
        assert sent["appointment_date"] == "2024-01-15"
        assert sent["status"] == "confirmed"

    def test_insert_unique_violation_is_conflict(self):
        client, _ = mock_client(error=UniqueViolation("duplicate key value violates unique constraint"))

        with pytest.raises(ConflictError):
            SupabaseRepository(client).insert_confirmed_appointment(
                "+15551234567", date(2024, 1, 15), time(9, 0)
            )

    def test_update_unique_violation_is_conflict(self):
        client, _ = mock_client(error=UniqueViolation("duplicate key"))

        with pytest.raises(ConflictError):
            SupabaseRepository(client).update_date_time(7, "+15551234567", new_time=time(10, 0))

    def test_other_errors_are_collaborator_errors(self):
        client, _ = mock_client(error=ConnectionError("timeout"))

        with pytest.raises(CollaboratorError):
            SupabaseRepository(client).list_appointments("+15551234567")

    def test_list_orders_newest_first(self):
        client, query = mock_client(data=[APPOINTMENT_ROW])

        appointments = SupabaseRepository(client).list_appointments(
            "+15551234567", AppointmentStatus.CONFIRMED
        )

        assert [apt.id for apt in appointments] == [7]
        assert [c.args for c in query.order.call_args_list] == [
            ("appointment_date",),
            ("appointment_time",),
        ]
        assert all(c.kwargs == {"desc": True} for c in query.order.call_args_list)
        query.eq.assert_any_call("status", "confirmed")

    def test_set_status_only_from_confirmed(self):
        client, query = mock_client(data=[])

        result = SupabaseRepository(client).set_status(7, "+15551234567", AppointmentStatus.CANCELLED)

        assert result is None
        query.eq.assert_any_call("status", "confirmed")
        assert query.update.call_args[0][0]["status"] == "cancelled"

    def test_find_excludes_own_id(self):
        client, query = mock_client(data=[])

        SupabaseRepository(client).find_confirmed_appointment(date(2024, 1, 15), time(9, 0), exclude_id=7)

        query.neq.assert_called_once_with("id", 7)
        query.eq.assert_any_call("appointment_time", "09:00:00")


class TestSummaries:
    """Tests for conversation summary persistence"""

    def test_insert_summary(self):
        client, query = mock_client(data=[{"id": 3, "created_at": "2024-01-15T10:00:00+00:00"}])
        summary = ConversationSummary(
            session_id="room-1",
            contact_number="+15551234567",
            summary="Booked Jan 15.",
            cost_breakdown={"total": 0.003, "breakdown": []},
        )

        saved = SupabaseRepository(client).insert_summary(summary)

        assert saved.id == 3
        assert saved.created_at is not None
        sent = query.insert.call_args[0][0]
        assert "id" not in sent
        assert sent["cost_breakdown"]["total"] == 0.003


def test_is_unique_violation():
    assert is_unique_violation(UniqueViolation("x"))
    assert is_unique_violation(Exception('duplicate key value violates unique constraint "uq"'))
    assert not is_unique_violation(Exception("connection refused"))


def test_from_settings_requires_credentials():
    with pytest.raises(ValueError):
        SupabaseRepository.from_settings("", "")
