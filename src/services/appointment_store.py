"""Conflict-checked appointment operations over the persistence collaborator"""

import asyncio
import logging
from collections import defaultdict
from contextlib import asynccontextmanager
from datetime import date, time
from typing import Callable, Dict, Hashable, List, Optional

from database.models import Appointment, AppointmentStatus, ConversationSummary, User
from database.repository import AppointmentRepository
from errors import AgentError, CollaboratorError, ConflictError, NotFoundError, ValidationError

logger = logging.getLogger(__name__)


class AppointmentStore:
    """
    Async facade over an AppointmentRepository.

    Booking and modification share one rule: the confirmed-slot pre-check and
    the write run while holding the lock for the target (date, time), so two
    requests in this process cannot both pass the check. Modification also
    holds a lock on the appointment id while it resolves its target slot.
    A lock exists only while held or awaited. The database partial unique
    index covers other processes; its violation surfaces as ConflictError
    from the repository.

    Repository calls are blocking and run in worker threads.
    """

    def __init__(self, repository: AppointmentRepository):
        self.repository = repository
        self._locks: Dict[Hashable, asyncio.Lock] = {}
        self._lock_holders: Dict[Hashable, int] = defaultdict(int)

    @asynccontextmanager
    async def _hold(self, key: Hashable):
        lock = self._locks.get(key)
        if lock is None:
            lock = self._locks[key] = asyncio.Lock()
        self._lock_holders[key] += 1
        try:
            async with lock:
                yield
        finally:
            self._lock_holders[key] -= 1
            if not self._lock_holders[key]:
                del self._lock_holders[key]
                del self._locks[key]

    async def _call(self, fn: Callable, *args, **kwargs):
        try:
            return await asyncio.to_thread(fn, *args, **kwargs)
        except AgentError:
            raise
        except Exception as e:
            logger.error(f"Repository call {fn.__name__} failed: {e}", exc_info=True)
            raise CollaboratorError(f"Database error: {e}") from e

    async def identify_user(
        self, contact_number: str, name: Optional[str] = None, email: Optional[str] = None
    ) -> User:
        return await self._call(self.repository.upsert_user, contact_number, name, email)

    async def book(
        self,
        contact_number: str,
        appointment_date: date,
        appointment_time: time,
        service_type: Optional[str] = None,
        notes: Optional[str] = None,
    ) -> Appointment:
        async with self._hold(("slot", appointment_date, appointment_time)):
            existing = await self._call(
                self.repository.find_confirmed_appointment, appointment_date, appointment_time
            )
            if existing:
                logger.warning(
                    f"Slot {appointment_date} {appointment_time} already held by appointment {existing.id}"
                )
                raise ConflictError("Appointment slot already booked")

            # appointments.contact_number references users
            await self._call(self.repository.upsert_user, contact_number)

            appointment = await self._call(
                self.repository.insert_confirmed_appointment,
                contact_number,
                appointment_date,
                appointment_time,
                service_type,
                notes,
            )

        logger.info(
            f"✅ Appointment {appointment.id} confirmed for {contact_number} "
            f"on {appointment_date} at {appointment_time}"
        )
        return appointment

    async def list_appointments(
        self, contact_number: str, status: Optional[AppointmentStatus] = None
    ) -> List[Appointment]:
        return await self._call(self.repository.list_appointments, contact_number, status)

    async def cancel(self, appointment_id: int, contact_number: str) -> Appointment:
        appointment = await self._call(
            self.repository.set_status,
            appointment_id,
            contact_number,
            AppointmentStatus.CANCELLED,
            AppointmentStatus.CONFIRMED,
        )
        if appointment is None:
            raise NotFoundError("Appointment not found or already cancelled")

        logger.info(f"✅ Appointment {appointment_id} cancelled for {contact_number}")
        return appointment

    async def modify(
        self,
        appointment_id: int,
        contact_number: str,
        new_date: Optional[date] = None,
        new_time: Optional[time] = None,
    ) -> Appointment:
        if new_date is None and new_time is None:
            raise ValidationError("No fields to update: provide new_date and/or new_time")

        async with self._hold(("appointment", appointment_id)):
            if new_date is None or new_time is None:
                # Resolve the slot the appointment would end up in
                current = await self._call(
                    self.repository.get_appointment, appointment_id, contact_number
                )
                if current is None or current.status != AppointmentStatus.CONFIRMED:
                    raise NotFoundError("Appointment not found")
                target_date = current.appointment_date if new_date is None else new_date
                target_time = current.appointment_time if new_time is None else new_time
            else:
                target_date, target_time = new_date, new_time

            async with self._hold(("slot", target_date, target_time)):
                existing = await self._call(
                    self.repository.find_confirmed_appointment,
                    target_date,
                    target_time,
                    appointment_id,
                )
                if existing:
                    logger.warning(
                        f"Cannot move appointment {appointment_id}: {target_date} {target_time} "
                        f"held by appointment {existing.id}"
                    )
                    raise ConflictError("New appointment slot already booked")

                appointment = await self._call(
                    self.repository.update_date_time,
                    appointment_id,
                    contact_number,
                    new_date,
                    new_time,
                )

        if appointment is None:
            raise NotFoundError("Appointment not found")

        logger.info(
            f"✅ Appointment {appointment_id} moved to "
            f"{appointment.appointment_date} at {appointment.appointment_time}"
        )
        return appointment

    async def save_summary(self, summary: ConversationSummary) -> ConversationSummary:
        return await self._call(self.repository.insert_summary, summary)
