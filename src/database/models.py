"""Pydantic models for database entities"""

from datetime import date, time, datetime
from enum import Enum
from typing import Optional, List, Dict, Any
from pydantic import BaseModel, ConfigDict, Field


class AppointmentStatus(str, Enum):
    CONFIRMED = "confirmed"
    CANCELLED = "cancelled"
    COMPLETED = "completed"


class User(BaseModel):
    """User model"""

    contact_number: str
    name: Optional[str] = None
    email: Optional[str] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


class Slot(BaseModel):
    """Bookable slot from the static calendar"""

    slot_date: date
    slot_time: time
    available: bool = True


class Appointment(BaseModel):
    """Appointment model"""

    id: int
    contact_number: str
    appointment_date: date
    appointment_time: time
    service_type: Optional[str] = None
    notes: Optional[str] = None
    status: AppointmentStatus = AppointmentStatus.CONFIRMED
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    @property
    def slot_key(self):
        return (self.appointment_date, self.appointment_time)


class ConversationSummary(BaseModel):
    """Summary record persisted once per session at finalization"""

    model_config = ConfigDict(frozen=True)

    id: Optional[int] = None
    session_id: str
    contact_number: str
    summary: str
    booked_appointments: List[Dict[str, Any]] = Field(default_factory=list)
    preferences: Dict[str, Any] = Field(default_factory=dict)
    cost_breakdown: Dict[str, Any] = Field(default_factory=dict)
    created_at: Optional[datetime] = None
