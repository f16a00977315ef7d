"""Database module for Supabase integration"""
from .models import User, Slot, Appointment, AppointmentStatus, ConversationSummary
from .repository import AppointmentRepository, SupabaseRepository

__all__ = [
    "AppointmentRepository",
    "SupabaseRepository",
    "User",
    "Slot",
    "Appointment",
    "AppointmentStatus",
    "ConversationSummary",
]
