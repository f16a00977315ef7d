"""Utils module for the scheduling agent"""
from .date_time_utils import format_time_for_display, get_local_now, get_time_of_day
from .preference_tracker import PreferenceTracker

__all__ = [
    "format_time_for_display",
    "get_local_now",
    "get_time_of_day",
    "PreferenceTracker",
]
