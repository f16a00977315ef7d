"""Date and time utility functions"""
from datetime import datetime, time
from typing import Union
import pytz

from config import config


def format_time_for_display(value: Union[str, time]) -> str:
    """Convert 24-hour time to 12-hour display format"""
    try:
        if isinstance(value, str):
            fmt = "%H:%M:%S" if value.count(":") == 2 else "%H:%M"
            time_obj = datetime.strptime(value, fmt).time()
        else:
            time_obj = value

        hour = time_obj.hour
        minute = time_obj.minute

        if hour == 0:
            return f"12:{minute:02d} AM" if minute else "12 AM"
        elif hour < 12:
            return f"{hour}:{minute:02d} AM" if minute else f"{hour} AM"
        elif hour == 12:
            return f"12:{minute:02d} PM" if minute else "12 PM"
        else:
            return f"{hour-12}:{minute:02d} PM" if minute else f"{hour-12} PM"
    except ValueError:
        return str(value)


def get_local_now(timezone: str = None) -> datetime:
    """Get current datetime in the configured timezone"""
    return datetime.now(pytz.timezone(timezone or config.timezone))


def get_time_of_day(hour: int) -> str:
    """Categorize time into morning, afternoon, or evening"""
    if 6 <= hour < 12:
        return "morning"
    elif 12 <= hour < 17:
        return "afternoon"
    else:
        return "evening"
