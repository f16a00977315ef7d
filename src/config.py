import os
from dataclasses import dataclass, field
from typing import List
from dotenv import load_dotenv

load_dotenv(".env.local")


def _split(value: str) -> List[str]:
    return [item.strip() for item in value.split(",") if item.strip()]


@dataclass
class Config:
    """Configuration class for the scheduling agent"""

    # LiveKit
    livekit_url: str
    livekit_api_key: str
    livekit_api_secret: str

    # AI Services
    deepgram_api_key: str
    azure_openai_endpoint: str
    azure_openai_api_key: str
    azure_openai_deployment: str
    azure_openai_api_version: str
    cartesia_api_key: str

    # Database
    supabase_url: str
    supabase_key: str

    # Slot calendar
    slot_dates: List[str] = field(
        default_factory=lambda: ["2024-01-15", "2024-01-16", "2024-01-17"]
    )
    available_times: List[str] = field(
        default_factory=lambda: ["09:00", "10:00", "11:00", "14:00", "15:00"]
    )

    # Orchestration
    tool_timeout_seconds: float = 10.0
    summary_timeout_seconds: float = 20.0
    summary_max_words: int = 200
    max_tool_rounds: int = 5
    timezone: str = "UTC"

    @classmethod
    def from_env(cls):
        """Create configuration from environment variables"""
        defaults = cls.__dataclass_fields__
        return cls(
            livekit_url=os.getenv("LIVEKIT_URL", ""),
            livekit_api_key=os.getenv("LIVEKIT_API_KEY", ""),
            livekit_api_secret=os.getenv("LIVEKIT_API_SECRET", ""),
            deepgram_api_key=os.getenv("DEEPGRAM_API_KEY", ""),
            azure_openai_endpoint=os.getenv("AZURE_OPENAI_ENDPOINT", ""),
            azure_openai_api_key=os.getenv("AZURE_OPENAI_API_KEY", ""),
            azure_openai_deployment=os.getenv("AZURE_OPENAI_DEPLOYMENT_NAME", ""),
            azure_openai_api_version=os.getenv(
                "AZURE_OPENAI_API_VERSION", "2024-10-01-preview"
            ),
            cartesia_api_key=os.getenv("CARTESIA_API_KEY", ""),
            supabase_url=os.getenv("SUPABASE_URL", ""),
            supabase_key=os.getenv("SUPABASE_KEY", ""),
            slot_dates=_split(os.getenv("SLOT_DATES", ""))
            or defaults["slot_dates"].default_factory(),
            available_times=_split(os.getenv("AVAILABLE_TIMES", ""))
            or defaults["available_times"].default_factory(),
            tool_timeout_seconds=float(os.getenv("TOOL_TIMEOUT_SECONDS", "10")),
            summary_timeout_seconds=float(os.getenv("SUMMARY_TIMEOUT_SECONDS", "20")),
            summary_max_words=int(os.getenv("SUMMARY_MAX_WORDS", "200")),
            max_tool_rounds=int(os.getenv("MAX_TOOL_ROUNDS", "5")),
            timezone=os.getenv("TIMEZONE", "UTC"),
        )


# Global config instance
config = Config.from_env()
