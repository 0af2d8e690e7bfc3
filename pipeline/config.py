from __future__ import annotations

import os
from dataclasses import dataclass
from datetime import date, datetime
from pathlib import Path
from typing import Optional
from zoneinfo import ZoneInfo

from dotenv import load_dotenv


DEFAULT_TIMEZONE = "Asia/Tokyo"
DEFAULT_DATA_DIR = "data"
DEFAULT_MODEL = "anthropic/claude-haiku-4.5"
DEFAULT_BASE_URL = "https://openrouter.ai/api/v1/chat/completions"


@dataclass(frozen=True)
class LLMSettings:
    api_key: Optional[str] = None
    model: str = DEFAULT_MODEL
    base_url: str = DEFAULT_BASE_URL
    temperature: float = 0.7
    max_tokens: int = 2000
    timeout: float = 60.0
    http_referer: str = "http://localhost"
    app_title: str = "Gut Advice"

    @property
    def configured(self) -> bool:
        return bool(self.api_key)


@dataclass(frozen=True)
class Settings:
    """Process-wide configuration, built once at start-up and passed down explicitly."""
    target_date: str
    data_dir: Path
    timezone: str = DEFAULT_TIMEZONE
    llm: LLMSettings = LLMSettings()
    tracing_enabled: bool = False

    @property
    def tz(self) -> ZoneInfo:
        return ZoneInfo(self.timezone)

    def now(self) -> datetime:
        return datetime.now(self.tz)

    @classmethod
    def from_env(
        cls,
        target_date: Optional[str] = None,
        data_dir: Optional[str] = None,
        skip_narrative: bool = False,
    ) -> "Settings":
        """Read ``.env`` and the process environment; explicit arguments win."""
        load_dotenv()
        timezone = os.getenv("ADVICE_TIMEZONE", DEFAULT_TIMEZONE)
        tz = ZoneInfo(timezone)
        resolved_date = target_date or os.getenv("TARGET_DATE") or datetime.now(tz).date().isoformat()
        llm = LLMSettings(
            api_key=None if skip_narrative else (os.getenv("OPENROUTER_API_KEY") or None),
            model=os.getenv("OPENROUTER_MODEL", DEFAULT_MODEL),
            base_url=os.getenv("OPENROUTER_BASE_URL", DEFAULT_BASE_URL),
            temperature=float(os.getenv("OPENROUTER_TEMPERATURE", "0.7")),
            max_tokens=int(os.getenv("OPENROUTER_MAX_TOKENS", "2000")),
            timeout=float(os.getenv("ADVICE_LLM_TIMEOUT", "60")),
            http_referer=os.getenv("OPENROUTER_HTTP_REFERER", "http://localhost"),
            app_title=os.getenv("OPENROUTER_APP_TITLE", "Gut Advice"),
        )
        return cls(
            target_date=parse_target_date(resolved_date),
            data_dir=Path(data_dir or os.getenv("ADVICE_DATA_DIR", DEFAULT_DATA_DIR)),
            timezone=timezone,
            llm=llm,
            tracing_enabled=bool(os.getenv("LANGFUSE_PUBLIC_KEY") and os.getenv("LANGFUSE_SECRET_KEY")),
        )


def parse_target_date(value: str) -> str:
    """Normalize to ``YYYY-MM-DD``; raises ValueError for anything else."""
    return date.fromisoformat(value.strip()).isoformat()
