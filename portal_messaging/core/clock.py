# portal_messaging/core/clock.py
from datetime import datetime, timezone
from typing import Callable

Clock = Callable[[], datetime]


def utcnow() -> datetime:
    """Horário do servidor em UTC (timezone-aware). Única fonte de timestamps do domínio."""
    return datetime.now(timezone.utc)
