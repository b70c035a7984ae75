from datetime import datetime, timezone
from typing import Optional


def utcnow() -> datetime:
    """Heure UTC courante, naïve (les colonnes DateTime sont stockées sans tz)."""
    return datetime.now(timezone.utc).replace(tzinfo=None)


def to_naive_utc(value: Optional[datetime]) -> Optional[datetime]:
    """Convertit un datetime aware en UTC naïf ; un datetime naïf est supposé déjà en UTC."""
    if value is None or value.tzinfo is None:
        return value
    return value.astimezone(timezone.utc).replace(tzinfo=None)
