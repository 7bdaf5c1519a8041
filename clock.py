from datetime import datetime
from zoneinfo import ZoneInfo

from config import get_settings


def local_now() -> datetime:
    """Wall-clock time in the configured timezone, without tzinfo attached."""
    settings = get_settings()
    tz = ZoneInfo(settings.timezone)
    return datetime.now(tz).replace(tzinfo=None)
