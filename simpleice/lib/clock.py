from datetime import datetime


def now() -> datetime:
    """Current local time, timezone-aware."""
    return datetime.now().astimezone()
