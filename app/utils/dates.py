from datetime import datetime, timezone

# (единица, длительность в секундах) от крупной к мелкой
_UNITS = (
    ("year", 365 * 24 * 60 * 60),
    ("month", 30 * 24 * 60 * 60),
    ("week", 7 * 24 * 60 * 60),
    ("day", 24 * 60 * 60),
    ("hour", 60 * 60),
    ("minute", 60),
    ("second", 1),
)


def utcnow_seconds() -> datetime:
    """Текущее время в UTC без tzinfo, с точностью до секунды."""
    return datetime.now(timezone.utc).replace(tzinfo=None, microsecond=0)


def diff_for_humans(value: datetime, now: datetime | None = None) -> str:
    """
    Форматирует дату относительно текущего момента: "5 minutes ago",
    "1 day ago", "2 hours from now".

    Наивные даты считаются датами в UTC.
    """
    if value.tzinfo is not None:
        value = value.astimezone(timezone.utc).replace(tzinfo=None)
    if now is None:
        now = utcnow_seconds()
    elif now.tzinfo is not None:
        now = now.astimezone(timezone.utc).replace(tzinfo=None)

    delta = int((now - value).total_seconds())
    suffix = "ago" if delta >= 0 else "from now"
    seconds = abs(delta)

    for unit, size in _UNITS:
        count = seconds // size
        if count >= 1:
            break
    else:
        unit, count = "second", 1

    return f"{count} {unit}{'' if count == 1 else 's'} {suffix}"
