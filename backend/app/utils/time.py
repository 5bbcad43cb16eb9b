from datetime import datetime, timezone


def utcnow() -> datetime:
    """timezone-aware 현재 UTC 시각"""
    return datetime.now(timezone.utc)


def ensure_utc(value: datetime | None) -> datetime | None:
    """naive datetime을 UTC로 간주하여 aware로 변환

    SQLite 등 timezone을 저장하지 않는 백엔드에서 읽은 값 비교용
    """
    if value is None:
        return None
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)
