from datetime import UTC, datetime


class SystemClock:
    def now_utc(self) -> datetime:
        # Stored timestamps are naive UTC
        return datetime.now(UTC).replace(tzinfo=None)
