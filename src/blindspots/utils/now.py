from datetime import UTC, datetime


class Now:
    @staticmethod
    def as_datetime() -> datetime:
        """Return the current UTC time as a datetime object."""

        return datetime.now(UTC)

    @staticmethod
    def previous_month(year: int, month: int) -> tuple[int, int]:
        """Return the (year, month) pair immediately before the given one."""

        if month == 1:
            return year - 1, 12
        return year, month - 1
