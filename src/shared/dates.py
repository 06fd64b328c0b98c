"""Date range parsing for report and listing filters."""

from dataclasses import dataclass
from datetime import UTC, datetime

from protean.utils.query import Q

from shared.errors import ValidationFailedError


def as_utc(value: datetime) -> datetime:
    """Treat naive datetimes as UTC."""
    return value.replace(tzinfo=UTC) if value.tzinfo is None else value.astimezone(UTC)


def _parse(value: str, field: str, label: str) -> datetime:
    try:
        return as_utc(datetime.fromisoformat(value))
    except ValueError:
        raise ValidationFailedError({field: [f"Invalid {label} date format"]}) from None


@dataclass(frozen=True)
class DateRange:
    start: datetime | None = None
    end: datetime | None = None

    def to_criteria(self, field: str = "created_at") -> Q:
        """Repository criteria; matches everything when the range is open on both ends."""
        bounds = {}
        if self.start is not None:
            bounds[f"{field}__gte"] = self.start
        if self.end is not None:
            bounds[f"{field}__lte"] = self.end
        return Q(**bounds)

    def to_match(self, field: str = "created_at") -> dict:
        """``$match`` fragment for aggregation pipelines; empty when open on both ends."""
        bounds = {}
        if self.start is not None:
            bounds["$gte"] = self.start
        if self.end is not None:
            bounds["$lte"] = self.end
        return {field: bounds} if bounds else {}


def parse_date_range(start: str | None = None, end: str | None = None) -> DateRange:
    """Parse ISO dates. The end date is inclusive up to 23:59:59.999 of that day."""
    start_at = _parse(start, "start_date", "start") if start else None
    end_at = _parse(end, "end_date", "end") if end else None

    if end_at is not None:
        end_at = end_at.replace(hour=23, minute=59, second=59, microsecond=999000)

    if start_at is not None and end_at is not None and start_at > end_at:
        raise ValidationFailedError({"start_date": ["Start date cannot be after end date"]})

    return DateRange(start=start_at, end=end_at)
