"""Conditional request headers (RFC 7232).

Only the RFC 1123 HTTP-date format is understood. A header that does not
parse is ignored, as the RFC requires.
"""

from datetime import datetime, timezone

from crudforge.models.base import MODIFIED_AT, Model
from crudforge.persistence.fetch import BulkFetchConfig, PredicateType

PRECONDITION_FAILED_DETAIL = "The `If-Unmodified-Since` condition is not satisfied"

_HTTP_DATE_FORMATS = (
    "%a, %d %b %Y %H:%M:%S GMT",
    "%a, %d %b %Y %H:%M:%S UTC",
)


def parse_http_date(value: str | None) -> datetime | None:
    """Parse an HTTP-date into an aware UTC datetime, or None if invalid."""
    if not value:
        return None
    for fmt in _HTTP_DATE_FORMATS:
        try:
            parsed = datetime.strptime(value.strip(), fmt)
        except ValueError:
            continue
        return parsed.replace(tzinfo=timezone.utc)
    return None


def apply_modified_since(fetch_config: BulkFetchConfig, header: str | None) -> None:
    """Restrict ``fetch_config`` to rows modified after ``If-Modified-Since``."""
    since = parse_http_date(header)
    if since is not None:
        fetch_config.where(MODIFIED_AT, PredicateType.GREATER_THAN, since)


def is_unmodified_since(model: Model, header: str | None) -> bool:
    """Evaluate ``If-Unmodified-Since`` against a loaded model.

    An absent or invalid header always passes. Otherwise a model with no
    ``modified_at`` value fails, since nothing proves it is unmodified.
    ``modified_at`` is floored to whole seconds before comparing.
    """
    since = parse_http_date(header)
    if since is None:
        return True

    modified_at = None
    if model.get_configuration().has_field(MODIFIED_AT):
        modified_at = model[MODIFIED_AT]
    if modified_at is None:
        return False

    if modified_at.tzinfo is None:
        modified_at = modified_at.replace(tzinfo=timezone.utc)
    return not modified_at.replace(microsecond=0) > since
