"""Repository query helpers shared by the read-side services."""

from protean.utils.globals import current_domain

# Rows pulled per round-trip when a caller needs a complete result set
BATCH_SIZE = 500


def query_for(aggregate_cls):
    """Return a fresh query set over the aggregate's persisted rows."""
    return current_domain.repository_for(aggregate_cls)._dao.query


def fetch_all(queryset, batch_size: int = BATCH_SIZE) -> list:
    """Materialize every row matched by `queryset`, paging through in fixed batches.

    Query sets carry a default page size, so a plain ``.all()`` silently
    truncates large collections. Batches are ordered by identifier after any
    ordering the caller set, so offsets stay stable between round-trips.
    """
    queryset = queryset.order_by("id")
    items = []
    offset = 0
    while True:
        result = queryset.offset(offset).limit(batch_size).all()
        items.extend(result.items)
        if len(result.items) < batch_size:
            return items
        offset += batch_size


def fetch_page(queryset, offset: int, limit: int) -> tuple[list, int]:
    """Return ``(items, total)`` for one page of `queryset`."""
    result = queryset.offset(offset).limit(limit).all()
    return list(result.items), result.total
