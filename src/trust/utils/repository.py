"""Repository read helpers shared by the read models."""

from protean.utils.globals import current_domain

# Rows per DAO round trip; reads walk every page, so this bounds memory per query, not results.
PAGE_SIZE = 1_000


def iter_all(aggregate_cls, **filters):
    """Yield every stored record of ``aggregate_cls`` matching ``filters``, page by page."""
    query = current_domain.repository_for(aggregate_cls)._dao.query
    if filters:
        query = query.filter(**filters)
    query = query.order_by("id")

    offset = 0
    while True:
        page = query.offset(offset).limit(PAGE_SIZE).all().items
        yield from page
        if len(page) < PAGE_SIZE:
            return
        offset += PAGE_SIZE


def fetch_all(aggregate_cls, **filters):
    """Return every stored record of ``aggregate_cls`` matching ``filters``."""
    return list(iter_all(aggregate_cls, **filters))
