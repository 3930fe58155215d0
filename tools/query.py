"""
Query — ask a question, optionally grounded on a store.
"""

from config import DEFAULT_MODEL
from extractors.grounding import parse_query_response
from models import QueryResult
from tools.resolve import NameResolver


def do_query(
    resolver: NameResolver,
    text: str,
    store_ref: str | None = None,
    model: str | None = None,
    metadata_filter: str | None = None,
) -> QueryResult:
    """
    Run a query and parse the answer and its grounding.

    Args:
        resolver: Name resolver (its client runs the query)
        text: The question
        store_ref: Store display name or ID; without one the model answers ungrounded
        model: Model name (default gemini-2.5-flash)
        metadata_filter: Filter expression, e.g. 'author = "Smith"' (needs a store)
    """
    model = model or DEFAULT_MODEL
    store_name = resolver.resolve_store(store_ref) if store_ref else None
    response = resolver.client.query(text, model, store_name=store_name,
                                     metadata_filter=metadata_filter)
    return parse_query_response(response, model, store_name)
