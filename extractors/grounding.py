"""
Grounding extractor — pure function, no I/O.

Turns a generate_content response into a QueryResult: answer text plus the
retrieved chunks (title, URI, page span, text) that grounded it.

Page numbers come from the chunk's page span when the service provides one.
Otherwise a "--- PAGE n ---" marker in the chunk text is used, which is how
paginated PDFs are commonly pre-processed before upload.
"""

import re
from typing import Any

from models import GroundingChunk, QueryResult

PAGE_MARKER_PATTERN = re.compile(r"--- PAGE (\d+) ---")


def _answer_text(response: Any) -> str:
    """Concatenate the text parts of every candidate."""
    texts: list[str] = []
    for candidate in getattr(response, "candidates", None) or []:
        content = getattr(candidate, "content", None)
        for part in getattr(content, "parts", None) or []:
            text = getattr(part, "text", None)
            if text:
                texts.append(text)
    return "\n".join(texts)


def _page_span(context: Any) -> tuple[int | None, int | None]:
    rag_chunk = getattr(context, "rag_chunk", None)
    span = getattr(rag_chunk, "page_span", None) if rag_chunk is not None else None
    first = getattr(span, "first_page", None) if span is not None else None
    last = getattr(span, "last_page", None) if span is not None else None
    if first and first > 0:
        return first, last if last and last > 0 else first

    # Fallback: page marker embedded in the chunk text
    text = getattr(context, "text", None) or ""
    match = PAGE_MARKER_PATTERN.search(text)
    if match:
        page = int(match.group(1))
        return page, page
    return None, None


def _parse_chunk(chunk: Any) -> GroundingChunk | None:
    web = getattr(chunk, "web", None)
    if web is not None:
        return GroundingChunk(
            source="web",
            title=getattr(web, "title", None),
            uri=getattr(web, "uri", None),
        )

    context = getattr(chunk, "retrieved_context", None)
    if context is None:
        return None
    first_page, last_page = _page_span(context)
    return GroundingChunk(
        source="document",
        title=getattr(context, "title", None) or None,
        uri=getattr(context, "uri", None) or None,
        text=getattr(context, "text", None) or None,
        first_page=first_page,
        last_page=last_page,
        store=getattr(context, "file_search_store", None) or None,
    )


def _dump(value: Any) -> Any:
    if hasattr(value, "model_dump"):
        return value.model_dump(mode="json", exclude_none=True)
    if hasattr(value, "__dict__"):
        return dict(vars(value))
    return value


def parse_query_response(
    response: Any,
    model: str,
    store_name: str | None = None,
) -> QueryResult:
    """
    Convert a GenerateContentResponse into a QueryResult.

    Args:
        response: google.genai GenerateContentResponse (or lookalike)
        model: Model that answered
        store_name: Store the query was grounded on, if any

    Returns:
        QueryResult with chunks in the order the service returned them.
        grounding_metadata holds the raw metadata of the first grounded candidate.
    """
    chunks: list[GroundingChunk] = []
    raw_metadata: dict[str, Any] | None = None

    for candidate in getattr(response, "candidates", None) or []:
        metadata = getattr(candidate, "grounding_metadata", None)
        if metadata is None:
            continue
        if raw_metadata is None:
            raw_metadata = _dump(metadata)
        for chunk in getattr(metadata, "grounding_chunks", None) or []:
            parsed = _parse_chunk(chunk)
            if parsed is not None:
                chunks.append(parsed)

    return QueryResult(
        answer=_answer_text(response),
        model=model,
        store_name=store_name,
        chunks=chunks,
        grounding_metadata=raw_metadata,
    )
