"""
Batch executor — run one operation over many inputs with bounded concurrency.

Used by `file upload` and `store import-file` with multiple inputs.
A failing item never stops its siblings. Progress callbacks are serialized:
the counter increments in the same critical section as the result insert,
so callbacks see current = 1, 2, ..., N in order.
"""

import threading
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass
from typing import Callable

from config import DEFAULT_CONCURRENCY
from logging_config import logger
from models import BatchResult

ProgressCallback = Callable[[int, int, str, Exception | None], None]


@dataclass
class BatchOptions:
    """
    Batch settings.

    concurrency: Maximum items in flight (<= 0 means the default of 5)
    on_progress: Called once per finished item with (current, total, item, error)
    cancel_event: When set, no further items are dispatched; in-flight items
        stop only if their processor watches the same event
    """
    concurrency: int = DEFAULT_CONCURRENCY
    on_progress: ProgressCallback | None = None
    cancel_event: threading.Event | None = None


def process_batch(
    items: list[str],
    processor: Callable[[str], object],
    options: BatchOptions | None = None,
) -> BatchResult:
    """
    Apply processor to every item, at most `concurrency` at a time.

    Args:
        items: Inputs (paths, file names). Order is dispatch order only;
            completion order is not deterministic.
        processor: Called with one item; raising marks the item failed
        options: Concurrency, progress callback, cancellation

    Returns:
        BatchResult. Without cancellation every item is in exactly one of
        succeeded or failed. Items never dispatched are in neither.
    """
    result = BatchResult(total=len(items))
    if not items:
        return result

    options = options or BatchOptions()
    concurrency = options.concurrency if options.concurrency > 0 else DEFAULT_CONCURRENCY
    cancel_event = options.cancel_event

    lock = threading.Lock()
    slots = threading.Semaphore(concurrency)
    processed = 0

    def run(item: str) -> None:
        nonlocal processed
        try:
            error: Exception | None = None
            try:
                processor(item)
            except Exception as e:
                error = e
                logger.debug(f"Batch item {item!r} failed: {e}")

            with lock:
                if error is None:
                    result.succeeded.append(item)
                else:
                    result.failed[item] = error
                processed += 1
                if options.on_progress is not None:
                    options.on_progress(processed, result.total, item, error)
        finally:
            slots.release()

    with ThreadPoolExecutor(max_workers=min(concurrency, len(items))) as pool:
        for item in items:
            slots.acquire()
            if cancel_event is not None and cancel_event.is_set():
                slots.release()
                logger.info(f"Batch cancelled before dispatching {item!r}")
                break
            pool.submit(run, item)

    return result
