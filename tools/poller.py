"""
Long-running operation poller.

Re-fetches an operation every POLL_INTERVAL_SECONDS until it reports done.
Unless quiet, a single self-overwriting "<label>... (Ns elapsed)" line is
written to stderr so stdout stays clean for results.

A failed poll aborts the wait at once; the error propagates to the caller.
Setting the optional cancel event abandons the wait with CANCELLED.
"""

import sys
import threading
import time
from typing import Any, Callable, TextIO

from adapters.gemini import GeminiClient
from config import POLL_INTERVAL_SECONDS
from extractors.operations import operation_to_status
from logging_config import log_poll
from models import ErrorKind, FileSearchError, OperationStatus, OperationType


def wait_for_operation(
    client: GeminiClient,
    operation: Any,
    kind: OperationType,
    label: str = "Indexing",
    quiet: bool = False,
    interval: float = POLL_INTERVAL_SECONDS,
    sleep: Callable[[float], object] | None = None,
    clock: Callable[[], float] = time.monotonic,
    stream: TextIO | None = None,
    cancel_event: threading.Event | None = None,
) -> OperationStatus:
    """
    Block until the operation is done.

    Args:
        client: Gateway used for re-fetching
        operation: Live SDK operation returned by upload_to_store/import_file
        kind: Operation type, recorded on the returned status
        label: Progress line prefix ("Indexing", "Importing")
        quiet: Suppress the progress line
        interval: Seconds between polls
        sleep, clock, stream: Injectable for tests
        cancel_event: When set, the wait is abandoned before the next poll

    Returns:
        Terminal OperationStatus (check .failed)

    Raises:
        FileSearchError: A poll failed (the wait is abandoned)
        FileSearchError(CANCELLED): cancel_event was set while waiting
    """
    out = stream if stream is not None else sys.stderr
    name = getattr(operation, "name", None) or ""
    start = clock()
    if sleep is None:
        # Event.wait wakes as soon as cancellation is requested
        sleep = cancel_event.wait if cancel_event is not None else time.sleep

    if not quiet:
        out.write(f"{label}...")
        out.flush()

    while not getattr(operation, "done", False):
        elapsed = clock() - start
        if not quiet:
            out.write(f"\r{label}... ({round(elapsed)}s elapsed)")
            out.flush()
        log_poll(name, elapsed, done=False)

        sleep(interval)
        if cancel_event is not None and cancel_event.is_set():
            if not quiet:
                out.write("\n")
                out.flush()
            raise FileSearchError(
                ErrorKind.CANCELLED,
                f"cancelled while waiting for operation {name or '(unnamed)'}",
                details={"operation": name},
            )
        try:
            operation = client.refresh_operation(operation)
        except FileSearchError:
            if not quiet:
                out.write("\n")
                out.flush()
            raise

    log_poll(name, clock() - start, done=True)
    if not quiet:
        out.write("\n")
        out.flush()
    return operation_to_status(operation, kind)


def raise_if_failed(status: OperationStatus, action: str) -> OperationStatus:
    """Raise OPERATION_FAILED for a terminal status carrying an error."""
    if status.failed:
        raise FileSearchError(
            ErrorKind.OPERATION_FAILED,
            f"{action} failed: {status.error_message or 'unknown error'}",
            details={"operation": status.name},
        )
    return status
