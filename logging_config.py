"""
Logging configuration for file-search.

Simple setup that adapters and tools can import.
Extractors should NOT log (they're pure functions).

Everything goes to stderr: stdout belongs to command output and, under
`file-search mcp`, to the MCP stdio transport.
"""

import logging
import sys

# Create logger for the package
logger = logging.getLogger("file_search")


def configure_logging(level: str = "INFO") -> None:
    """
    Configure logging for file-search.

    Args:
        level: Log level (DEBUG, INFO, WARNING, ERROR)
    """
    logger.setLevel(getattr(logging, level.upper()))

    # Only add handler if not already configured
    if not logger.handlers:
        handler = logging.StreamHandler(sys.stderr)
        handler.setLevel(logging.DEBUG)

        formatter = logging.Formatter(
            "%(asctime)s [%(levelname)s] %(name)s: %(message)s",
            datefmt="%H:%M:%S",
        )
        handler.setFormatter(formatter)
        logger.addHandler(handler)


# NOTE: Call configure_logging() explicitly in cli.py or server.py.
# We don't auto-configure to avoid side effects on import.


def log_api_call(service: str, method: str, **params: object) -> None:
    """Log an API call with key parameters."""
    param_str = ", ".join(f"{k}={v!r}" for k, v in params.items() if v is not None)
    logger.debug(f"API: {service}.{method}({param_str})")


def log_api_result(service: str, method: str, result_count: int | None = None) -> None:
    """Log API result summary."""
    if result_count is not None:
        logger.debug(f"API: {service}.{method} returned {result_count} results")
    else:
        logger.debug(f"API: {service}.{method} completed")


def log_poll(operation: str, elapsed: float, done: bool) -> None:
    """Log one poll of a long-running operation."""
    state = "done" if done else "pending"
    logger.debug(f"Poll {operation}: {state} after {elapsed:.0f}s")
