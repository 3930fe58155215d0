"""
Operation status lookup by name.
"""

from adapters.gemini import GeminiClient
from models import OperationStatus
from validation import parse_operation_type


def do_get_operation(client: GeminiClient, name: str, operation_type: str | None = None) -> OperationStatus:
    """
    Fetch a long-running operation's status.

    operation_type is "import", "upload" or empty to try both.
    """
    return client.get_operation(name, parse_operation_type(operation_type))
