"""
Name resolution — friendly display names to canonical resource names.

A reference already in canonical shape is returned unchanged without any
API call. Anything else is looked up by exact display-name match over the
complete listing; the first match in listing order wins, since display
names are not unique.
"""

from adapters.gemini import GeminiClient
from models import ErrorKind, FileSearchError, ResourceKind
from validation import is_document_name, is_file_name, is_store_name


class NameResolver:
    """Resolves store, file and document references against one client."""

    def __init__(self, client: GeminiClient):
        self.client = client

    def resolve(self, kind: ResourceKind, reference: str, scope: str | None = None) -> str:
        """
        Resolve a reference of the given kind.

        Args:
            kind: Resource kind
            reference: Display name or canonical name
            scope: Store reference (display name or ID); required for
                documents given by display name

        Raises:
            FileSearchError(NOT_FOUND): No display name matched
            FileSearchError(AMBIGUOUS_INPUT): Document name without a store
        """
        if kind is ResourceKind.STORE:
            return self.resolve_store(reference)
        if kind is ResourceKind.FILE:
            return self.resolve_file(reference)
        return self.resolve_document(reference, scope)

    def resolve_store(self, reference: str) -> str:
        if is_store_name(reference):
            return reference
        for store in self.client.list_stores():
            if store.display_name == reference:
                return store.name
        raise FileSearchError(ErrorKind.NOT_FOUND, f"store not found: {reference}")

    def resolve_file(self, reference: str) -> str:
        if is_file_name(reference):
            return reference
        for file in self.client.list_files():
            if file.display_name == reference:
                return file.name
        raise FileSearchError(ErrorKind.NOT_FOUND, f"file not found: {reference}")

    def resolve_document(self, reference: str, scope: str | None) -> str:
        if is_document_name(reference):
            return reference
        if not scope:
            raise FileSearchError(
                ErrorKind.AMBIGUOUS_INPUT,
                f"document {reference!r} is not a resource name; a store is required to resolve it",
            )
        store_name = self.resolve_store(scope)
        for document in self.client.list_documents(store_name):
            if document.display_name == reference:
                return document.name
        raise FileSearchError(
            ErrorKind.NOT_FOUND, f"document not found in store {store_name}: {reference}"
        )
