#!/usr/bin/env python3
"""
CLI interface for file-search.

Usage:
    file-search store create "Research Papers"
    file-search file upload paper1.pdf paper2.pdf --store "Research Papers"
    file-search query "What do the papers conclude?" --store "Research Papers"
    file-search mcp --mcp-tools query,upload

Names accept either display names or resource names
(fileSearchStores/..., files/..., .../documents/...).

The same operations are available to agents as MCP tools via `file-search mcp`.
"""

import argparse
import json
import signal
import sys
import threading
from contextlib import contextmanager
from importlib.metadata import PackageNotFoundError, version
from typing import Any, Callable, Iterator

from adapters.gemini import GeminiClient
from completion import Completer
from config import DEFAULT_CONCURRENCY, Settings, load_settings
from extractors.formatting import (
    format_batch_failures,
    format_batch_summary,
    format_document,
    format_document_list,
    format_file,
    format_file_list,
    format_operation_status,
    format_progress,
    format_query_result,
    format_store,
    format_store_list,
    record_to_dict,
)
from logging_config import configure_logging
from models import BatchResult, ErrorKind, FileSearchError, UploadOptions
from tools import (
    NameResolver,
    do_create_store,
    do_delete_document,
    do_delete_file,
    do_delete_store,
    do_get_document,
    do_get_file,
    do_get_operation,
    do_get_store,
    do_import_files,
    do_list_documents,
    do_list_files,
    do_list_stores,
    do_query,
    do_upload_files,
)
from validation import parse_metadata_pairs

PROG = "file-search"
COMPLETE_COMMAND = "__complete"

ClientFactory = Callable[[str], GeminiClient]


def _default_client_factory(api_key: str) -> GeminiClient:
    return GeminiClient.from_api_key(api_key)


class CommandContext:
    """Per-invocation state handed to every command: parsed args, settings, lazy client."""

    def __init__(self, args: argparse.Namespace, settings: Settings,
                 client_factory: ClientFactory = _default_client_factory):
        self.args = args
        self.settings = settings
        self._client_factory = client_factory
        self._client: GeminiClient | None = None

    @property
    def client(self) -> GeminiClient:
        if self._client is None:
            self._client = self._client_factory(self.settings.require_api_key())
        return self._client

    @property
    def resolver(self) -> NameResolver:
        return NameResolver(self.client)

    @property
    def json_output(self) -> bool:
        return self.args.format == "json"

    @property
    def quiet(self) -> bool:
        return self.args.quiet

    def emit(self, data: Any, text: str | None) -> None:
        """Print data as JSON or the text rendering, per --format."""
        if self.json_output:
            print(json.dumps(data, indent=2, ensure_ascii=False, default=str))
        elif text:
            print(text)

    def say(self, text: str) -> None:
        """Print a confirmation line in text mode unless --quiet."""
        if not self.json_output and not self.quiet:
            print(text)

    def store_from_args(self, required: bool = False) -> str | None:
        """Resolve --store (display name) or take --store-id as given; --store wins."""
        if self.args.store:
            return self.resolver.resolve_store(self.args.store)
        if self.args.store_id:
            return self.args.store_id
        if required:
            raise FileSearchError(ErrorKind.AMBIGUOUS_INPUT, "either --store or --store-id is required")
        return None


# ============================================================================
# STORE
# ============================================================================

def cmd_store_list(ctx: CommandContext) -> None:
    """List File Search stores."""
    stores = do_list_stores(ctx.client)
    ctx.emit(record_to_dict(stores), format_store_list(stores))


def cmd_store_get(ctx: CommandContext) -> None:
    store = do_get_store(ctx.resolver, ctx.args.name)
    ctx.emit(record_to_dict(store), format_store(store))


def cmd_store_create(ctx: CommandContext) -> None:
    store = do_create_store(ctx.client, ctx.args.display_name)
    ctx.emit(record_to_dict(store), None)
    ctx.say(f"Created store: {store.display_name} ({store.name})")


def cmd_store_delete(ctx: CommandContext) -> None:
    name = do_delete_store(ctx.resolver, ctx.args.name, force=ctx.args.force)
    ctx.emit({"deleted": name}, None)
    ctx.say(f"Deleted store: {name}")


def cmd_store_import_file(ctx: CommandContext) -> int:
    """Import Files API files into a store, several at a time."""
    store_name = ctx.store_from_args(required=True)
    assert store_name is not None
    with _cancel_on_interrupt() as cancel_event:
        result = do_import_files(
            ctx.resolver, ctx.args.files, store_name,
            concurrency=ctx.args.concurrency,
            on_progress=_progress_printer(ctx),
            cancel_event=cancel_event,
            quiet=ctx.quiet,
        )
    return _report_batch(ctx, result, "import", store_name,
                         success=f"Imported file: {{item}} to store: {store_name}")


# ============================================================================
# FILE
# ============================================================================

def cmd_file_list(ctx: CommandContext) -> None:
    files = do_list_files(ctx.client)
    ctx.emit(record_to_dict(files), format_file_list(files))


def cmd_file_get(ctx: CommandContext) -> None:
    file = do_get_file(ctx.resolver, ctx.args.name)
    ctx.emit(record_to_dict(file), format_file(file))


def cmd_file_delete(ctx: CommandContext) -> None:
    name = do_delete_file(ctx.resolver, ctx.args.name)
    ctx.emit({"deleted": name}, None)
    ctx.say(f"Deleted file: {name}")


def cmd_file_upload(ctx: CommandContext) -> int:
    """Upload local files, into a store when --store/--store-id is given."""
    args = ctx.args
    if len(args.paths) > 1 and args.name:
        raise FileSearchError(ErrorKind.INVALID_INPUT, "cannot use --name with multiple files")
    store_name = ctx.store_from_args()
    options = UploadOptions(
        display_name=args.name,
        mime_type=args.mime_type,
        max_chunk_tokens=args.chunk_size,
        chunk_overlap_tokens=args.chunk_overlap,
        metadata=parse_metadata_pairs(args.metadata),
    )
    client = ctx.client
    with _cancel_on_interrupt() as cancel_event:
        result = do_upload_files(
            client, args.paths, store_name, options,
            concurrency=args.concurrency,
            on_progress=_progress_printer(ctx),
            cancel_event=cancel_event,
            quiet=ctx.quiet,
        )
    return _report_batch(ctx, result, "upload", store_name, success="Uploaded file: {item}")


# ============================================================================
# DOCUMENT
# ============================================================================

def cmd_document_list(ctx: CommandContext) -> None:
    store_name = ctx.store_from_args(required=True)
    assert store_name is not None
    documents = do_list_documents(ctx.resolver, store_name)
    ctx.emit(record_to_dict(documents), format_document_list(documents))


def cmd_document_get(ctx: CommandContext) -> None:
    document = do_get_document(ctx.resolver, ctx.args.name, ctx.store_from_args())
    ctx.emit(record_to_dict(document), format_document(document))


def cmd_document_delete(ctx: CommandContext) -> None:
    name = do_delete_document(ctx.resolver, ctx.args.name, ctx.store_from_args(),
                              force=ctx.args.force)
    ctx.emit({"deleted": name}, None)
    ctx.say(f"Deleted document: {name}")


# ============================================================================
# QUERY / OPERATION
# ============================================================================

def cmd_query(ctx: CommandContext) -> None:
    """Ask a question, grounded on a store when one is given."""
    args = ctx.args
    result = do_query(ctx.resolver, args.text, store_ref=ctx.store_from_args(),
                      model=args.model, metadata_filter=args.metadata_filter)
    data = result.to_dict()
    if args.debug and result.grounding_metadata is not None:
        data["grounding_metadata"] = result.grounding_metadata
    ctx.emit(data, format_query_result(result, verbose=args.verbose, debug=args.debug))


def cmd_operation_get(ctx: CommandContext) -> None:
    status = do_get_operation(ctx.client, ctx.args.name, ctx.args.type)
    ctx.emit(status.to_dict(), format_operation_status(status))


# ============================================================================
# MCP / VERSION / COMPLETION
# ============================================================================

def cmd_mcp(ctx: CommandContext) -> None:
    """Serve the MCP tools over stdio. Starts even without an API key."""
    from server import run_server

    run_server(ctx.settings)


def package_version() -> str:
    try:
        return version(PROG)
    except PackageNotFoundError:
        return "dev"


def cmd_version(ctx: CommandContext) -> None:
    ctx.emit({"version": package_version()}, f"{PROG} {package_version()}")


BASH_COMPLETION_SCRIPT = f"""\
# bash completion for {PROG}
# Load with: source <({PROG} completion bash)
_file_search_complete() {{
    local IFS=$'\\n'
    COMPREPLY=( $({PROG} {COMPLETE_COMMAND} "${{COMP_WORDS[@]:1:COMP_CWORD}}" 2>/dev/null) )
}}
complete -o default -F _file_search_complete {PROG}
"""


def cmd_completion(ctx: CommandContext) -> None:
    print(BASH_COMPLETION_SCRIPT, end="")


COMMAND_TREE: dict[str, list[str]] = {
    "store": ["list", "get", "create", "delete", "import-file"],
    "file": ["list", "get", "delete", "upload"],
    "document": ["list", "get", "delete"],
    "query": [],
    "operation": ["get"],
    "mcp": [],
    "version": [],
    "completion": ["bash"],
}


# Options whose next word is a value, not a command or positional argument
VALUE_OPTIONS = frozenset({
    "--config", "--api-key", "--api-key-env", "--format", "--store", "--store-id",
    "--model", "--type", "--name", "--mime-type", "--chunk-size", "--chunk-overlap",
    "--metadata", "--metadata-filter", "--concurrency", "--mcp-tools",
})


def _positional_words(words: list[str]) -> list[str]:
    """Already-typed words that are neither options nor option values."""
    positional = []
    skip_next = False
    for word in words:
        if skip_next:
            skip_next = False
        elif word.startswith("-"):
            skip_next = word in VALUE_OPTIONS
        else:
            positional.append(word)
    return positional


def _option_value(words: list[str], option: str) -> str | None:
    """Last value given for an option among already-typed words."""
    value = None
    for index, word in enumerate(words[:-1]):
        if word == option and index + 1 < len(words) - 1:
            value = words[index + 1]
        elif word.startswith(option + "="):
            value = word.split("=", 1)[1]
    return value


def complete_words(words: list[str], completer: Completer) -> list[str]:
    """
    Suggestions for the last (partial) word of a command line.

    Args:
        words: Words after the program name; the last is the word being completed
        completer: Name source (cached, failure-tolerant)
    """
    if not words:
        words = [""]
    current = words[-1]
    previous = words[-2] if len(words) >= 2 else None
    positional = _positional_words(words[:-1])

    candidates: list[str] = []
    if previous == "--store":
        candidates = completer.store_names()
    elif previous == "--model":
        candidates = completer.model_names()
    elif previous in ("--format",):
        candidates = ["text", "json"]
    elif previous == "--type":
        candidates = ["import", "upload"]
    elif previous in VALUE_OPTIONS:
        candidates = []
    elif not positional:
        candidates = list(COMMAND_TREE)
    elif len(positional) == 1:
        candidates = COMMAND_TREE.get(positional[0], [])
    else:
        command = tuple(positional[:2])
        if command in (("store", "get"), ("store", "delete")):
            candidates = completer.store_names()
        elif command in (("store", "import-file"), ("file", "get"), ("file", "delete")):
            candidates = completer.file_names()
        elif command in (("document", "get"), ("document", "delete")):
            store_ref = _option_value(words, "--store") or _option_value(words, "--store-id")
            candidates = completer.document_names(store_ref) if store_ref else []

    return [c for c in candidates if c.startswith(current)]


def run_complete(words: list[str]) -> int:
    """Hidden completion entry point: print one suggestion per line."""
    try:
        settings = load_settings()
    except FileSearchError:
        return 0
    completer = Completer(settings.api_key, settings.completion_enabled,
                          settings.completion_cache_ttl)
    for suggestion in complete_words(words, completer):
        print(suggestion)
    return 0


# ============================================================================
# BATCH HELPERS
# ============================================================================

def _progress_printer(ctx: CommandContext) -> Callable[[int, int, str, Exception | None], None] | None:
    if ctx.quiet:
        return None

    def on_progress(current: int, total: int, item: str, error: Exception | None) -> None:
        print(format_progress(current, total, item, error), file=sys.stderr, flush=True)

    return on_progress


@contextmanager
def _cancel_on_interrupt() -> Iterator[threading.Event]:
    """
    Turn Ctrl-C into cooperative batch cancellation.

    The first interrupt stops dispatching new items and abandons the
    indexing waits of in-flight ones. A second interrupt restores the
    previous handler and raises KeyboardInterrupt.
    """
    event = threading.Event()
    installed = False
    previous: Any = None

    def handler(signum: int, frame: object) -> None:
        if event.is_set():
            signal.signal(signal.SIGINT, previous)
            raise KeyboardInterrupt
        print("\nCancelling: waiting for in-flight items...", file=sys.stderr, flush=True)
        event.set()

    try:
        previous = signal.signal(signal.SIGINT, handler)
        if previous is None:
            previous = signal.default_int_handler
        installed = True
    except ValueError:
        # Not on the main thread; Ctrl-C keeps its default behaviour
        pass
    try:
        yield event
    finally:
        if installed:
            signal.signal(signal.SIGINT, previous)


def _report_batch(ctx: CommandContext, result: BatchResult, verb: str,
                  store_name: str | None, success: str) -> int:
    """Print batch results; non-zero when any item failed or was never run."""
    if ctx.json_output:
        ctx.emit(result.to_dict(store=store_name), None)
    elif not ctx.quiet:
        if result.total > 1:
            print()
            print(format_batch_summary(result))
        if result.failed:
            print()
            print(format_batch_failures(result))
        elif result.total == 1 and len(result.succeeded) == 1:
            print(success.format(item=result.succeeded[0]))

    if result.failed:
        print(f"Error: some files failed to {verb}", file=sys.stderr)
        return 1
    if result.cancelled:
        print(f"Error: {verb} cancelled", file=sys.stderr)
        return 1
    return 0


# ============================================================================
# PARSER
# ============================================================================

def _common_options() -> argparse.ArgumentParser:
    """
    Global flags, also accepted after the subcommand.

    Defaults are suppressed here so that a flag given before the subcommand
    is not reset by the subcommand's parser.
    """
    common = argparse.ArgumentParser(add_help=False)
    common.add_argument("--config", default=argparse.SUPPRESS,
                        help="Config file (default: ~/.file-search.yaml or ./.file-search.yaml)")
    common.add_argument("--api-key", default=argparse.SUPPRESS, help="Gemini API key")
    common.add_argument("--api-key-env", default=argparse.SUPPRESS,
                        help="Environment variable holding the API key")
    common.add_argument("--format", choices=["text", "json"], default=argparse.SUPPRESS,
                        help="Output format (default: text)")
    common.add_argument("-q", "--quiet", action="store_true", default=argparse.SUPPRESS,
                        help="Suppress progress and confirmation output")
    common.add_argument("-v", "--verbose", action="store_true", default=argparse.SUPPRESS,
                        help="Show full source text for query results")
    common.add_argument("--debug", action="store_true", default=argparse.SUPPRESS,
                        help="Debug logging; dump grounding metadata for queries")
    return common


def _add_store_options(parser: argparse.ArgumentParser, required_hint: bool = False) -> None:
    suffix = " (one of --store/--store-id is required)" if required_hint else ""
    parser.add_argument("--store", help=f"Store display name or resource name{suffix}")
    parser.add_argument("--store-id", help="Store resource name (fileSearchStores/...), used as-is")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog=PROG,
        description="Manage Gemini File Search stores and query them",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
    file-search store create "Research Papers"
    file-search file upload *.pdf --store "Research Papers" --metadata author=Smith
    file-search store import-file report.pdf --store "Research Papers"
    file-search document list --store "Research Papers"
    file-search query "Summarize the findings" --store "Research Papers" -v
    file-search operation get fileSearchStores/abc/operations/xyz
    source <(file-search completion bash)
""",
    )
    parser.add_argument("--config", help="Config file (default: ~/.file-search.yaml or ./.file-search.yaml)")
    parser.add_argument("--api-key", help="Gemini API key")
    parser.add_argument("--api-key-env", help="Environment variable holding the API key")
    parser.add_argument("--format", choices=["text", "json"], default="text",
                        help="Output format (default: text)")
    parser.add_argument("-q", "--quiet", action="store_true",
                        help="Suppress progress and confirmation output")
    parser.add_argument("-v", "--verbose", action="store_true",
                        help="Show full source text for query results")
    parser.add_argument("--debug", action="store_true",
                        help="Debug logging; dump grounding metadata for queries")

    common = _common_options()
    subparsers = parser.add_subparsers(dest="command", metavar="COMMAND", required=True)

    # store
    store_p = subparsers.add_parser("store", help="Manage File Search stores")
    store_sub = store_p.add_subparsers(dest="subcommand", required=True)

    p = store_sub.add_parser("list", parents=[common], help="List stores")
    p.set_defaults(func=cmd_store_list)

    p = store_sub.add_parser("get", parents=[common], help="Show store details")
    p.add_argument("name", help="Store display name or resource name")
    p.set_defaults(func=cmd_store_get)

    p = store_sub.add_parser("create", parents=[common], help="Create a store")
    p.add_argument("display_name", help="Display name for the new store")
    p.set_defaults(func=cmd_store_create)

    p = store_sub.add_parser("delete", parents=[common], help="Delete a store")
    p.add_argument("name", help="Store display name or resource name")
    p.add_argument("--force", action="store_true", help="Also delete the store's documents")
    p.set_defaults(func=cmd_store_delete)

    p = store_sub.add_parser("import-file", parents=[common],
                             help="Import Files API files into a store")
    p.add_argument("files", nargs="+", help="File display names or resource names (files/...)")
    _add_store_options(p, required_hint=True)
    p.add_argument("--concurrency", type=int, default=DEFAULT_CONCURRENCY,
                   help=f"Parallel imports (default: {DEFAULT_CONCURRENCY})")
    p.set_defaults(func=cmd_store_import_file)

    # file
    file_p = subparsers.add_parser("file", help="Manage files")
    file_sub = file_p.add_subparsers(dest="subcommand", required=True)

    p = file_sub.add_parser("list", parents=[common], help="List Files API files")
    p.set_defaults(func=cmd_file_list)

    p = file_sub.add_parser("get", parents=[common], help="Show file details")
    p.add_argument("name", help="File display name or resource name")
    p.set_defaults(func=cmd_file_get)

    p = file_sub.add_parser("delete", parents=[common], help="Delete a Files API file")
    p.add_argument("name", help="File display name or resource name")
    p.set_defaults(func=cmd_file_delete)

    p = file_sub.add_parser("upload", parents=[common],
                            help="Upload files, optionally indexing them into a store")
    p.add_argument("paths", nargs="+", help="Local file paths")
    _add_store_options(p)
    p.add_argument("--name", help="Display name (single file only; default: file name)")
    p.add_argument("--mime-type", help="MIME type, e.g. text/plain, application/pdf")
    p.add_argument("--chunk-size", type=int, help="Max tokens per chunk (store uploads)")
    p.add_argument("--chunk-overlap", type=int, help="Overlap tokens between chunks (store uploads)")
    p.add_argument("--metadata", action="append", metavar="KEY=VALUE",
                   help="Custom metadata, repeatable (store uploads)")
    p.add_argument("--concurrency", type=int, default=DEFAULT_CONCURRENCY,
                   help=f"Parallel uploads (default: {DEFAULT_CONCURRENCY})")
    p.set_defaults(func=cmd_file_upload)

    # document
    doc_p = subparsers.add_parser("document", help="Manage documents inside a store")
    doc_sub = doc_p.add_subparsers(dest="subcommand", required=True)

    p = doc_sub.add_parser("list", parents=[common], help="List a store's documents")
    _add_store_options(p, required_hint=True)
    p.set_defaults(func=cmd_document_list)

    p = doc_sub.add_parser("get", parents=[common], help="Show document details")
    p.add_argument("name", help="Document display name (needs --store) or resource name")
    _add_store_options(p)
    p.set_defaults(func=cmd_document_get)

    p = doc_sub.add_parser("delete", parents=[common], help="Delete a document")
    p.add_argument("name", help="Document display name (needs --store) or resource name")
    _add_store_options(p)
    p.add_argument("--force", action="store_true", help="Also delete the document's chunks")
    p.set_defaults(func=cmd_document_delete)

    # query
    p = subparsers.add_parser("query", parents=[common], help="Ask a question")
    p.add_argument("text", help="The question")
    _add_store_options(p)
    p.add_argument("--model", help="Model name (default: gemini-2.5-flash)")
    p.add_argument("--metadata-filter", help='Metadata filter, e.g. \'author = "Smith"\'')
    p.set_defaults(func=cmd_query)

    # operation
    op_p = subparsers.add_parser("operation", help="Inspect long-running operations")
    op_sub = op_p.add_subparsers(dest="subcommand", required=True)
    p = op_sub.add_parser("get", parents=[common], help="Show operation status")
    p.add_argument("name", help="Operation name (fileSearchStores/.../operations/...)")
    p.add_argument("--type", help="Operation type: import or upload (default: try both)")
    p.set_defaults(func=cmd_operation_get)

    # mcp
    p = subparsers.add_parser("mcp", parents=[common], help="Run the MCP server on stdio")
    p.add_argument("--mcp-tools",
                   help="Comma-separated tools or aliases (all, query, upload, delete)")
    p.set_defaults(func=cmd_mcp)

    # version
    p = subparsers.add_parser("version", parents=[common], help="Print version")
    p.set_defaults(func=cmd_version)

    # completion
    comp_p = subparsers.add_parser("completion", help="Shell completion scripts")
    comp_sub = comp_p.add_subparsers(dest="subcommand", required=True)
    p = comp_sub.add_parser("bash", help="Print the bash completion script")
    p.set_defaults(func=cmd_completion)

    return parser


def main(argv: list[str] | None = None,
         client_factory: ClientFactory = _default_client_factory) -> int:
    argv = list(sys.argv[1:] if argv is None else argv)
    if argv and argv[0] == COMPLETE_COMMAND:
        return run_complete(argv[1:])

    args = build_parser().parse_args(argv)
    configure_logging("DEBUG" if args.debug else "WARNING")

    try:
        settings = load_settings(
            config_file=args.config,
            api_key=args.api_key,
            api_key_env=args.api_key_env,
            mcp_tools=getattr(args, "mcp_tools", None),
        )
        ctx = CommandContext(args, settings, client_factory)
        return args.func(ctx) or 0
    except FileSearchError as e:
        print(f"Error: {e.message}", file=sys.stderr)
        return 1
    except KeyboardInterrupt:
        print("Interrupted", file=sys.stderr)
        return 130


if __name__ == "__main__":
    sys.exit(main())
