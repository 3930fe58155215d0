"""
Configuration - Single Source of Truth

Constants shared by the CLI, the MCP server and the completion layer live
here. Do not duplicate elsewhere.

Runtime settings are layered: config file < environment < command-line flags.
"""

import os
import re
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Mapping

import yaml

from logging_config import logger
from models import ErrorKind, FileSearchError

# Identifier shapes. The shape of a name encodes its resource kind.
STORE_PREFIX = "fileSearchStores/"
FILE_PREFIX = "files/"
DOCUMENT_INFIX = "/documents/"
OPERATION_INFIX = "/operations/"

DEFAULT_MODEL = "gemini-2.5-flash"

# Offered by completion when the models listing is unavailable
MODEL_LIST = [
    "gemini-2.5-flash",
    "gemini-2.5-flash-lite",
    "gemini-2.5-pro",
    "gemini-2.0-flash",
    "gemini-2.0-flash-lite",
]

# Long-running operations are re-fetched at this interval
POLL_INTERVAL_SECONDS = 2.0

# Completion lookups must never hang the shell
COMPLETION_TIMEOUT_SECONDS = 2.0
DEFAULT_CACHE_TTL_SECONDS = 300.0

DEFAULT_CONCURRENCY = 5

# MCP tool allow-list
TOOL_NAMES = (
    "list_stores",
    "list_files",
    "list_documents",
    "create_store",
    "delete_store",
    "import_file_to_store",
    "query_knowledge_base",
    "upload_file",
    "delete_file",
    "delete_document",
)
TOOL_ALIASES: dict[str, tuple[str, ...]] = {
    "all": TOOL_NAMES,
    "query": ("query_knowledge_base",),
    "upload": ("upload_file",),
    "delete": ("delete_file", "delete_document"),
}
DEFAULT_MCP_TOOLS = "all"
FALLBACK_MCP_TOOLS = ["query"]

CONFIG_FILENAME = ".file-search.yaml"
API_KEY_ENV_VARS = ("GOOGLE_API_KEY", "GEMINI_API_KEY")

API_KEY_MISSING_MESSAGE = (
    "API key not set. Use --api-key, --api-key-env, config file, "
    "or GOOGLE_API_KEY/GEMINI_API_KEY"
)


@dataclass
class Settings:
    """Resolved runtime settings."""
    api_key: str | None = None
    mcp_tools: list[str] = field(default_factory=lambda: [DEFAULT_MCP_TOOLS])
    completion_enabled: bool = True
    completion_cache_ttl: float = DEFAULT_CACHE_TTL_SECONDS
    config_file: Path | None = None

    def require_api_key(self) -> str:
        """Return the API key or raise AUTH_REQUIRED."""
        if not self.api_key:
            raise FileSearchError(ErrorKind.AUTH_REQUIRED, API_KEY_MISSING_MESSAGE)
        return self.api_key


_PLAIN_SECONDS_RE = re.compile(r"\d+(?:\.\d+)?")
_DURATION_PART_RE = re.compile(r"(\d+(?:\.\d+)?|\.\d+)(ns|us|µs|ms|s|m|h)")
_DURATION_UNITS = {
    "ns": 1e-9, "us": 1e-6, "µs": 1e-6, "ms": 0.001, "s": 1.0, "m": 60.0, "h": 3600.0,
}


def parse_duration(value: str | int | float) -> float:
    """
    Parse a duration into seconds.

    Accepts plain numbers (seconds) and unit strings such as "300s", "5m",
    "250ms" or compound forms like "1m30s" and "1h15m".
    """
    if isinstance(value, (int, float)) and not isinstance(value, bool):
        return float(value)
    text = str(value).strip()
    if _PLAIN_SECONDS_RE.fullmatch(text):
        return float(text)

    seconds = 0.0
    position = 0
    for match in _DURATION_PART_RE.finditer(text):
        if match.start() != position:
            break
        amount, unit = match.groups()
        seconds += float(amount) * _DURATION_UNITS[unit]
        position = match.end()
    if not text or position != len(text):
        raise FileSearchError(
            ErrorKind.INVALID_INPUT, f"invalid duration: {value!r}"
        )
    return seconds


def _completion_ttl(value: str | int | float) -> float:
    """Completion cache TTL; an unparseable value falls back to the default."""
    try:
        return parse_duration(value)
    except FileSearchError as e:
        logger.warning(f"{e.message}; using completion cache TTL of {DEFAULT_CACHE_TTL_SECONDS:g}s")
        return DEFAULT_CACHE_TTL_SECONDS


def parse_bool(value: str | bool) -> bool:
    if isinstance(value, bool):
        return value
    return str(value).strip().lower() in ("1", "true", "yes", "on")


def parse_mcp_tools(value: str | list[str] | None) -> list[str]:
    """
    Parse the MCP tool allow-list.

    Comma separated, whitespace trimmed, blank entries dropped.
    An empty result falls back to the query tool alone.
    """
    if value is None:
        value = DEFAULT_MCP_TOOLS
    if isinstance(value, str):
        value = value.split(",")
    tools = [item.strip() for item in value if item and item.strip()]
    return tools or list(FALLBACK_MCP_TOOLS)


def expand_tool_names(requested: list[str]) -> set[str]:
    """Expand aliases into concrete tool names. Unknown names are ignored."""
    enabled: set[str] = set()
    for name in requested:
        if name in TOOL_ALIASES:
            enabled.update(TOOL_ALIASES[name])
        elif name in TOOL_NAMES:
            enabled.add(name)
    return enabled


def find_config_file(explicit: str | Path | None = None) -> Path | None:
    """Locate the YAML config file: explicit path, then home, then cwd."""
    if explicit:
        return Path(explicit).expanduser()
    for candidate in (Path.home() / CONFIG_FILENAME, Path.cwd() / CONFIG_FILENAME):
        if candidate.is_file():
            return candidate
    return None


def read_config_file(path: Path | None) -> dict[str, Any]:
    if path is None:
        return {}
    try:
        with open(path) as f:
            data = yaml.safe_load(f)
    except FileNotFoundError as e:
        raise FileSearchError(
            ErrorKind.INVALID_INPUT, f"config file not found: {path}"
        ) from e
    except yaml.YAMLError as e:
        raise FileSearchError(
            ErrorKind.INVALID_INPUT, f"invalid config file {path}: {e}"
        ) from e
    if data is None:
        return {}
    if not isinstance(data, dict):
        raise FileSearchError(
            ErrorKind.INVALID_INPUT, f"invalid config file {path}: expected a mapping"
        )
    return data


def load_settings(
    config_file: str | Path | None = None,
    api_key: str | None = None,
    api_key_env: str | None = None,
    mcp_tools: str | None = None,
    environ: Mapping[str, str] | None = None,
) -> Settings:
    """
    Resolve settings from config file, environment and flags.

    API key precedence: the variable named by --api-key-env, then --api-key,
    then GOOGLE_API_KEY/GEMINI_API_KEY, then the config file's api_key.

    Args:
        config_file: Explicit config path (--config)
        api_key: --api-key flag value
        api_key_env: Name of an environment variable holding the key
        mcp_tools: --mcp-tools flag value
        environ: Environment mapping (defaults to os.environ)
    """
    env = os.environ if environ is None else environ
    path = find_config_file(config_file)
    file_values = read_config_file(path)

    key = None
    if api_key_env:
        key = env.get(api_key_env) or None
    if not key:
        key = api_key or None
    if not key:
        key = next((env[name] for name in API_KEY_ENV_VARS if env.get(name)), None)
    if not key:
        key = file_values.get("api_key") or None

    tools_value = mcp_tools or env.get("MCP_TOOLS") or file_values.get("mcp_tools")

    enabled_value = env.get("COMPLETION_ENABLED", file_values.get("completion_enabled", True))
    ttl_value = env.get(
        "COMPLETION_CACHE_TTL",
        file_values.get("completion_cache_ttl", DEFAULT_CACHE_TTL_SECONDS),
    )

    return Settings(
        api_key=key,
        mcp_tools=parse_mcp_tools(tools_value),
        completion_enabled=parse_bool(enabled_value),
        completion_cache_ttl=_completion_ttl(ttl_value),
        config_file=path,
    )
