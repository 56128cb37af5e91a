"""
Runtime settings for fetch sessions and the command line tool.

Settings are read from a TOML file. The lookup order is:

1. Explicit ``CODABLE_FETCH_CONFIG`` environment variable.
2. ``.codable_fetch/config.toml`` relative to the current working directory.
3. ``.codable_fetch/config.toml`` relative to the project root.
4. Built-in defaults.

Example::

    [http]
    timeout = 10.0
    max_attempts = 2
    user_agent = "codable-fetch"
    success_status = [200, 299]

    [jsonplaceholder]
    base_url = "https://jsonplaceholder.typicode.com"
"""

from __future__ import annotations

import os
import tomllib
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, Iterable, Mapping, Optional

DEFAULT_TIMEOUT = 15.0
DEFAULT_USER_AGENT = "codable-fetch"
DEFAULT_BASE_URL = "https://jsonplaceholder.typicode.com"
DEFAULT_MAX_WORKERS = 4
ENV_CONFIG_PATH = "CODABLE_FETCH_CONFIG"


@dataclass(slots=True)
class FetchSettings:
    """Transport and session options."""

    timeout: float = DEFAULT_TIMEOUT
    max_attempts: int = 1
    user_agent: str = DEFAULT_USER_AGENT
    success_status: range = range(200, 300)
    max_workers: int = DEFAULT_MAX_WORKERS
    base_url: str = DEFAULT_BASE_URL
    default_headers: Dict[str, str] = field(default_factory=dict)

    def headers(self) -> Dict[str, str]:
        merged = {"User-Agent": self.user_agent, "Accept": "application/json"}
        merged.update(self.default_headers)
        return merged


@dataclass(slots=True)
class SettingsBundle:
    """Parsed settings along with the file they came from."""

    source_path: Optional[Path]
    data: Dict[str, Any]
    fetch: FetchSettings


def _discover_project_root() -> Optional[Path]:
    current = Path(__file__).resolve()
    for parent in current.parents:
        if (parent / "pyproject.toml").is_file():
            return parent
    return None


def _candidate_paths() -> Iterable[Path]:
    env_override = os.getenv(ENV_CONFIG_PATH)
    if env_override:
        yield Path(env_override).expanduser()

    search_roots = [Path.cwd()]
    project_root = _discover_project_root()
    if project_root and project_root not in search_roots:
        search_roots.append(project_root)
    for base in search_roots:
        yield base / ".codable_fetch" / "config.toml"


def _load_toml(path: Path) -> Dict[str, Any]:
    with path.open("rb") as handle:
        return tomllib.load(handle)


def _parse_status_range(value: Any) -> Optional[range]:
    if isinstance(value, (list, tuple)) and len(value) == 2 and all(isinstance(item, int) for item in value):
        low, high = value
        if low <= high:
            return range(low, high + 1)
    return None


def parse_fetch_settings(raw: Mapping[str, Any]) -> FetchSettings:
    """Build :class:`FetchSettings` from a parsed TOML document, ignoring malformed values."""

    http = raw.get("http", {})
    if not isinstance(http, Mapping):
        http = {}
    api = raw.get("jsonplaceholder", {})
    if not isinstance(api, Mapping):
        api = {}

    settings = FetchSettings()
    timeout = http.get("timeout")
    if isinstance(timeout, (int, float)) and timeout > 0:
        settings.timeout = float(timeout)
    attempts = http.get("max_attempts")
    if isinstance(attempts, int) and attempts >= 1:
        settings.max_attempts = attempts
    workers = http.get("max_workers")
    if isinstance(workers, int) and workers >= 1:
        settings.max_workers = workers
    user_agent = http.get("user_agent")
    if isinstance(user_agent, str) and user_agent:
        settings.user_agent = user_agent
    status_range = _parse_status_range(http.get("success_status"))
    if status_range is not None:
        settings.success_status = status_range
    headers = http.get("headers")
    if isinstance(headers, Mapping):
        settings.default_headers = {str(key): str(value) for key, value in headers.items()}
    base_url = api.get("base_url")
    if isinstance(base_url, str) and base_url:
        settings.base_url = base_url.rstrip("/")
    return settings


def load_settings(strict: bool = False, *, path: Optional[Path] = None) -> SettingsBundle:
    """
    Load settings from the first configuration file found.

    Parameters
    ----------
    strict:
        When ``True`` raise ``FileNotFoundError`` if no configuration file exists.
    path:
        Explicit configuration file, bypassing discovery.
    """

    if path is not None:
        data = _load_toml(path)
        return SettingsBundle(source_path=path, data=data, fetch=parse_fetch_settings(data))

    for path in _candidate_paths():
        if path.is_file():
            data = _load_toml(path)
            return SettingsBundle(source_path=path, data=data, fetch=parse_fetch_settings(data))

    if strict:
        raise FileNotFoundError(f"No configuration file found. Set {ENV_CONFIG_PATH} or create .codable_fetch/config.toml.")

    return SettingsBundle(source_path=None, data={}, fetch=FetchSettings())
