"""Configuration management with XDG paths, atomic writes, and precedence resolution.

This module handles all persistent state of the quizsage CLI:

* **Directory layout** -- XDG Base Directory compliant on Linux/BSD,
  ``~/.quizsage/`` on macOS and Windows. See :func:`get_config_dir` and
  :func:`get_data_dir`.
* **Connection config** -- a single :class:`~quizsage.models.ConnectionConfig`
  JSON file. See :func:`load_config` and :func:`save_config`.
* **Precedence resolution** -- :func:`resolve_connection` merges CLI
  arguments, environment variables, and the config file.
* **Credential resolution** -- :func:`resolve_credential` reads the login
  password from an env var, a file, or an interactive prompt.
* **JSON export** -- :func:`save_json` backs the shell's ``save_json``.

All file writes use an atomic temp-file-then-rename strategy
(:func:`_atomic_write`).

The API client itself never touches the disk; the session token lives only
in memory.
"""

from __future__ import annotations

import getpass
import json
import os
import platform
import sys
import tempfile
from pathlib import Path
from typing import Any, Optional

from quizsage.exceptions import ConfigError
from quizsage.models import ConnectionConfig

_APP_NAME = "quizsage"
_CONFIG_FILENAME = "config.json"
_HISTORY_FILENAME = "repl_history"

_ENV_PREFIX = "QUIZSAGE_"
_ENV_FIELDS = (
    "address",
    "port",
    "protocol",
    "self_signed",
    "timeout",
    "email",
    "password_source",
)
_TRUE_VALUES = ("1", "true", "yes", "on")


# --- XDG path resolution ---


def _is_xdg_platform() -> bool:
    """Return True if the platform supports XDG Base Directory spec (Linux/FreeBSD)."""
    return platform.system() == "Linux" or platform.system().endswith("BSD")


def _fallback_base_dir() -> Path:
    return Path.home() / f".{_APP_NAME}"


def _xdg_base(env_var: str, default_segments: tuple[str, ...]) -> Path:
    """Resolve an XDG base directory from an env var with fallback segments under $HOME."""
    env_value = os.environ.get(env_var, "")
    if env_value:
        return Path(env_value)
    base = Path.home()
    for seg in default_segments:
        base = base / seg
    return base


def get_config_dir() -> Path:
    """Return the configuration directory, creating it if necessary.

    On Linux/BSD: ``$XDG_CONFIG_HOME/quizsage/`` (default ``~/.config/quizsage/``).
    On macOS/Windows: ``~/.quizsage/``.
    """
    if _is_xdg_platform():
        path = _xdg_base("XDG_CONFIG_HOME", (".config",)) / _APP_NAME
    else:
        path = _fallback_base_dir()
    path.mkdir(parents=True, exist_ok=True)
    return path


def get_data_dir() -> Path:
    """Return the data directory (shell history, crash logs), creating it if necessary.

    On Linux/BSD: ``$XDG_DATA_HOME/quizsage/`` (default ``~/.local/share/quizsage/``).
    On macOS/Windows: ``~/.quizsage/data/``.
    """
    if _is_xdg_platform():
        path = _xdg_base("XDG_DATA_HOME", (".local", "share")) / _APP_NAME
    else:
        path = _fallback_base_dir() / "data"
    path.mkdir(parents=True, exist_ok=True)
    return path


def get_history_path() -> Path:
    """Path of the interactive shell's persisted history file."""
    return get_data_dir() / _HISTORY_FILENAME


# --- Atomic file writes ---


def _atomic_write(path: Path, data: str) -> None:
    """Write data to file atomically using temp file + rename.

    The temporary file is created in the same directory as *path* so that
    ``os.replace`` is an atomic rename on POSIX systems. On any failure the
    temp file is removed.
    """
    path.parent.mkdir(parents=True, exist_ok=True)

    fd = None
    tmp_path: Optional[str] = None
    try:
        fd = tempfile.NamedTemporaryFile(
            mode="w",
            dir=path.parent,
            prefix=f".{path.name}.",
            suffix=".tmp",
            delete=False,
            encoding="utf-8",
        )
        tmp_path = fd.name
        fd.write(data)
        fd.flush()
        os.fsync(fd.fileno())
        fd.close()
        fd = None
        os.replace(tmp_path, path)
    except BaseException:
        if fd is not None:
            fd.close()
        if tmp_path is not None and os.path.exists(tmp_path):
            os.unlink(tmp_path)
        raise


def save_json(path: str | Path, obj: Any, indent: Optional[int] = None) -> Path:
    """Serialise *obj* as JSON and write it atomically to *path*.

    Args:
        path: Destination file; ``~`` is expanded.
        obj: Any JSON-serialisable value.
        indent: Optional indentation passed to :func:`json.dumps`.

    Returns:
        The resolved destination path.
    """
    target = Path(path).expanduser()
    _atomic_write(target, json.dumps(obj, indent=indent, ensure_ascii=False) + "\n")
    return target


# --- Connection config ---


def _config_path() -> Path:
    return get_config_dir() / _CONFIG_FILENAME


def load_config() -> ConnectionConfig:
    """Load the connection config, returning defaults if the file is absent.

    Raises:
        ConfigError: If the file contains invalid JSON or fails validation.
    """
    path = _config_path()
    if not path.is_file():
        return ConnectionConfig()
    try:
        data = json.loads(path.read_text(encoding="utf-8"))
        return ConnectionConfig.model_validate(data)
    except (json.JSONDecodeError, ValueError) as exc:
        raise ConfigError(f"Invalid config at {path}: {exc}") from exc


def save_config(config: ConnectionConfig) -> None:
    """Persist the connection config atomically to disk."""
    data = config.model_dump(mode="json")
    _atomic_write(_config_path(), json.dumps(data, indent=2) + "\n")


def _env_overrides() -> dict[str, Any]:
    """Collect ``QUIZSAGE_*`` environment variables that are set."""
    overrides: dict[str, Any] = {}
    for name in _ENV_FIELDS:
        value = os.environ.get(_ENV_PREFIX + name.upper())
        if not value:
            continue
        if name == "self_signed":
            overrides[name] = value.strip().lower() in _TRUE_VALUES
        else:
            overrides[name] = value
    return overrides


def resolve_connection(**cli_values: Any) -> ConnectionConfig:
    """Resolve the effective connection settings.

    Precedence (high to low):
        1. CLI values passed as keywords (``None`` means "not given")
        2. Environment variables (``QUIZSAGE_ADDRESS``, ``QUIZSAGE_PORT``, ...)
        3. The config file (``~/.config/quizsage/config.json``)
        4. Defaults

    Raises:
        ConfigError: If the merged values fail validation.
    """
    base = load_config().model_dump()
    base.update(_env_overrides())
    base.update({key: value for key, value in cli_values.items() if value is not None})
    try:
        return ConnectionConfig.model_validate(base)
    except ValueError as exc:
        raise ConfigError(f"Invalid connection settings: {exc}") from exc


# --- Credential source resolution ---


def resolve_credential(source: str, prompt: str = "Password: ") -> str:
    """Resolve a credential from its source descriptor.

    Supported formats:
        - ``"env:VAR_NAME"`` -- reads ``os.environ["VAR_NAME"]``
        - ``"file:/path/to/file"`` -- reads file content, stripped of whitespace
        - ``"prompt"`` -- prompts interactively (requires a TTY)

    Raises:
        ConfigError: If the source can't be resolved.
    """
    if source.startswith("env:"):
        var_name = source[4:]
        value = os.environ.get(var_name)
        if value is None:
            raise ConfigError(
                f"Environment variable '{var_name}' is not set (source: {source})"
            )
        return value

    if source.startswith("file:"):
        path = Path(source[5:]).expanduser()
        if not path.is_file():
            raise ConfigError(f"Credential file not found: {path} (source: {source})")
        try:
            return path.read_text(encoding="utf-8").strip()
        except OSError as exc:
            raise ConfigError(f"Cannot read credential file {path}: {exc}") from exc

    if source == "prompt":
        if not sys.stdin.isatty():
            raise ConfigError(
                "Cannot prompt for credentials: stdin is not a TTY (source: prompt)"
            )
        return getpass.getpass(prompt)

    raise ConfigError(f"Unknown credential source format: {source}")
