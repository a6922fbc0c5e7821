"""Client settings with XDG paths, atomic writes, and precedence resolution.

* **Directory layout** -- XDG Base Directory compliant on Linux/BSD,
  ``~/.apiwire/`` on macOS and Windows. See :func:`get_config_dir`.
* **User settings** -- a single :class:`~apiwire.models.ClientSettings`
  JSON file in the config directory, written by :func:`save_user_settings`.
* **Project settings** -- ``./apiwire.json`` in the working directory, so a
  repository can pin its base URL or transport.
* **Precedence resolution** -- :func:`resolve_settings` merges explicit
  overrides, ``APIWIRE_*`` environment variables, project and user settings
  into the effective :class:`~apiwire.models.ClientSettings`.
"""

from __future__ import annotations

import json
import logging
import os
import platform
import tempfile
from pathlib import Path
from typing import Any, Optional

from pydantic import ValidationError

from apiwire.exceptions import SettingsError
from apiwire.models import ClientSettings

logger = logging.getLogger(__name__)

_APP_NAME = "apiwire"
_CONFIG_FILENAME = "config.json"
_PROJECT_CONFIG_FILENAME = "apiwire.json"

ENV_PREFIX = "APIWIRE_"
"""Prefix of the environment variables read by :func:`resolve_settings`."""

_ENV_FIELDS = (
    "base_url",
    "transport",
    "problem_factory",
    "timeout",
    "event_timeout",
    "verify_ssl",
)


# --- XDG path resolution ---


def _is_xdg_platform() -> bool:
    return platform.system() == "Linux" or platform.system().endswith("BSD")


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

    On Linux/BSD: ``$XDG_CONFIG_HOME/apiwire/`` (default ``~/.config/apiwire/``).
    On macOS/Windows: ``~/.apiwire/``.
    """
    if _is_xdg_platform():
        path = _xdg_base("XDG_CONFIG_HOME", (".config",)) / _APP_NAME
    else:
        path = Path.home() / f".{_APP_NAME}"
    path.mkdir(parents=True, exist_ok=True)
    return path


def user_settings_path() -> Path:
    return get_config_dir() / _CONFIG_FILENAME


def project_settings_path() -> Path:
    return Path.cwd() / _PROJECT_CONFIG_FILENAME


# --- Atomic file writes ---


def _atomic_write(path: Path, data: str) -> None:
    """Write data to file atomically using temp file + rename.

    The temporary file is created next to *path* so that ``os.replace`` is
    an atomic rename on POSIX systems. On failure the temp file is removed.
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
        if tmp_path is not None:
            try:
                os.unlink(tmp_path)
            except OSError:
                pass
        raise


# --- Settings files ---


def _read_settings_file(path: Path, kind: str) -> dict[str, Any]:
    if not path.is_file():
        return {}
    try:
        data = json.loads(path.read_text(encoding="utf-8"))
    except (json.JSONDecodeError, OSError, ValueError) as exc:
        raise SettingsError(f"Invalid {kind} settings at {path}: {exc}") from exc
    if not isinstance(data, dict):
        raise SettingsError(f"Invalid {kind} settings at {path}: expected a JSON object")
    return data


def load_user_settings() -> ClientSettings:
    """Load the user settings file.

    Returns:
        The stored settings, or defaults when the file does not exist.

    Raises:
        SettingsError: If the file contains invalid JSON or invalid values.
    """
    path = user_settings_path()
    data = _read_settings_file(path, "user")
    try:
        return ClientSettings.model_validate(data)
    except ValidationError as exc:
        raise SettingsError(f"Invalid user settings at {path}: {exc}") from exc


def save_user_settings(settings: ClientSettings) -> Path:
    """Persist *settings* atomically as the user settings file.

    Unset (``None``) fields are omitted so the file stays minimal.

    Returns:
        Path of the written file.
    """
    path = user_settings_path()
    data = settings.model_dump(mode="json", exclude_none=True)
    _atomic_write(path, json.dumps(data, indent=2) + "\n")
    logger.debug("Saved user settings to %s", path)
    return path


def load_project_settings() -> Optional[dict[str, Any]]:
    """Load ``./apiwire.json`` as a raw mapping.

    Returns:
        The parsed object, or ``None`` if the file does not exist.

    Raises:
        SettingsError: If the file exists but is not a JSON object.
    """
    path = project_settings_path()
    if not path.is_file():
        return None
    return _read_settings_file(path, "project")


def _env_settings() -> dict[str, str]:
    values: dict[str, str] = {}
    for name in _ENV_FIELDS:
        value = os.environ.get(ENV_PREFIX + name.upper())
        if value:
            values[name] = value
    return values


# --- Precedence resolution ---


def resolve_settings(**overrides: Any) -> ClientSettings:
    """Resolve client settings with the full precedence chain.

    Precedence (high to low):
        1. Explicit keyword *overrides* (``None`` values are ignored)
        2. Environment variables (``APIWIRE_BASE_URL``, ``APIWIRE_TIMEOUT``...)
        3. Project settings (``./apiwire.json``)
        4. User settings (``~/.config/apiwire/config.json``)
        5. Defaults

    Example::

        settings = resolve_settings(base_url="https://api.example.com")

    Raises:
        SettingsError: If a settings file is invalid or the merged values
            fail validation.
    """
    merged: dict[str, Any] = load_user_settings().model_dump(exclude_unset=True)

    project = load_project_settings()
    if project is not None:
        merged.update(project)

    merged.update(_env_settings())
    merged.update({k: v for k, v in overrides.items() if v is not None})

    try:
        return ClientSettings.model_validate(merged)
    except ValidationError as exc:
        raise SettingsError(f"Invalid settings: {exc}") from exc
