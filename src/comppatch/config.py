"""Configuration management with XDG paths, atomic writes, and precedence resolution.

This module handles all persistent configuration for comppatch:

* **Directory layout** -- XDG Base Directory compliant on Linux/BSD,
  ``~/.comppatch/`` on macOS and Windows. See :func:`get_config_dir` and
  :func:`get_data_dir`.
* **User config** -- A single :class:`~comppatch.models.PatchConfig` JSON
  file storing the default glob set, markers and clause template.
* **Project config** -- An optional ``./comppatch.json`` holding any subset
  of the user config's keys, typically checked in next to the build script
  that regenerates completions.
* **Precedence resolution** -- :func:`resolve_config` merges CLI globs,
  environment variables, project-local config, and user config into the
  final effective configuration.

All file writes, including the patched completion file itself, go through
:func:`atomic_write` so a crash never leaves a half-written file behind.
"""

from __future__ import annotations

import json
import os
import platform
import stat
import tempfile
from pathlib import Path
from typing import Any, Optional, Sequence

from pydantic import ValidationError

from comppatch.exceptions import ConfigError, InvalidConfigError
from comppatch.models import PatchConfig

_APP_NAME = "comppatch"
_CONFIG_FILENAME = "config.json"
_PROJECT_CONFIG_FILENAME = "comppatch.json"
_GLOBS_ENV_VAR = "COMPPATCH_GLOBS"


# --- XDG path resolution ---


def _is_xdg_platform() -> bool:
    """Return True if the platform supports XDG Base Directory spec (Linux/FreeBSD)."""
    return platform.system() == "Linux" or platform.system().endswith("BSD")


def _fallback_base_dir() -> Path:
    """Fallback base directory for non-XDG platforms (macOS, Windows)."""
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

    On Linux/BSD: ``$XDG_CONFIG_HOME/comppatch/`` (default ``~/.config/comppatch/``).
    On macOS/Windows: ``~/.comppatch/``.

    Returns:
        Absolute path to the configuration directory (guaranteed to exist).
    """
    if _is_xdg_platform():
        base = _xdg_base("XDG_CONFIG_HOME", (".config",))
        path = base / _APP_NAME
    else:
        path = _fallback_base_dir()
    path.mkdir(parents=True, exist_ok=True)
    return path


def get_data_dir() -> Path:
    """Return the data directory (crash logs), creating it if necessary.

    On Linux/BSD: ``$XDG_DATA_HOME/comppatch/`` (default ``~/.local/share/comppatch/``).
    On macOS/Windows: ``~/.comppatch/logs/``.

    Returns:
        Absolute path to the data directory (guaranteed to exist).
    """
    if _is_xdg_platform():
        base = _xdg_base("XDG_DATA_HOME", (".local", "share"))
        path = base / _APP_NAME
    else:
        path = _fallback_base_dir() / "logs"
    path.mkdir(parents=True, exist_ok=True)
    return path


# --- Atomic file writes ---


def atomic_write(path: Path, data: str | bytes) -> None:
    """Write data to file atomically using temp file + rename.

    The temporary file is created in the same directory as *path* so that
    ``os.replace`` is guaranteed to be an atomic rename on POSIX systems.
    When *path* already exists its permission bits are copied to the temp
    file before the rename. On success the temp file is renamed over
    *path*; on any failure the temp file is cleaned up and *path* is left
    untouched.

    ``str`` data is encoded as UTF-8; ``bytes`` are written verbatim, which
    keeps line endings and undecodable bytes exactly as given.
    """
    path.parent.mkdir(parents=True, exist_ok=True)
    payload = data.encode("utf-8") if isinstance(data, str) else data

    fd = None
    tmp_path: Optional[str] = None
    try:
        fd = tempfile.NamedTemporaryFile(
            mode="wb",
            dir=path.parent,
            prefix=f".{path.name}.",
            suffix=".tmp",
            delete=False,
        )
        tmp_path = fd.name
        fd.write(payload)
        fd.flush()
        os.fsync(fd.fileno())
        fd.close()
        fd = None  # prevent double-close in finally
        if path.exists():
            os.chmod(tmp_path, stat.S_IMODE(path.stat().st_mode))
        os.replace(tmp_path, path)
    except BaseException:
        # Clean up the temp file on any error (including KeyboardInterrupt).
        if fd is not None:
            fd.close()
        if tmp_path is not None:
            try:
                os.unlink(tmp_path)
            except OSError:
                pass
        raise


# --- User config ---


def user_config_path() -> Path:
    """Path to the user config file."""
    return get_config_dir() / _CONFIG_FILENAME


def _read_json(path: Path, label: str) -> Any:
    try:
        return json.loads(path.read_text(encoding="utf-8"))
    except (json.JSONDecodeError, ValueError) as exc:
        raise ConfigError(f"Invalid {label} at {path}: {exc}") from exc
    except OSError as exc:
        raise ConfigError(f"Cannot read {label} at {path}: {exc}") from exc


def load_user_config() -> PatchConfig:
    """Load the user configuration from the XDG config directory.

    Returns:
        The deserialised :class:`~comppatch.models.PatchConfig`. If the
        file does not exist, a default instance is returned.

    Raises:
        ConfigError: If the file exists but cannot be read or holds invalid JSON.
        InvalidConfigError: If the markers, clause or globs fail validation.
    """
    path = user_config_path()
    if not path.is_file():
        return PatchConfig()
    data = _read_json(path, "user config")
    try:
        return PatchConfig.model_validate(data)
    except ValidationError as exc:
        raise InvalidConfigError(f"Invalid user config at {path}: {exc}") from exc


def save_user_config(config: PatchConfig) -> None:
    """Persist the user configuration atomically to disk.

    Args:
        config: The configuration to save.
    """
    data = config.model_dump(mode="json")
    atomic_write(user_config_path(), json.dumps(data, indent=2) + "\n")


# --- Project-local config ---


def load_project_config() -> Optional[dict[str, Any]]:
    """Load project-local configuration from ``./comppatch.json``.

    Returns:
        The parsed JSON object, or ``None`` if the file does not exist.

    Raises:
        ConfigError: If the file exists but is not a JSON object.
    """
    path = Path.cwd() / _PROJECT_CONFIG_FILENAME
    if not path.is_file():
        return None
    data = _read_json(path, "project config")
    if not isinstance(data, dict):
        raise ConfigError(f"Invalid project config at {path}: expected a JSON object")
    return data


def _deep_merge(base: dict[str, Any], override: dict[str, Any]) -> dict[str, Any]:
    """Return *base* updated with *override*, merging nested dicts key by key."""
    merged = dict(base)
    for key, value in override.items():
        if isinstance(value, dict) and isinstance(merged.get(key), dict):
            merged[key] = _deep_merge(merged[key], value)
        else:
            merged[key] = value
    return merged


def parse_globs_env(value: str) -> list[str]:
    """Split a ``COMPPATCH_GLOBS`` value on commas, dropping blank entries.

    Example::

        >>> parse_globs_env("*.png, *.jpg,,")
        ['*.png', '*.jpg']
    """
    return [item.strip() for item in value.split(",") if item.strip()]


# --- Precedence resolution ---


def resolve_config(cli_globs: Optional[Sequence[str]] = None) -> PatchConfig:
    """Resolve config with full precedence chain.

    Precedence (high to low):
        1. CLI glob arguments (``cli_globs``)
        2. Environment variable ``COMPPATCH_GLOBS`` (comma separated)
        3. Project config (``./comppatch.json``)
        4. User config (``~/.config/comppatch/config.json``)
        5. Defaults

    Only the glob set can be overridden from the CLI and the environment;
    markers and clause template come from config files.

    Returns:
        The effective :class:`~comppatch.models.PatchConfig`.

    Raises:
        ConfigError: If a config file is unreadable or not valid JSON.
        InvalidConfigError: If the merged result fails validation.
    """
    # 5 + 4. User config (fills in defaults automatically)
    user_cfg = load_user_config()
    data = user_cfg.model_dump(mode="json")

    # 3. Layer in project-local config
    project = load_project_config()
    if project is not None:
        data = _deep_merge(data, project)

    # 2. Environment variable
    env_globs = os.environ.get(_GLOBS_ENV_VAR)
    if env_globs:
        data["globs"] = parse_globs_env(env_globs)

    # 1. CLI arguments (highest precedence)
    if cli_globs:
        data["globs"] = list(cli_globs)

    try:
        return PatchConfig.model_validate(data)
    except ValidationError as exc:
        raise InvalidConfigError(f"Invalid configuration: {exc}") from exc
