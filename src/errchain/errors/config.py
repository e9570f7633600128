from __future__ import annotations

from dataclasses import dataclass, field, replace
from pathlib import Path
from typing import Any, Literal, Mapping, Optional
import os
import uuid

import yaml


class ConfigError(ValueError):
    """Raised when runtime configuration is missing or invalid."""


Mode = Literal["debug", "run"]
_MODES = ("debug", "run")
_FALSE_STRINGS = ("0", "false", "False", "")
CONFIG_FILENAMES = ("errchain.yaml", "config.yaml")


def load_config(root: Path) -> dict[str, Any]:
    """
    Read the first of ``errchain.yaml`` / ``config.yaml`` found in `root`.

    Returns an empty dict when neither exists or the file is empty.
    """
    for filename in CONFIG_FILENAMES:
        config_path = root / filename
        if not config_path.exists():
            continue
        try:
            data = yaml.safe_load(config_path.read_text(encoding="utf-8"))
        except yaml.YAMLError as error:
            raise ConfigError(f"Could not parse {config_path}: {error}") from error
        if data is None:
            return {}
        if not isinstance(data, dict):
            raise ConfigError(f"{config_path} must contain a mapping at the top level.")
        return data
    return {}


def _parse_mode(raw: Any) -> Optional[Mode]:
    mode = str(raw).strip().lower()
    return mode if mode in _MODES else None  # type: ignore[return-value]


def _parse_int(raw: Any) -> Optional[int]:
    try:
        return int(raw)
    except (TypeError, ValueError):
        return None


@dataclass(frozen=True)
class ErrorHandlingConfig:
    """
    How guarded steps react to failures, and where logs go.

    Parameters
    ----------
    mode
        "debug" re-raises the first failure; "run" records it and keeps going, so
        every failure ends up in the reporter's ErrorChain.
    log_dir
        Directory for run_<run_id>.log and events_<run_id>.jsonl.
    run_id
        Identifier of the run; "auto" draws a fresh one per resolution.
    console_level, file_level
        Logging levels of the console and file handlers.
    write_jsonl
        Write structured JSONL events next to the log file.
    max_failures
        In run mode, skip further guarded steps once this many have failed.
    env_prefix
        Prefix of the environment variables read by ``from_env``, e.g. "ERRCHAIN_".

    Usage example
    -------------
        cfg = ErrorHandlingConfig(mode="run", log_dir=Path("logs"), max_failures=5)
    """

    mode: Mode = "run"
    log_dir: Path = Path("logs")
    run_id: str = "auto"

    console_level: int = 20  # logging.INFO
    file_level: int = 10  # logging.DEBUG

    write_jsonl: bool = True
    max_failures: Optional[int] = None

    env_prefix: str = field(default="", repr=False)

    def resolved_run_id(self) -> str:
        if self.run_id != "auto":
            return self.run_id
        return uuid.uuid4().hex[:10]

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any], *, default: Optional["ErrorHandlingConfig"] = None) -> "ErrorHandlingConfig":
        """
        Overlay the ``errors`` section of a config file on `default`.

        Unknown keys are ignored; an invalid mode or max_failures raises ConfigError.

        Usage example
        -------------
            cfg = ErrorHandlingConfig.from_mapping(load_config(Path.cwd()).get("errors", {}))
        """
        if not isinstance(data, Mapping):
            raise ConfigError(f"errors section must be a mapping, got {type(data).__name__}")
        base = default if default is not None else cls()
        changes: dict[str, Any] = {}

        if "mode" in data:
            mode = _parse_mode(data["mode"])
            if mode is None:
                raise ConfigError(f"errors.mode must be one of {_MODES}, got {data['mode']!r}")
            changes["mode"] = mode

        if data.get("max_failures") is not None:
            max_failures = _parse_int(data["max_failures"])
            if max_failures is None:
                raise ConfigError(f"errors.max_failures must be an integer, got {data['max_failures']!r}")
            changes["max_failures"] = max_failures

        if "log_dir" in data:
            changes["log_dir"] = Path(data["log_dir"])
        for key in ("console_level", "file_level"):
            if key in data:
                changes[key] = int(data[key])
        for key in ("run_id", "env_prefix"):
            if key in data:
                changes[key] = str(data[key])
        if "write_jsonl" in data:
            changes["write_jsonl"] = bool(data["write_jsonl"])

        return replace(base, **changes)

    @classmethod
    def from_env(cls, *, default: Optional["ErrorHandlingConfig"] = None) -> "ErrorHandlingConfig":
        """
        Overlay environment variables on `default`.

        Variables, prefixed with ``default.env_prefix``:
        - <PFX>ERROR_MODE: "debug" | "run"
        - <PFX>LOG_DIR: path
        - <PFX>WRITE_JSONL: "0" / "false" / "" disable, anything else enables
        - <PFX>MAX_FAILURES: integer

        Unparseable values are ignored.

        Usage example
        -------------
            cfg = ErrorHandlingConfig.from_env(default=ErrorHandlingConfig(env_prefix="ERRCHAIN_"))
        """
        base = default if default is not None else cls()

        def env(name: str) -> Optional[str]:
            return os.environ.get(f"{base.env_prefix}{name}")

        changes: dict[str, Any] = {}
        raw_mode, log_dir, write_jsonl = env("ERROR_MODE"), env("LOG_DIR"), env("WRITE_JSONL")

        mode = _parse_mode(raw_mode) if raw_mode is not None else None
        if mode is not None:
            changes["mode"] = mode
        if log_dir is not None:
            changes["log_dir"] = Path(log_dir)
        if write_jsonl is not None:
            changes["write_jsonl"] = write_jsonl.strip() not in _FALSE_STRINGS
        max_failures = _parse_int(env("MAX_FAILURES"))
        if max_failures is not None:
            changes["max_failures"] = max_failures

        return replace(base, **changes)
