import json
import math
from dataclasses import dataclass
from pathlib import Path

DEFAULT_CONFIG_FILE = "conf.json"
DEFAULT_MAX_UPLOAD_BYTES = 10 * 1024 * 1024


class ConfigError(Exception):
    """The configuration file is missing or unusable; the server must not start."""


@dataclass(frozen=True)
class Config:
    listen_port: str
    shield_url: str
    storage_dir: str = "."
    shield_timeout: float = 5.0
    max_upload_bytes: int = DEFAULT_MAX_UPLOAD_BYTES


def load_config(path: str | Path = DEFAULT_CONFIG_FILE) -> Config:
    """Read the JSON config file.

    Keys follow the original service's conf.json: `listenPort` and
    `shieldServerURL` are required, `storageDir`, `shieldTimeout` and
    `maxUploadBytes` are optional.
    """
    try:
        with open(path, "r") as f:
            raw = json.load(f)
    except OSError as e:
        raise ConfigError(f"unable to read config file {path}: {e}") from e
    except json.JSONDecodeError as e:
        raise ConfigError(f"unable to parse config file {path}: {e}") from e

    if not isinstance(raw, dict):
        raise ConfigError(f"config file {path} must hold a JSON object")

    missing = [k for k in ("listenPort", "shieldServerURL") if not raw.get(k)]
    if missing:
        raise ConfigError(f"missing required config keys: {', '.join(missing)}")

    port = str(raw["listenPort"])
    if not port.isdigit() or not 0 < int(port) < 65536:
        raise ConfigError(f"listenPort is not a valid TCP port: {port!r}")

    timeout = raw.get("shieldTimeout", 5.0)
    if isinstance(timeout, bool):
        raise ConfigError(f"shieldTimeout must be a number, not {timeout!r}")
    try:
        timeout = float(timeout)
    except (TypeError, ValueError) as e:
        raise ConfigError(f"shieldTimeout must be a number: {e}") from e
    if not math.isfinite(timeout) or timeout <= 0:
        raise ConfigError(f"shieldTimeout must be a positive number of seconds: {timeout!r}")

    max_upload = raw.get("maxUploadBytes", DEFAULT_MAX_UPLOAD_BYTES)
    if isinstance(max_upload, bool) or not isinstance(max_upload, int) or max_upload <= 0:
        raise ConfigError(f"maxUploadBytes must be a positive integer: {max_upload!r}")

    return Config(
        listen_port=port,
        shield_url=str(raw["shieldServerURL"]),
        storage_dir=str(raw.get("storageDir", ".")),
        shield_timeout=timeout,
        max_upload_bytes=max_upload,
    )
