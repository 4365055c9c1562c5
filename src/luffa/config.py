from __future__ import annotations

import os
import tomllib
from pathlib import Path
from typing import Any

import msgspec

from .constants import API_BASE_URL, DEFAULT_POLL_INTERVAL_S
from .errors import ConfigError

# Environment variable names, these win over the config file
ENV_SECRET = "LUFFA_SECRET"
ENV_POLL_INTERVAL = "LUFFA_POLL_INTERVAL"
ENV_BASE_URL = "LUFFA_BASE_URL"

LOCAL_CONFIG_NAME = Path(".luffa") / "luffa.toml"
HOME_CONFIG_PATH = Path.home() / ".luffa" / "luffa.toml"


class LuffaSettings(msgspec.Struct, forbid_unknown_fields=False):
    secret: str
    poll_interval_s: float = DEFAULT_POLL_INTERVAL_S
    base_url: str = API_BASE_URL


def _config_candidates() -> list[Path]:
    candidates = [Path.cwd() / LOCAL_CONFIG_NAME, HOME_CONFIG_PATH]
    if candidates[0] == candidates[1]:
        return [candidates[0]]
    return candidates


def _read_config(cfg_path: Path) -> dict:
    try:
        raw = cfg_path.read_text(encoding="utf-8")
    except FileNotFoundError:
        raise ConfigError(f"Missing config file {cfg_path}.") from None
    except IsADirectoryError:
        raise ConfigError(f"Config path {cfg_path} exists but is not a file.") from None
    except OSError as e:
        raise ConfigError(f"Failed to read config file {cfg_path}: {e}") from e
    try:
        return tomllib.loads(raw)
    except tomllib.TOMLDecodeError as e:
        raise ConfigError(f"Malformed TOML in {cfg_path}: {e}") from None


def load_config(path: str | Path | None = None) -> tuple[dict, Path | None]:
    """Load the TOML config.

    Without an explicit path a missing file is fine (everything can come from
    the environment), so the returned path may be None.
    """
    if path:
        cfg_path = Path(path).expanduser()
        return _read_config(cfg_path), cfg_path

    for candidate in _config_candidates():
        if candidate.is_file():
            return _read_config(candidate), candidate
    return {}, None


def _env(name: str) -> str | None:
    value = os.environ.get(name)
    if value and value.strip():
        return value.strip()
    return None


def _source(config_path: Path | None) -> str:
    return str(config_path) if config_path is not None else "the environment"


def resolve_settings(config: dict[str, Any], config_path: Path | None) -> LuffaSettings:
    data = dict(config)

    env_secret = _env(ENV_SECRET)
    if env_secret is not None:
        data["secret"] = env_secret

    env_interval = _env(ENV_POLL_INTERVAL)
    if env_interval is not None:
        try:
            data["poll_interval_s"] = float(env_interval)
        except ValueError:
            raise ConfigError(
                f"Invalid {ENV_POLL_INTERVAL} environment variable; expected a number."
            ) from None

    env_base_url = _env(ENV_BASE_URL)
    if env_base_url is not None:
        data["base_url"] = env_base_url

    secret = data.get("secret")
    if secret is None:
        raise ConfigError(
            f"Missing bot secret. Set {ENV_SECRET} environment variable "
            f"or add `secret` to {config_path or HOME_CONFIG_PATH}."
        )
    if not isinstance(secret, str) or not secret.strip():
        raise ConfigError(
            f"Invalid `secret` in {_source(config_path)}; expected a non-empty string."
        )
    data["secret"] = secret.strip()

    try:
        settings = msgspec.convert(data, type=LuffaSettings)
    except msgspec.ValidationError as e:
        raise ConfigError(f"Invalid config in {_source(config_path)}: {e}") from None

    if settings.poll_interval_s <= 0:
        raise ConfigError(
            f"Invalid `poll_interval_s` in {_source(config_path)}; expected a positive number."
        )
    return settings


def load_settings(path: str | Path | None = None) -> tuple[LuffaSettings, Path | None]:
    config, config_path = load_config(path)
    return resolve_settings(config, config_path), config_path
