"""Provider configuration loading."""

from __future__ import annotations

import os
from dataclasses import dataclass, replace
from functools import lru_cache
from pathlib import Path
from typing import Any, cast

import yaml

DEFAULT_RUNTIME_CONFIG_PATH = "runtime-config.yaml"
DEFAULT_ENDPOINT = "http://127.0.0.1:8080"
DEFAULT_USER_AGENT = "headscale-provider/0.1.0"


@dataclass(frozen=True, slots=True)
class HeadscaleSettings:
    endpoint: str = DEFAULT_ENDPOINT
    api_key: str = ""
    api_key_file: str = ""
    timeout_seconds: float = 10.0
    user_agent: str = DEFAULT_USER_AGENT
    runtime_config_path: str = DEFAULT_RUNTIME_CONFIG_PATH

    @classmethod
    def from_yaml(
        cls, runtime_config_path: str = DEFAULT_RUNTIME_CONFIG_PATH
    ) -> HeadscaleSettings:
        normalized_path = runtime_config_path.strip() or DEFAULT_RUNTIME_CONFIG_PATH
        config = _load_runtime_config(normalized_path)

        headscale_cfg = cast(dict[str, Any], config.get("headscale") or {})

        return cls(
            endpoint=str(headscale_cfg.get("endpoint") or DEFAULT_ENDPOINT).strip(),
            api_key=str(headscale_cfg.get("api_key") or ""),
            api_key_file=str(headscale_cfg.get("api_key_file") or ""),
            timeout_seconds=max(
                1.0,
                _optional_float(headscale_cfg.get("timeout_seconds"), default=10.0),
            ),
            user_agent=str(headscale_cfg.get("user_agent") or DEFAULT_USER_AGENT),
            runtime_config_path=normalized_path,
        )

    @classmethod
    def from_env(
        cls, runtime_config_path: str = DEFAULT_RUNTIME_CONFIG_PATH
    ) -> HeadscaleSettings:
        return cls.from_yaml(runtime_config_path=runtime_config_path)

    def resolve_api_key(self) -> str:
        """Return the API key, preferring the contents of ``api_key_file``."""
        key_file = self.api_key_file.strip()
        if not key_file:
            api_key = self.api_key.strip()
            if not api_key:
                raise ValueError("HEADSCALE_API_KEY is required to reach the Headscale API")
            return api_key

        try:
            api_key = Path(key_file).read_text(encoding="utf-8").strip()
        except OSError as exc:
            raise ValueError(f"HEADSCALE_API_KEY_FILE {key_file!r} is unreadable: {exc}") from exc
        if not api_key:
            raise ValueError(f"HEADSCALE_API_KEY_FILE {key_file!r} holds no key")
        return api_key


def _load_runtime_config(runtime_config_path: str) -> dict[str, Any]:
    path = Path(runtime_config_path)
    if not path.exists() or not path.is_file():
        return {}

    parsed = yaml.safe_load(path.read_text(encoding="utf-8"))
    if isinstance(parsed, dict):
        return parsed
    return {}


def _optional_float(value: Any, *, default: float) -> float:
    if value is None or value == "":
        return default
    return float(value)


def _apply_env_overrides(settings: HeadscaleSettings) -> HeadscaleSettings:
    overrides: dict[str, str] = {}
    endpoint = os.environ.get("HEADSCALE_ENDPOINT", "").strip()
    if endpoint:
        overrides["endpoint"] = endpoint
    api_key = os.environ.get("HEADSCALE_API_KEY", "").strip()
    if api_key:
        overrides["api_key"] = api_key
    api_key_file = os.environ.get("HEADSCALE_API_KEY_FILE", "").strip()
    if api_key_file:
        overrides["api_key_file"] = api_key_file

    if not overrides:
        return settings
    return replace(settings, **overrides)


@lru_cache(maxsize=1)
def get_settings() -> HeadscaleSettings:
    runtime_config_path = os.environ.get(
        "HEADSCALE_RUNTIME_CONFIG_PATH", DEFAULT_RUNTIME_CONFIG_PATH
    )
    return _apply_env_overrides(HeadscaleSettings.from_yaml(runtime_config_path))
