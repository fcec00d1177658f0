from __future__ import annotations

import os
from dataclasses import dataclass
from typing import Mapping

from .paths import AppPaths, get_paths

STORE_KINDS = ("filesystem", "s3")

_TRUE = {"1", "true", "yes", "on"}
_FALSE = {"0", "false", "no", "off", ""}


@dataclass(frozen=True)
class Settings:
    """
    Process configuration, read once at start and never mutated.

    Every field maps to a MIRROR_* environment variable.
    """

    host: str
    port: int
    store_kind: str
    bucket: str | None
    endpoint_url: str | None
    prefix: str
    strong_consistency: bool
    reload_interval_sec: float
    drain_timeout_sec: float
    concurrency: int
    paths: AppPaths

    @property
    def reload_enabled(self) -> bool:
        # A strongly consistent store serves fresh data on its own.
        return not self.strong_consistency


def _env_bool(env: Mapping[str, str], name: str, default: bool) -> bool:
    raw = env.get(name)
    if raw is None:
        return default
    v = raw.strip().lower()
    if v in _TRUE:
        return True
    if v in _FALSE:
        return False
    raise ValueError(f"{name} must be a boolean, got {raw!r}")


def _env_number(env: Mapping[str, str], name: str, default: float, *, cast=float):
    raw = (env.get(name) or "").strip()
    if not raw:
        return default
    try:
        value = cast(raw)
    except ValueError as e:
        raise ValueError(f"{name} must be a number, got {raw!r}") from e
    if value <= 0:
        raise ValueError(f"{name} must be positive, got {raw!r}")
    return value


def load_settings(env: Mapping[str, str] | None = None) -> Settings:
    """
    Build Settings from the environment (or an explicit mapping, for tests).
    """
    env = os.environ if env is None else env

    store_kind = (env.get("MIRROR_STORE") or "filesystem").strip().lower()
    if store_kind not in STORE_KINDS:
        raise ValueError(f"MIRROR_STORE must be one of {STORE_KINDS}, got {store_kind!r}")

    bucket = (env.get("MIRROR_BUCKET") or "").strip() or None
    if store_kind == "s3" and not bucket:
        raise ValueError("MIRROR_BUCKET is required when MIRROR_STORE=s3")

    return Settings(
        host=(env.get("MIRROR_HOST") or "0.0.0.0").strip(),
        port=_env_number(env, "MIRROR_PORT", 8080, cast=int),
        store_kind=store_kind,
        bucket=bucket,
        endpoint_url=(env.get("MIRROR_ENDPOINT_URL") or "").strip() or None,
        prefix=(env.get("MIRROR_PREFIX") or "").strip(),
        strong_consistency=_env_bool(env, "MIRROR_STRONG_CONSISTENCY", False),
        reload_interval_sec=_env_number(env, "MIRROR_RELOAD_INTERVAL_SEC", 60.0),
        drain_timeout_sec=_env_number(env, "MIRROR_DRAIN_TIMEOUT_SEC", 10.0),
        concurrency=_env_number(env, "MIRROR_CONCURRENCY", 16, cast=int),
        paths=get_paths(env),
    )
