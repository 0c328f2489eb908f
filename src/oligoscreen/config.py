"""oligoscreen runtime configuration helpers."""

from __future__ import annotations

import logging
import os
from functools import lru_cache

from .model import ThreadCount

_THREADS_ENV = "OLIGOSCREEN_THREADS"

LOGGER = logging.getLogger(__name__)


def _env_threads(env_name: str) -> int | None:
    raw = os.getenv(env_name)
    if raw is None:
        return None
    raw = raw.strip().lower()
    if raw in {"", "auto"}:
        return None
    try:
        return int(raw)
    except ValueError:
        LOGGER.warning("Ignoring %s=%r: expected an integer or 'auto'.", env_name, raw)
        return None


@lru_cache(maxsize=1)
def available_parallelism() -> int:
    if hasattr(os, "sched_getaffinity"):
        try:
            return max(1, len(os.sched_getaffinity(0)))
        except OSError:  # pragma: no cover - platform specific
            pass
    return os.cpu_count() or 1


def resolve_thread_count(requested: ThreadCount) -> int:
    """Resolve the worker count requested by params/env.

    An explicit count is returned as-is, even when it is unusable; the
    screener falls back to the default pool in that case.
    """

    if not requested.is_auto:
        count = int(requested.fixed)
        source = "params"
    else:
        override = _env_threads(_THREADS_ENV)
        if override is not None:
            count = override
            source = "env"
        else:
            count = available_parallelism()
            source = "auto"
    LOGGER.debug("resolve_thread_count requested=%s resolved=%s source=%s", requested.to_dict(), count, source)
    return count


__all__ = ["available_parallelism", "resolve_thread_count"]
