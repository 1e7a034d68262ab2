"""Opt-in drill behaviours that differ from what learners see by default.

``scoring.computed_max``
    Normalise percentages by the best achievable total instead of the
    author-declared ``max_possible_score``.
``pathfinding.global_optimum``
    Report the highest-scoring path instead of the greedy walk.

Flags come from ``DRILLTRAINER_FEATURES`` (comma-separated, case-insensitive)
and can be forced on or off for a block with ``override``.  Names outside
``KNOWN_FLAGS`` are ignored with a warning so a typo never silently changes
scoring.
"""

from __future__ import annotations

import logging
import os
from collections.abc import Iterable, Iterator
from contextlib import contextmanager
from typing import Final

logger = logging.getLogger(__name__)

ENV_VAR: Final = "DRILLTRAINER_FEATURES"

KNOWN_FLAGS: Final = frozenset({"scoring.computed_max", "pathfinding.global_optimum"})

# Innermost override last; later entries win.
_overrides: list[dict[str, bool]] = []
_warned: set[str] = set()


def _key(flag: str) -> str:
    return flag.strip().lower()


def _from_env() -> set[str]:
    raw = os.getenv(ENV_VAR) or ""
    requested = {_key(entry) for entry in raw.split(",") if entry.strip()}
    for name in sorted(requested - KNOWN_FLAGS - _warned):
        _warned.add(name)
        logger.warning("Ignoring unknown feature flag", extra={"flag": name, "env_var": ENV_VAR})
    return requested & KNOWN_FLAGS


def is_enabled(flag: str) -> bool:
    key = _key(flag)
    for forced in reversed(_overrides):
        if key in forced:
            return forced[key]
    return key in _from_env()


def enabled_flags() -> set[str]:
    return {flag for flag in KNOWN_FLAGS if is_enabled(flag)}


@contextmanager
def override(*, enable: Iterable[str] | None = None, disable: Iterable[str] | None = None) -> Iterator[None]:
    """Force flags on or off inside the block; nested blocks take precedence."""

    forced = {_key(flag): True for flag in enable or ()}
    forced.update({_key(flag): False for flag in disable or ()})
    _overrides.append(forced)
    try:
        yield
    finally:
        _overrides.pop()


def set_env_flags(flags: Iterable[str]) -> None:
    os.environ[ENV_VAR] = ",".join(sorted({_key(flag) for flag in flags}))
