"""Scheduling policy loading from environment variables and request overrides."""

import logging
import os
import re
from dataclasses import fields, replace
from typing import Any, Optional

from dotenv import load_dotenv

from models.entities import SchedulingPolicy

log = logging.getLogger(__name__)

DEFAULT_SCHEDULING_POLICY = SchedulingPolicy()

_TRUE_VALUES = {"1", "true", "yes", "on"}


def _env_int(name: str, default: int) -> int:
    value = os.getenv(name)
    if value is None or value.strip() == "":
        return default
    try:
        return int(value)
    except ValueError:
        log.warning("Ignoring %s=%r: not an integer", name, value)
        return default


def _env_bool(name: str, default: bool) -> bool:
    value = os.getenv(name)
    if value is None or value.strip() == "":
        return default
    return value.strip().lower() in _TRUE_VALUES


def load_policy(env_file: Optional[str] = None) -> SchedulingPolicy:
    """Load the default policy from a .env file and LOOP_* environment variables."""
    if env_file:
        load_dotenv(env_file)
    else:
        load_dotenv()

    d = DEFAULT_SCHEDULING_POLICY
    return SchedulingPolicy(
        slot_granularity_minutes=_env_int("LOOP_SLOT_GRANULARITY_MINUTES", d.slot_granularity_minutes),
        max_solutions_to_return=_env_int("LOOP_MAX_SOLUTIONS", d.max_solutions_to_return),
        prefer_single_day=_env_bool("LOOP_PREFER_SINGLE_DAY", d.prefer_single_day),
        max_days_span=_env_int("LOOP_MAX_DAYS_SPAN", d.max_days_span),
        enforce_business_hours=_env_bool("LOOP_ENFORCE_BUSINESS_HOURS", d.enforce_business_hours),
        solver_timeout_ms=_env_int("LOOP_SOLVER_TIMEOUT_MS", d.solver_timeout_ms),
        max_search_iterations=_env_int("LOOP_MAX_SEARCH_ITERATIONS", d.max_search_iterations),
        enforce_existing_bookings=_env_bool("LOOP_ENFORCE_EXISTING_BOOKINGS", d.enforce_existing_bookings),
    )


def _snake_case(name: str) -> str:
    return re.sub(r"(?<!^)(?=[A-Z])", "_", name).lower()


def apply_policy_overrides(base: SchedulingPolicy, overrides: Optional[dict[str, Any]]) -> SchedulingPolicy:
    """
    Return a copy of base with per-field overrides applied.

    Keys may be snake_case or camelCase (as sent by API clients). Unknown keys
    and None values are ignored.
    """
    if not overrides:
        return base

    known = {f.name for f in fields(SchedulingPolicy)}
    changes: dict[str, Any] = {}
    for key, value in overrides.items():
        name = _snake_case(key)
        if name not in known:
            log.warning("Ignoring unknown policy override %r", key)
            continue
        if value is None:
            continue
        changes[name] = value

    return replace(base, **changes)
