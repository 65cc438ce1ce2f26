"""Builds LoopSolutions from placement sequences and ranks them."""

import hashlib
import logging
import math
from datetime import datetime

import pytz

from models.entities import (
    ConflictCheckSummary,
    LoopSolution,
    PartialSolution,
    ScheduledSession,
    SchedulingPolicy,
)
from services.response_formatter import ResponseFormatter
from services.solver_context import SolverContext

log = logging.getLogger(__name__)

WEEK_MINUTES = 7 * 24 * 60
COMPACT_LOOP_MINUTES = 8 * 60


def to_utc_iso(value: datetime) -> str:
    """ISO-8601 in UTC with a trailing Z."""
    return value.astimezone(pytz.UTC).strftime("%Y-%m-%dT%H:%M:%S.000Z")


def parse_utc_iso(value: str) -> datetime:
    return datetime.strptime(value, "%Y-%m-%dT%H:%M:%S.000Z").replace(tzinfo=pytz.UTC)


def _round_half_up(value: float) -> int:
    return int(math.floor(value + 0.5))


def _solution_id(partial: PartialSolution) -> str:
    digest = hashlib.sha1()
    for p in partial.placements:
        digest.update(f"{p.session_id}|{p.start.isoformat()}|{p.interviewer_email};".encode("utf-8"))
    return f"solution-{digest.hexdigest()[:12]}"


def build_solution(partial: PartialSolution, context: SolverContext) -> LoopSolution:
    """Materialize a complete placement sequence (score is set by the ranker)."""
    tz = context.candidate_timezone

    sessions = [
        ScheduledSession(
            session_id=p.session_id,
            session_name=p.session_name,
            start_utc_iso=to_utc_iso(p.start),
            end_utc_iso=to_utc_iso(p.end),
            interviewer_email=p.interviewer_email,
            reason=f"Available at {ResponseFormatter.format_time(p.start, tz)}",
            display_start=ResponseFormatter.format_time(p.start, tz),
            display_end=ResponseFormatter.format_time(p.end, tz)
        )
        for p in partial.placements
    ]

    first = partial.placements[0]
    last = partial.placements[-1]
    days_span = len(partial.days_used)
    is_single_day = days_span == 1
    total_duration_minutes = _round_half_up((last.end - first.start).total_seconds() / 60)

    if is_single_day:
        rationale = f"All {len(sessions)} sessions on {ResponseFormatter.format_date(first.start, tz)}"
    else:
        rationale = f"{len(sessions)} sessions across {days_span} days"

    return LoopSolution(
        solution_id=_solution_id(partial),
        score=0,
        days_span=days_span,
        is_single_day=is_single_day,
        sessions=sessions,
        rationale_summary=rationale,
        total_duration_minutes=total_duration_minutes,
        loop_start_utc=to_utc_iso(first.start),
        loop_end_utc=to_utc_iso(last.end),
        conflicts_checked=ConflictCheckSummary(
            interviewer_busy_avoided=context.busy_rejections,
            existing_bookings_avoided=context.booking_rejections,
            candidate_block_boundary_avoided=context.boundary_rejections
        )
    )


def score_solution(solution: LoopSolution, policy: SchedulingPolicy) -> int:
    """
    Weighted heuristic, 0-100.

    - single day preference: up to 50 (only when policy.prefer_single_day)
    - earliness: up to 30, normalized over one week
    - interviewer diversity: 2 per distinct interviewer, up to 10
    - compactness: up to 10 for loops shorter than 8 hours
    """
    score = 0

    if policy.prefer_single_day:
        if solution.is_single_day:
            score += 50
        else:
            score += max(0, 50 - (solution.days_span - 1) * 20)

    span_minutes = (
        parse_utc_iso(solution.loop_end_utc) - parse_utc_iso(solution.loop_start_utc)
    ).total_seconds() / 60
    earliness = 1 - min(span_minutes / WEEK_MINUTES, 1)
    score += _round_half_up(earliness * 30)

    unique_interviewers = len({s.interviewer_email for s in solution.sessions})
    score += min(unique_interviewers * 2, 10)

    compactness = max(0, 1 - solution.total_duration_minutes / COMPACT_LOOP_MINUTES)
    score += _round_half_up(compactness * 10)

    return score


def rank_solutions(solutions: list[LoopSolution], policy: SchedulingPolicy) -> list[LoopSolution]:
    """Score every solution in place and return them best first."""
    for solution in solutions:
        solution.score = score_solution(solution, policy)
    ranked = sorted(solutions, key=lambda s: s.score, reverse=True)
    if ranked:
        log.debug("Ranked %d solutions, best score %d", len(ranked), ranked[0].score)
    return ranked
