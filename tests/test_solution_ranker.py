"""Tests for solution materialization and ranking."""

from helpers import at, make_block, make_context, make_schedules, make_session
from models.entities import FeasiblePlacement, LoopSolution, PartialSolution, ScheduledSession, SchedulingPolicy
from services.solution_ranker import build_solution, rank_solutions, score_solution, to_utc_iso


def placement(session_id, start, end, email, day_key="2024-03-01"):
    return FeasiblePlacement(
        session_id=session_id,
        session_name=session_id.upper(),
        start=start,
        end=end,
        interviewer_email=email,
        day_key=day_key
    )


def partial_of(*placements):
    return PartialSolution(
        placements=list(placements),
        days_used={p.day_key for p in placements}
    )


def solution_spanning(start, end, emails, days_span=1, total=None):
    sessions = [
        ScheduledSession(
            session_id=f"s{i}", session_name=f"S{i}",
            start_utc_iso=to_utc_iso(start), end_utc_iso=to_utc_iso(end),
            interviewer_email=email, reason="", display_start="", display_end=""
        )
        for i, email in enumerate(emails)
    ]
    return LoopSolution(
        solution_id="x",
        score=0,
        days_span=days_span,
        is_single_day=days_span == 1,
        sessions=sessions,
        rationale_summary="",
        total_duration_minutes=total if total is not None else int((end - start).total_seconds() // 60),
        loop_start_utc=to_utc_iso(start),
        loop_end_utc=to_utc_iso(end)
    )


def context_for(timezone="UTC"):
    session = make_session("s1", 0, 45, ["alice@test.com"])
    return make_context([session], [make_block(at(9), at(13))], make_schedules("alice@test.com"), timezone=timezone)


# ---------------------------------------------------------------------------
# build_solution
# ---------------------------------------------------------------------------

def test_single_day_solution_fields():
    partial = partial_of(
        placement("s1", at(9), at(9, 45), "alice@test.com"),
        placement("s2", at(10), at(11), "bob@test.com"),
    )
    solution = build_solution(partial, context_for())

    assert solution.is_single_day
    assert solution.days_span == 1
    assert solution.total_duration_minutes == 120
    assert solution.loop_start_utc == "2024-03-01T09:00:00.000Z"
    assert solution.loop_end_utc == "2024-03-01T11:00:00.000Z"
    assert solution.rationale_summary == "All 2 sessions on Fri, Mar 1"
    assert solution.sessions[0].display_start == "9:00 AM"
    assert solution.sessions[0].reason == "Available at 9:00 AM"
    assert solution.sessions[1].interviewer_email == "bob@test.com"


def test_multi_day_rationale_and_display_timezone():
    partial = partial_of(
        placement("s1", at(14), at(15), "alice@test.com"),
        placement("s2", at(14, day=4), at(15, day=4), "alice@test.com", day_key="2024-03-04"),
    )
    solution = build_solution(partial, context_for("America/New_York"))

    assert not solution.is_single_day
    assert solution.rationale_summary == "2 sessions across 2 days"
    # EST is UTC-5 in early March 2024
    assert solution.sessions[0].display_start == "9:00 AM"
    assert solution.sessions[0].display_end == "10:00 AM"


def test_solution_id_is_stable_for_identical_placements():
    partial = partial_of(placement("s1", at(9), at(9, 45), "alice@test.com"))
    other = partial_of(placement("s1", at(9, 15), at(10), "alice@test.com"))

    assert build_solution(partial, context_for()).solution_id == build_solution(partial, context_for()).solution_id
    assert build_solution(partial, context_for()).solution_id != build_solution(other, context_for()).solution_id


# ---------------------------------------------------------------------------
# Scoring
# ---------------------------------------------------------------------------

def test_score_for_tight_single_day_loop():
    solution = solution_spanning(at(9), at(11), ["alice@test.com", "bob@test.com"])
    # 50 single day + 30 earliness + 4 diversity + 8 compactness
    assert score_solution(solution, SchedulingPolicy()) == 92


def test_score_for_two_day_loop():
    solution = solution_spanning(at(9), at(10, day=2), ["alice@test.com"], days_span=2)
    # 30 single day + 26 earliness + 2 diversity + 0 compactness
    assert score_solution(solution, SchedulingPolicy()) == 58
    assert score_solution(solution, SchedulingPolicy(prefer_single_day=False)) == 28


def test_single_day_points_never_go_negative():
    solution = solution_spanning(at(9), at(10, day=4), ["alice@test.com"], days_span=4)
    policy = SchedulingPolicy()
    assert score_solution(solution, policy) == score_solution(solution, SchedulingPolicy(prefer_single_day=False))


def test_diversity_points_are_capped():
    emails = [f"i{n}@test.com" for n in range(7)]
    many = solution_spanning(at(9), at(9, 30), emails, total=30)
    five = solution_spanning(at(9), at(9, 30), emails[:5], total=30)
    assert score_solution(many, SchedulingPolicy()) == score_solution(five, SchedulingPolicy())


def test_rank_orders_by_score_descending_and_keeps_ties_stable():
    long_loop = solution_spanning(at(9), at(15), ["alice@test.com"])
    tight_a = solution_spanning(at(9), at(10), ["alice@test.com"])
    tight_b = solution_spanning(at(10), at(11), ["alice@test.com"])
    tight_a.solution_id, tight_b.solution_id = "a", "b"

    ranked = rank_solutions([long_loop, tight_a, tight_b], SchedulingPolicy())

    assert [s.solution_id for s in ranked[:2]] == ["a", "b"]
    assert ranked[-1] is long_loop
    assert ranked[0].score > long_loop.score
