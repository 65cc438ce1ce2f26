"""Tests for the bounded backtracking search."""

from helpers import at, make_block, make_context, make_schedules, make_session, minutes
from models.entities import PartialSolution, SchedulingPolicy
from services.feasibility import build_feasible_placements
from services.loop_search import search
from services.solution_ranker import parse_utc_iso


def run_search(sessions, blocks, schedules, policy=None):
    context = make_context(sessions, blocks, schedules, policy=policy)
    feasible = {s.id: build_feasible_placements(s, context) for s in context.sessions}
    solutions = []
    search(PartialSolution(), 0, feasible, context, solutions)
    return context, solutions


def two_short_sessions():
    return [
        make_session("s1", 0, 30, ["alice@test.com"], gap=15),
        make_session("s2", 1, 30, ["bob@test.com"], gap=0),
    ]


def test_enumerates_every_sequence_that_respects_the_gap():
    context, solutions = run_search(
        two_short_sessions(),
        [make_block(at(9), at(10, 30))],
        make_schedules("alice@test.com", "bob@test.com")
    )

    pairs = [
        (parse_utc_iso(s.sessions[0].start_utc_iso), parse_utc_iso(s.sessions[1].start_utc_iso))
        for s in solutions
    ]
    assert pairs == [
        (at(9), at(9, 45)),
        (at(9), at(10)),
        (at(9, 15), at(10)),
    ]
    for first, second in pairs:
        assert second >= first + minutes(30) + minutes(15)
    assert context.gap_rejections > 0


def test_collection_stops_at_twice_the_requested_solutions():
    _, solutions = run_search(
        two_short_sessions(),
        [make_block(at(9), at(10, 30))],
        make_schedules("alice@test.com", "bob@test.com"),
        policy=SchedulingPolicy(max_solutions_to_return=1)
    )
    assert len(solutions) == 2


def test_day_span_limit_prunes_new_days():
    sessions = [
        make_session("s1", 0, 30, ["alice@test.com"], gap=0),
        make_session("s2", 1, 30, ["alice@test.com"], gap=0),
    ]
    blocks = [make_block(at(9), at(9, 30)), make_block(at(9, day=2), at(9, 30, day=2))]
    schedules = make_schedules("alice@test.com")

    _, two_days = run_search(sessions, blocks, schedules, policy=SchedulingPolicy(max_days_span=2))
    context, one_day = run_search(sessions, blocks, schedules, policy=SchedulingPolicy(max_days_span=1))

    assert len(two_days) == 1
    assert two_days[0].days_span == 2
    assert one_day == []
    assert context.day_span_rejections == 1


def test_iteration_budget_stops_search():
    context, solutions = run_search(
        two_short_sessions(),
        [make_block(at(9), at(10, 30))],
        make_schedules("alice@test.com", "bob@test.com"),
        policy=SchedulingPolicy(max_search_iterations=1)
    )
    assert solutions == []
    assert context.iterations == 1
    assert context.iteration_limit_reached


def test_timeout_stops_search_before_any_work():
    context, solutions = run_search(
        two_short_sessions(),
        [make_block(at(9), at(10, 30))],
        make_schedules("alice@test.com", "bob@test.com"),
        policy=SchedulingPolicy(solver_timeout_ms=0)
    )
    assert solutions == []
    assert context.iterations == 0
    assert context.timed_out
