"""Tests for per-session feasibility."""

from helpers import at, make_block, make_context, make_schedules, make_session
from models.entities import Booking, BusyInterval, SchedulingPolicy, SessionConstraints
from services.feasibility import (
    build_feasible_placements,
    has_conflicting_booking,
    is_interviewer_busy,
    is_within_business_hours,
    is_within_candidate_blocks,
)


# ---------------------------------------------------------------------------
# Predicates
# ---------------------------------------------------------------------------

def test_business_hours_window():
    window = SessionConstraints(earliest_start_local="09:00", latest_end_local="17:00")
    assert is_within_business_hours(at(9), at(9, 45), window)
    assert is_within_business_hours(at(16), at(17), window)
    assert not is_within_business_hours(at(8, 45), at(9, 30), window)
    assert not is_within_business_hours(at(16, 30), at(17, 30), window)


def test_business_hours_defaults_when_unset():
    window = SessionConstraints(earliest_start_local="", latest_end_local="")
    assert is_within_business_hours(at(9), at(10), window)
    assert not is_within_business_hours(at(7), at(8), window)


def test_interval_must_fit_in_a_single_block():
    blocks = [make_block(at(9), at(10)), make_block(at(10), at(11))]
    assert is_within_candidate_blocks(at(9), at(10), blocks)
    assert not is_within_candidate_blocks(at(9, 30), at(10, 30), blocks)


def test_busy_check_is_half_open():
    busy = [BusyInterval(start=at(10), end=at(11))]
    assert not is_interviewer_busy(at(9), at(10), busy)
    assert not is_interviewer_busy(at(11), at(12), busy)
    assert is_interviewer_busy(at(9, 30), at(10, 30), busy)


def test_conflicting_booking_matches_interviewer_and_ignores_cancelled():
    bookings = [
        Booking(id="b1", scheduled_start=at(10), scheduled_end=at(11), interviewer_email="alice@test.com"),
        Booking(id="b2", scheduled_start=at(12), scheduled_end=at(13), status="cancelled",
                interviewer_email="alice@test.com"),
    ]
    assert has_conflicting_booking(at(10, 30), at(11, 30), "alice@test.com", bookings)
    assert not has_conflicting_booking(at(10, 30), at(11, 30), "bob@test.com", bookings)
    assert not has_conflicting_booking(at(12), at(12, 30), "alice@test.com", bookings)


# ---------------------------------------------------------------------------
# build_feasible_placements
# ---------------------------------------------------------------------------

def test_placements_must_end_inside_block():
    session = make_session("s1", 0, 30, ["alice@test.com"])
    context = make_context([session], [make_block(at(9), at(10))], make_schedules("alice@test.com"))

    placements = build_feasible_placements(session, context)

    assert [(p.start.hour, p.start.minute) for p in placements] == [(9, 0), (9, 15), (9, 30)]
    assert all(p.end <= at(10) for p in placements)
    assert context.slots_evaluated == 4


def test_placements_follow_slot_then_pool_order():
    session = make_session("s1", 0, 30, ["alice@test.com", "bob@test.com"])
    context = make_context(
        [session], [make_block(at(9), at(9, 45))], make_schedules("alice@test.com", "bob@test.com")
    )

    placements = build_feasible_placements(session, context)

    assert [(p.start.minute, p.interviewer_email) for p in placements] == [
        (0, "alice@test.com"),
        (0, "bob@test.com"),
        (15, "alice@test.com"),
        (15, "bob@test.com"),
    ]
    assert all(p.day_key == "2024-03-01" for p in placements)


def test_busy_and_unscheduled_interviewers_are_skipped():
    session = make_session("s1", 0, 30, ["alice@test.com", "bob@test.com", "ghost@test.com"])
    schedules = make_schedules(
        "alice@test.com", "bob@test.com",
        busy={"alice@test.com": [(at(9), at(10))]}
    )
    context = make_context([session], [make_block(at(9), at(10))], schedules)

    placements = build_feasible_placements(session, context)

    assert {p.interviewer_email for p in placements} == {"bob@test.com"}
    assert context.busy_rejections == 3


def test_business_hours_can_be_disabled():
    session = make_session("s1", 0, 30, ["alice@test.com"])
    blocks = [make_block(at(8), at(9))]
    schedules = make_schedules("alice@test.com")

    enforced = build_feasible_placements(session, make_context([session], blocks, schedules))
    relaxed = build_feasible_placements(
        session,
        make_context([session], blocks, schedules, policy=SchedulingPolicy(enforce_business_hours=False))
    )

    assert enforced == []
    assert [(p.start.hour, p.start.minute) for p in relaxed] == [(8, 0), (8, 15), (8, 30)]


def test_existing_bookings_only_block_when_enforced():
    session = make_session("s1", 0, 60, ["alice@test.com"])
    blocks = [make_block(at(9), at(11))]
    schedules = make_schedules("alice@test.com")
    bookings = [Booking(id="b1", scheduled_start=at(9), scheduled_end=at(10), interviewer_email="alice@test.com")]

    ignored = build_feasible_placements(session, make_context([session], blocks, schedules, bookings=bookings))
    enforced_context = make_context(
        [session], blocks, schedules,
        policy=SchedulingPolicy(enforce_existing_bookings=True),
        bookings=bookings
    )
    enforced = build_feasible_placements(session, enforced_context)

    assert ignored[0].start == at(9)
    assert [p.start for p in enforced] == [at(10)]
    assert enforced_context.booking_rejections == 4


def test_non_positive_duration_is_infeasible():
    session = make_session("s1", 0, 0, ["alice@test.com"])
    context = make_context([session], [make_block(at(9), at(10))], make_schedules("alice@test.com"))

    assert build_feasible_placements(session, context) == []
    assert context.slots_evaluated == 0
