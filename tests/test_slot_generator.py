"""Tests for candidate slot discretization."""

from datetime import datetime

from helpers import at, make_block
from services.slot_generator import ensure_utc, generate_candidate_slots


def starts(slots):
    return [(s.start.hour, s.start.minute) for s in slots]


def test_aligned_block_is_split_evenly():
    slots = generate_candidate_slots([make_block(at(9), at(10))], 15)
    assert starts(slots) == [(9, 0), (9, 15), (9, 30), (9, 45)]
    assert slots[-1].end == at(10)


def test_start_snaps_up_to_epoch_grid():
    slots = generate_candidate_slots([make_block(at(9, 5), at(10))], 15)
    assert starts(slots) == [(9, 15), (9, 30), (9, 45)]


def test_partial_trailing_slot_is_dropped():
    slots = generate_candidate_slots([make_block(at(9), at(9, 50))], 15)
    assert starts(slots) == [(9, 0), (9, 15), (9, 30)]
    assert all(s.end <= at(9, 50) for s in slots)


def test_block_shorter_than_granularity_yields_nothing():
    assert generate_candidate_slots([make_block(at(9), at(9, 10))], 15) == []


def test_slots_from_all_blocks_are_sorted():
    blocks = [
        make_block(at(14), at(14, 30)),
        make_block(at(9), at(9, 30)),
    ]
    slots = generate_candidate_slots(blocks, 15)
    assert starts(slots) == [(9, 0), (9, 15), (14, 0), (14, 15)]


def test_date_key_is_utc_date_of_slot_start():
    slots = generate_candidate_slots([make_block(at(23, 30), at(0, 30, day=2))], 15)
    assert [s.date_key for s in slots] == ["2024-03-01", "2024-03-01", "2024-03-02", "2024-03-02"]


def test_naive_datetimes_are_treated_as_utc():
    block = make_block(datetime(2024, 3, 1, 9, 0), datetime(2024, 3, 1, 9, 30))
    slots = generate_candidate_slots([block], 15)
    assert slots[0].start == at(9)
    assert ensure_utc(datetime(2024, 3, 1, 9, 0)) == at(9)
