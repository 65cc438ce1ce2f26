"""Discretizes candidate availability into fixed-width slots."""

import logging
from datetime import datetime, timedelta

import pytz

from models.entities import CandidateAvailabilityBlock, CandidateSlot

log = logging.getLogger(__name__)

EPOCH = datetime(1970, 1, 1, tzinfo=pytz.UTC)


def ensure_utc(value: datetime) -> datetime:
    """Treat naive datetimes as UTC and convert aware ones to UTC."""
    if value.tzinfo is None:
        return value.replace(tzinfo=pytz.UTC)
    return value.astimezone(pytz.UTC)


def snap_up(value: datetime, step: timedelta) -> datetime:
    """Round up to the next epoch-aligned multiple of step."""
    remainder = (value - EPOCH) % step
    if not remainder:
        return value
    return value + (step - remainder)


def generate_candidate_slots(
    blocks: list[CandidateAvailabilityBlock],
    granularity_minutes: int
) -> list[CandidateSlot]:
    """
    Split availability blocks into slots of granularity_minutes.

    Slot starts are aligned to the epoch, not to the block start, so a block
    starting at 09:05 with 15-minute granularity yields its first slot at
    09:15. Slots that would run past the block end are dropped.
    """
    step = timedelta(minutes=granularity_minutes)
    slots: list[CandidateSlot] = []

    for block in blocks:
        block_start = ensure_utc(block.start_at)
        block_end = ensure_utc(block.end_at)

        current = snap_up(block_start, step)
        while current + step <= block_end:
            slots.append(CandidateSlot(
                start=current,
                end=current + step,
                date_key=current.strftime("%Y-%m-%d")
            ))
            current += step

    slots.sort(key=lambda s: s.start)
    log.debug("Generated %d candidate slots from %d blocks", len(slots), len(blocks))
    return slots
