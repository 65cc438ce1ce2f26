"""Mutable state shared by one solve invocation."""

import time
from dataclasses import dataclass, field
from typing import Optional

from models.entities import (
    Booking,
    CandidateAvailabilityBlock,
    CandidateSlot,
    ConstraintViolation,
    InterviewerSchedule,
    LoopSessionTemplate,
    SchedulingPolicy,
)
from services.slot_generator import generate_candidate_slots


@dataclass
class SolverContext:
    """
    Inputs, counters and diagnostics for a single solve.

    One context is created per call and threaded through feasibility, search
    and diagnostics; nothing here outlives the call.
    """
    policy: SchedulingPolicy
    candidate_timezone: str
    candidate_blocks: list[CandidateAvailabilityBlock]
    sessions: list[LoopSessionTemplate]
    interviewer_schedules: dict[str, InterviewerSchedule]
    existing_bookings: list[Booking]
    start_time: float = field(default_factory=time.monotonic)

    iterations: int = 0
    slots_evaluated: int = 0
    graph_api_calls: int = 0
    timed_out: bool = False
    iteration_limit_reached: bool = False

    # Rejection tallies
    boundary_rejections: int = 0
    busy_rejections: int = 0
    booking_rejections: int = 0
    gap_rejections: int = 0
    day_span_rejections: int = 0

    constraint_violations: dict[tuple[str, str], ConstraintViolation] = field(default_factory=dict)
    _candidate_slots: Optional[list[CandidateSlot]] = None

    @property
    def candidate_slots(self) -> list[CandidateSlot]:
        if self._candidate_slots is None:
            self._candidate_slots = generate_candidate_slots(
                self.candidate_blocks,
                self.policy.slot_granularity_minutes
            )
        return self._candidate_slots

    def elapsed_ms(self) -> float:
        return (time.monotonic() - self.start_time) * 1000

    def add_violation(self, violation: ConstraintViolation) -> None:
        """Record a violation; repeats for the same key and session are dropped."""
        session_id = violation.evidence.get("sessionId") or "global"
        self.constraint_violations.setdefault((violation.key, session_id), violation)

    @property
    def violations(self) -> list[ConstraintViolation]:
        return list(self.constraint_violations.values())
