"""Domain models for the Loop Autopilot."""

from dataclasses import dataclass, field
from datetime import date, datetime
from typing import Any, Literal, Optional


LoopSolveStatus = Literal["SOLVED", "UNSATISFIABLE", "PARTIAL", "TIMEOUT", "ERROR"]
Confidence = Literal["HIGH", "MEDIUM", "LOW"]
Severity = Literal["BLOCKING", "LIMITING", "MINOR"]
EstimatedImpact = Literal["HIGH", "MEDIUM", "LOW"]

ConstraintKey = Literal[
    "NO_CANDIDATE_AVAILABILITY",
    "INTERVIEWER_POOL_EMPTY",
    "INTERVIEWER_POOL_ALL_BUSY",
    "SESSION_TOO_LONG_FOR_BLOCKS",
    "INSUFFICIENT_GAP_BETWEEN_SESSIONS",
    "BUSINESS_HOURS_VIOLATION",
    "MAX_DAYS_EXCEEDED",
]

ActionType = Literal[
    "EXPAND_CANDIDATE_AVAILABILITY",
    "ADD_INTERVIEWERS_TO_POOL",
    "REDUCE_SESSION_DURATION",
    "ALLOW_MULTI_DAY",
    "REMOVE_BUFFER_CONSTRAINTS",
    "EXTEND_BUSINESS_HOURS",
]

BookingStatus = Literal["pending", "confirmed", "cancelled", "rescheduled"]
LoopBookingStatus = Literal["PENDING", "COMMITTED", "FAILED", "CANCELLED"]
CommitStatus = Literal["COMMITTED", "ALREADY_COMMITTED", "FAILED"]


# ============================================================================
# Loop templates and solver inputs
# ============================================================================

@dataclass
class InterviewerPoolConfig:
    """Interviewers eligible for a session."""
    emails: list[str] = field(default_factory=list)


@dataclass
class SessionConstraints:
    """Per-session time window and spacing rules."""
    earliest_start_local: str = "09:00"  # HH:MM
    latest_end_local: str = "17:00"  # HH:MM
    min_gap_to_next_minutes: int = 0


@dataclass
class LoopSessionTemplate:
    """A single session within an interview loop."""
    id: str
    order: int
    name: str
    duration_minutes: int
    interviewer_pool: InterviewerPoolConfig
    constraints: SessionConstraints = field(default_factory=SessionConstraints)
    loop_template_id: Optional[str] = None


@dataclass
class CandidateAvailabilityBlock:
    """A window the candidate declared as available (UTC)."""
    start_at: datetime
    end_at: datetime
    id: Optional[str] = None
    availability_request_id: Optional[str] = None


@dataclass
class BusyInterval:
    """Half-open busy interval on an interviewer calendar."""
    start: datetime
    end: datetime


@dataclass
class InterviewerSchedule:
    """Busy calendar for one interviewer."""
    email: str
    busy_intervals: list[BusyInterval] = field(default_factory=list)


@dataclass
class Booking:
    """An already-committed booking used for conflict suppression."""
    id: str
    scheduled_start: datetime
    scheduled_end: datetime
    status: BookingStatus = "confirmed"
    interviewer_email: Optional[str] = None
    calendar_event_id: Optional[str] = None


@dataclass
class SchedulingPolicy:
    """Solver configuration."""
    slot_granularity_minutes: int = 15
    max_solutions_to_return: int = 10
    prefer_single_day: bool = True
    max_days_span: int = 3
    enforce_business_hours: bool = True
    solver_timeout_ms: int = 10000
    max_search_iterations: int = 10000
    enforce_existing_bookings: bool = False

    def __post_init__(self) -> None:
        if self.slot_granularity_minutes <= 0:
            raise ValueError("slot_granularity_minutes must be positive")
        if self.max_solutions_to_return <= 0:
            raise ValueError("max_solutions_to_return must be positive")
        if self.max_days_span <= 0:
            raise ValueError("max_days_span must be positive")
        if self.solver_timeout_ms < 0 or self.max_search_iterations < 0:
            raise ValueError("solver limits must not be negative")


# ============================================================================
# Search state
# ============================================================================

@dataclass
class CandidateSlot:
    """Fixed-width slot carved out of a candidate availability block."""
    start: datetime
    end: datetime
    date_key: str  # YYYY-MM-DD (UTC)


@dataclass
class FeasiblePlacement:
    """One independently valid (start, end, interviewer) option for a session."""
    session_id: str
    session_name: str
    start: datetime
    end: datetime
    interviewer_email: str
    day_key: str


@dataclass
class PartialSolution:
    """Placements chosen so far during search."""
    placements: list[FeasiblePlacement] = field(default_factory=list)
    days_used: set[str] = field(default_factory=set)
    used_interviewers_by_day: dict[str, set[str]] = field(default_factory=dict)


# ============================================================================
# Solver output
# ============================================================================

@dataclass
class ScheduledSession:
    """A session placed in a solution."""
    session_id: str
    session_name: str
    start_utc_iso: str
    end_utc_iso: str
    interviewer_email: str
    reason: str
    display_start: str
    display_end: str


@dataclass
class ConflictCheckSummary:
    interviewer_busy_avoided: int = 0
    existing_bookings_avoided: int = 0
    candidate_block_boundary_avoided: int = 0


@dataclass
class LoopSolution:
    """A complete, scored loop schedule."""
    solution_id: str
    score: int
    days_span: int
    is_single_day: bool
    sessions: list[ScheduledSession]
    rationale_summary: str
    total_duration_minutes: int
    loop_start_utc: str
    loop_end_utc: str
    conflicts_checked: ConflictCheckSummary = field(default_factory=ConflictCheckSummary)


@dataclass
class ConstraintViolation:
    """Why a loop (or one of its sessions) could not be scheduled."""
    key: ConstraintKey
    description: str
    evidence: dict[str, Any]  # may include "sessionId"
    severity: Severity = "BLOCKING"


@dataclass
class RecommendedAction:
    """A remediation the coordinator can take."""
    action_type: ActionType
    description: str
    priority: int  # 1 = highest
    payload: dict[str, Any]  # "estimatedImpact", optional "sessionId"


@dataclass
class SolveMetadata:
    solve_duration_ms: int
    search_iterations: int
    slots_evaluated: int
    graph_api_calls: int
    timed_out: bool = False
    iteration_limit_reached: bool = False


@dataclass
class LoopSolveResult:
    """Result of one solve invocation."""
    solve_id: str
    status: LoopSolveStatus
    solutions: list[LoopSolution]
    top_constraints: list[ConstraintViolation]
    recommended_actions: list[RecommendedAction]
    confidence: Confidence
    metadata: SolveMetadata
    error_message: Optional[str] = None


# ============================================================================
# Solve runs and commits
# ============================================================================

@dataclass
class LoopSolveRequest:
    """Inputs for a persisted, idempotent solve."""
    availability_request_id: str
    loop_template_id: str
    sessions: list[LoopSessionTemplate]
    candidate_blocks: list[CandidateAvailabilityBlock]
    candidate_timezone: str = "America/New_York"
    organizer_email: Optional[str] = None
    interviewer_pool_overrides: dict[str, InterviewerPoolConfig] = field(default_factory=dict)
    policy_overrides: dict[str, Any] = field(default_factory=dict)
    existing_bookings: list[Booking] = field(default_factory=list)
    solve_idempotency_key: Optional[str] = None


@dataclass
class LoopSolveRun:
    """Persisted record of one solve."""
    id: str
    availability_request_id: str
    loop_template_id: str
    inputs_snapshot: LoopSolveRequest
    status: LoopSolveStatus
    created_at: datetime
    result_snapshot: Optional[LoopSolveResult] = None
    solutions_count: int = 0
    solve_duration_ms: Optional[int] = None
    search_iterations: Optional[int] = None
    graph_api_calls: Optional[int] = None
    error_message: Optional[str] = None
    error_stack: Optional[str] = None
    solve_idempotency_key: Optional[str] = None


@dataclass
class RollbackDetails:
    events_created: int = 0
    events_rolled_back: int = 0
    rollback_errors: list[str] = field(default_factory=list)


@dataclass
class LoopBooking:
    """Commit of a chosen solution."""
    id: str
    availability_request_id: str
    loop_template_id: str
    solve_run_id: str
    chosen_solution_id: str
    commit_idempotency_key: str
    status: LoopBookingStatus
    created_at: datetime
    updated_at: datetime
    rollback_attempted: bool = False
    rollback_details: Optional[RollbackDetails] = None
    error_message: Optional[str] = None


@dataclass
class LoopBookingItem:
    loop_booking_id: str
    session_template_id: str
    booking_id: str
    calendar_event_id: str
    status: Literal["confirmed", "cancelled", "rescheduled"] = "confirmed"


@dataclass
class LoopCommitRequest:
    solve_id: str
    solution_id: str
    commit_idempotency_key: str
    organizer_email: Optional[str] = None
    meeting_title: Optional[str] = None


@dataclass
class BookedSessionInfo:
    session_id: str
    session_name: str
    booking_id: str
    calendar_event_id: str
    start_utc_iso: str
    end_utc_iso: str
    interviewer_email: str


@dataclass
class LoopCommitResult:
    """Outcome of committing a solution."""
    status: CommitStatus
    loop_booking_id: str
    booked_sessions: list[BookedSessionInfo] = field(default_factory=list)
    error_message: Optional[str] = None
    rollback_details: Optional[RollbackDetails] = None


@dataclass
class AvailabilityWindow:
    """Span covering every candidate block; used to bound calendar fetches."""
    start: datetime
    end: datetime

    @property
    def days(self) -> list[date]:
        current = self.start.date()
        result = []
        while current <= self.end.date():
            result.append(current)
            current = date.fromordinal(current.toordinal() + 1)
        return result
