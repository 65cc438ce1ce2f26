"""Explains unsatisfiable loops and suggests remediations."""

import logging

from models.entities import ConstraintViolation, LoopSessionTemplate, RecommendedAction
from services.slot_generator import ensure_utc
from services.solver_context import SolverContext

log = logging.getLogger(__name__)


def no_availability_violation(description: str, details: str) -> ConstraintViolation:
    return ConstraintViolation(
        key="NO_CANDIDATE_AVAILABILITY",
        description=description,
        evidence={"details": details}
    )


def _longest_block_minutes(context: SolverContext) -> float:
    if not context.candidate_blocks:
        return 0
    return max(
        (ensure_utc(b.end_at) - ensure_utc(b.start_at)).total_seconds() / 60
        for b in context.candidate_blocks
    )


def track_session_violation(session: LoopSessionTemplate, context: SolverContext) -> ConstraintViolation:
    """
    Record the most likely reason a session has no feasible placement.

    Causes are checked in a fixed order and the first match wins: empty pool,
    every pooled interviewer busy, session longer than any candidate block,
    and finally the business-hours window.

    "Every interviewer busy" means each one has at least one busy interval,
    whether or not it overlaps the candidate's availability.
    """
    emails = session.interviewer_pool.emails

    if not emails:
        violation = ConstraintViolation(
            key="INTERVIEWER_POOL_EMPTY",
            description=f'No interviewers assigned to "{session.name}"',
            evidence={
                "sessionId": session.id,
                "details": "The interviewer pool for this session is empty"
            }
        )
    elif all(
        email in context.interviewer_schedules
        and context.interviewer_schedules[email].busy_intervals
        for email in emails
    ):
        violation = ConstraintViolation(
            key="INTERVIEWER_POOL_ALL_BUSY",
            description=f'All interviewers for "{session.name}" are busy during candidate availability',
            evidence={
                "sessionId": session.id,
                "details": f"All {len(emails)} interviewers have conflicting meetings"
            }
        )
    elif session.duration_minutes > _longest_block_minutes(context):
        longest = _longest_block_minutes(context)
        violation = ConstraintViolation(
            key="SESSION_TOO_LONG_FOR_BLOCKS",
            description=(
                f'"{session.name}" ({session.duration_minutes} min) is longer than any availability block'
            ),
            evidence={
                "sessionId": session.id,
                "details": f"Longest candidate block is {longest:g} minutes",
                "longestBlockMinutes": longest
            }
        )
    else:
        violation = ConstraintViolation(
            key="BUSINESS_HOURS_VIOLATION",
            description=f'"{session.name}" cannot be scheduled within business hours',
            evidence={
                "sessionId": session.id,
                "details": "No available slots match the session constraints"
            }
        )

    log.debug("Session %s blocked: %s", session.id, violation.key)
    context.add_violation(violation)
    return violation


def track_search_violations(context: SolverContext) -> None:
    """Explain a search that ran over non-empty placements but found nothing."""
    if context.day_span_rejections:
        context.add_violation(ConstraintViolation(
            key="MAX_DAYS_EXCEEDED",
            description=f"The loop cannot fit within {context.policy.max_days_span} day(s)",
            evidence={
                "details": f"{context.day_span_rejections} placements would have opened an extra day",
                "maxDaysSpan": context.policy.max_days_span
            }
        ))

    stopped_early = context.timed_out or context.iteration_limit_reached
    if context.gap_rejections or not (context.constraint_violations or stopped_early):
        context.add_violation(ConstraintViolation(
            key="INSUFFICIENT_GAP_BETWEEN_SESSIONS",
            description="Could not find a valid sequence of sessions",
            evidence={"details": "No valid ordering found within constraints"}
        ))


def build_recommended_actions(
    violations: list[ConstraintViolation],
    max_days_span: int = 3
) -> list[RecommendedAction]:
    """Map violations to actions, sorted by priority and deduplicated per session."""
    actions: list[RecommendedAction] = []

    for violation in violations:
        session_id = violation.evidence.get("sessionId")

        if violation.key in ("INTERVIEWER_POOL_EMPTY", "INTERVIEWER_POOL_ALL_BUSY"):
            actions.append(RecommendedAction(
                action_type="ADD_INTERVIEWERS_TO_POOL",
                description="Add more interviewers to the pool for this session",
                priority=1,
                payload={"sessionId": session_id, "estimatedImpact": "HIGH"}
            ))
        elif violation.key == "NO_CANDIDATE_AVAILABILITY":
            actions.append(RecommendedAction(
                action_type="EXPAND_CANDIDATE_AVAILABILITY",
                description="Ask the candidate to provide more availability",
                priority=1,
                payload={"estimatedImpact": "HIGH"}
            ))
        elif violation.key == "SESSION_TOO_LONG_FOR_BLOCKS":
            actions.append(RecommendedAction(
                action_type="REDUCE_SESSION_DURATION",
                description="Consider reducing the session duration",
                priority=2,
                payload={"sessionId": session_id, "estimatedImpact": "MEDIUM"}
            ))
            actions.append(RecommendedAction(
                action_type="EXPAND_CANDIDATE_AVAILABILITY",
                description="Ask candidate for longer availability blocks",
                priority=1,
                payload={"estimatedImpact": "HIGH"}
            ))
        elif violation.key == "MAX_DAYS_EXCEEDED":
            actions.append(RecommendedAction(
                action_type="ALLOW_MULTI_DAY",
                description="Allow the loop to span more days",
                priority=2,
                payload={"suggestedValue": max_days_span + 1, "estimatedImpact": "MEDIUM"}
            ))
        elif violation.key == "INSUFFICIENT_GAP_BETWEEN_SESSIONS":
            actions.append(RecommendedAction(
                action_type="REMOVE_BUFFER_CONSTRAINTS",
                description="Reduce the required gap between sessions",
                priority=2,
                payload={"estimatedImpact": "MEDIUM"}
            ))
        elif violation.key == "BUSINESS_HOURS_VIOLATION":
            actions.append(RecommendedAction(
                action_type="EXTEND_BUSINESS_HOURS",
                description="Consider extending the allowed time window",
                priority=3,
                payload={"sessionId": session_id, "estimatedImpact": "LOW"}
            ))

    seen: set[tuple[str, str]] = set()
    result = []
    for action in sorted(actions, key=lambda a: a.priority):
        key = (action.action_type, action.payload.get("sessionId") or "global")
        if key in seen:
            continue
        seen.add(key)
        result.append(action)
    return result
