"""Structured response formatter for loop solve and commit results."""

from typing import List, Optional
from datetime import datetime
import pytz

from models.entities import LoopCommitResult, LoopSolution, LoopSolveResult


class ResponseFormatter:
    """Formats solver output for the coordinator UI in a consistent manner."""

    @staticmethod
    def format_time(value: datetime, timezone: str) -> str:
        """Format a time as '9:00 AM' in the given timezone (UTC HH:MM if unknown)."""
        try:
            tz = pytz.timezone(timezone)
        except pytz.UnknownTimeZoneError:
            return value.astimezone(pytz.UTC).strftime('%H:%M')
        local = value.astimezone(tz)
        return local.strftime('%I:%M %p').lstrip('0')

    @staticmethod
    def format_date(value: datetime, timezone: str) -> str:
        """Format a date as 'Fri, Mar 1' in the given timezone (UTC ISO date if unknown)."""
        try:
            tz = pytz.timezone(timezone)
        except pytz.UnknownTimeZoneError:
            return value.astimezone(pytz.UTC).strftime('%Y-%m-%d')
        local = value.astimezone(tz)
        return f"{local.strftime('%a, %b')} {local.day}"

    @staticmethod
    def format_solution(index: int, solution: LoopSolution, timezone: str) -> List[str]:
        """Format one ranked solution as a block of lines."""
        if index == 1:
            lines = [f"⭐ **Option {index} (Best Match)** - score {solution.score}"]
        else:
            lines = [f"**Option {index}** - score {solution.score}"]
        lines.append(f"   {solution.rationale_summary}")

        for session in solution.sessions:
            lines.append(
                f"   • {session.session_name}: {session.display_start} - {session.display_end} "
                f"({timezone}) with {session.interviewer_email}"
            )

        lines.append(f"   • Loop length: {solution.total_duration_minutes} minutes")
        lines.append("")
        return lines

    @staticmethod
    def format_solutions(result: LoopSolveResult, timezone: str, show_all: bool = False) -> str:
        """Format a solved result, or the diagnostics when nothing was found."""
        if result.status != "SOLVED" or not result.solutions:
            return ResponseFormatter.format_unsatisfiable(result)

        limit = len(result.solutions) if show_all else min(5, len(result.solutions))
        lines = [
            "**🎯 Interview Loop Options**",
            "",
            f"Found **{len(result.solutions)}** schedule(s) in "
            f"{result.metadata.solve_duration_ms} ms ({result.metadata.search_iterations} iterations).",
            ""
        ]

        for i, solution in enumerate(result.solutions[:limit], 1):
            lines.extend(ResponseFormatter.format_solution(i, solution, timezone))

        if len(result.solutions) > limit:
            lines.append(f"*+ {len(result.solutions) - limit} more option(s) available.*")

        if result.metadata.timed_out or result.metadata.iteration_limit_reached:
            lines.append("*Search stopped at its budget; more options may exist.*")

        return "\n".join(lines)

    @staticmethod
    def format_unsatisfiable(result: LoopSolveResult) -> str:
        """Format blocking constraints and the recommended fixes."""
        if result.status == "ERROR":
            return ResponseFormatter.format_error(
                "Solver Error",
                result.error_message or "The solver failed unexpectedly."
            )

        title = "Search Budget Exhausted" if result.status == "TIMEOUT" else "No Valid Schedule"
        message = "Could not find a schedule for this interview loop."

        lines = [f"**❌ {title}**", "", message, ""]

        if result.top_constraints:
            lines.append("**Blocking constraints:**")
            for violation in result.top_constraints:
                lines.append(f"• {violation.description}")
            lines.append("")

        if result.recommended_actions:
            lines.append("**Suggestions:**")
            for action in result.recommended_actions:
                lines.append(f"{action.priority}. {action.description}")

        return "\n".join(lines).rstrip()

    @staticmethod
    def format_commit_result(result: LoopCommitResult) -> str:
        """Format the outcome of booking a chosen solution."""
        if result.status == "ALREADY_COMMITTED":
            return ResponseFormatter.format_info(
                "Already Booked",
                f"This loop was already committed (booking {result.loop_booking_id})."
            )

        if result.status == "FAILED":
            suggestions = None
            if result.rollback_details:
                details = result.rollback_details
                suggestions = [
                    f"{details.events_rolled_back} of {details.events_created} created event(s) rolled back",
                    "Run the solver again to get fresh options",
                ]
            return ResponseFormatter.format_error(
                "Booking Failed",
                result.error_message or "Could not book every session.",
                suggestions=suggestions
            )

        return ResponseFormatter.format_success(
            "Interview Loop Booked",
            f"All {len(result.booked_sessions)} session(s) are on the calendar.",
            details=[
                f"{s.session_name} with {s.interviewer_email} (event {s.calendar_event_id})"
                for s in result.booked_sessions
            ]
        )

    @staticmethod
    def format_success(title: str, message: str, details: Optional[List[str]] = None) -> str:
        """Format a success message."""
        lines = [
            f"**✅ {title}**",
            "",
            message
        ]

        if details:
            lines.append("")
            lines.append("**Details:**")
            for detail in details:
                lines.append(f"• {detail}")

        return "\n".join(lines)

    @staticmethod
    def format_error(title: str, message: str, suggestions: Optional[List[str]] = None) -> str:
        """Format an error message."""
        lines = [
            f"**❌ {title}**",
            "",
            message
        ]

        if suggestions:
            lines.append("")
            lines.append("**Suggestions:**")
            for suggestion in suggestions:
                lines.append(f"• {suggestion}")

        return "\n".join(lines)

    @staticmethod
    def format_info(title: str, message: str, items: Optional[List[str]] = None) -> str:
        """Format an informational message."""
        lines = [
            f"**ℹ️ {title}**",
            "",
            message
        ]

        if items:
            lines.append("")
            for item in items:
                lines.append(f"• {item}")

        return "\n".join(lines)
