"""Loop Autopilot - coordinator console for scheduling interview loops."""

import logging
import os
import uuid
from datetime import date, datetime, time, timedelta

import pytz
import streamlit as st
from dotenv import load_dotenv

from models.entities import (
    CandidateAvailabilityBlock,
    InterviewerPoolConfig,
    LoopCommitRequest,
    LoopSessionTemplate,
    LoopSolveRequest,
    SessionConstraints,
)
from services.booking_service_mock import BookingServiceMock
from services.calendar_mock import DEFAULT_INTERVIEWERS, CalendarServiceMock
from services.calendar_service import CalendarService
from services.errors import CommitError
from services.freebusy_client import FreeBusyClient
from services.loop_autopilot import LoopAutopilotService, SolveResponse
from services.loop_commit import LoopCommitService
from services.loop_store import LoopStore
from services.policy_config import load_policy
from services.response_formatter import ResponseFormatter

# ============================================================================
# CONFIGURATION
# ============================================================================

# Load environment variables from .env file
load_dotenv()

logging.basicConfig(
    level=os.getenv("LOG_LEVEL", "INFO"),
    format="%(asctime)s %(levelname)s %(name)s: %(message)s"
)

st.set_page_config(
    page_title="Loop Autopilot",
    page_icon="🗓️",
    layout="wide"
)

DEMO_AVAILABILITY_REQUEST_ID = "avail-demo"

TIMEZONES = ["America/New_York", "America/Chicago", "America/Los_Angeles", "Europe/London", "Asia/Kolkata"]

# ============================================================================
# SERVICE INITIALIZATION
# ============================================================================

@st.cache_resource
def get_services(_cache_version="v1"):
    """Initialize and cache services; uses the live calendar API when a token is configured."""
    if os.getenv("FREEBUSY_API_TOKEN"):
        provider = FreeBusyClient()
    else:
        provider = CalendarServiceMock()

    store = LoopStore()
    calendar_service = CalendarService(provider)
    autopilot = LoopAutopilotService(calendar_service, store, base_policy=load_policy())
    commit_service = LoopCommitService(store, BookingServiceMock())
    return autopilot, commit_service


autopilot, commit_service = get_services()


def default_sessions() -> list[LoopSessionTemplate]:
    """The standard onsite loop used by the demo."""
    return [
        LoopSessionTemplate(
            id="hm-screen", order=0, name="Hiring Manager", duration_minutes=45,
            interviewer_pool=InterviewerPoolConfig(emails=["alice.hm@example.com"]),
            constraints=SessionConstraints(min_gap_to_next_minutes=15)
        ),
        LoopSessionTemplate(
            id="technical", order=1, name="Technical Deep Dive", duration_minutes=60,
            interviewer_pool=InterviewerPoolConfig(emails=["bob.eng@example.com", "carol.eng@example.com"]),
            constraints=SessionConstraints(min_gap_to_next_minutes=15)
        ),
        LoopSessionTemplate(
            id="values", order=2, name="Values", duration_minutes=45,
            interviewer_pool=InterviewerPoolConfig(emails=["erin.values@example.com", "dan.design@example.com"])
        ),
    ]

# ============================================================================
# SESSION STATE INITIALIZATION
# ============================================================================

if "sessions" not in st.session_state:
    st.session_state.sessions = default_sessions()
    st.session_state.availability_request_id = DEMO_AVAILABILITY_REQUEST_ID
    st.session_state.messages = []

    # Restore the latest run for this availability request after a page reload
    st.session_state.last_solve = None
    latest_run = autopilot.store.get_latest_solve_run(DEMO_AVAILABILITY_REQUEST_ID)
    if latest_run is not None and latest_run.result_snapshot is not None:
        st.session_state.last_solve = SolveResponse(
            solve_id=latest_run.id, cached=True, result=latest_run.result_snapshot
        )
    committed = autopilot.store.get_committed_loop_booking(DEMO_AVAILABILITY_REQUEST_ID)
    if committed is not None:
        st.session_state.messages.append(ResponseFormatter.format_info(
            "Already Booked",
            f"Loop booking {committed.id} holds option {committed.chosen_solution_id}."
        ))

# ============================================================================
# SIDEBAR: POLICY
# ============================================================================

with st.sidebar:
    st.header("⚙️ Scheduling Policy")
    base = autopilot.base_policy
    policy_overrides = {
        "slot_granularity_minutes": st.selectbox("Slot granularity (min)", [5, 10, 15, 30], index=2),
        "max_days_span": st.number_input("Max days span", min_value=1, max_value=7, value=base.max_days_span),
        "max_solutions_to_return": st.number_input(
            "Options to return", min_value=1, max_value=25, value=base.max_solutions_to_return
        ),
        "prefer_single_day": st.checkbox("Prefer single day", value=base.prefer_single_day),
        "enforce_business_hours": st.checkbox("Enforce business hours (UTC)", value=base.enforce_business_hours),
        "solver_timeout_ms": st.number_input(
            "Solver timeout (ms)", min_value=100, max_value=60000, value=base.solver_timeout_ms, step=500
        ),
    }

    st.markdown("---")
    st.subheader("👥 Interviewers")
    for email, tz in DEFAULT_INTERVIEWERS.items():
        st.markdown(f"• {email} ({tz})")

# ============================================================================
# MAIN
# ============================================================================

st.title("🗓️ Loop Autopilot")
st.caption("Find a schedule for every session of an interview loop in one go.")

st.subheader("Loop")
for session in st.session_state.sessions:
    st.markdown(
        f"**{session.order + 1}. {session.name}** - {session.duration_minutes} min, "
        f"pool: {', '.join(session.interviewer_pool.emails)}"
    )

st.subheader("Candidate availability (UTC)")
col1, col2, col3, col4 = st.columns(4)
with col1:
    first_day = st.date_input("First day", value=date.today() + timedelta(days=1))
with col2:
    days = st.number_input("Days", min_value=1, max_value=10, value=2)
with col3:
    window_start = st.time_input("From", value=time(13, 0))
with col4:
    window_end = st.time_input("To", value=time(17, 0))

candidate_timezone = st.selectbox("Candidate timezone (display only)", TIMEZONES)

if st.button("🔍 Find loop schedules", key="solve_button"):
    blocks = [
        CandidateAvailabilityBlock(
            start_at=pytz.UTC.localize(datetime.combine(first_day + timedelta(days=i), window_start)),
            end_at=pytz.UTC.localize(datetime.combine(first_day + timedelta(days=i), window_end))
        )
        for i in range(int(days))
        if window_start < window_end
    ]
    request = LoopSolveRequest(
        availability_request_id=st.session_state.availability_request_id,
        loop_template_id="demo-loop",
        sessions=st.session_state.sessions,
        candidate_blocks=blocks,
        candidate_timezone=candidate_timezone,
        policy_overrides=policy_overrides,
        solve_idempotency_key=f"solve-{uuid.uuid4().hex[:8]}"
    )
    with st.spinner("Searching..."):
        st.session_state.last_solve = autopilot.solve(request)

response = st.session_state.last_solve
if response is not None:
    st.markdown("---")
    st.markdown(ResponseFormatter.format_solutions(response.result, candidate_timezone))

    for i, solution in enumerate(response.result.solutions[:5], 1):
        if st.button(f"📅 Book option {i}", key=f"book_{solution.solution_id}"):
            try:
                commit_result = commit_service.commit(LoopCommitRequest(
                    solve_id=response.solve_id,
                    solution_id=solution.solution_id,
                    commit_idempotency_key=f"{response.solve_id}:{solution.solution_id}"
                ))
                st.session_state.messages.append(ResponseFormatter.format_commit_result(commit_result))
            except CommitError as e:
                st.session_state.messages.append(ResponseFormatter.format_error("Cannot Book", str(e)))
            st.rerun()

for message in st.session_state.messages:
    st.markdown(message)
