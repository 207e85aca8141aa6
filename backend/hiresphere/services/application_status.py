"""
Job application status lifecycle.

    Applied -> Screening -> Interview -> Offered -> Accepted
       \\           \\            \\          \\
        +-----------+------------+----------+--> Rejected

Accepted, Rejected and Withdrawn are terminal. Anything not listed in
ALLOWED_TRANSITIONS is refused, including "transitions" to the current status.
"""
from dataclasses import dataclass
from typing import Any

from ..enums import JobApplicationStatus

ALLOWED_TRANSITIONS: dict[JobApplicationStatus, frozenset[JobApplicationStatus]] = {
    JobApplicationStatus.APPLIED: frozenset({JobApplicationStatus.SCREENING, JobApplicationStatus.REJECTED}),
    JobApplicationStatus.SCREENING: frozenset({JobApplicationStatus.INTERVIEW, JobApplicationStatus.REJECTED}),
    JobApplicationStatus.INTERVIEW: frozenset({JobApplicationStatus.OFFERED, JobApplicationStatus.REJECTED}),
    JobApplicationStatus.OFFERED: frozenset({JobApplicationStatus.ACCEPTED, JobApplicationStatus.REJECTED}),
    JobApplicationStatus.ACCEPTED: frozenset(),
    JobApplicationStatus.REJECTED: frozenset(),
    JobApplicationStatus.WITHDRAWN: frozenset(),
}

INITIAL_STATUS = JobApplicationStatus.APPLIED
INVALID_STATUS_MESSAGE = "Invalid application status."


@dataclass(frozen=True)
class StatusTransition:
    ok: bool
    status: JobApplicationStatus | None
    error: str | None = None


def parse_status(value: Any) -> JobApplicationStatus | None:
    """Accept enum members, names ('SCREENING'), values ('Screening') or ordinals (1)."""
    if isinstance(value, JobApplicationStatus):
        return value
    if isinstance(value, bool):
        return None
    members = list(JobApplicationStatus)
    if isinstance(value, int):
        return members[value] if 0 <= value < len(members) else None
    if isinstance(value, str):
        s = value.strip()
        if s.isdigit():
            return parse_status(int(s))
        for member in members:
            if s.lower() in {member.value.lower(), member.name.lower()}:
                return member
    return None


def allowed_next(current: JobApplicationStatus) -> frozenset[JobApplicationStatus]:
    return ALLOWED_TRANSITIONS.get(current, frozenset())


def is_terminal(status: JobApplicationStatus) -> bool:
    return not allowed_next(status)


def change_status(current: Any, requested: Any) -> StatusTransition:
    """
    Decide a status change without side effects.

    On success `status` is the requested status; on failure `status` is the
    (parsed) current status and `error` names it.
    """
    cur = parse_status(current)
    req = parse_status(requested)
    if cur is None or req is None:
        return StatusTransition(ok=False, status=cur, error=INVALID_STATUS_MESSAGE)

    if req in allowed_next(cur):
        return StatusTransition(ok=True, status=req)

    return StatusTransition(
        ok=False,
        status=cur,
        error=f"Invalid status transition from {cur.value}.",
    )
