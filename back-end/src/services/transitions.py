from utilities.enumerables import JobApplicationStatus as Status
from utilities.exceptions import InvalidTransitionException


ALLOWED_TRANSITIONS: dict[Status, frozenset[Status]] = {
    Status.PENDING: frozenset({
        Status.REVIEWED,
        Status.SHORTLISTED,
        Status.INTERVIEW_SCHEDULED,
        Status.REJECTED,
        Status.WITHDRAWN,
    }),
    Status.REVIEWED: frozenset({
        Status.SHORTLISTED,
        Status.INTERVIEW_SCHEDULED,
        Status.REJECTED,
        Status.WITHDRAWN,
    }),
    Status.SHORTLISTED: frozenset({
        Status.INTERVIEW_SCHEDULED,
        Status.REJECTED,
        Status.WITHDRAWN,
    }),
    Status.INTERVIEW_SCHEDULED: frozenset({
        Status.INTERVIEWED,
        Status.REJECTED,
        Status.WITHDRAWN,
    }),
    Status.INTERVIEWED: frozenset({
        Status.ACCEPTED,
        Status.REJECTED,
    }),
    Status.ACCEPTED: frozenset(),
    Status.REJECTED: frozenset(),
    Status.WITHDRAWN: frozenset(),
}

TERMINAL_STATUSES = frozenset(status for status, targets in ALLOWED_TRANSITIONS.items() if not targets)


def can_transition(current: Status, target: Status) -> bool:
    return target in ALLOWED_TRANSITIONS.get(current, frozenset())


def validate_transition(current: Status, target: Status) -> None:
    """
    Raise InvalidTransitionException unless `target` is reachable from `current`.

    A status is never reachable from itself, terminal ones included.
    """
    if not can_transition(current, target):
        raise InvalidTransitionException(current, target)
