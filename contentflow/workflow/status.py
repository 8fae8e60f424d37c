"""
Workflow Status

The closed set of states a content item moves through, and the single
function allowed to move it. Every stage goes through transition() so an
out-of-order event (a redelivered analysis for an item that already
completed, for instance) is refused instead of silently rewinding status.

    pending -> validated -> analyzing -> analyzed -> completed
       |           |            |
       v           v            v
    rejected     failed       failed
"""

from enum import Enum
from typing import Dict, FrozenSet, Union


class WorkflowStatus(Enum):
    """Status of a content item in the workflow."""
    PENDING = "pending"           # Submitted, waiting for validation
    VALIDATING = "validating"     # Validation in progress
    VALIDATED = "validated"       # Passed validation
    REJECTED = "rejected"         # Failed validation
    ANALYZING = "analyzing"       # LLM analysis in progress
    ANALYZED = "analyzed"         # Analysis stored
    COMPLETED = "completed"       # Recommendations stored
    FAILED = "failed"             # Analysis could not be produced


TERMINAL_STATUSES: FrozenSet[WorkflowStatus] = frozenset({
    WorkflowStatus.COMPLETED,
    WorkflowStatus.FAILED,
    WorkflowStatus.REJECTED,
})

ALLOWED_TRANSITIONS: Dict[WorkflowStatus, FrozenSet[WorkflowStatus]] = {
    WorkflowStatus.PENDING: frozenset({
        WorkflowStatus.VALIDATING,
        WorkflowStatus.VALIDATED,
        WorkflowStatus.REJECTED,
        WorkflowStatus.FAILED,
    }),
    WorkflowStatus.VALIDATING: frozenset({
        WorkflowStatus.VALIDATED,
        WorkflowStatus.REJECTED,
        WorkflowStatus.FAILED,
    }),
    WorkflowStatus.VALIDATED: frozenset({
        WorkflowStatus.ANALYZING,
        WorkflowStatus.ANALYZED,
        WorkflowStatus.FAILED,
    }),
    WorkflowStatus.ANALYZING: frozenset({
        WorkflowStatus.ANALYZED,
        WorkflowStatus.FAILED,
    }),
    # analyzed -> analyzed restores status after a failed notification
    WorkflowStatus.ANALYZED: frozenset({
        WorkflowStatus.ANALYZED,
        WorkflowStatus.COMPLETED,
    }),
    WorkflowStatus.COMPLETED: frozenset(),
    WorkflowStatus.FAILED: frozenset(),
    WorkflowStatus.REJECTED: frozenset(),
}


class IllegalTransitionError(Exception):
    """Raised when a stage tries to move an item along an edge that doesn't exist."""

    def __init__(self, current: WorkflowStatus, target: WorkflowStatus):
        self.current = current
        self.target = target
        super().__init__(
            f"Illegal workflow transition: {current.value} -> {target.value}"
        )


def coerce_status(value: Union[str, WorkflowStatus]) -> WorkflowStatus:
    """Accept either the enum or its stored string value."""
    if isinstance(value, WorkflowStatus):
        return value
    return WorkflowStatus(value)


def can_transition(current: Union[str, WorkflowStatus], target: Union[str, WorkflowStatus]) -> bool:
    """Check whether current -> target is an allowed edge."""
    return coerce_status(target) in ALLOWED_TRANSITIONS[coerce_status(current)]


def transition(current: Union[str, WorkflowStatus], target: Union[str, WorkflowStatus]) -> WorkflowStatus:
    """
    Authorize a status change.

    Returns:
        The target status

    Raises:
        IllegalTransitionError: if the edge is not in ALLOWED_TRANSITIONS
    """
    current = coerce_status(current)
    target = coerce_status(target)
    if target not in ALLOWED_TRANSITIONS[current]:
        raise IllegalTransitionError(current, target)
    return target


def is_terminal(status: Union[str, WorkflowStatus]) -> bool:
    """Terminal items receive no further stage transitions."""
    return coerce_status(status) in TERMINAL_STATUSES
