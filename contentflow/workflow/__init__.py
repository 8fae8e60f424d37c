"""
Content Workflow

Event-driven pipeline: submission -> validation -> analysis ->
recommendations, plus on-demand improvement, comments, votes and a
daily retention sweep.

Stages live in contentflow.workflow.stages; wiring in
contentflow.workflow.runtime.
"""

from .status import (
    WorkflowStatus,
    IllegalTransitionError,
    TERMINAL_STATUSES,
    transition,
    can_transition,
    is_terminal,
)

__all__ = [
    "WorkflowStatus",
    "IllegalTransitionError",
    "TERMINAL_STATUSES",
    "transition",
    "can_transition",
    "is_terminal",
]
