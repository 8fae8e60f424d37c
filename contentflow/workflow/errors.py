"""
Workflow Errors

Client-facing failures raised by stages invoked from HTTP. Each carries
a message and optional context fields that are echoed back to the caller.
"""

from typing import Any, Dict


class WorkflowError(Exception):
    """Base class for request-level workflow failures."""

    def __init__(self, error: str, **context: Any):
        self.error = error
        self.context: Dict[str, Any] = context
        super().__init__(error)

    def to_dict(self) -> Dict[str, Any]:
        return {"error": self.error, **self.context}


class InvalidInputError(WorkflowError):
    """The request is missing data or asks for something the item can't do yet."""
    pass


class NotFoundError(WorkflowError):
    """A referenced record does not exist."""
    pass


class ContentNotFoundError(NotFoundError):
    """No content item is stored under the given id."""

    def __init__(self, content_id: str):
        self.content_id = content_id
        super().__init__("Content not found", contentId=content_id)


class ConflictError(WorkflowError):
    """The request collides with work already in progress."""
    pass
