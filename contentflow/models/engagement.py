"""
Engagement Models

Comments and votes live beside content items, in their own collections.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, Optional


class CommentType(Enum):
    ANALYSIS = "analysis"
    RECOMMENDATION = "recommendation"
    GENERAL = "general"


class VoteDirection(Enum):
    UP = "up"
    DOWN = "down"


@dataclass(frozen=True)
class Comment:
    """A user comment. Append-only, never edited after creation."""
    id: str
    content_id: str
    user_id: str
    user_name: str
    text: str
    type: CommentType
    created_at: str
    updated_at: str
    target_id: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        data = {
            "id": self.id,
            "contentId": self.content_id,
            "userId": self.user_id,
            "userName": self.user_name,
            "text": self.text,
            "type": self.type.value,
            "createdAt": self.created_at,
            "updatedAt": self.updated_at,
        }
        if self.target_id:
            data["targetId"] = self.target_id
        return data

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Comment":
        return cls(
            id=data["id"],
            content_id=data["contentId"],
            user_id=data["userId"],
            user_name=data["userName"],
            text=data["text"],
            type=CommentType(data.get("type", "general")),
            created_at=data["createdAt"],
            updated_at=data["updatedAt"],
            target_id=data.get("targetId"),
        )


def vote_key(content_id: str, recommendation_id: str) -> str:
    """Key of the userId -> vote map for one recommendation."""
    return f"votes_{content_id}_{recommendation_id}"
