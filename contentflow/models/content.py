"""
Content Data Models

Records stored in the state store and returned by the API. Stored form
is camelCase JSON; to_dict()/from_dict() convert in both directions.
"""

import random
import string
import time
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Dict, List, Optional

from contentflow.workflow.status import WorkflowStatus


def utc_now_iso() -> str:
    """Current UTC time as ISO-8601 with millisecond precision and a Z suffix."""
    return datetime.now(timezone.utc).isoformat(timespec="milliseconds").replace("+00:00", "Z")


def parse_iso(value: str) -> datetime:
    """Parse a stored timestamp into an aware UTC datetime."""
    parsed = datetime.fromisoformat(value.replace("Z", "+00:00"))
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


def generate_id(prefix: str) -> str:
    """Time + random identifier, e.g. content_1718000000000_k3j9x2a."""
    suffix = "".join(random.choices(string.ascii_lowercase + string.digits, k=7))
    return f"{prefix}_{int(time.time() * 1000)}_{suffix}"


class Sentiment(Enum):
    POSITIVE = "positive"
    NEUTRAL = "neutral"
    NEGATIVE = "negative"


class RecommendationType(Enum):
    PUBLISH = "publish"
    REVIEW = "review"
    IMPROVE = "improve"
    OPTIMIZE = "optimize"


class Priority(Enum):
    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"


class ImprovementStatus(Enum):
    GENERATING = "generating"
    COMPLETED = "completed"
    FAILED = "failed"


@dataclass
class ValidationResult:
    """Outcome of the validation stage."""
    is_valid: bool
    errors: List[str] = field(default_factory=list)
    warnings: List[str] = field(default_factory=list)
    validated_at: str = field(default_factory=utc_now_iso)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "isValid": self.is_valid,
            "errors": list(self.errors),
            "warnings": list(self.warnings),
            "validatedAt": self.validated_at,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "ValidationResult":
        return cls(
            is_valid=data["isValid"],
            errors=list(data.get("errors", [])),
            warnings=list(data.get("warnings", [])),
            validated_at=data.get("validatedAt", ""),
        )


@dataclass
class AIAnalysisResult:
    """LLM analysis of a content body. Scores are within [0, 100]."""
    sentiment: Sentiment
    topics: List[str]
    readability_score: float
    word_count: int
    quality_score: float
    summary: str
    strengths: List[str] = field(default_factory=list)
    weaknesses: List[str] = field(default_factory=list)
    analyzed_at: str = field(default_factory=utc_now_iso)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "sentiment": self.sentiment.value,
            "topics": list(self.topics),
            "readabilityScore": self.readability_score,
            "wordCount": self.word_count,
            "qualityScore": self.quality_score,
            "summary": self.summary,
            "strengths": list(self.strengths),
            "weaknesses": list(self.weaknesses),
            "analyzedAt": self.analyzed_at,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "AIAnalysisResult":
        return cls(
            sentiment=Sentiment(data.get("sentiment", "neutral")),
            topics=list(data.get("topics", [])),
            readability_score=data.get("readabilityScore", 50),
            word_count=data.get("wordCount", 0),
            quality_score=data.get("qualityScore", 50),
            summary=data.get("summary", ""),
            strengths=list(data.get("strengths", [])),
            weaknesses=list(data.get("weaknesses", [])),
            analyzed_at=data.get("analyzedAt", ""),
        )


@dataclass
class VoteSummary:
    """Denormalized vote counts carried on a recommendation."""
    upvotes: int = 0
    downvotes: int = 0
    user_votes: Dict[str, str] = field(default_factory=dict)

    @classmethod
    def from_votes(cls, votes: Dict[str, str]) -> "VoteSummary":
        """Recount from the full vote map. No incremental counters."""
        return cls(
            upvotes=sum(1 for v in votes.values() if v == "up"),
            downvotes=sum(1 for v in votes.values() if v == "down"),
            user_votes=dict(votes),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "upvotes": self.upvotes,
            "downvotes": self.downvotes,
            "userVotes": dict(self.user_votes),
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "VoteSummary":
        return cls(
            upvotes=data.get("upvotes", 0),
            downvotes=data.get("downvotes", 0),
            user_votes=dict(data.get("userVotes", {})),
        )


@dataclass
class Recommendation:
    """Actionable recommendation derived from an analysis."""
    id: str
    type: RecommendationType
    title: str
    description: str
    priority: Priority
    actionable_steps: List[str] = field(default_factory=list)
    votes: Optional[VoteSummary] = None

    def to_dict(self) -> Dict[str, Any]:
        data = {
            "id": self.id,
            "type": self.type.value,
            "title": self.title,
            "description": self.description,
            "priority": self.priority.value,
            "actionableSteps": list(self.actionable_steps),
        }
        if self.votes is not None:
            data["votes"] = self.votes.to_dict()
        return data

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Recommendation":
        return cls(
            id=data["id"],
            type=RecommendationType(data["type"]),
            title=data["title"],
            description=data["description"],
            priority=Priority(data["priority"]),
            actionable_steps=list(data.get("actionableSteps", [])),
            votes=VoteSummary.from_dict(data["votes"]) if data.get("votes") else None,
        )


@dataclass
class ImprovedContent:
    """AI rewrite draft. At most one per content item."""
    original_body: str
    improved_body: str
    status: ImprovementStatus
    generated_at: str = field(default_factory=utc_now_iso)
    applied_at: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        data = {
            "originalBody": self.original_body,
            "improvedBody": self.improved_body,
            "generatedAt": self.generated_at,
            "status": self.status.value,
        }
        if self.applied_at:
            data["appliedAt"] = self.applied_at
        return data

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "ImprovedContent":
        return cls(
            original_body=data.get("originalBody", ""),
            improved_body=data.get("improvedBody", ""),
            status=ImprovementStatus(data["status"]),
            generated_at=data.get("generatedAt", ""),
            applied_at=data.get("appliedAt"),
        )


@dataclass
class ContentItem:
    """A submitted piece of content and everything the workflow attached to it."""
    content_id: str
    title: str
    body: str
    author: str
    language: str
    created_at: str
    updated_at: str
    workflow_status: WorkflowStatus = WorkflowStatus.PENDING
    user_id: Optional[str] = None
    validation_result: Optional[ValidationResult] = None
    ai_analysis: Optional[AIAnalysisResult] = None
    recommendations: Optional[List[Recommendation]] = None
    improved_content: Optional[ImprovedContent] = None

    def touch(self) -> None:
        """Stamp updatedAt."""
        self.updated_at = utc_now_iso()

    def find_recommendation(self, recommendation_id: str) -> Optional[Recommendation]:
        for rec in self.recommendations or []:
            if rec.id == recommendation_id:
                return rec
        return None

    def to_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {
            "contentId": self.content_id,
            "title": self.title,
            "body": self.body,
            "author": self.author,
            "language": self.language,
            "createdAt": self.created_at,
            "updatedAt": self.updated_at,
            "workflowStatus": self.workflow_status.value,
        }
        if self.user_id is not None:
            data["userId"] = self.user_id
        if self.validation_result is not None:
            data["validationResult"] = self.validation_result.to_dict()
        if self.ai_analysis is not None:
            data["aiAnalysis"] = self.ai_analysis.to_dict()
        if self.recommendations is not None:
            data["recommendations"] = [r.to_dict() for r in self.recommendations]
        if self.improved_content is not None:
            data["improvedContent"] = self.improved_content.to_dict()
        return data

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "ContentItem":
        validation = data.get("validationResult")
        analysis = data.get("aiAnalysis")
        recommendations = data.get("recommendations")
        improved = data.get("improvedContent")
        return cls(
            content_id=data["contentId"],
            title=data["title"],
            body=data["body"],
            author=data["author"],
            language=data["language"],
            created_at=data["createdAt"],
            updated_at=data["updatedAt"],
            workflow_status=WorkflowStatus(data.get("workflowStatus", "pending")),
            user_id=data.get("userId"),
            validation_result=ValidationResult.from_dict(validation) if validation else None,
            ai_analysis=AIAnalysisResult.from_dict(analysis) if analysis else None,
            recommendations=(
                [Recommendation.from_dict(r) for r in recommendations]
                if recommendations is not None else None
            ),
            improved_content=ImprovedContent.from_dict(improved) if improved else None,
        )

    def to_summary(self) -> Dict[str, Any]:
        """Dashboard list entry."""
        return {
            "id": self.content_id,
            "contentId": self.content_id,
            "title": self.title,
            "author": self.author,
            "status": self.workflow_status.value,
            "createdAt": self.created_at,
            "updatedAt": self.updated_at,
        }

    def to_snapshot(self) -> Dict[str, Any]:
        """Full status view served by GET /content/{id}."""
        return {
            "contentId": self.content_id,
            "title": self.title,
            "body": self.body,
            "author": self.author,
            "language": self.language,
            "createdAt": self.created_at,
            "updatedAt": self.updated_at,
            "status": self.workflow_status.value,
            "validation": self.validation_result.to_dict() if self.validation_result else None,
            "analysis": self.ai_analysis.to_dict() if self.ai_analysis else None,
            "recommendations": [r.to_dict() for r in self.recommendations or []],
            "improvedContent": self.improved_content.to_dict() if self.improved_content else None,
        }
