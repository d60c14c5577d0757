"""
Core data models for Civic Pulse.
"""

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any, Dict, List, Optional, Tuple


class ReportStatus(Enum):
    """Lifecycle state of a citizen issue report."""
    REPORTED = "reported"
    IN_PROGRESS = "in_progress"
    RESOLVED = "resolved"
    VERIFIED = "verified"

    @property
    def is_active(self) -> bool:
        """Only freshly reported issues are shown on the heat map."""
        return self is ReportStatus.REPORTED


class IssueCategory(Enum):
    """Categories a citizen can file a report under."""
    POTHOLE = "pothole"
    GARBAGE = "garbage"
    STREETLIGHT = "streetlight"
    DRAINAGE = "drainage"
    WATER = "water"
    NOISE = "noise"


@dataclass(frozen=True)
class GeoReport:
    """
    A geotagged issue report, as handed to the cluster engine.

    Coordinates are decimal degrees (WGS84).
    """
    id: str
    latitude: float
    longitude: float
    category: IssueCategory
    created_at: datetime
    status: ReportStatus = ReportStatus.REPORTED
    upvotes: int = 0
    downvotes: int = 0

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "latitude": self.latitude,
            "longitude": self.longitude,
            "category": self.category.value,
            "created_at": self.created_at.isoformat(),
            "status": self.status.value,
            "upvotes": self.upvotes,
            "downvotes": self.downvotes,
        }


@dataclass(frozen=True)
class Cluster:
    """
    A group of same-category reports within the cluster radius of a seed report.

    Derived on every invocation; never persisted.
    """
    center_latitude: float
    center_longitude: float
    category: IssueCategory
    member_reports: Tuple[GeoReport, ...]
    intensity: float
    avg_upvotes: float = 0.0
    duplicate_count: int = 0

    @property
    def count(self) -> int:
        return len(self.member_reports)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "latitude": self.center_latitude,
            "longitude": self.center_longitude,
            "category": self.category.value,
            "count": self.count,
            "intensity": self.intensity,
            "avg_upvotes": self.avg_upvotes,
            "duplicate_count": self.duplicate_count,
            "report_ids": [r.id for r in self.member_reports],
        }


@dataclass
class HeatmapStats:
    """Summary numbers shown alongside the heat map."""
    total_reports: int = 0
    category_breakdown: Dict[str, int] = field(default_factory=dict)
    high_priority_areas: List[Cluster] = field(default_factory=list)
    total_clusters: int = 0
    avg_reports_per_cluster: str = "0"

    def to_dict(self) -> Dict[str, Any]:
        return {
            "total_reports": self.total_reports,
            "category_breakdown": dict(self.category_breakdown),
            "high_priority_areas": [c.to_dict() for c in self.high_priority_areas],
            "total_clusters": self.total_clusters,
            "avg_reports_per_cluster": self.avg_reports_per_cluster,
        }


@dataclass(frozen=True)
class Intent:
    """
    A voice intent catalog entry.

    An intent either navigates to a ``route`` or triggers an ``action``;
    informational intents carry neither.
    """
    id: str
    keywords: Tuple[str, ...] = ()
    examples: Tuple[str, ...] = ()
    description: str = ""
    route: Optional[str] = None
    action: Optional[str] = None

    def __post_init__(self):
        if not self.id:
            raise ValueError("Intent id must not be empty")
        if self.route and self.action:
            raise ValueError(f"Intent {self.id} declares both a route and an action")
        # Lists from JSON are frozen so the catalog stays immutable
        object.__setattr__(self, "keywords", tuple(self.keywords))
        object.__setattr__(self, "examples", tuple(self.examples))

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Intent":
        return cls(
            id=data["id"],
            keywords=tuple(data.get("keywords", ())),
            examples=tuple(data.get("examples", ())),
            description=data.get("description", ""),
            route=data.get("route"),
            action=data.get("action"),
        )

    def to_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {
            "id": self.id,
            "keywords": list(self.keywords),
            "examples": list(self.examples),
            "description": self.description,
        }
        if self.route:
            data["route"] = self.route
        if self.action:
            data["action"] = self.action
        return data


@dataclass(frozen=True)
class MatchResult:
    """A confident match of a transcript against the intent catalog."""
    intent: Intent
    confidence: int  # 0-100
    normalized_transcript: str

    def to_dict(self) -> Dict[str, Any]:
        return {
            "intent": self.intent.id,
            "confidence": self.confidence,
            "normalized_transcript": self.normalized_transcript,
        }
