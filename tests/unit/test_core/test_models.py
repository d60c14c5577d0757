import dataclasses
from datetime import datetime, timezone

import pytest
from core.models import (
    Cluster, GeoReport, HeatmapStats, Intent, IssueCategory, MatchResult, ReportStatus
)

CREATED = datetime(2024, 1, 15, 9, 30, tzinfo=timezone.utc)


def test_geo_report_defaults():
    """Verify GeoReport defaults and serialization."""
    report = GeoReport(id="r1", latitude=12.97, longitude=77.59,
                       category=IssueCategory.POTHOLE, created_at=CREATED)
    assert report.status == ReportStatus.REPORTED
    assert report.upvotes == 0
    assert report.downvotes == 0

    data = report.to_dict()
    assert data["category"] == "pothole"
    assert data["status"] == "reported"
    assert data["created_at"] == "2024-01-15T09:30:00+00:00"


def test_geo_report_is_immutable():
    report = GeoReport(id="r1", latitude=0.0, longitude=0.0,
                       category=IssueCategory.WATER, created_at=CREATED)
    with pytest.raises(dataclasses.FrozenInstanceError):
        report.upvotes = 5


@pytest.mark.parametrize("status,active", [
    (ReportStatus.REPORTED, True),
    (ReportStatus.IN_PROGRESS, False),
    (ReportStatus.RESOLVED, False),
    (ReportStatus.VERIFIED, False),
])
def test_status_is_active(status, active):
    assert status.is_active is active


def test_cluster_count_and_dict():
    """Verify Cluster derives its count from its members."""
    members = tuple(
        GeoReport(id=f"r{i}", latitude=1.0, longitude=2.0,
                  category=IssueCategory.GARBAGE, created_at=CREATED)
        for i in range(3)
    )
    cluster = Cluster(center_latitude=1.0, center_longitude=2.0,
                      category=IssueCategory.GARBAGE, member_reports=members, intensity=0.15)
    assert cluster.count == 3
    data = cluster.to_dict()
    assert data["count"] == 3
    assert data["report_ids"] == ["r0", "r1", "r2"]
    assert data["category"] == "garbage"


def test_heatmap_stats_defaults():
    stats = HeatmapStats()
    assert stats.total_reports == 0
    assert stats.category_breakdown == {}
    assert stats.high_priority_areas == []
    assert stats.avg_reports_per_cluster == "0"
    assert stats.to_dict()["total_clusters"] == 0


def test_intent_from_dict():
    """Verify Intent parsing and list-to-tuple conversion."""
    intent = Intent.from_dict({
        "id": "safety",
        "keywords": ["safety", "scam check"],
        "examples": ["navigate safety"],
        "description": "Safety tools",
        "route": "/safety",
    })
    assert intent.keywords == ("safety", "scam check")
    assert intent.examples == ("navigate safety",)
    assert intent.action is None
    assert intent.to_dict()["route"] == "/safety"
    assert "action" not in intent.to_dict()

    listed = Intent(id="x", keywords=["a", "b"])
    assert listed.keywords == ("a", "b")


def test_intent_validation():
    with pytest.raises(ValueError):
        Intent(id="")
    with pytest.raises(ValueError):
        Intent(id="both", route="/a", action="b")


def test_match_result_dict():
    intent = Intent(id="logout", action="logout")
    match = MatchResult(intent=intent, confidence=88, normalized_transcript="logout")
    assert match.to_dict() == {"intent": "logout", "confidence": 88, "normalized_transcript": "logout"}
