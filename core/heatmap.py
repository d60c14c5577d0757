"""
Heat Map Cluster Engine

Groups geotagged issue reports into spatial hotspots with:
- Duplicate detection (same category within the duplicate radius)
- Greedy seed-based clustering (same category within the cluster radius)
- Intensity scoring from member count, community upvotes and duplicates
- Summary statistics for the heat map panel

Clustering is a single greedy pass: each unprocessed report seeds a cluster
and collects every other unprocessed same-category report within the cluster
radius *of the seed*. Clusters are never revisited, so results at cluster
boundaries depend on input order. Consumers rely on this exact rule.
"""

import logging
from dataclasses import dataclass
from decimal import Decimal, ROUND_HALF_UP
from typing import Dict, Iterable, List, Optional

from core.geo import distance_meters, is_valid_coordinate
from core.models import Cluster, GeoReport, HeatmapStats

log = logging.getLogger(__name__)


def _one_decimal(value: float) -> str:
    """Format with one decimal, halves rounded up (1.25 -> "1.3")."""
    return str(Decimal(value).quantize(Decimal("0.1"), rounding=ROUND_HALF_UP))


@dataclass(frozen=True)
class ClusterConfig:
    """Radii, caps and weights used by the cluster engine."""
    cluster_radius_meters: float = 20.0
    duplicate_radius_meters: float = 10.0

    # Sub-score caps: a cluster saturates at these values
    count_cap: float = 10.0
    upvote_cap: float = 5.0
    duplicate_cap: float = 10.0

    count_weight: float = 0.5
    upvote_weight: float = 0.3
    duplicate_weight: float = 0.2

    high_priority_threshold: float = 0.7
    high_priority_limit: int = 5

    def __post_init__(self):
        if self.cluster_radius_meters <= 0 or self.duplicate_radius_meters <= 0:
            raise ValueError("Cluster and duplicate radii must be positive")
        if min(self.count_cap, self.upvote_cap, self.duplicate_cap) <= 0:
            raise ValueError("Intensity caps must be positive")


class GeoClusterEngine:
    """
    Stateless engine turning a flat report list into heat map clusters.

    Every method is a pure function of its arguments; one engine can be
    shared between any number of callers.
    """

    def __init__(self, config: Optional[ClusterConfig] = None):
        self.config = config or ClusterConfig()

    def eligible_reports(self, reports: Iterable[GeoReport]) -> List[GeoReport]:
        """Active reports with usable coordinates, in input order."""
        eligible = []
        dropped = 0
        for report in reports:
            if report.status.is_active and is_valid_coordinate(report.latitude, report.longitude):
                eligible.append(report)
            else:
                dropped += 1
        if dropped:
            log.debug(f"Skipped {dropped} inactive or malformed reports")
        return eligible

    def count_duplicates(self, reports: List[GeoReport]) -> Dict[str, int]:
        """
        Count, for every report, the other same-category reports within the
        duplicate radius.

        Returns:
            Mapping of report id -> duplicate count
        """
        radius = self.config.duplicate_radius_meters
        counts: Dict[str, int] = {}
        for i, report in enumerate(reports):
            count = 0
            for j, other in enumerate(reports):
                if i == j or report.category != other.category:
                    continue
                if distance_meters(report.latitude, report.longitude, other.latitude, other.longitude) <= radius:
                    count += 1
            counts[report.id] = count
        return counts

    def intensity(self, member_count: int, avg_upvotes: float, total_duplicates: int) -> float:
        """Weighted [0, 1] hotspot intensity."""
        cfg = self.config
        normalized_count = min(member_count / cfg.count_cap, 1.0)
        normalized_upvotes = min(avg_upvotes / cfg.upvote_cap, 1.0)
        normalized_duplicates = min(total_duplicates / cfg.duplicate_cap, 1.0)

        score = (
            normalized_count * cfg.count_weight
            + normalized_upvotes * cfg.upvote_weight
            + normalized_duplicates * cfg.duplicate_weight
        )
        return max(0.0, min(score, 1.0))

    def cluster_reports(
        self,
        reports: Iterable[GeoReport],
        cluster_radius_meters: Optional[float] = None,
    ) -> List[Cluster]:
        """
        Partition eligible reports into same-category clusters.

        Args:
            reports: Reports to cluster; inactive or malformed ones are skipped
            cluster_radius_meters: Override for the configured cluster radius

        Returns:
            Clusters in seed order. Every eligible report appears in exactly
            one cluster; isolated reports form singleton clusters.
        """
        radius = cluster_radius_meters if cluster_radius_meters is not None else self.config.cluster_radius_meters
        eligible = self.eligible_reports(reports)
        if not eligible:
            return []

        duplicates = self.count_duplicates(eligible)
        clusters: List[Cluster] = []
        processed = set()

        for index, seed in enumerate(eligible):
            if index in processed:
                continue

            members = [seed]
            processed.add(index)
            for other_index, other in enumerate(eligible):
                if other_index in processed or other.category != seed.category:
                    continue
                if distance_meters(seed.latitude, seed.longitude, other.latitude, other.longitude) <= radius:
                    members.append(other)
                    processed.add(other_index)

            clusters.append(self._build_cluster(members, duplicates))

        log.debug(f"Clustered {len(eligible)} reports into {len(clusters)} clusters (radius {radius}m)")
        return clusters

    def _build_cluster(self, members: List[GeoReport], duplicates: Dict[str, int]) -> Cluster:
        count = len(members)
        center_lat = sum(r.latitude for r in members) / count
        center_lon = sum(r.longitude for r in members) / count
        avg_upvotes = sum(r.upvotes for r in members) / count
        total_duplicates = sum(duplicates.get(r.id, 0) for r in members)

        return Cluster(
            center_latitude=center_lat,
            center_longitude=center_lon,
            category=members[0].category,
            member_reports=tuple(members),
            intensity=self.intensity(count, avg_upvotes, total_duplicates),
            avg_upvotes=avg_upvotes,
            duplicate_count=total_duplicates,
        )

    def calculate_heatmap_stats(self, reports: Iterable[GeoReport]) -> HeatmapStats:
        """
        Summarize reports for the heat map panel.

        High-priority areas are clusters above the intensity threshold,
        strongest first, truncated to the configured limit.
        """
        eligible = self.eligible_reports(reports)
        cfg = self.config

        breakdown: Dict[str, int] = {}
        for report in eligible:
            key = report.category.value
            breakdown[key] = breakdown.get(key, 0) + 1

        clusters = self.cluster_reports(eligible)
        # sorted() is stable, so equal intensities keep seed order
        hot = sorted(
            (c for c in clusters if c.intensity > cfg.high_priority_threshold),
            key=lambda c: c.intensity,
            reverse=True,
        )

        if clusters:
            avg_per_cluster = _one_decimal(len(eligible) / len(clusters))
        else:
            avg_per_cluster = "0"

        return HeatmapStats(
            total_reports=len(eligible),
            category_breakdown=breakdown,
            high_priority_areas=hot[:cfg.high_priority_limit],
            total_clusters=len(clusters),
            avg_reports_per_cluster=avg_per_cluster,
        )


# ═══════════════════════════════════════════════════════════════════════════
# FACTORY FUNCTIONS
# ═══════════════════════════════════════════════════════════════════════════
def get_cluster_engine(config: Optional[ClusterConfig] = None) -> GeoClusterEngine:
    """Get a cluster engine, optionally with custom radii and weights."""
    return GeoClusterEngine(config)


def cluster_reports(reports: Iterable[GeoReport], cluster_radius_meters: float = 20.0) -> List[Cluster]:
    """Cluster reports with the default configuration."""
    return GeoClusterEngine().cluster_reports(reports, cluster_radius_meters)


def calculate_heatmap_stats(reports: Iterable[GeoReport]) -> HeatmapStats:
    """Heat map statistics with the default configuration."""
    return GeoClusterEngine().calculate_heatmap_stats(reports)
