"""
Core module for Civic Pulse.
Contains data models, the heat map cluster engine and voice intent resolution.
"""

from core.models import GeoReport, Cluster, HeatmapStats, Intent, MatchResult, ReportStatus, IssueCategory
from core.geo import distance_meters, filter_within_radius
from core.heatmap import GeoClusterEngine, ClusterConfig, cluster_reports, calculate_heatmap_stats
from core.intents import IntentCatalog, IntentResolver, ResolverConfig, get_default_catalog, get_resolver
from core.voice import VoiceNavigator, VoiceCommandRouter, NavigationSuccess, NavigationFailure

__all__ = [
    # Models
    "GeoReport",
    "Cluster",
    "HeatmapStats",
    "Intent",
    "MatchResult",
    "ReportStatus",
    "IssueCategory",
    # Heat map
    "distance_meters",
    "filter_within_radius",
    "GeoClusterEngine",
    "ClusterConfig",
    "cluster_reports",
    "calculate_heatmap_stats",
    # Voice
    "IntentCatalog",
    "IntentResolver",
    "ResolverConfig",
    "get_default_catalog",
    "get_resolver",
    "VoiceNavigator",
    "VoiceCommandRouter",
    "NavigationSuccess",
    "NavigationFailure",
]
