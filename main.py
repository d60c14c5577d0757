"""
Civic Pulse command line.

    python main.py heatmap --file reports.json
    python main.py heatmap --supabase --lat 12.97 --lon 77.59 --radius-km 5
    python main.py resolve "take me to safety"
    python main.py suggest "bil" --limit 3
"""

import argparse
import logging
import sys
from typing import List, Optional

from core.heatmap import GeoClusterEngine
from core.intents import IntentCatalog, get_default_catalog, get_resolver
from core.models import Cluster
from loaders.reports import ReportFetchFailure, get_report_loader, load_reports_file


def intensity_char(intensity: float) -> str:
    """Heat map glyph for a cluster intensity."""
    if intensity <= 0.3:
        return "."
    elif intensity <= 0.5:
        return ":"
    elif intensity <= 0.7:
        return "%"
    return "#"  # HOT ZONE


def print_clusters(clusters: List[Cluster]):
    print("\n=== ISSUE HEATMAP ===")
    print("Scale: . (Low) -> # (High)\n")
    for cluster in sorted(clusters, key=lambda c: c.intensity, reverse=True):
        print(
            f" {intensity_char(cluster.intensity)}  {cluster.category.value:<12}"
            f" ({cluster.center_latitude:.5f}, {cluster.center_longitude:.5f})"
            f"  reports={cluster.count:<3} intensity={cluster.intensity:.2f}"
        )

    print("\nLegend:")
    print(" # : High priority (intensity > 0.7)")
    print(" % : Elevated")
    print(" : : Moderate")
    print(" . : Isolated report")


def cmd_heatmap(args) -> int:
    if args.file:
        reports = load_reports_file(args.file)
    else:
        result = get_report_loader().fetch_heatmap_reports(args.radius_km, args.lat, args.lon)
        if isinstance(result, ReportFetchFailure):
            print(f"Failed to fetch reports: {result.error}", file=sys.stderr)
            return 1
        reports = result.reports

    engine = GeoClusterEngine()
    stats = engine.calculate_heatmap_stats(reports)

    print(f"Total reports:       {stats.total_reports}")
    print(f"Total clusters:      {stats.total_clusters}")
    print(f"Reports per cluster: {stats.avg_reports_per_cluster}")
    print("By category:")
    for category, count in sorted(stats.category_breakdown.items()):
        print(f"  {category:<12} {count}")

    if stats.high_priority_areas:
        print("High-priority areas:")
        for cluster in stats.high_priority_areas:
            print(f"  {cluster.category.value:<12} x{cluster.count} intensity={cluster.intensity:.2f}")

    if args.show_clusters:
        print_clusters(engine.cluster_reports(reports))
    return 0


def _catalog(args) -> IntentCatalog:
    if args.catalog:
        return IntentCatalog.from_file(args.catalog)
    return get_default_catalog()


def cmd_resolve(args) -> int:
    resolver = get_resolver(_catalog(args))
    match = resolver.resolve_intent(args.transcript)
    if match is None:
        print("no match")
        return 2

    target = match.intent.route or match.intent.action or "-"
    print(f"{match.intent.id} -> {target} ({match.confidence}%)")
    print(f"normalized: {match.normalized_transcript}")
    return 0


def cmd_suggest(args) -> int:
    resolver = get_resolver(_catalog(args))
    candidates = resolver.rank_candidates(args.transcript, args.limit)
    if not candidates:
        print("no suggestions")
        return 2
    for match in candidates:
        print(f"{match.confidence:>3}%  {match.intent.id}")
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Civic Pulse: issue heat map and voice intent tools")
    parser.add_argument("-v", "--verbose", action="store_true", help="Enable debug logging")
    sub = parser.add_subparsers(dest="command", required=True)

    heatmap = sub.add_parser("heatmap", help="Cluster reports and print heat map statistics")
    source = heatmap.add_mutually_exclusive_group(required=True)
    source.add_argument("--file", help="JSON file of reports")
    source.add_argument("--supabase", action="store_true", help="Fetch from SUPABASE_URL")
    heatmap.add_argument("--radius-km", type=float, default=50, help="Radius around --lat/--lon")
    heatmap.add_argument("--lat", type=float, help="User latitude")
    heatmap.add_argument("--lon", type=float, help="User longitude")
    heatmap.add_argument("--show-clusters", action="store_true", help="List every cluster")
    heatmap.set_defaults(func=cmd_heatmap)

    for name, func, help_text in (
        ("resolve", cmd_resolve, "Resolve a transcript to an intent"),
        ("suggest", cmd_suggest, "List candidate intents for a transcript"),
    ):
        p = sub.add_parser(name, help=help_text)
        p.add_argument("transcript")
        p.add_argument("--catalog", help="Alternative intent catalog JSON")
        p.set_defaults(func=func)
        if name == "suggest":
            p.add_argument("--limit", type=int, default=3)

    return parser


def main(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format='%(asctime)s │ %(name)-20s │ %(levelname)-8s │ %(message)s',
        datefmt='%H:%M:%S',
    )
    try:
        return args.func(args)
    except (FileNotFoundError, ValueError) as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1


if __name__ == "__main__":
    sys.exit(main())
