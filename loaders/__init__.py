"""
Data loaders for Civic Pulse.

Includes:
- Issue reports and vote tallies (Supabase REST)
- Offline report files (JSON)
"""

from loaders.reports import (
    SupabaseReportLoader,
    ReportLoaderConfig,
    ReportFetchSuccess,
    ReportFetchFailure,
    get_report_loader,
    load_reports_file,
    parse_report,
    tally_interactions,
)

__all__ = [
    "SupabaseReportLoader",
    "ReportLoaderConfig",
    "ReportFetchSuccess",
    "ReportFetchFailure",
    "get_report_loader",
    "load_reports_file",
    "parse_report",
    "tally_interactions",
]
