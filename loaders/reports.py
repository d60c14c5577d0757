"""
Issue Report Loader - fetch heat map reports from Supabase (PostgREST).

Features:
- Active reports only (status "reported", coordinates present)
- Up/down vote tallies from the report_interactions table
- Optional radius filter around the user's location
- Retry with exponential backoff
- JSON file loading for offline use
"""

import json
import os
import logging
from dataclasses import dataclass, field
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, Iterable, List, Optional, Union

import requests
from tenacity import RetryError, retry, stop_after_attempt, wait_exponential

from core.geo import filter_within_radius, is_valid_coordinate
from core.models import GeoReport, IssueCategory, ReportStatus

log = logging.getLogger(__name__)

REPORT_COLUMNS = "id,latitude,longitude,category,created_at,status"


@dataclass
class ReportLoaderConfig:
    """Connection settings for the Supabase REST endpoint."""
    url: str = field(default_factory=lambda: os.environ.get("SUPABASE_URL", ""))
    api_key: str = field(default_factory=lambda: os.environ.get("SUPABASE_ANON_KEY", ""))
    timeout: int = 30

    @property
    def rest_url(self) -> str:
        return f"{self.url.rstrip('/')}/rest/v1"


@dataclass
class ReportFetchSuccess:
    """Reports fetched and parsed."""
    reports: List[GeoReport] = field(default_factory=list)
    success: bool = field(default=True, init=False)


@dataclass
class ReportFetchFailure:
    """The backend could not be queried."""
    error: str
    success: bool = field(default=False, init=False)


ReportFetchResult = Union[ReportFetchSuccess, ReportFetchFailure]


def _parse_timestamp(value: Any) -> datetime:
    if isinstance(value, datetime):
        return value
    if not value:
        return datetime.fromtimestamp(0, tz=timezone.utc)
    # PostgREST emits "Z" or "+00:00" offsets
    return datetime.fromisoformat(str(value).replace("Z", "+00:00"))


def parse_report(row: Dict[str, Any]) -> Optional[GeoReport]:
    """
    Convert one backend row into a GeoReport.

    Returns None for rows without an id or usable coordinates, or with an
    unknown category, status, timestamp or vote count.
    """
    report_id = row.get("id")
    if report_id is None or str(report_id) == "":
        log.warning(f"Skipping report without an id: {row}")
        return None

    lat = row.get("latitude")
    lon = row.get("longitude")
    if not is_valid_coordinate(lat, lon):
        log.warning(f"Skipping report {report_id}: invalid coordinates ({lat}, {lon})")
        return None

    try:
        category = IssueCategory(str(row.get("category", "")).lower())
        status = ReportStatus(str(row.get("status", ReportStatus.REPORTED.value)).lower())
        created_at = _parse_timestamp(row.get("created_at"))
        upvotes = max(int(row.get("upvotes") or 0), 0)
        downvotes = max(int(row.get("downvotes") or 0), 0)
    except (TypeError, ValueError) as e:
        log.warning(f"Skipping report {report_id}: {e}")
        return None

    return GeoReport(
        id=str(report_id),
        latitude=float(lat),
        longitude=float(lon),
        category=category,
        created_at=created_at,
        status=status,
        upvotes=upvotes,
        downvotes=downvotes,
    )


def tally_interactions(interactions: Iterable[Dict[str, Any]]) -> Dict[str, Dict[str, int]]:
    """Count upvotes and downvotes per report id."""
    counts: Dict[str, Dict[str, int]] = {}
    for interaction in interactions:
        report_id = str(interaction.get("report_id"))
        entry = counts.setdefault(report_id, {"upvotes": 0, "downvotes": 0})
        kind = interaction.get("interaction_type")
        if kind == "upvote":
            entry["upvotes"] += 1
        elif kind == "downvote":
            entry["downvotes"] += 1
    return counts


def load_reports_file(path: Union[str, Path]) -> List[GeoReport]:
    """
    Load reports from a JSON file.

    Accepts either a list of report rows or ``{"reports": [...]}``.
    Unusable rows are skipped with a warning.
    """
    path = Path(path)
    with open(path, encoding="utf-8") as f:
        try:
            document = json.load(f)
        except json.JSONDecodeError as e:
            raise ValueError(f"Report file {path} is not valid JSON: {e}") from e

    rows = document.get("reports") if isinstance(document, dict) else document
    if not isinstance(rows, list):
        raise ValueError(f"Report file {path} must hold a list of reports")

    reports = [r for r in (parse_report(row) for row in rows) if r is not None]
    log.info(f"Loaded {len(reports)} reports from {path}")
    return reports


class SupabaseReportLoader:
    """
    Loads heat map reports and vote counts from a Supabase project.

    Backend errors are logged and returned as ReportFetchFailure; this
    loader never raises to its caller.
    """

    def __init__(self, config: Optional[ReportLoaderConfig] = None):
        self.config = config or ReportLoaderConfig()
        self.session = requests.Session()
        self.session.headers.update({
            "apikey": self.config.api_key,
            "Authorization": f"Bearer {self.config.api_key}",
            "Accept": "application/json",
        })

    @retry(stop=stop_after_attempt(3), wait=wait_exponential(multiplier=1, min=1, max=10))
    def _get(self, table: str, params: Dict[str, str]) -> List[Dict[str, Any]]:
        """GET a table through PostgREST with retry."""
        response = self.session.get(
            f"{self.config.rest_url}/{table}",
            params=params,
            timeout=self.config.timeout,
        )
        response.raise_for_status()
        return response.json()

    def _fetch_interactions(self, report_ids: List[str]) -> List[Dict[str, Any]]:
        params = {
            "select": "report_id,interaction_type",
            "report_id": f"in.({','.join(report_ids)})",
        }
        try:
            return self._get("report_interactions", params)
        except (requests.RequestException, RetryError) as e:
            # Votes are optional: reports still render with zero counts
            log.error(f"Fetch interactions failed: {e}")
            return []

    def fetch_heatmap_reports(
        self,
        radius_km: float = 50,
        user_lat: Optional[float] = None,
        user_lon: Optional[float] = None,
    ) -> ReportFetchResult:
        """
        Fetch active reports with their vote tallies.

        Args:
            radius_km: Radius around the user to keep, when a location is given
            user_lat: User latitude (optional)
            user_lon: User longitude (optional)

        Returns:
            ReportFetchSuccess with parsed reports, or ReportFetchFailure
        """
        params = {
            "select": REPORT_COLUMNS,
            "status": f"eq.{ReportStatus.REPORTED.value}",
            "latitude": "not.is.null",
            "longitude": "not.is.null",
        }
        try:
            rows = self._get("reports", params)
        except (requests.RequestException, RetryError) as e:
            log.error(f"Fetch reports failed: {e}")
            return ReportFetchFailure(error=str(e))

        if not rows:
            return ReportFetchSuccess(reports=[])

        report_ids = [str(r["id"]) for r in rows if r.get("id") is not None]
        votes = tally_interactions(self._fetch_interactions(report_ids))

        reports = []
        for row in rows:
            tally = votes.get(str(row.get("id")), {})
            report = parse_report({**row, **tally})
            if report is not None:
                reports.append(report)

        # A zero coordinate counts as "no location", as in the mobile client
        if user_lat and user_lon:
            reports = filter_within_radius(reports, user_lat, user_lon, radius_km)

        log.info(f"Fetched {len(reports)} heat map reports")
        return ReportFetchSuccess(reports=reports)


# Singleton
_loader: Optional[SupabaseReportLoader] = None


def get_report_loader() -> SupabaseReportLoader:
    """Get singleton report loader configured from the environment."""
    global _loader
    if _loader is None:
        _loader = SupabaseReportLoader()
    return _loader
