"""
Heat Map Refresh Daemon: periodic hotspot recomputation.

Polls the report backend, recomputes clusters and heat map statistics,
and publishes a status snapshot for dashboards. Features include:
- Fixed-interval polling of active reports and vote tallies
- Hotspot logging when high-priority areas appear or change
- JSON status file for the live dashboard
- Graceful shutdown on SIGINT/SIGTERM
"""

import json
import logging
import signal
import time
from typing import Dict, Optional

from core.heatmap import GeoClusterEngine
from loaders.reports import ReportFetchFailure, SupabaseReportLoader, get_report_loader

# Configure logging with rich formatting
logging.basicConfig(
    level=logging.INFO,
    format='%(asctime)s │ %(name)-20s │ %(levelname)-8s │ %(message)s',
    datefmt='%H:%M:%S',
    handlers=[
        logging.StreamHandler()
    ]
)
log = logging.getLogger("daemon")

# Daemon configuration
REFRESH_INTERVAL_SECONDS = 30
STATUS_FILE = "heatmap_status.json"
RADIUS_KM = 50
USER_LAT: Optional[float] = None
USER_LON: Optional[float] = None


class DaemonState:
    """Manages daemon state and graceful shutdown."""

    def __init__(self):
        self.running = True
        self.cycle_count = 0
        self.failed_cycles = 0
        self.last_hotspots: Optional[tuple] = None
        self.start_time = time.time()

    def get_uptime_str(self) -> str:
        elapsed = time.time() - self.start_time
        hours, remainder = divmod(int(elapsed), 3600)
        minutes, seconds = divmod(remainder, 60)
        return f"{hours:02d}:{minutes:02d}:{seconds:02d}"


def signal_handler(signum, frame, state: DaemonState):
    """Handle graceful shutdown on SIGINT/SIGTERM."""
    log.info("Shutdown signal received")
    state.running = False
    log.info(f"  • Cycles completed: {state.cycle_count}")
    log.info(f"  • Failed fetches: {state.failed_cycles}")
    log.info(f"  • Uptime: {state.get_uptime_str()}")


def refresh_once(loader: SupabaseReportLoader, engine: GeoClusterEngine, state: DaemonState) -> Optional[Dict]:
    """
    Run one fetch-and-recompute cycle.

    Returns:
        The status snapshot, or None when the fetch failed
    """
    state.cycle_count += 1
    result = loader.fetch_heatmap_reports(RADIUS_KM, USER_LAT, USER_LON)
    if isinstance(result, ReportFetchFailure):
        state.failed_cycles += 1
        log.warning(f"Cycle {state.cycle_count}: fetch failed ({result.error}); keeping previous snapshot")
        return None

    stats = engine.calculate_heatmap_stats(result.reports)
    log.info(
        f"Cycle {state.cycle_count}: {stats.total_reports} reports in "
        f"{stats.total_clusters} clusters (avg {stats.avg_reports_per_cluster})"
    )

    hotspots = tuple(
        (c.category.value, round(c.center_latitude, 5), round(c.center_longitude, 5))
        for c in stats.high_priority_areas
    )
    if hotspots != state.last_hotspots:
        for cluster in stats.high_priority_areas:
            log.info(
                f"🔥 Hotspot: {cluster.category.value} x{cluster.count} at "
                f"({cluster.center_latitude:.5f}, {cluster.center_longitude:.5f}) "
                f"intensity={cluster.intensity:.2f}"
            )
        state.last_hotspots = hotspots

    status = {
        "cycles": state.cycle_count,
        "running": state.running,
        "uptime": state.get_uptime_str(),
        "updated_at": time.time(),
        "stats": stats.to_dict(),
    }
    try:
        with open(STATUS_FILE, "w") as f:
            json.dump(status, f)
    except OSError as e:
        log.debug(f"Failed to write status file: {e}")
    return status


def run_daemon():
    """Main refresh loop."""
    log.info("Heat map refresh daemon starting")

    state = DaemonState()
    loader = get_report_loader()
    engine = GeoClusterEngine()

    signal.signal(signal.SIGINT, lambda s, f: signal_handler(s, f, state))
    signal.signal(signal.SIGTERM, lambda s, f: signal_handler(s, f, state))

    log.info(f"Refreshing every {REFRESH_INTERVAL_SECONDS}s; status -> {STATUS_FILE}")

    while state.running:
        cycle_start = time.time()
        refresh_once(loader, engine, state)

        # Sleep in short steps so shutdown stays responsive
        while state.running and time.time() - cycle_start < REFRESH_INTERVAL_SECONDS:
            time.sleep(0.5)

    log.info("Daemon stopped")


if __name__ == "__main__":
    run_daemon()
