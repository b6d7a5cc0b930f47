"""quakestats package public API."""
from importlib import metadata as _metadata

try:
    __version__ = _metadata.version("quakestats")
except Exception:  # fallback when not installed
    __version__ = "0.1.0"

from .quakes.ledger import PublicationLedger  # re-export
from .quakes.models import QuakeEvent, WeekBucket, Report  # re-export
from .quakes.pipeline import WeeklyReportPipeline  # re-export

__all__ = ["__version__", "PublicationLedger", "QuakeEvent", "WeekBucket", "Report", "WeeklyReportPipeline"]
