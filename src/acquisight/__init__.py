"""AcquiSight - Government Contract Intelligence.

Search federal contract awards on USAspending.gov, research contractors
with AI providers, and export award pages or analyses as documents.
"""

from .config import settings
from .exceptions import (
    AcquiSightError,
    AnalysisError,
    AnalysisTimeoutError,
    ConfigurationError,
    InvalidInputError,
    RenderError,
    UsaSpendingClientError,
    UsaSpendingError,
    UsaSpendingMaxRetriesError,
    UsaSpendingNotFoundError,
)
from .models import AnalysisResult, AwardAmountBound, SearchQuery, SearchResponse
from .search import build_search_query, looks_like_award_id
from .usaspending_client import UsaSpendingClient

__all__ = [
    # Clients
    "UsaSpendingClient",
    # Search
    "build_search_query",
    "looks_like_award_id",
    # Models
    "AnalysisResult",
    "AwardAmountBound",
    "SearchQuery",
    "SearchResponse",
    # Config
    "settings",
    # Exceptions
    "AcquiSightError",
    "InvalidInputError",
    "ConfigurationError",
    "UsaSpendingError",
    "UsaSpendingClientError",
    "UsaSpendingNotFoundError",
    "UsaSpendingMaxRetriesError",
    "AnalysisError",
    "AnalysisTimeoutError",
    "RenderError",
]

__version__ = "0.1.0"
