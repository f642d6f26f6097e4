"""Search orchestration: award-id vs keyword mode and detail lookups."""

import logging
import re
import time
from datetime import date
from typing import Any, Dict, Optional, Tuple
from urllib.parse import quote

from .config import settings
from .exceptions import InvalidInputError
from .models import SearchQuery
from .usaspending_client import MAX_PAGE_SIZE, UsaSpendingClient

logger = logging.getLogger(__name__)

AWARD_ID_PATTERN = re.compile(r"^[A-Z0-9]{10,}$", re.IGNORECASE)


def looks_like_award_id(text: str) -> bool:
    """True when the trimmed input is an alphanumeric identifier of 10+ chars."""
    return bool(AWARD_ID_PATTERN.match(text.strip()))


def keyword_date_window(
    years: Optional[int] = None, today: Optional[date] = None
) -> Tuple[date, date]:
    """Trailing window used to bound keyword searches."""
    years = settings.KEYWORD_SEARCH_YEARS if years is None else years
    end = today or date.today()
    try:
        start = end.replace(year=end.year - years)
    except ValueError:
        # Feb 29 in a non-leap target year
        start = end.replace(year=end.year - years, day=28)
    return start, end


def build_search_query(keywords: str, today: Optional[date] = None) -> SearchQuery:
    """Decide the search mode for free-text input.

    Award identifiers are unique and searched without a keyword date window;
    anything else is a keyword/company search over the trailing window.
    """
    term = keywords.strip()
    if looks_like_award_id(term):
        logger.info("Detected Award ID - searching without date restrictions")
        return SearchQuery(keywords=term, limit=MAX_PAGE_SIZE)

    start, end = keyword_date_window(today=today)
    logger.info(f"Date range: {start} to {end}")
    return SearchQuery(keywords=term, start_date=start, end_date=end, limit=MAX_PAGE_SIZE)


async def search_awards(client: UsaSpendingClient, keywords: Optional[str]) -> Dict[str, Any]:
    """Run a search for user input and return the API body."""
    if not keywords or not keywords.strip():
        raise InvalidInputError("Keywords are required")

    logger.info(f"Searching for: {keywords}")
    started = time.perf_counter()
    results = await client.search_contracts(build_search_query(keywords))
    elapsed = time.perf_counter() - started
    logger.info(
        f"Search successful, found {len(results.get('results') or [])} results "
        f"in {elapsed:.2f}s"
    )
    return results


def award_details_endpoint(award_id: str) -> str:
    return f"{settings.USASPENDING_BASE_URL.rstrip('/')}/awards/{quote(award_id, safe='')}/"


async def fetch_award_details(client: UsaSpendingClient, award_id: Optional[str]) -> Dict[str, Any]:
    """Fetch one award directly by its generated_unique_award_id.

    The returned mapping echoes the endpoint and id that were queried.
    """
    if not award_id or not award_id.strip():
        raise InvalidInputError("Award ID is required")

    logger.info(f"Fetching award details for: {award_id}")
    details = await client.get_award_details(award_id)
    logger.info("Award details retrieved successfully")
    return {
        **details,
        "_api_endpoint": award_details_endpoint(award_id),
        "_award_id": award_id,
    }
