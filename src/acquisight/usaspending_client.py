"""USAspending.gov API client with request shaping and retry logic."""

import asyncio
import logging
from datetime import date
from typing import Any, Dict, List, Optional
from urllib.parse import quote

import httpx

from .config import settings
from .exceptions import (
    UsaSpendingClientError,
    UsaSpendingMaxRetriesError,
    UsaSpendingNotFoundError,
)
from .models import (
    CONTRACT_AWARD_TYPE_CODES,
    AwardAmountBound,
    SearchFilter,
    SearchQuery,
    SearchResponse,
    TimePeriod,
)

logger = logging.getLogger(__name__)

# Hard cap enforced by search/spending_by_award/
MAX_PAGE_SIZE = 100

# First day of the data served by the API (start of FY2008)
EARLIEST_AWARD_DATE = date(2007, 10, 1)

# Projection requested from search/spending_by_award/. Views render only
# what is listed here; unknown names are ignored by the API.
AWARD_SEARCH_FIELDS: List[str] = [
    "Award ID",
    "Recipient Name",
    "Start Date",
    "End Date",
    "Award Amount",
    "Total Obligation",
    "Potential Award Amount",
    "Total Outlays",
    "Description",
    "Award Type",
    "Awarding Agency",
    "Awarding Sub Agency",
    "Contract Award Type",
    "prime_award_recipient_id",
    "generated_unique_award_id",
    "Period of Performance Start Date",
    "Period of Performance Current End Date",
    "Period of Performance Potential End Date",
    "funding_agency_name",
    "awarding_sub_agency_name",
    "Treasury Account Symbol",
    "Program Activity",
    "Object Class",
    "Number of Offers Received",
    "Extent Competed",
    "Type of Contract Pricing",
    "Solicitation Procedures",
    "Fair Opportunity Limited Sources",
    "Contracting Officer Name",
    "awarding_office_name",
    "funding_office_name",
    "Type of Set Aside",
]


class InvalidResponseError(Exception):
    """An attempt returned a success status but no usable body."""


class UsaSpendingClient:
    """Async client for the USAspending.gov v2 API.

    Client errors (4xx) fail immediately. Network failures, timeouts, 5xx
    responses and empty bodies are retried with exponential backoff
    (1s, 2s, 4s, ...) up to ``retry_attempts`` attempts.

    Usage:
        async with UsaSpendingClient() as client:
            body = await client.search_contracts(SearchQuery(keywords="cloud"))
    """

    def __init__(
        self,
        timeout: Optional[float] = None,
        retry_attempts: Optional[int] = None,
        base_url: Optional[str] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        self.base_url = (base_url or settings.USASPENDING_BASE_URL).rstrip("/") + "/"
        self.timeout = settings.USASPENDING_TIMEOUT if timeout is None else timeout
        if retry_attempts is None:
            retry_attempts = settings.USASPENDING_RETRY_ATTEMPTS
        if retry_attempts < 1:
            raise ValueError(f"retry_attempts must be at least 1, got {retry_attempts}")
        self.retry_attempts = retry_attempts
        self.client = httpx.AsyncClient(
            base_url=self.base_url,
            timeout=self.timeout,
            headers={
                "Content-Type": "application/json",
                "User-Agent": "AcquiSight/0.1.0",
            },
            transport=transport,
        )

    async def __aenter__(self) -> "UsaSpendingClient":
        """Enter async context manager."""
        return self

    async def __aexit__(self, *args: object) -> None:
        """Exit async context manager and close the HTTP client."""
        await self.close()

    async def close(self) -> None:
        """Close the underlying HTTP client."""
        await self.client.aclose()

    async def _request_with_retry(
        self,
        endpoint: str,
        method: str = "POST",
        payload: Optional[Dict[str, Any]] = None,
    ) -> Any:
        """Send a request and return the decoded JSON body.

        Args:
            endpoint: Path relative to the API base URL.
            method: ``POST`` sends ``payload`` as JSON, anything else sends a
                GET with ``payload`` as query parameters.
            payload: Request body or query parameters.

        Raises:
            UsaSpendingNotFoundError: On a 404 response.
            UsaSpendingClientError: On any other 4xx response.
            UsaSpendingMaxRetriesError: When every attempt failed.
        """
        last_error: Optional[str] = None

        for attempt in range(self.retry_attempts):
            try:
                if method.upper() == "POST":
                    response = await self.client.post(endpoint, json=payload)
                else:
                    response = await self.client.get(endpoint, params=payload)

                response.raise_for_status()

                if not response.content:
                    raise InvalidResponseError("Invalid response from API")
                data = response.json()
                if not data:
                    raise InvalidResponseError("Invalid response from API")
                return data

            except httpx.HTTPStatusError as e:
                status = e.response.status_code
                last_error = self._error_detail(e.response)
                logger.error(
                    f"API request failed (attempt {attempt + 1}/"
                    f"{self.retry_attempts}): {last_error}"
                )
                if 400 <= status < 500:
                    logger.error("Client error - not retrying")
                    if status == 404:
                        raise UsaSpendingNotFoundError(status, last_error) from e
                    raise UsaSpendingClientError(status, last_error) from e
            except (httpx.RequestError, InvalidResponseError, ValueError) as e:
                last_error = str(e) or type(e).__name__
                logger.error(
                    f"API request failed (attempt {attempt + 1}/"
                    f"{self.retry_attempts}): {last_error}"
                )

            if attempt < self.retry_attempts - 1:
                delay = 2**attempt
                logger.warning(f"Retrying in {delay}s...")
                await asyncio.sleep(delay)

        raise UsaSpendingMaxRetriesError(self.retry_attempts, last_error)

    @staticmethod
    def _error_detail(response: httpx.Response) -> str:
        """Prefer the API's ``detail`` field over the bare status line."""
        try:
            body = response.json()
        except ValueError:
            body = None
        if isinstance(body, dict) and body.get("detail"):
            return str(body["detail"])
        return f"HTTP {response.status_code} {response.reason_phrase}".strip()

    def build_search_payload(
        self, query: SearchQuery, today: Optional[date] = None
    ) -> Dict[str, Any]:
        """Shape a SearchQuery into the spending_by_award request body."""
        search_filter = query.to_filter(EARLIEST_AWARD_DATE, today=today)
        return {
            "filters": search_filter.to_payload(),
            "fields": list(AWARD_SEARCH_FIELDS),
            "limit": min(query.limit, MAX_PAGE_SIZE),
            "page": query.page,
            "sort": query.sort,
            "order": query.order,
        }

    async def search_contracts(self, query: SearchQuery) -> Dict[str, Any]:
        """Search contract awards.

        Returns the API body unmodified: a ``results`` list plus
        ``page_metadata``. An empty ``results`` list is a valid outcome.
        """
        payload = self.build_search_payload(query)
        return await self._request_with_retry("search/spending_by_award/", "POST", payload)

    async def get_award_details(self, award_id: str) -> Dict[str, Any]:
        """Fetch the full record for one award.

        Args:
            award_id: The award's generated_unique_award_id (or internal id).
        """
        endpoint = f"awards/{quote(award_id, safe='')}/"
        return await self._request_with_retry(endpoint, "GET")

    async def get_award_transactions(self, generated_award_id: str) -> Dict[str, Any]:
        """Fetch the first page of transactions for an award."""
        payload = {"award_id": generated_award_id, "limit": MAX_PAGE_SIZE, "page": 1}
        return await self._request_with_retry("transactions/", "POST", payload)

    async def get_sub_awards(self, prime_award_id: str) -> Dict[str, Any]:
        """Fetch the first page of sub-awards under a prime award."""
        payload = {"award_id": prime_award_id, "limit": MAX_PAGE_SIZE, "page": 1}
        return await self._request_with_retry("subawards/", "POST", payload)

    async def get_contracts_by_recipient(
        self, recipient_name: str, start_date: date, end_date: date, limit: int = 100
    ) -> Dict[str, Any]:
        return await self.search_contracts(
            SearchQuery(
                start_date=start_date,
                end_date=end_date,
                recipient_search_text=recipient_name,
                limit=limit,
            )
        )

    async def get_contracts_by_agency(
        self, agency_name: str, start_date: date, end_date: date, limit: int = 100
    ) -> Dict[str, Any]:
        return await self.search_contracts(
            SearchQuery(
                start_date=start_date,
                end_date=end_date,
                agencies=[agency_name],
                limit=limit,
            )
        )

    async def get_contracts_by_naics(
        self, naics_code: str, start_date: date, end_date: date, limit: int = 100
    ) -> Dict[str, Any]:
        return await self.search_contracts(
            SearchQuery(
                start_date=start_date,
                end_date=end_date,
                naics_codes=[naics_code],
                limit=limit,
            )
        )

    async def get_large_contracts(
        self, start_date: date, end_date: date, min_amount: float, limit: int = 100
    ) -> Dict[str, Any]:
        return await self.search_contracts(
            SearchQuery(
                start_date=start_date,
                end_date=end_date,
                award_amounts=AwardAmountBound(lower_bound=min_amount),
                limit=limit,
            )
        )

    async def get_all_contracts_paginated(
        self,
        start_date: date,
        end_date: date,
        max_results: Optional[int] = None,
        **options: Any,
    ) -> List[Dict[str, Any]]:
        """Walk result pages until a short page or ``max_results`` is reached.

        Args:
            start_date: Start of the award time period.
            end_date: End of the award time period.
            max_results: Optional cap on the number of records returned.
            **options: Extra SearchQuery fields (keywords, agencies, ...).

        Returns:
            All award summaries collected, truncated to ``max_results``.
        """
        results: List[Dict[str, Any]] = []
        page = 1

        while True:
            query = SearchQuery(
                start_date=start_date,
                end_date=end_date,
                limit=MAX_PAGE_SIZE,
                page=page,
                **options,
            )
            body = await self.search_contracts(query)
            items = SearchResponse.model_validate(body).results
            if not items:
                break

            results.extend(items)

            if max_results and len(results) >= max_results:
                results = results[:max_results]
                break

            if len(items) < MAX_PAGE_SIZE:
                break

            page += 1
            # Self-imposed rate limit between pages
            await asyncio.sleep(settings.PAGINATION_DELAY_SECONDS)

        logger.info(f"Collected {len(results)} awards across {page} page(s)")
        return results

    async def get_spending_by_geography(
        self,
        start_date: date,
        end_date: date,
        scope: str = "place_of_performance",
        geo_layer: str = "state",
    ) -> Dict[str, Any]:
        """Aggregate contract spending by geographic area."""
        search_filter = SearchFilter(
            award_type_codes=list(CONTRACT_AWARD_TYPE_CODES),
            time_period=[TimePeriod(start_date=start_date, end_date=end_date)],
        )
        payload = {
            "scope": scope,
            "geo_layer": geo_layer,
            "filters": search_filter.to_payload(),
        }
        return await self._request_with_retry(
            "search/spending_by_geography/", "POST", payload
        )
