"""Tests for Pydantic models."""

from datetime import date

import pytest
from pydantic import ValidationError

from acquisight.models import (
    CONTRACT_AWARD_TYPE_CODES,
    AnalysisResult,
    AwardAmountBound,
    SearchQuery,
    SearchResponse,
)

EARLIEST = date(2007, 10, 1)
TODAY = date(2025, 6, 30)


class TestSearchQuery:
    """Tests for SearchQuery and the filter it derives."""

    def test_defaults(self) -> None:
        query = SearchQuery(keywords="cloud")
        assert query.limit == 100
        assert query.page == 1
        assert query.sort == "Award Amount"
        assert query.order == "desc"

    def test_page_must_be_positive(self) -> None:
        with pytest.raises(ValidationError):
            SearchQuery(page=0)

    def test_limit_must_be_positive(self) -> None:
        with pytest.raises(ValidationError):
            SearchQuery(limit=0)

    def test_order_is_restricted(self) -> None:
        with pytest.raises(ValidationError):
            SearchQuery(order="sideways")  # type: ignore[arg-type]

    def test_minimal_filter_has_only_required_keys(self) -> None:
        """Options that were not supplied must be absent, not null."""
        payload = SearchQuery().to_filter(EARLIEST, today=TODAY).to_payload()

        assert set(payload) == {"award_type_codes", "time_period"}
        assert payload["award_type_codes"] == CONTRACT_AWARD_TYPE_CODES
        assert payload["time_period"] == [
            {"start_date": "2007-10-01", "end_date": "2025-06-30"}
        ]

    def test_full_filter(self) -> None:
        query = SearchQuery(
            keywords="cybersecurity",
            start_date=date(2020, 1, 1),
            end_date=date(2021, 1, 1),
            recipient_search_text="Booz Allen",
            agencies=["Department of Veterans Affairs"],
            naics_codes=["541512"],
            psc_codes=["DA01"],
            award_amounts=AwardAmountBound(lower_bound=1_000_000),
        )
        payload = query.to_filter(EARLIEST, today=TODAY).to_payload()

        assert payload["keywords"] == ["cybersecurity"]
        assert payload["recipient_search_text"] == ["Booz Allen"]
        assert payload["agencies"] == [{"name": "Department of Veterans Affairs"}]
        assert payload["naics_codes"] == ["541512"]
        assert payload["psc_codes"] == ["DA01"]
        assert payload["award_amounts"] == [{"lower_bound": 1_000_000}]
        assert payload["time_period"] == [
            {"start_date": "2020-01-01", "end_date": "2021-01-01"}
        ]

    def test_empty_lists_are_omitted(self) -> None:
        payload = (
            SearchQuery(agencies=[], naics_codes=[], psc_codes=[])
            .to_filter(EARLIEST, today=TODAY)
            .to_payload()
        )
        assert "agencies" not in payload
        assert "naics_codes" not in payload
        assert "psc_codes" not in payload


class TestSearchResponse:
    """Tests for SearchResponse model."""

    def test_valid_search_response(self) -> None:
        response = SearchResponse(
            results=[{"Award ID": "A1"}, {"Award ID": "A2"}],
            page_metadata={"page": 1, "hasNext": False},
        )
        assert len(response.results) == 2
        assert response.page_metadata["hasNext"] is False

    def test_empty_results_are_valid(self) -> None:
        response = SearchResponse.model_validate({"results": []})
        assert response.results == []

    def test_extra_keys_are_preserved(self) -> None:
        response = SearchResponse.model_validate(
            {"results": [], "limit": 100, "messages": ["note"]}
        )
        dumped = response.model_dump()
        assert dumped["limit"] == 100
        assert dumped["messages"] == ["note"]


class TestAnalysisResult:
    """Tests for AnalysisResult model."""

    def test_time_taken_display(self) -> None:
        result = AnalysisResult(text="ok", model="sonar-pro", time_taken=3.14159)
        assert result.time_taken_display == "3.14"
        assert result.citations == []
        assert result.grounding_metadata is None

    def test_missing_text_raises(self) -> None:
        with pytest.raises(ValidationError):
            AnalysisResult(model="m", time_taken=1.0)  # type: ignore[call-arg]
