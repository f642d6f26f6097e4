"""Pydantic models for USAspending.gov requests and AI analysis results."""

from datetime import date
from typing import Any, Dict, List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field

# A=BPA Call, B=Purchase Order, C=Delivery Order, D=Definitive Contract
CONTRACT_AWARD_TYPE_CODES: List[str] = ["A", "B", "C", "D"]


class AwardAmountBound(BaseModel):
    """Dollar range for the award_amounts filter."""

    lower_bound: Optional[float] = None
    upper_bound: Optional[float] = None


class TimePeriod(BaseModel):
    """One entry of the time_period filter."""

    start_date: date
    end_date: date


class SearchFilter(BaseModel):
    """Filter object sent to search/spending_by_award/.

    Optional filters are left as None and dropped on serialization, so the
    API only sees the keys the caller opted into.
    """

    award_type_codes: List[str] = Field(
        default_factory=lambda: list(CONTRACT_AWARD_TYPE_CODES)
    )
    time_period: List[TimePeriod]
    keywords: Optional[List[str]] = None
    award_amounts: Optional[List[AwardAmountBound]] = None
    recipient_search_text: Optional[List[str]] = None
    agencies: Optional[List[Dict[str, str]]] = None
    naics_codes: Optional[List[str]] = None
    psc_codes: Optional[List[str]] = None

    def to_payload(self) -> Dict[str, Any]:
        return self.model_dump(mode="json", exclude_none=True)


class SearchQuery(BaseModel):
    """Caller-facing search options."""

    keywords: Optional[str] = None
    start_date: Optional[date] = None
    end_date: Optional[date] = None
    award_amounts: Optional[AwardAmountBound] = None
    recipient_search_text: Optional[str] = None
    agencies: Optional[List[str]] = None
    naics_codes: Optional[List[str]] = None
    psc_codes: Optional[List[str]] = None
    limit: int = Field(100, ge=1)
    page: int = Field(1, ge=1)
    sort: str = "Award Amount"
    order: Literal["asc", "desc"] = "desc"

    def to_filter(self, earliest: date, today: Optional[date] = None) -> SearchFilter:
        """Build the API filter, filling an open date range with [earliest, today]."""
        period = TimePeriod(
            start_date=self.start_date or earliest,
            end_date=self.end_date or today or date.today(),
        )
        return SearchFilter(
            time_period=[period],
            keywords=[self.keywords] if self.keywords else None,
            award_amounts=[self.award_amounts] if self.award_amounts else None,
            recipient_search_text=(
                [self.recipient_search_text] if self.recipient_search_text else None
            ),
            agencies=[{"name": a} for a in self.agencies] if self.agencies else None,
            naics_codes=self.naics_codes or None,
            psc_codes=self.psc_codes or None,
        )


class SearchResponse(BaseModel):
    """USAspending.gov spending_by_award response wrapper."""

    model_config = ConfigDict(extra="allow")

    results: List[Dict[str, Any]] = Field(default_factory=list)
    page_metadata: Dict[str, Any] = Field(default_factory=dict)


class AnalysisResult(BaseModel):
    """Text returned by an AI provider plus provenance and timing."""

    text: str
    model: str
    time_taken: float
    citations: List[str] = Field(default_factory=list)
    grounding_metadata: Optional[Dict[str, Any]] = None
    usage: Optional[Dict[str, Any]] = None

    @property
    def time_taken_display(self) -> str:
        return f"{self.time_taken:.2f}"
