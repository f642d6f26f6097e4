"""FastAPI application exposing search, analysis and export routes."""

import logging
import time
from pathlib import Path
from typing import Any, AsyncIterator, Dict, Optional

from fastapi import Depends, FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import FileResponse, JSONResponse, Response
from pydantic import BaseModel, ConfigDict, Field

from . import analysis, pdf_export, search, word_export
from .config import settings
from .exceptions import (
    AcquiSightError,
    AnalysisTimeoutError,
    InvalidInputError,
    UsaSpendingNotFoundError,
)
from .usaspending_client import UsaSpendingClient

logger = logging.getLogger(__name__)

STATIC_DIR = Path(__file__).parent / "static"
DOCX_MEDIA_TYPE = (
    "application/vnd.openxmlformats-officedocument.wordprocessingml.document"
)


class CamelModel(BaseModel):
    model_config = ConfigDict(populate_by_name=True)


class SearchRequest(CamelModel):
    keywords: Optional[str] = None


class CompanyRequest(CamelModel):
    company_name: Optional[str] = Field(None, alias="companyName")


class ContractResearchRequest(CamelModel):
    award_id: Optional[str] = Field(None, alias="awardId")
    recipient_name: Optional[str] = Field(None, alias="recipientName")
    description: Optional[str] = None


class FollowUpResearchRequest(CamelModel):
    contract_info: Optional[str] = Field(None, alias="contractInfo")
    award_id: Optional[str] = Field(None, alias="awardId")
    recipient_name: Optional[str] = Field(None, alias="recipientName")


class SummarizeRequest(CamelModel):
    detailed_analysis: Optional[str] = Field(None, alias="detailedAnalysis")


class WordDocRequest(CamelModel):
    content: Optional[str] = None
    title: Optional[str] = None
    company_name: Optional[str] = Field(None, alias="companyName")
    model: Optional[str] = None
    grounding_metadata: Optional[Dict[str, Any]] = Field(None, alias="groundingMetadata")


class PdfRequest(CamelModel):
    url: Optional[str] = None
    award_id: Optional[str] = Field(None, alias="awardId")


app = FastAPI(title="AcquiSight", version="0.1.0")


async def get_search_client() -> AsyncIterator[UsaSpendingClient]:
    """Client with the longer timeout used for keyword searches."""
    async with UsaSpendingClient(timeout=settings.USASPENDING_SEARCH_TIMEOUT) as client:
        yield client


async def get_detail_client() -> AsyncIterator[UsaSpendingClient]:
    async with UsaSpendingClient() as client:
        yield client


def _require(value: Optional[str], message: str) -> str:
    if not value or not value.strip():
        raise InvalidInputError(message)
    return value


def _elapsed(started: float) -> str:
    return f"{time.perf_counter() - started:.2f}"


def error_response(label: str, error: Exception, started: Optional[float] = None) -> JSONResponse:
    """Map an exception to the JSON error body for a route."""
    if isinstance(error, InvalidInputError):
        return JSONResponse(status_code=400, content={"error": label, "message": str(error)})

    status_code = 404 if isinstance(error, UsaSpendingNotFoundError) else 500
    content: Dict[str, Any] = {"error": label, "message": str(error)}
    if isinstance(error, AnalysisTimeoutError):
        content["timeout"] = True
    if started is not None:
        content["timeTaken"] = _elapsed(started)
        logger.error(f"{label} after {content['timeTaken']}s: {error}")
    else:
        logger.error(f"{label}: {error}")
    return JSONResponse(status_code=status_code, content=content)


@app.exception_handler(RequestValidationError)
async def validation_error_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    return JSONResponse(
        status_code=400,
        content={"error": "Invalid request", "message": str(exc.errors())},
    )


@app.exception_handler(Exception)
async def unhandled_error_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.exception(f"Server error on {request.url.path}")
    return JSONResponse(
        status_code=500,
        content={"error": "Internal server error", "message": str(exc)},
    )


@app.get("/")
async def index() -> FileResponse:
    return FileResponse(STATIC_DIR / "index.html")


@app.post("/api/search")
async def search_contracts(
    body: SearchRequest, client: UsaSpendingClient = Depends(get_search_client)
) -> Any:
    started = time.perf_counter()
    try:
        return await search.search_awards(client, body.keywords)
    except AcquiSightError as e:
        return error_response("Failed to search contracts", e, started)


@app.get("/api/award/details/{award_id}")
async def award_details(
    award_id: str, client: UsaSpendingClient = Depends(get_detail_client)
) -> Any:
    try:
        return await search.fetch_award_details(client, award_id)
    except AcquiSightError as e:
        return error_response("Failed to get award details", e)


@app.post("/api/analyze/perplexity")
async def analyze_perplexity(body: CompanyRequest) -> Any:
    started = time.perf_counter()
    try:
        company = _require(body.company_name, "Company name is required")
        result = await analysis.analyze_with_perplexity(company)
    except AcquiSightError as e:
        return error_response("Failed to analyze with Perplexity AI", e, started)

    return {
        "analysis": result.text,
        "citations": result.citations,
        "model": result.model,
        "timeTaken": result.time_taken_display,
        "apiResponse": result.usage,
    }


@app.post("/api/analyze/gemini")
async def analyze_gemini(body: CompanyRequest) -> Any:
    started = time.perf_counter()
    try:
        company = _require(body.company_name, "Company name is required")
        result = await analysis.analyze_with_gemini(company)
    except AcquiSightError as e:
        return error_response("Failed to analyze with Gemini AI", e, started)

    return {
        "analysis": result.text,
        "model": result.model,
        "timeTaken": result.time_taken_display,
        "groundingMetadata": result.grounding_metadata,
        "apiResponse": result.usage,
    }


def _research_body(key: str, result: Any) -> Dict[str, Any]:
    return {
        key: result.text,
        "timeTaken": result.time_taken_display,
        "model": result.model,
        "groundingMetadata": result.grounding_metadata,
    }


@app.post("/api/research/contract")
async def research_contract(body: ContractResearchRequest) -> Any:
    started = time.perf_counter()
    try:
        if not body.award_id or not body.description:
            raise InvalidInputError("Award ID and description are required")
        result = await analysis.research_contract(
            body.award_id, body.recipient_name, body.description
        )
    except AcquiSightError as e:
        return error_response("Failed to research contract", e, started)
    return _research_body("contractInfo", result)


@app.post("/api/research/tools")
async def research_tools(body: FollowUpResearchRequest) -> Any:
    started = time.perf_counter()
    try:
        if not body.contract_info or not body.award_id:
            raise InvalidInputError("Contract info and award ID are required")
        result = await analysis.research_tools(
            body.contract_info, body.award_id, body.recipient_name
        )
    except AcquiSightError as e:
        return error_response("Failed to research tools", e, started)
    return _research_body("toolsInfo", result)


@app.post("/api/research/gao")
async def research_gao(body: FollowUpResearchRequest) -> Any:
    started = time.perf_counter()
    try:
        if not body.contract_info or not body.award_id:
            raise InvalidInputError("Contract info and award ID are required")
        result = await analysis.research_gao(
            body.contract_info, body.award_id, body.recipient_name
        )
    except AcquiSightError as e:
        return error_response("Failed to research GAO reports", e, started)
    return _research_body("gaoInfo", result)


@app.post("/api/summarize/gemini")
async def summarize_gemini(body: SummarizeRequest) -> Any:
    started = time.perf_counter()
    try:
        detailed = _require(body.detailed_analysis, "Detailed analysis is required")
        result = await analysis.summarize_analysis(detailed)
    except AcquiSightError as e:
        return error_response("Failed to summarize analysis", e, started)

    return {
        "summary": result.text,
        "timeTaken": result.time_taken_display,
        "model": result.model,
    }


def _attachment(content: bytes, media_type: str, filename: str) -> Response:
    return Response(
        content=content,
        media_type=media_type,
        headers={"Content-Disposition": f'attachment; filename="{filename}"'},
    )


@app.post("/api/generate-word-doc")
async def generate_word_doc(body: WordDocRequest) -> Response:
    try:
        if not body.content or not body.title:
            raise InvalidInputError("Content and title are required")
        logger.info(f"Generating Word document for: {body.company_name}")
        document = word_export.build_word_document(
            body.content,
            body.title,
            model=body.model,
            grounding_metadata=body.grounding_metadata,
        )
    except AcquiSightError as e:
        return error_response("Failed to generate Word document", e)

    stamp = int(time.time() * 1000)
    filename = f"{word_export.safe_filename(body.company_name)}-analysis-{stamp}.docx"
    return _attachment(document, DOCX_MEDIA_TYPE, filename)


async def _page_export(body: PdfRequest, source: pdf_export.ReportSource, label: str) -> Response:
    try:
        url = _require(body.url, "URL is required")
        logger.info(f"Exporting {url}")
        pdf_bytes = await pdf_export.export_page_with_cover(url, source, award_id=body.award_id)
    except AcquiSightError as e:
        return error_response(label, e)

    stamp = int(time.time() * 1000)
    filename = f"{source.value.filename_prefix}-{body.award_id or 'contract'}-{stamp}.pdf"
    return _attachment(pdf_bytes, "application/pdf", filename)


@app.post("/api/generate-usaspending-pdf")
async def generate_usaspending_pdf(body: PdfRequest) -> Response:
    return await _page_export(body, pdf_export.ReportSource.USASPENDING, "Failed to generate PDF")


@app.post("/api/generate-fpds-pdf")
async def generate_fpds_pdf(body: PdfRequest) -> Response:
    return await _page_export(body, pdf_export.ReportSource.FPDS, "Failed to generate FPDS PDF")
