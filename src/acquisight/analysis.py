"""AI research requesters for Perplexity, Google Gemini and OpenAI.

Every requester renders a prompt template, makes one provider call raced
against its own time limit, and returns an :class:`AnalysisResult`. Failed
calls are not retried.
"""

import asyncio
import logging
import time
from typing import Any, Awaitable, Dict, Optional, TypeVar

import httpx
from openai import AsyncOpenAI, OpenAIError

from . import prompts
from .config import ProviderSettings, settings
from .exceptions import AnalysisError, AnalysisTimeoutError, ConfigurationError
from .models import AnalysisResult

logger = logging.getLogger(__name__)

T = TypeVar("T")

PERPLEXITY_TIMEOUT_SECONDS = 90.0
GEMINI_ANALYSIS_TIMEOUT_SECONDS = 120.0
RESEARCH_TIMEOUT_SECONDS = 60.0
SUMMARY_TIMEOUT_SECONDS = 90.0

RESEARCH_TEMPERATURE = 0.2
CONTRACT_RESEARCH_MAX_TOKENS = 2000
TOOLS_RESEARCH_MAX_TOKENS = 3000
GAO_RESEARCH_MAX_TOKENS = 3000
SUMMARY_MAX_TOKENS = 2000
SUMMARY_TEMPERATURE = 0.3

# Transport timeouts sit past the race limit so the race reports every timeout
TRANSPORT_TIMEOUT_MARGIN_SECONDS = 5.0


def _require_key(provider: ProviderSettings, name: str) -> str:
    if not provider.api_key:
        raise ConfigurationError(f"{name} API key is not configured")
    return provider.api_key


def transport_timeout(race_seconds: float) -> httpx.Timeout:
    return httpx.Timeout(race_seconds + TRANSPORT_TIMEOUT_MARGIN_SECONDS, connect=10.0)


async def _race(call: Awaitable[T], seconds: float, label: str) -> T:
    """Await ``call`` or fail with a timeout error once ``seconds`` elapse."""
    try:
        return await asyncio.wait_for(call, timeout=seconds)
    except asyncio.TimeoutError as e:
        raise AnalysisTimeoutError(f"{label} timeout after {seconds:g} seconds") from e


async def _post_json(
    url: str,
    payload: Dict[str, Any],
    headers: Optional[Dict[str, str]] = None,
    params: Optional[Dict[str, str]] = None,
    timeout: float = 60.0,
) -> Dict[str, Any]:
    async with httpx.AsyncClient(timeout=transport_timeout(timeout)) as client:
        response = await client.post(url, json=payload, headers=headers, params=params)
        response.raise_for_status()
        try:
            data = response.json()
        except ValueError as e:
            raise AnalysisError(
                f"Provider returned a non-JSON response (HTTP {response.status_code})"
            ) from e
    if not isinstance(data, dict):
        raise AnalysisError("Provider returned an unexpected response body")
    return data


def _provider_message(error: httpx.HTTPStatusError) -> str:
    """Pull the provider's own error message out of a failed response."""
    try:
        body = error.response.json()
    except ValueError:
        return f"HTTP {error.response.status_code}"
    detail = body.get("error") if isinstance(body, dict) else None
    if isinstance(detail, dict) and detail.get("message"):
        return str(detail["message"])
    if isinstance(detail, str):
        return detail
    return f"HTTP {error.response.status_code}"


async def analyze_with_perplexity(company_name: str) -> AnalysisResult:
    """Contractor overview from Perplexity deep web research, with citations."""
    config = settings.PERPLEXITY
    api_key = _require_key(config, "Perplexity")
    template = prompts.PERPLEXITY_CONTRACTOR_OVERVIEW

    payload = {
        "model": config.model,
        "messages": [
            {"role": "system", "content": template.system_prompt},
            {
                "role": "user",
                "content": prompts.render_prompt(template.template, companyName=company_name),
            },
        ],
        "max_tokens": config.max_tokens,
        "temperature": config.temperature,
        "search_depth": "deep",
        "return_citations": True,
        "return_images": False,
    }
    headers = {"Authorization": f"Bearer {api_key}", "Content-Type": "application/json"}

    logger.info(f"Perplexity analysis for: {company_name}")
    started = time.perf_counter()
    try:
        data = await _race(
            _post_json(
                settings.PERPLEXITY_URL,
                payload,
                headers=headers,
                timeout=PERPLEXITY_TIMEOUT_SECONDS,
            ),
            PERPLEXITY_TIMEOUT_SECONDS,
            "Perplexity analysis",
        )
    except httpx.HTTPStatusError as e:
        message = _provider_message(e)
        logger.error(f"Perplexity API error {e.response.status_code}: {message}")
        raise AnalysisError(message) from e
    except httpx.RequestError as e:
        raise AnalysisError(f"Perplexity request failed: {e}") from e

    elapsed = time.perf_counter() - started
    try:
        text = data["choices"][0]["message"]["content"]
    except (KeyError, IndexError, TypeError) as e:
        raise AnalysisError("Perplexity returned no analysis text") from e

    logger.info(f"Perplexity analysis completed in {elapsed:.2f}s")
    return AnalysisResult(
        text=text,
        model=config.model,
        time_taken=elapsed,
        citations=data.get("citations") or [],
        usage={"usage": data.get("usage"), "model": data.get("model")},
    )


def _gemini_text(data: Dict[str, Any]) -> str:
    candidates = data.get("candidates") or []
    if not candidates:
        feedback = data.get("promptFeedback") or {}
        reason = feedback.get("blockReason", "no candidates returned")
        raise AnalysisError(f"Gemini returned no content ({reason})")
    parts = (candidates[0].get("content") or {}).get("parts") or []
    return "".join(part.get("text", "") for part in parts)


async def _generate_with_gemini(
    prompt: str,
    *,
    max_tokens: int,
    temperature: float,
    timeout: float,
    label: str,
) -> Dict[str, Any]:
    """Call Gemini generateContent with Google Search grounding enabled."""
    config = settings.GEMINI
    api_key = _require_key(config, "Gemini")
    url = f"{settings.GEMINI_BASE_URL.rstrip('/')}/models/{config.model}:generateContent"
    payload = {
        "contents": [{"role": "user", "parts": [{"text": prompt}]}],
        "generationConfig": {"maxOutputTokens": max_tokens, "temperature": temperature},
        "tools": [{"google_search": {}}],
    }
    try:
        return await _race(
            _post_json(url, payload, params={"key": api_key}, timeout=timeout),
            timeout,
            label,
        )
    except httpx.HTTPStatusError as e:
        message = _provider_message(e)
        logger.error(f"{label} failed with status {e.response.status_code}: {message}")
        raise AnalysisError(message) from e
    except httpx.RequestError as e:
        raise AnalysisError(f"{label} request failed: {e}") from e


def _grounding(data: Dict[str, Any], include_entry_point: bool) -> Optional[Dict[str, Any]]:
    """Summarize Google Search grounding, or None when the model did not search."""
    candidates = data.get("candidates") or [{}]
    metadata = candidates[0].get("groundingMetadata")
    if not metadata:
        return None
    summary: Dict[str, Any] = {"webSearchQueries": len(metadata.get("webSearchQueries") or [])}
    if include_entry_point:
        summary["searchEntryPoint"] = metadata.get("searchEntryPoint")
    return summary


async def analyze_with_gemini(company_name: str) -> AnalysisResult:
    """Contractor overview from Gemini grounded on Google Search."""
    config = settings.GEMINI
    prompt = prompts.render_prompt(
        prompts.GEMINI_CONTRACTOR_OVERVIEW.template, companyName=company_name
    )

    logger.info(f"Gemini analysis for: {company_name}")
    started = time.perf_counter()
    data = await _generate_with_gemini(
        prompt,
        max_tokens=config.max_tokens,
        temperature=config.temperature,
        timeout=GEMINI_ANALYSIS_TIMEOUT_SECONDS,
        label="Gemini API",
    )
    text = _gemini_text(data)
    elapsed = time.perf_counter() - started

    grounding = _grounding(data, include_entry_point=True)
    if grounding:
        logger.info(
            f"Gemini used Google Search grounding with "
            f"{grounding['webSearchQueries']} web queries"
        )
    logger.info(f"Gemini analysis completed in {elapsed:.2f}s")
    return AnalysisResult(
        text=text,
        model=config.model,
        time_taken=elapsed,
        grounding_metadata=grounding,
        usage={
            "candidates": len(data.get("candidates") or []),
            "usageMetadata": data.get("usageMetadata"),
        },
    )


async def _research(prompt: str, max_tokens: int, label: str) -> AnalysisResult:
    started = time.perf_counter()
    data = await _generate_with_gemini(
        prompt,
        max_tokens=max_tokens,
        temperature=RESEARCH_TEMPERATURE,
        timeout=RESEARCH_TIMEOUT_SECONDS,
        label=label,
    )
    text = _gemini_text(data)
    elapsed = time.perf_counter() - started
    grounding = _grounding(data, include_entry_point=False)
    if grounding:
        logger.info(f"{label} used {grounding['webSearchQueries']} web queries")
    logger.info(f"{label} completed in {elapsed:.2f}s")
    return AnalysisResult(
        text=text,
        model=settings.GEMINI.model,
        time_taken=elapsed,
        grounding_metadata=grounding,
    )


async def research_contract(
    award_id: str, recipient_name: Optional[str], description: str
) -> AnalysisResult:
    """Find the official program name behind an award."""
    logger.info(f"Researching contract name for Award ID: {award_id}")
    prompt = prompts.render_prompt(
        prompts.CONTRACT_NAME_RESEARCH.template,
        awardId=award_id,
        recipientName=recipient_name or "N/A",
        description=description,
    )
    return await _research(prompt, CONTRACT_RESEARCH_MAX_TOKENS, "Contract research")


async def research_tools(
    contract_info: str, award_id: str, recipient_name: Optional[str]
) -> AnalysisResult:
    """Find the tools, COTS and SaaS products used on a contract."""
    logger.info(f"Researching tools/tech for Award ID: {award_id}")
    prompt = prompts.render_prompt(
        prompts.TOOLS_RESEARCH.template,
        contractInfo=contract_info,
        awardId=award_id,
        recipientName=recipient_name or "N/A",
    )
    return await _research(prompt, TOOLS_RESEARCH_MAX_TOKENS, "Tools research")


async def research_gao(
    contract_info: str, award_id: str, recipient_name: Optional[str]
) -> AnalysisResult:
    """Find GAO oversight reports related to a contract or program."""
    logger.info(f"Researching GAO reports for Award ID: {award_id}")
    prompt = prompts.render_prompt(
        prompts.GAO_RESEARCH.template,
        contractInfo=contract_info,
        awardId=award_id,
        recipientName=recipient_name or "N/A",
    )
    return await _research(prompt, GAO_RESEARCH_MAX_TOKENS, "GAO research")


def _openai_client(
    api_key: str, http_client: Optional[httpx.AsyncClient] = None
) -> AsyncOpenAI:
    # The SDK retries twice by default; summaries are single attempts
    return AsyncOpenAI(
        api_key=api_key,
        timeout=transport_timeout(SUMMARY_TIMEOUT_SECONDS),
        max_retries=0,
        http_client=http_client,
    )


async def summarize_analysis(detailed_analysis: str) -> AnalysisResult:
    """Condense a long Gemini analysis with OpenAI chat completions."""
    config = settings.OPENAI
    api_key = _require_key(config, "OpenAI")
    template = prompts.ANALYSIS_SUMMARIZER

    logger.info("Summarizing Gemini analysis with OpenAI...")
    started = time.perf_counter()
    client = _openai_client(api_key)
    try:
        response = await _race(
            client.chat.completions.create(
                model=config.model,
                messages=[
                    {"role": "system", "content": template.system_prompt},
                    {
                        "role": "user",
                        "content": prompts.render_prompt(
                            template.template, detailedAnalysis=detailed_analysis
                        ),
                    },
                ],
                max_tokens=SUMMARY_MAX_TOKENS,
                temperature=SUMMARY_TEMPERATURE,
            ),
            SUMMARY_TIMEOUT_SECONDS,
            "Summarization",
        )
    except OpenAIError as e:
        logger.error(f"OpenAI API error: {e}")
        raise AnalysisError(str(e)) from e
    finally:
        await client.close()

    elapsed = time.perf_counter() - started
    try:
        summary = response.choices[0].message.content or ""
    except (AttributeError, IndexError, TypeError) as e:
        raise AnalysisError("OpenAI returned no summary text") from e
    logger.info(f"Summary generated in {elapsed:.2f}s")
    return AnalysisResult(text=summary, model=config.model, time_taken=elapsed)
