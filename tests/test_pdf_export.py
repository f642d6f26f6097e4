import io
from pathlib import Path
from unittest.mock import AsyncMock, MagicMock, patch

import pytest
from playwright.async_api import Error as PlaywrightError
from pypdf import PdfReader
from reportlab.lib.pagesizes import letter
from reportlab.pdfgen import canvas

from acquisight import pdf_export
from acquisight.exceptions import RenderError
from acquisight.pdf_export import (
    ReportSource,
    build_cover_page,
    export_page_with_cover,
    merge_with_cover,
    render_page_to_pdf,
    settle_delay,
    validate_url,
)


def write_pdf(path: Path, pages: int) -> Path:
    pdf = canvas.Canvas(str(path), pagesize=letter)
    for number in range(pages):
        pdf.drawString(72, 720, f"Award page {number + 1}")
        pdf.showPage()
    pdf.save()
    return path


def fake_playwright(page: MagicMock):
    browser = MagicMock()
    browser.new_page = AsyncMock(return_value=page)
    browser.close = AsyncMock()

    playwright = MagicMock()
    playwright.chromium.launch = AsyncMock(return_value=browser)

    manager = MagicMock()
    manager.__aenter__ = AsyncMock(return_value=playwright)
    manager.__aexit__ = AsyncMock(return_value=False)
    return manager, browser


def fake_page() -> MagicMock:
    page = MagicMock()
    page.goto = AsyncMock()
    page.pdf = AsyncMock()
    page.close = AsyncMock()
    return page


class TestUrlChecks:
    def test_requires_url(self):
        with pytest.raises(RenderError, match="URL is required"):
            validate_url("")

    def test_requires_http_scheme(self):
        with pytest.raises(RenderError, match="must start with http"):
            validate_url("ftp://fpds.gov/report")

    def test_fpds_gets_longer_settle(self):
        assert settle_delay("https://www.fpds.gov/ezsearch/search.do?q=1") == 10.0
        assert settle_delay("https://www.usaspending.gov/award/CONT_AWD_1") == 5.0


def test_cover_page_is_one_letter_page():
    cover = build_cover_page(
        "Contract Report", "USAspending.gov", (0.4, 0.49, 0.92), identifier="36C10B22N10280026"
    )
    reader = PdfReader(io.BytesIO(cover))

    assert len(reader.pages) == 1
    box = reader.pages[0].mediabox
    assert (float(box.width), float(box.height)) == (612.0, 792.0)
    text = reader.pages[0].extract_text()
    assert "Contract Report" in text
    assert "36C10B22N10280026" in text


def test_fpds_cover_labels_award_id():
    style = ReportSource.FPDS.value
    cover = build_cover_page(
        "Contract Report",
        style.subtitle,
        style.color,
        identifier="AWD1",
        label_identifier=style.label_identifier,
    )
    assert "Award ID: AWD1" in PdfReader(io.BytesIO(cover)).pages[0].extract_text()


def test_merge_puts_cover_first(tmp_path):
    content = write_pdf(tmp_path / "content.pdf", pages=3)
    cover = build_cover_page("Contract Report", "FPDS.gov", (0.8, 0.4, 0.2))

    merged = PdfReader(io.BytesIO(merge_with_cover(cover, content)))

    assert len(merged.pages) == 4
    assert "Contract Report" in merged.pages[0].extract_text()
    assert "Award page 1" in merged.pages[1].extract_text()


@pytest.mark.asyncio
async def test_export_adds_cover_and_removes_temp_file():
    rendered = {}

    async def fake_render(url, output_path, timeout):
        rendered["path"] = Path(output_path)
        rendered["timeout"] = timeout
        write_pdf(Path(output_path), pages=2)
        return Path(output_path)

    with patch("acquisight.pdf_export.render_page_to_pdf", side_effect=fake_render):
        result = await export_page_with_cover(
            "https://www.usaspending.gov/award/CONT_AWD_1", ReportSource.USASPENDING, "AWD1"
        )

    assert len(PdfReader(io.BytesIO(result)).pages) == 3
    assert rendered["timeout"] == 90.0
    assert not rendered["path"].exists()


@pytest.mark.asyncio
async def test_export_removes_temp_file_when_merge_fails():
    rendered = {}

    async def fake_render(url, output_path, timeout):
        rendered["path"] = Path(output_path)
        write_pdf(Path(output_path), pages=1)
        return Path(output_path)

    with (
        patch("acquisight.pdf_export.render_page_to_pdf", side_effect=fake_render),
        patch("acquisight.pdf_export.merge_with_cover", side_effect=ValueError("corrupt")),
    ):
        with pytest.raises(RenderError, match="PDF merge failed"):
            await export_page_with_cover("https://www.fpds.gov/x", ReportSource.FPDS)

    assert not rendered["path"].exists()


@pytest.mark.asyncio
async def test_export_removes_temp_file_when_render_fails():
    rendered = {}

    async def failing_render(url, output_path, timeout):
        rendered["path"] = Path(output_path)
        rendered["timeout"] = timeout
        raise RenderError("PDF generation failed: timeout")

    with patch("acquisight.pdf_export.render_page_to_pdf", side_effect=failing_render):
        with pytest.raises(RenderError):
            await export_page_with_cover("https://www.fpds.gov/x", ReportSource.FPDS)

    assert rendered["timeout"] == 120.0
    assert not rendered["path"].exists()


@pytest.mark.asyncio
async def test_render_prints_letter_pdf_and_closes_browser(tmp_path):
    page = fake_page()

    async def print_pdf(path, **kwargs):
        write_pdf(Path(path), pages=1)

    page.pdf.side_effect = print_pdf
    manager, browser = fake_playwright(page)
    output = tmp_path / "out" / "report.pdf"

    with (
        patch("acquisight.pdf_export.async_playwright", return_value=manager),
        patch("acquisight.pdf_export.asyncio.sleep", new_callable=AsyncMock) as sleep,
    ):
        result = await render_page_to_pdf("https://www.fpds.gov/award", output, timeout=120.0)

    assert result == output
    assert output.stat().st_size > 0
    sleep.assert_awaited_once_with(10.0)
    page.goto.assert_awaited_once_with(
        "https://www.fpds.gov/award", wait_until="networkidle", timeout=120_000
    )
    pdf_kwargs = page.pdf.await_args.kwargs
    assert pdf_kwargs["format"] == "Letter"
    assert pdf_kwargs["margin"]["top"] == "0.5in"
    page.close.assert_awaited_once()
    browser.close.assert_awaited_once()


@pytest.mark.asyncio
async def test_render_failure_still_closes_browser(tmp_path):
    page = fake_page()
    page.goto.side_effect = PlaywrightError("net::ERR_NAME_NOT_RESOLVED")
    manager, browser = fake_playwright(page)

    with patch("acquisight.pdf_export.async_playwright", return_value=manager):
        with pytest.raises(RenderError, match="ERR_NAME_NOT_RESOLVED"):
            await render_page_to_pdf("https://example.invalid", tmp_path / "x.pdf")

    page.close.assert_awaited_once()
    browser.close.assert_awaited_once()
    page.pdf.assert_not_awaited()


@pytest.mark.asyncio
async def test_render_rejects_empty_output(tmp_path):
    page = fake_page()
    manager, browser = fake_playwright(page)

    with (
        patch("acquisight.pdf_export.async_playwright", return_value=manager),
        patch.object(pdf_export.asyncio, "sleep", new_callable=AsyncMock),
    ):
        with pytest.raises(RenderError, match="was not created"):
            await render_page_to_pdf("https://www.usaspending.gov/award/1", tmp_path / "x.pdf")

    browser.close.assert_awaited_once()
