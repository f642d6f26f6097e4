"""Page-to-PDF export with a generated cover page.

A headless Chromium (Playwright) prints the remote page to a temporary file,
reportlab draws a one-page cover, and pypdf joins the two. The temporary
file is removed whether or not the merge succeeds.
"""

import asyncio
import enum
import io
import logging
import os
import tempfile
from dataclasses import dataclass
from datetime import date
from pathlib import Path
from typing import Optional, Tuple, Union

from playwright.async_api import Error as PlaywrightError
from playwright.async_api import async_playwright
from pypdf import PdfReader, PdfWriter
from reportlab.lib.pagesizes import letter
from reportlab.pdfgen import canvas

from .exceptions import RenderError

logger = logging.getLogger(__name__)

DEFAULT_NAVIGATION_TIMEOUT = 90.0
RENDER_SETTLE_SECONDS = 5.0
# fpds.gov builds its pages client side and needs longer to settle
SLOW_RENDER_SETTLE_SECONDS = 10.0
SLOW_RENDER_HOSTS = ("fpds.gov",)

VIEWPORT = {"width": 1200, "height": 1600}
PAGE_MARGIN = "0.5in"
BROWSER_ARGS = [
    "--no-sandbox",
    "--disable-setuid-sandbox",
    "--disable-dev-shm-usage",
    "--disable-gpu",
    "--log-level=3",
]

RGB = Tuple[float, float, float]


@dataclass(frozen=True)
class CoverStyle:
    subtitle: str
    color: RGB
    navigation_timeout: float
    filename_prefix: str
    # Print the identifier as "Award ID: <id>" rather than on its own
    label_identifier: bool = False


class ReportSource(enum.Enum):
    USASPENDING = CoverStyle(
        subtitle="USAspending.gov",
        color=(0.4, 0.49, 0.92),
        navigation_timeout=90.0,
        filename_prefix="usaspending-report",
    )
    FPDS = CoverStyle(
        subtitle="FPDS.gov",
        color=(0.8, 0.4, 0.2),
        navigation_timeout=120.0,
        filename_prefix="fpds-report",
        label_identifier=True,
    )


def validate_url(url: Optional[str]) -> str:
    if not url:
        raise RenderError("URL is required for PDF generation")
    if not url.startswith(("http://", "https://")):
        raise RenderError("Invalid URL format - must start with http:// or https://")
    return url


def settle_delay(url: str) -> float:
    """Extra wait after network idle before printing."""
    if any(host in url for host in SLOW_RENDER_HOSTS):
        return SLOW_RENDER_SETTLE_SECONDS
    return RENDER_SETTLE_SECONDS


async def render_page_to_pdf(
    url: str,
    output_path: Union[str, Path],
    timeout: float = DEFAULT_NAVIGATION_TIMEOUT,
) -> Path:
    """Load ``url`` in headless Chromium and print it to ``output_path``.

    The page and browser are closed on every exit path.

    Raises:
        RenderError: On an invalid URL, navigation failure or an empty PDF.
    """
    validate_url(url)
    output_path = Path(output_path)
    output_path.parent.mkdir(parents=True, exist_ok=True)

    logger.info(f"Generating PDF from: {url}")
    async with async_playwright() as playwright:
        browser = None
        page = None
        try:
            browser = await playwright.chromium.launch(
                headless=True, args=BROWSER_ARGS, timeout=30_000
            )
            page = await browser.new_page(viewport=VIEWPORT)
            page.set_default_navigation_timeout(timeout * 1000)
            page.set_default_timeout(30_000)

            logger.info("Navigating to URL...")
            await page.goto(url, wait_until="networkidle", timeout=timeout * 1000)

            logger.info("Page loaded, waiting for content to render...")
            await asyncio.sleep(settle_delay(url))

            await page.pdf(
                path=str(output_path),
                format="Letter",
                print_background=True,
                prefer_css_page_size=False,
                margin={
                    "top": PAGE_MARGIN,
                    "right": PAGE_MARGIN,
                    "bottom": PAGE_MARGIN,
                    "left": PAGE_MARGIN,
                },
            )

            if not output_path.exists() or output_path.stat().st_size == 0:
                raise RenderError("PDF file was not created")

            logger.info(f"PDF generated: {output_path} ({output_path.stat().st_size} bytes)")
            return output_path

        except RenderError:
            raise
        except (PlaywrightError, OSError) as e:
            logger.exception("PDF generation error")
            raise RenderError(f"PDF generation failed: {e}") from e
        finally:
            if page is not None:
                try:
                    await page.close()
                except PlaywrightError as close_error:
                    logger.warning(f"Error closing page: {close_error}")
            if browser is not None:
                try:
                    await browser.close()
                    logger.info("Browser closed successfully")
                except PlaywrightError as close_error:
                    logger.warning(f"Error closing browser: {close_error}")


def build_cover_page(
    title: str,
    subtitle: str,
    color: RGB,
    identifier: Optional[str] = None,
    label_identifier: bool = False,
    generated: Optional[date] = None,
) -> bytes:
    """Draw a one-page Letter cover with a solid background."""
    buffer = io.BytesIO()
    width, height = letter
    pdf = canvas.Canvas(buffer, pagesize=letter)

    pdf.setFillColorRGB(*color)
    pdf.rect(0, 0, width, height, stroke=0, fill=1)

    pdf.setFillColorRGB(1, 1, 1)
    center = width / 2
    middle = height / 2

    pdf.setFont("Helvetica-Bold", 48)
    pdf.drawCentredString(center, middle + 100, title)

    pdf.setFont("Helvetica-Bold", 24)
    pdf.drawCentredString(center, middle + 50, subtitle)

    if identifier:
        if label_identifier:
            pdf.setFont("Helvetica-Bold", 16)
            pdf.drawCentredString(center, middle, f"Award ID: {identifier}")
        else:
            pdf.setFont("Helvetica-Bold", 28)
            pdf.drawCentredString(center, middle - 20, str(identifier))

    stamp = (generated or date.today()).strftime("%m/%d/%Y")
    pdf.setFont("Helvetica-Bold", 14)
    pdf.drawCentredString(center, middle - 80, f"Generated: {stamp}")

    pdf.showPage()
    pdf.save()
    return buffer.getvalue()


def merge_with_cover(cover_pdf: bytes, content_path: Union[str, Path]) -> bytes:
    """Cover page first, then every page of the content PDF."""
    writer = PdfWriter()
    for source in (PdfReader(io.BytesIO(cover_pdf)), PdfReader(str(content_path))):
        for page in source.pages:
            writer.add_page(page)

    buffer = io.BytesIO()
    writer.write(buffer)
    return buffer.getvalue()


async def export_page_with_cover(
    url: str,
    source: ReportSource,
    award_id: Optional[str] = None,
) -> bytes:
    """Render ``url`` to PDF and prepend the cover for ``source``."""
    style = source.value
    validate_url(url)
    logger.info(f"Generating {style.subtitle} PDF with cover page...")

    fd, temp_name = tempfile.mkstemp(prefix="report-", suffix=".pdf")
    os.close(fd)
    content_path = Path(temp_name)
    try:
        await render_page_to_pdf(url, content_path, timeout=style.navigation_timeout)
        cover = build_cover_page(
            "Contract Report",
            style.subtitle,
            style.color,
            identifier=award_id,
            label_identifier=style.label_identifier,
        )
        try:
            merged = merge_with_cover(cover, content_path)
        except Exception as e:
            raise RenderError(f"PDF merge failed: {e}") from e
    finally:
        content_path.unlink(missing_ok=True)

    logger.info("PDF with cover page generated successfully")
    return merged
