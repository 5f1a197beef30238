"""
Print every page of a document viewer to its own PDF file.

One fresh headless Chrome is launched per page, pointed at the target URL,
and asked for a full-page rendering over the DevTools protocol
(Page.printToPDF). The base64 payload is decoded into pages/page<N>.pdf and
the browser is shut down before the next page starts, so files are written
in page order and only one browser runs at a time.

Pages that already exist on disk are skipped unless overwrite=True.
"""
import base64
import binascii
import logging
from dataclasses import dataclass, field
from pathlib import Path

from selenium.common.exceptions import WebDriverException

from edubase_export.browser.chrome import chrome_session, launch_chrome
from edubase_export.config_parameters import params
from edubase_export.errors import BrowserError, ExportError, PrintError

logger = logging.getLogger(__name__)

PRINT_OPTIONS = params["pdf_export"]["print_options"]


@dataclass
class ExportResult:
    written: list = field(default_factory=list)
    skipped: list = field(default_factory=list)
    failed: dict = field(default_factory=dict)  # page -> error message


def page_url(url_template: str, page: int) -> str:
    """Fill the {page} placeholder; URLs without one are used as-is."""
    return url_template.replace("{page}", str(page))


def page_pdf_path(out_dir, page: int) -> Path:
    return Path(out_dir) / f"page{page}.pdf"


def print_page_to_pdf(driver, url: str, print_options=None, page: int = 0) -> bytes:
    """Navigate to url, wait for the load event and return the printed PDF bytes."""
    options = dict(PRINT_OPTIONS if print_options is None else print_options)
    try:
        # driver.get returns once the load event has fired
        driver.get(url)
        result = driver.execute_cdp_cmd("Page.printToPDF", options)
    except WebDriverException as exc:
        raise PrintError(page, f"could not print {url}: {exc.msg or exc}") from exc

    data = (result or {}).get("data")
    if not data:
        raise PrintError(page, "printToPDF returned no data")
    try:
        return base64.b64decode(data, validate=True)
    except binascii.Error as exc:
        raise PrintError(page, "printToPDF returned invalid base64") from exc


def export_pages(url: str, page_count: int, out_dir="pages", start_page: int = 1,
                 print_options=None, launcher=launch_chrome, overwrite=False,
                 keep_going=False, progress=None) -> ExportResult:
    """Print pages start_page .. start_page + page_count - 1 into out_dir.

    url       - target URL, optionally containing "{page}"
    launcher  - callable returning a fresh webdriver for each page
    progress  - optional callable invoked with each finished page number
    """
    if not url:
        raise ExportError("no target URL given")
    if page_count < 1:
        raise ExportError(f"page count must be positive, got {page_count}")

    out_dir = Path(out_dir)
    out_dir.mkdir(parents=True, exist_ok=True)
    result = ExportResult()

    for page in range(start_page, start_page + page_count):
        target = page_pdf_path(out_dir, page)
        if target.exists() and not overwrite:
            logger.debug("page %d already exported, skipping", page)
            result.skipped.append(page)
        else:
            try:
                try:
                    with chrome_session(launcher=launcher) as driver:
                        pdf_bytes = print_page_to_pdf(driver, page_url(url, page), print_options, page)
                except BrowserError as exc:
                    raise PrintError(page, str(exc)) from exc
                target.write_bytes(pdf_bytes)
                logger.info("page %d saved (%.1f KB)", page, len(pdf_bytes) / 1024)
                result.written.append(page)
            except ExportError as exc:
                if not keep_going:
                    raise
                logger.error("page %d failed: %s", page, exc)
                result.failed[page] = str(exc)
        if progress:
            progress(page)

    return result
