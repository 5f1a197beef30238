"""
Import a book by screenshotting every page and stitching the shots into one PDF.

Screenshots land in <screenshot_dir>/<book_id>_<page>.jpeg and are reused on a
rerun unless img_overwrite is set, so an interrupted import can be resumed.
The finished PDF is re-read with pdfplumber and must hold exactly as many
pages as were imported.
"""
import logging
import time
from pathlib import Path

import img2pdf
import pdfplumber

from edubase_export.edubase.book import BookProvider
from edubase_export.edubase.login import LoginProvider
from edubase_export.errors import ExportError, PageCountMismatch

logger = logging.getLogger(__name__)

UNSAFE_CHARS = ["/", "\\", ":", "*", "?", '"', "<", ">", "|"]


def sanitize_filename(filename: str) -> str:
    for char in UNSAFE_CHARS:
        filename = filename.replace(char, "_")
    return filename


def screenshot_path(screenshot_dir, book_id: int, page: int) -> Path:
    return Path(screenshot_dir) / f"{book_id}_{page}.jpeg"


def login(driver, credentials=None, manual=False, retries=3, manual_timeout=300.0,
          viewer_params=None) -> None:
    provider = LoginProvider(driver, viewer_params=viewer_params)
    if manual or credentials is None:
        provider.login_manually(timeout=manual_timeout)
    else:
        provider.login_with_retry(credentials, max_retries=retries)


def capture_pages(book_provider: BookProvider, screenshot_dir, start_page: int, total_pages: int,
                  page_delay=0.5, img_overwrite=False, sleep=time.sleep, progress=None) -> list:
    """Screenshot total_pages pages starting at start_page; the book must already be open there."""
    screenshot_dir = Path(screenshot_dir)
    screenshot_dir.mkdir(parents=True, exist_ok=True)
    paths = []
    for page in range(start_page, start_page + total_pages):
        filename = screenshot_path(screenshot_dir, book_provider.book_id, page)
        if filename.exists() and not img_overwrite:
            logger.debug("screenshot %s exists, skipping", filename.name)
        else:
            # give the viewer time to render the page
            sleep(page_delay)
            book_provider.screenshot(filename)
        paths.append(filename)
        book_provider.next_page()
        if progress:
            progress(page)
    return paths


def images_to_pdf(image_paths, out_path) -> Path:
    """Write one PDF page per image; JPEG data is embedded as-is, not re-encoded."""
    if not image_paths:
        raise ExportError("no page images to assemble")
    out_path = Path(out_path)
    with open(out_path, "wb") as f:
        f.write(img2pdf.convert([str(p) for p in image_paths]))
    return out_path


def count_pdf_pages(pdf_path) -> int:
    with pdfplumber.open(pdf_path) as pdf:
        return len(pdf.pages)


def validate_page_count(pdf_path, expected: int) -> int:
    actual = count_pdf_pages(pdf_path)
    if actual != expected:
        raise PageCountMismatch(expected, actual)
    return actual


def import_book(driver, book, start_page=1, max_pages=None, screenshot_dir="screenshots",
                out_dir=".", page_delay=0.5, img_overwrite=False, viewer_params=None,
                sleep=time.sleep, progress=None, on_total=None) -> Path:
    """Open ``book`` (an already logged-in session), capture its pages and build the PDF.

    on_total - optional callable told the number of pages before capture starts
    """
    provider = BookProvider(driver, book.id, viewer_params=viewer_params, sleep=sleep)
    provider.open(start_page)
    total_pages = max_pages if max_pages and max_pages > 0 else provider.get_total_pages()
    logger.info("importing %d pages of %r starting at page %d", total_pages, book.title, start_page)
    if on_total:
        on_total(total_pages)

    paths = capture_pages(provider, screenshot_dir, start_page, total_pages, page_delay,
                          img_overwrite, sleep=sleep, progress=progress)

    pdf_path = Path(out_dir) / f"{sanitize_filename(book.title)}.pdf"
    pdf_path.parent.mkdir(parents=True, exist_ok=True)
    images_to_pdf(paths, pdf_path)
    validate_page_count(pdf_path, total_pages)
    logger.info("saved %s (%d pages)", pdf_path, total_pages)
    return pdf_path
