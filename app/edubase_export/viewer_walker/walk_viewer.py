"""
Walk an open document viewer page by page and save each page's vector layer.

For every page the walker reads the background image URL and the SVG content
element, waits (a bounded number of times) until the SVG differs from the
previous page's, writes page-<N>.svg plus an HTML wrapper that lays the SVG
over the background, then fires a click on the viewer's "next page" control.
"""
import logging
import time

from selenium.common.exceptions import WebDriverException

from edubase_export.config_parameters import params
from edubase_export.edubase.book import BookProvider
from edubase_export.errors import ContentUnchangedError, ViewerError
from edubase_export.viewer_walker.svg_export import write_page_files

logger = logging.getLogger(__name__)

SERIALIZE_SVG_JS = """
const el = document.querySelector(arguments[0]);
return el ? new XMLSerializer().serializeToString(el) : null;
"""

BACKGROUND_SRC_JS = """
const el = document.querySelector(arguments[0]);
return el ? el.src : null;
"""

DISPATCH_CLICK_JS = """
const el = document.querySelector(arguments[0]);
if (!el) { return false; }
el.dispatchEvent(new Event('click', {bubbles: true, cancelable: false}));
return true;
"""


class ViewerWalker:
    def __init__(self, driver, out_dir, viewer_params=None, delay=1.5, retry_delay=1.0,
                 max_content_retries=30, page_height=2721, page_width=1928, sleep=time.sleep):
        self.driver = driver
        self.out_dir = out_dir
        self.viewer = viewer_params or params["viewer"]
        self.delay = delay
        self.retry_delay = retry_delay
        self.max_content_retries = max_content_retries
        self.page_height = page_height
        self.page_width = page_width
        self.sleep = sleep
        self.previous_content = None

    @classmethod
    def from_params(cls, driver, walker_params=None, viewer_params=None, out_dir=None, **kwargs):
        w = walker_params or params["walker"]
        return cls(
            driver,
            out_dir or w["out_dir"],
            viewer_params=viewer_params,
            delay=w["delay_seconds"],
            retry_delay=w["retry_delay_seconds"],
            max_content_retries=w["max_content_retries"],
            page_height=w["page_height"],
            page_width=w["page_width"],
            **kwargs,
        )

    def _script(self, js, *args):
        try:
            return self.driver.execute_script(js, *args)
        except WebDriverException as exc:
            raise ViewerError(f"script failed in viewer page: {exc.msg or exc}") from exc

    def read_background(self):
        return self._script(BACKGROUND_SRC_JS, self.viewer["background_selector"])

    def read_svg(self):
        return self._script(SERIALIZE_SVG_JS, self.viewer["svg_selector"])

    def wait_for_new_content(self, page: int):
        """Serialized SVG of the current page, or None when the page has none.

        Raises ContentUnchangedError if the SVG still matches the previous
        page after max_content_retries re-reads.
        """
        content = self.read_svg()
        attempts = 0
        while content is not None and content == self.previous_content:
            if attempts >= self.max_content_retries:
                raise ContentUnchangedError(page, attempts)
            attempts += 1
            logger.info("Content has not changed... try again in %.1fs...", self.retry_delay)
            self.sleep(self.retry_delay)
            content = self.read_svg()
        return content

    def next_page(self) -> None:
        if not self._script(DISPATCH_CLICK_JS, self.viewer["footer_next_selector"]):
            raise ViewerError("next page control not found")

    def process_page(self, page: int, max_pages: int) -> bool:
        """Save the current page and advance the viewer. False if the page had no SVG."""
        self.sleep(self.delay)
        logger.info("Processing page %d/%d...", page, max_pages)
        background = self.read_background()
        content = self.wait_for_new_content(page)
        saved = False
        if content is None:
            logger.warning("page %d: no SVG content found, skipping", page)
        else:
            self.previous_content = content
            write_page_files(self.out_dir, page, content, background,
                             self.page_height, self.page_width)
            logger.info("Processing page %d/%d done.", page, max_pages)
            saved = True
        self.next_page()
        return saved

    def walk(self, max_pages: int, start_page: int = 1, progress=None) -> list:
        """Process pages start_page..max_pages; returns the pages that were saved."""
        saved = []
        for page in range(start_page, max_pages + 1):
            if self.process_page(page, max_pages):
                saved.append(page)
            if progress:
                progress(page)
        return saved


def resolve_page_count(driver, max_pages=None, viewer_params=None) -> int:
    """max_pages if given, otherwise the total shown by the viewer's pagination."""
    if max_pages:
        return max_pages
    return BookProvider(driver, book_id=0, viewer_params=viewer_params).get_total_pages()
