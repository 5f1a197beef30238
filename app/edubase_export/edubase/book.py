import io
import logging
import re
import time

from PIL import Image
from selenium.common.exceptions import TimeoutException, WebDriverException
from selenium.webdriver.common.by import By
from selenium.webdriver.support import expected_conditions as EC
from selenium.webdriver.support.ui import WebDriverWait

from edubase_export.config_parameters import params
from edubase_export.errors import ScreenshotError, ViewerError

logger = logging.getLogger(__name__)

NUMBER_RX = re.compile(r"[0-9]+")
JPEG_RX = re.compile(r".*\.jpe?g$", re.I)

PAGE_TEXT_JS = """
const page = document.querySelector('.lu-page-svg-container svg, .lu-page svg');
if (!page) { return ''; }
const seen = new Set();
const parts = [];
page.querySelectorAll('text, tspan').forEach(el => {
  const content = (el.textContent || '').trim();
  if (content && !seen.has(content)) {
    seen.add(content);
    parts.push(content);
  }
});
return parts.join(' ');
"""


def parse_total_pages(text):
    """First number in the pagination label, or None."""
    m = NUMBER_RX.search(text or "")
    return int(m.group(0)) if m else None


class BookProvider:
    def __init__(self, driver, book_id: int, viewer_params=None, initial_delay=0.5, wait_timeout=10,
                 sleep=time.sleep):
        self.driver = driver
        self.book_id = book_id
        self.viewer = viewer_params or params["viewer"]
        self.initial_delay = initial_delay
        self.wait_timeout = wait_timeout
        self.sleep = sleep

    def page_url(self, page: int) -> str:
        return self.viewer["base_url"] + self.viewer["book_path"].format(book_id=self.book_id, page=page)

    def open(self, page: int = 1) -> None:
        self.sleep(self.initial_delay)
        try:
            self.driver.get(self.page_url(page))
        except WebDriverException as exc:
            raise ViewerError(f"could not open book: {exc.msg or exc}") from exc

    def get_total_pages(self, attempts=10, retry_delay=0.5) -> int:
        self.sleep(self.initial_delay)
        try:
            label = WebDriverWait(self.driver, self.wait_timeout).until(
                EC.visibility_of_element_located((By.CSS_SELECTOR, self.viewer["pagination_selector"]))
            )
        except TimeoutException as exc:
            raise ViewerError("pagination element not found or not visible") from exc

        # the label is rendered before its numbers are filled in
        raw = ""
        for _ in range(attempts):
            raw = label.text
            total = parse_total_pages(raw)
            if total is not None:
                return total
            self.sleep(retry_delay)
        raise ViewerError(f"could not find max page number in pagination text: {raw!r}")

    def next_page(self) -> None:
        try:
            self.driver.find_element(By.CSS_SELECTOR, self.viewer["next_page_selector"]).click()
        except WebDriverException as exc:
            raise ViewerError(f"could not click next page button: {exc.msg or exc}") from exc

    def screenshot(self, filename) -> None:
        filename = str(filename or "")
        if not filename:
            raise ScreenshotError("filename is empty")
        if not JPEG_RX.match(filename):
            raise ScreenshotError("filename has the wrong extension")

        try:
            png = self.driver.find_element(By.CSS_SELECTOR, self.viewer["page_selector"]).screenshot_as_png
        except WebDriverException as exc:
            raise ScreenshotError(f"could not create screenshot: {exc.msg or exc}") from exc

        with Image.open(io.BytesIO(png)) as img:
            img.convert("RGB").save(filename, "JPEG", quality=100)

    def get_page_text(self) -> str:
        self.sleep(self.initial_delay)
        try:
            text = self.driver.execute_script(PAGE_TEXT_JS)
        except WebDriverException as exc:
            logger.warning("could not read page text: %s", exc)
            return ""
        if not text:
            logger.warning("no text could be extracted from page SVG")
            return ""
        logger.debug("extracted %d chars of page text", len(text))
        return text
