import logging
import time
from dataclasses import dataclass

from selenium.common.exceptions import TimeoutException, WebDriverException
from selenium.webdriver.common.by import By
from selenium.webdriver.support import expected_conditions as EC
from selenium.webdriver.support.ui import WebDriverWait

from edubase_export.config_parameters import params

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Book:
    id: int
    title: str

    def __str__(self):
        return self.title


class LibraryProvider:
    def __init__(self, driver, viewer_params=None, initial_delay=0.5, wait_timeout=10,
                 sleep=time.sleep):
        self.driver = driver
        self.viewer = viewer_params or params["viewer"]
        self.initial_delay = initial_delay
        self.wait_timeout = wait_timeout
        self.sleep = sleep
        self.books = []

    def get_books(self) -> list:
        """Books on the library page, in the order they are listed."""
        self.sleep(self.initial_delay)
        selector = self.viewer["library_item_selector"]
        try:
            WebDriverWait(self.driver, self.wait_timeout).until(
                EC.visibility_of_element_located((By.CSS_SELECTOR, selector))
            )
        except TimeoutException:
            # an account without books never shows an item
            logger.info("no library items found")
            return []

        books = []
        for item in self.driver.find_elements(By.CSS_SELECTOR, selector):
            try:
                book_id = item.get_attribute("data-last-available-version")
                title = item.find_element(By.CSS_SELECTOR, self.viewer["library_title_selector"]).text
            except WebDriverException:
                continue
            if not book_id or not book_id.strip().isdigit():
                continue
            books.append(Book(int(book_id), title.strip()))

        self.books = books
        logger.info("found %d books", len(books))
        return books
