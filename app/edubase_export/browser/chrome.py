import logging
import os
from contextlib import contextmanager

from selenium import webdriver
from selenium.common.exceptions import WebDriverException
from selenium.webdriver.chrome.options import Options
from selenium.webdriver.chrome.service import Service

from edubase_export.errors import BrowserError

logger = logging.getLogger(__name__)

MIN_RECOMMENDED_WIDTH = 1920
MIN_RECOMMENDED_HEIGHT = 1080


def build_chrome_options(headless=True, width=1920, height=1080, debugger_address=None,
                         chromium_path="/usr/bin/chromium") -> Options:
    """Chrome options for a fresh isolated browser, or for attaching to a running one.

    debugger_address - "host:port" of a Chrome started with --remote-debugging-port
    """
    chrome_options = Options()
    if debugger_address:
        # attach only; the running browser keeps its own flags and profile
        chrome_options.add_experimental_option("debuggerAddress", debugger_address)
        return chrome_options

    if headless:
        chrome_options.add_argument("--headless=new")
    chrome_options.add_argument("--disable-gpu")
    chrome_options.add_argument("--no-sandbox")
    chrome_options.add_argument("--disable-dev-shm-usage")
    chrome_options.add_argument(f"--window-size={width},{height}")

    # Point to Chromium binary when the system ships one
    if chromium_path and os.path.exists(chromium_path):
        chrome_options.binary_location = chromium_path
    return chrome_options


def build_service(chromedriver_path="/usr/bin/chromedriver") -> Service:
    if chromedriver_path and os.path.exists(chromedriver_path):
        service = Service(chromedriver_path)
    else:
        # let Selenium Manager resolve a matching driver
        service = Service()
    try:
        service.creationflags = 0x08000000  # CREATE_NO_WINDOW (Windows only)
    except AttributeError:
        pass
    return service


def launch_chrome(headless=True, width=1920, height=1080, debugger_address=None,
                  timeout_seconds=300, chromium_path="/usr/bin/chromium",
                  chromedriver_path="/usr/bin/chromedriver") -> webdriver.Chrome:
    options = build_chrome_options(headless, width, height, debugger_address, chromium_path)
    try:
        driver = webdriver.Chrome(service=build_service(chromedriver_path), options=options)
    except WebDriverException as exc:
        raise BrowserError(f"failed to launch Chrome: {exc.msg or exc}") from exc
    driver.set_page_load_timeout(timeout_seconds)
    return driver


def launch_from_params(browser_params: dict, **overrides) -> webdriver.Chrome:
    """Launch Chrome from the ``browser`` section of the parameters."""
    kwargs = {
        "headless": browser_params["headless"],
        "width": browser_params["width"],
        "height": browser_params["height"],
        "timeout_seconds": browser_params["timeout_seconds"],
        "chromium_path": browser_params.get("chromium_path"),
        "chromedriver_path": browser_params.get("chromedriver_path"),
    }
    kwargs.update(overrides)
    return launch_chrome(**kwargs)


@contextmanager
def chrome_session(launcher=launch_chrome, **kwargs):
    """Yield a driver and always quit it, so no browser outlives its block."""
    driver = launcher(**kwargs)
    try:
        yield driver
    finally:
        try:
            driver.quit()
        except WebDriverException as exc:
            logger.warning("could not quit browser cleanly: %s", exc)


def check_screen_resolution(width: int, height: int) -> bool:
    if width < MIN_RECOMMENDED_WIDTH or height < MIN_RECOMMENDED_HEIGHT:
        logger.warning(
            "Screen resolution %dx%d is below the recommended minimum of %dx%d. "
            "This may cause issues with detecting the maximum page count. "
            "Use --width %d --height %d",
            width, height, MIN_RECOMMENDED_WIDTH, MIN_RECOMMENDED_HEIGHT,
            MIN_RECOMMENDED_WIDTH, MIN_RECOMMENDED_HEIGHT,
        )
        return False
    return True
