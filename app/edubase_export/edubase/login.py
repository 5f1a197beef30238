import logging
import time
from dataclasses import dataclass

from selenium.common.exceptions import TimeoutException, WebDriverException
from selenium.webdriver.common.by import By
from selenium.webdriver.support import expected_conditions as EC
from selenium.webdriver.support.ui import WebDriverWait

from edubase_export.config_parameters import params
from edubase_export.errors import LoginError

logger = logging.getLogger(__name__)


@dataclass
class Credentials:
    email: str
    password: str

    def __repr__(self):
        return f"Credentials(email={self.email!r}, password='***')"


class LoginProvider:
    def __init__(self, driver, viewer_params=None, password_fill_delay=0.5,
                 verify_login_delay=0.5, settle_delay=2.0, form_timeout=30,
                 navigation_timeout=60, account_timeout=10, sleep=time.sleep):
        self.driver = driver
        self.viewer = viewer_params or params["viewer"]
        self.password_fill_delay = password_fill_delay
        self.verify_login_delay = verify_login_delay
        self.settle_delay = settle_delay
        self.form_timeout = form_timeout
        self.navigation_timeout = navigation_timeout
        self.account_timeout = account_timeout
        self.sleep = sleep

    @property
    def login_url(self) -> str:
        return self.viewer["base_url"] + self.viewer["login_path"]

    def _account_visible(self, timeout: float) -> bool:
        try:
            WebDriverWait(self.driver, timeout).until(
                EC.visibility_of_element_located((By.CSS_SELECTOR, self.viewer["account_selector"]))
            )
        except TimeoutException:
            return False
        return True

    def login(self, credentials: Credentials) -> None:
        try:
            self.driver.get(self.login_url)
        except WebDriverException as exc:
            raise LoginError(f"could not go to login page: {exc.msg or exc}") from exc

        # the promo page reloads once before the form is usable
        self.sleep(self.settle_delay)

        try:
            login_input = WebDriverWait(self.driver, self.form_timeout).until(
                EC.visibility_of_element_located((By.CSS_SELECTOR, "input[name='login']"))
            )
        except TimeoutException as exc:
            raise LoginError("login form not ready") from exc

        try:
            login_input.clear()
            login_input.send_keys(credentials.email)
            self.sleep(self.password_fill_delay)
            password_input = self.driver.find_element(By.CSS_SELECTOR, "input[name='password']")
            password_input.clear()
            password_input.send_keys(credentials.password)
            self.driver.find_element(By.CSS_SELECTOR, "button[type='submit']").click()
        except WebDriverException as exc:
            raise LoginError(f"could not submit login form: {exc.msg or exc}") from exc

        try:
            WebDriverWait(self.driver, self.navigation_timeout).until(
                lambda d: d.execute_script("return document.readyState") == "complete"
            )
        except TimeoutException as exc:
            raise LoginError("could not wait for navigation") from exc

        self.sleep(self.verify_login_delay)
        if not self._account_visible(self.account_timeout):
            raise LoginError("login failed (could not find account button)")
        logger.info("logged in as %s", credentials.email)

    def login_with_retry(self, credentials: Credentials, max_retries=3, retry_delay=2.0) -> None:
        last_err = None
        for attempt in range(1, max_retries + 1):
            try:
                self.login(credentials)
                return
            except LoginError as exc:
                last_err = exc
                if attempt < max_retries:
                    logger.warning("login attempt %d failed (%s), retrying...", attempt, exc)
                    self.sleep(retry_delay)
        raise LoginError(f"login failed after {max_retries} attempts, last error: {last_err}")

    def login_manually(self, timeout=300.0, poll_interval=1.0, clock=time.monotonic) -> None:
        """Open the login page and wait until the user has signed in by hand."""
        try:
            self.driver.get(self.login_url)
        except WebDriverException as exc:
            raise LoginError(f"could not go to login page: {exc.msg or exc}") from exc

        logger.info("Please login manually in the browser window...")
        deadline = clock() + timeout
        while clock() < deadline:
            url = self.driver.current_url
            if "popup=login" not in url and "#promo" not in url:
                self.sleep(self.verify_login_delay)
                if self._account_visible(1):
                    logger.info("Login successful!")
                    return
            self.sleep(poll_interval)
        raise LoginError(f"manual login timeout: no successful login detected within {timeout:.0f}s")
