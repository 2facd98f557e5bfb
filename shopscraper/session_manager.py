import logging

from selenium import webdriver
from selenium.webdriver.chrome.options import Options
from selenium.webdriver.chrome.service import Service
from selenium.webdriver.common.by import By
from selenium.webdriver.support import expected_conditions as EC
from selenium.webdriver.support.ui import WebDriverWait
from webdriver_manager.chrome import ChromeDriverManager

from shopscraper.config import DEFAULT_USER_AGENT

SCROLL_TO_BOTTOM_SCRIPT = "window.scrollTo(0, document.body.scrollHeight);"

HIDE_WEBDRIVER_SCRIPT = """
    Object.defineProperty(navigator, 'webdriver', {get: () => undefined})
"""


def build_chrome_options(headless=True, user_agent=DEFAULT_USER_AGENT):
    """Chrome options with a fixed identity and automation flags suppressed"""
    options = Options()
    if headless:
        options.add_argument("--headless=new")
        options.add_argument("--window-size=1920,1080")
    else:
        options.add_argument("--start-maximized")
    options.add_argument("--no-sandbox")
    options.add_argument("--disable-dev-shm-usage")
    options.add_argument("--disable-gpu")
    options.add_argument("--disable-extensions")
    options.add_argument("--disable-plugins")
    options.add_argument("--disable-blink-features=AutomationControlled")
    options.add_argument("--disable-features=TranslateUI")
    options.add_argument("--disable-renderer-backgrounding")
    options.add_argument("--disable-background-timer-throttling")
    options.add_argument("--disable-backgrounding-occluded-windows")
    options.add_argument("--disable-default-apps")
    options.add_argument("--disable-sync")
    options.add_argument("--no-first-run")
    options.add_argument("--password-store=basic")
    options.add_argument("--use-mock-keychain")
    options.add_argument(f"--user-agent={user_agent}")
    options.add_experimental_option("excludeSwitches", ["enable-automation"])
    options.add_experimental_option("useAutomationExtension", False)
    return options


class BrowserSession:
    """
    One Chrome WebDriver owned by a single worker.

    Use as a context manager: the driver starts on enter and is quit on exit,
    whatever happened in between. Selenium exceptions are not translated here;
    the extraction and discovery layers decide what a failure means.
    """

    def __init__(
        self,
        headless=True,
        user_agent=DEFAULT_USER_AGENT,
        page_load_timeout=30,
        implicit_wait=0,
        name="session",
    ):
        self.headless = headless
        self.user_agent = user_agent
        self.page_load_timeout = page_load_timeout
        self.implicit_wait = implicit_wait
        self.name = name
        self.driver = None

    @classmethod
    def from_config(cls, config, name="session"):
        return cls(
            headless=config.headless,
            user_agent=config.user_agent,
            page_load_timeout=config.page_load_timeout,
            implicit_wait=config.implicit_wait,
            name=name,
        )

    def start(self):
        options = build_chrome_options(self.headless, self.user_agent)
        service = Service(ChromeDriverManager().install())
        self.driver = webdriver.Chrome(service=service, options=options)
        self.driver.set_page_load_timeout(self.page_load_timeout)
        self.driver.implicitly_wait(self.implicit_wait)

        # Remove webdriver property to avoid detection
        try:
            self.driver.execute_cdp_cmd(
                "Page.addScriptToEvaluateOnNewDocument",
                {"source": HIDE_WEBDRIVER_SCRIPT},
            )
        except Exception as e:
            logging.debug(f"CDP webdriver masking unavailable for {self.name}: {e}")

        logging.info(f"✅ Chrome driver started for {self.name}")
        return self

    def close(self):
        if self.driver is None:
            return
        try:
            self.driver.quit()
            logging.info(f"🤖 Chrome driver closed for {self.name}")
        except Exception as e:
            logging.warning(f"⚠️ Error while closing driver for {self.name}: {e}")
        finally:
            self.driver = None

    def __enter__(self):
        return self.start()

    def __exit__(self, exc_type, exc, tb):
        self.close()
        return False

    # --- renderer operations -------------------------------------------

    def navigate(self, url, timeout=None):
        self.driver.set_page_load_timeout(timeout or self.page_load_timeout)
        self.driver.get(url)

    def wait_for(self, selector, timeout):
        """Wait until an element matching selector is present in the DOM."""
        return WebDriverWait(self.driver, timeout).until(
            EC.presence_of_element_located((By.CSS_SELECTOR, selector))
        )

    def wait_visible(self, selector, timeout):
        return WebDriverWait(self.driver, timeout).until(
            EC.visibility_of_element_located((By.CSS_SELECTOR, selector))
        )

    def text(self, selector):
        return self.driver.find_element(By.CSS_SELECTOR, selector).text.strip()

    def attribute(self, selector, name):
        value = self.driver.find_element(By.CSS_SELECTOR, selector).get_attribute(name)
        return value or ""

    def click(self, selector, timeout=10):
        element = WebDriverWait(self.driver, timeout).until(
            EC.element_to_be_clickable((By.CSS_SELECTOR, selector))
        )
        # Scripted click avoids overlays intercepting the pointer
        self.driver.execute_script("arguments[0].click();", element)

    def evaluate(self, script):
        return self.driver.execute_script(script)

    def scroll_to_bottom(self):
        self.driver.execute_script(SCROLL_TO_BOTTOM_SCRIPT)

    @property
    def page_source(self):
        return self.driver.page_source
