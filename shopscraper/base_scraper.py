from shopscraper.config import ScrapingConfig
from shopscraper.session_manager import BrowserSession


class BaseScraper:
    def __init__(self, config=None, session_factory=None):
        self.config = config or ScrapingConfig()
        # Callable taking a session name and returning an unstarted session
        self.session_factory = session_factory or self._browser_session

    def _browser_session(self, name):
        return BrowserSession.from_config(self.config, name=name)

    def new_session(self, name):
        return self.session_factory(name)
