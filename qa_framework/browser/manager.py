"""
Browser resource management.

Keeps a per-run registry of Playwright browsers, contexts and pages so that
everything a test session opened can be torn down in one place.
"""

import logging
from typing import Dict, Optional

from playwright.async_api import Browser, BrowserContext, Page, Playwright, async_playwright

from ..core.config import Config


class BrowserManager:
    """
    Registry of named browser handles for one test run.

    Handles are owned by whoever created them; ``close_all`` closes pages,
    then contexts, then browsers, logging (never raising) per-handle errors.
    """

    def __init__(self, logger: Optional[logging.Logger] = None):
        self.logger = logger or logging.getLogger(__name__)
        self._playwright: Optional[Playwright] = None
        self._browsers: Dict[str, Browser] = {}
        self._contexts: Dict[str, BrowserContext] = {}
        self._pages: Dict[str, Page] = {}

    def register_browser(self, name: str, browser: Browser) -> None:
        self._browsers[name] = browser
        self.logger.info(f"Browser registered: {name}")

    def register_context(self, name: str, context: BrowserContext) -> None:
        self._contexts[name] = context
        self.logger.info(f"Context registered: {name}")

    def register_page(self, name: str, page: Page) -> None:
        self._pages[name] = page
        self.logger.info(f"Page registered: {name}")

    def get_browser(self, name: str) -> Optional[Browser]:
        return self._browsers.get(name)

    def get_context(self, name: str) -> Optional[BrowserContext]:
        return self._contexts.get(name)

    def get_page(self, name: str) -> Optional[Page]:
        return self._pages.get(name)

    async def launch(self, config: Config, name: str = "default") -> Page:
        """
        Launch Chromium and open a page configured from ``config``.

        Args:
            config: Run configuration (headless, slow motion, viewport, video)
            name: Registry name for the browser, context and page

        Returns:
            The new page
        """
        await self.close(name)

        if self._playwright is None:
            self._playwright = await async_playwright().start()

        browser = await self._playwright.chromium.launch(
            headless=config.headless, slow_mo=config.slow_mo
        )
        self.register_browser(name, browser)

        context_options = {
            "viewport": {"width": config.viewport_width, "height": config.viewport_height},
            "ignore_https_errors": True,
        }
        if config.video_mode != "off":
            config.videos_dir.mkdir(parents=True, exist_ok=True)
            context_options["record_video_dir"] = str(config.videos_dir)

        context = await browser.new_context(**context_options)
        context.set_default_timeout(config.action_timeout)
        context.set_default_navigation_timeout(config.browser_timeout)
        self.register_context(name, context)

        page = await context.new_page()
        self.register_page(name, page)
        return page

    def _registries(self):
        return (("Page", self._pages), ("Context", self._contexts), ("Browser", self._browsers))

    async def _close_handle(self, kind: str, name: str, handle) -> None:
        try:
            await handle.close()
            self.logger.info(f"{kind} closed: {name}")
        except Exception as e:
            self.logger.error(f"Error closing {kind.lower()} {name}: {e}")

    async def close(self, name: str) -> None:
        """Close and unregister the page, context and browser stored under ``name``."""
        for kind, registry in self._registries():
            handle = registry.pop(name, None)
            if handle is not None:
                await self._close_handle(kind, name, handle)

    async def close_all(self) -> None:
        """Close all registered resources."""
        self.logger.info("Closing all browser resources...")

        for kind, registry in self._registries():
            for name, handle in registry.items():
                await self._close_handle(kind, name, handle)
            registry.clear()

        if self._playwright is not None:
            try:
                await self._playwright.stop()
            except Exception as e:
                self.logger.error(f"Error stopping Playwright: {e}")
            self._playwright = None
