"""
Shared page-object capabilities.

Page objects are composed rather than derived: each one holds a
``PageActions`` collaborator (navigation, element queries, interaction
primitives and assertion helpers) plus its own ``SelectorSet``, and
satisfies the small ``PageObject`` protocol.
"""

import asyncio
import logging
import re
from pathlib import Path
from typing import Any, Awaitable, Callable, Dict, List, Optional, Pattern, Protocol, Union

from playwright.async_api import Error as PlaywrightError, Locator, Page

from ..core.config import Config
from ..core.exceptions import PageAssertionError, PageClosedError
from ..core.logging_config import (
    log_assertion,
    log_element_interaction,
    log_navigation,
    log_step,
)
from ..core.retry import RetryPolicy, retry_async
from .interactions import PageInteractions
from .selectors import Target, describe


POLL_INTERVAL_S = 0.1


class PageObject(Protocol):
    """Capability interface every page object implements."""

    path: str

    async def navigate(self) -> None:
        ...

    async def assert_loaded(self) -> None:
        ...


class PageActions:
    """
    Cross-cutting operations usable by every page object.

    Interactions that can fail transiently go through ``PageInteractions``;
    everything else propagates Playwright errors unchanged, except the
    boolean queries which report False on any internal error.
    """

    def __init__(
        self,
        page: Page,
        config: Config,
        logger: Optional[logging.Logger] = None,
        interactions: Optional[PageInteractions] = None,
    ):
        self.page = page
        self.config = config
        self.logger = logger or logging.getLogger(__name__)
        self.interactions = interactions or PageInteractions(page, config, self.logger)
        self.base_url = config.base_url.rstrip("/")
        self.expect_timeout = config.expect_timeout

    def _ensure_open(self) -> None:
        if self.page.is_closed():
            raise PageClosedError("Page handle is closed; create a new page object")

    def full_url(self, url: str) -> str:
        if url.startswith("http://") or url.startswith("https://"):
            return url
        return f"{self.base_url}/{url.lstrip('/')}"

    # Navigation

    async def goto(self, url: str, wait_until: str = "domcontentloaded") -> None:
        """Navigate to ``url`` (absolute, or relative to the base URL)."""
        self._ensure_open()
        full_url = self.full_url(url)
        policy = RetryPolicy(max_attempts=self.config.navigation_retries, backoff_ms=1000)

        async def attempt(number: int) -> None:
            await self.page.goto(
                full_url, wait_until=wait_until, timeout=self.config.browser_timeout
            )

        with log_step(self.logger, f"Navigate to {full_url}"):
            await retry_async(attempt, policy, retry_on=(PlaywrightError,))
            await self.interactions.wait_for_page_load()
            title = await self.page.title()
            log_navigation(self.logger, full_url, title)

    async def get_title(self) -> str:
        return await self.page.title()

    async def get_current_url(self) -> str:
        return self.page.url

    async def refresh(self) -> None:
        self._ensure_open()
        with log_step(self.logger, "Refresh page"):
            await self.page.reload(wait_until="domcontentloaded")
            await self.wait_for_page_load()

    async def go_back(self) -> None:
        self._ensure_open()
        with log_step(self.logger, "Navigate back"):
            await self.page.go_back(wait_until="domcontentloaded")
            await self.wait_for_page_load()

    async def go_forward(self) -> None:
        self._ensure_open()
        with log_step(self.logger, "Navigate forward"):
            await self.page.go_forward(wait_until="domcontentloaded")
            await self.wait_for_page_load()

    async def wait_for_page_load(self) -> None:
        await self.interactions.wait_for_page_load()

    async def wait(self, milliseconds: int) -> None:
        await asyncio.sleep(milliseconds / 1000)
        self.logger.debug(f"Waited for {milliseconds}ms")

    # Interactions

    async def wait_for_element(self, target: Target, timeout: Optional[int] = None) -> Locator:
        return await self.interactions.wait_for_visible(
            target, timeout or self.expect_timeout
        )

    async def click(
        self,
        target: Target,
        timeout: Optional[int] = None,
        force: bool = False,
        retries: Optional[int] = None,
    ) -> None:
        with log_step(self.logger, f"Click element: {describe(target)}"):
            await self.interactions.safe_click(
                target, timeout=timeout, retries=retries, force=force
            )

    async def type(
        self,
        target: Target,
        text: str,
        timeout: Optional[int] = None,
        retries: Optional[int] = None,
        validate: bool = False,
    ) -> None:
        with log_step(self.logger, f"Type text into: {describe(target)}"):
            await self.interactions.safe_type(
                target, text, timeout=timeout, retries=retries, validate=validate
            )

    async def clear(self, target: Target) -> None:
        locator = await self.wait_for_element(target)
        await locator.clear()
        log_element_interaction(self.logger, "clear", describe(target))

    async def press(self, key: str, target: Optional[Target] = None) -> None:
        await self.interactions.press_key(key, target)

    async def select_option(self, target: Target, option: Union[str, int]) -> None:
        with log_step(self.logger, f"Select option: {option} from {describe(target)}"):
            locator = await self.wait_for_element(target)
            await locator.select_option(str(option))

    async def upload_file(self, target: Target, file_path: Union[str, Path]) -> None:
        with log_step(self.logger, f"Upload file: {file_path} to {describe(target)}"):
            locator = await self.wait_for_element(target)
            await locator.set_input_files(str(file_path))

    async def scroll_to_element(self, target: Target) -> None:
        await self.interactions.scroll_to_element(target)

    async def take_screenshot(self, name: Optional[str] = None, full_page: bool = False) -> Path:
        return await self.interactions.take_screenshot(name, full_page=full_page)

    async def execute_script(self, script: str, arg: Any = None) -> Any:
        with log_step(self.logger, "Execute JavaScript"):
            return await self.page.evaluate(script, arg)

    # Queries

    async def get_text(self, target: Target) -> str:
        locator = await self.wait_for_element(target)
        text = (await locator.text_content()) or ""
        log_element_interaction(self.logger, "get text", describe(target), text)
        return text.strip()

    async def get_attribute(self, target: Target, attribute: str) -> Optional[str]:
        locator = await self.wait_for_element(target)
        value = await locator.get_attribute(attribute)
        log_element_interaction(
            self.logger, "get attribute", describe(target), f"{attribute}={value}"
        )
        return value

    async def get_input_value(self, target: Target) -> str:
        locator = await self.wait_for_element(target)
        return await locator.input_value()

    async def is_visible(self, target: Target) -> bool:
        """Report visibility; any internal error reads as not visible."""
        return await self._safe_query("check visibility", target, lambda loc: loc.is_visible())

    async def is_enabled(self, target: Target) -> bool:
        """Report whether enabled; any internal error reads as disabled."""
        return await self._safe_query("check enabled", target, lambda loc: loc.is_enabled())

    async def is_checked(self, target: Target) -> bool:
        return await self._safe_query("check checked", target, lambda loc: loc.is_checked())

    async def _safe_query(
        self,
        action: str,
        target: Target,
        query: Callable[[Locator], Awaitable[bool]],
    ) -> bool:
        try:
            locator = await self.interactions.resolve(target)
            result = bool(await query(locator))
        except Exception as e:
            self.logger.debug(f"{action} failed for {describe(target)}: {e}")
            return False
        log_element_interaction(self.logger, action, describe(target), str(result))
        return result

    async def get_all_elements(self, target: Target) -> List[Locator]:
        locator = await self.interactions.resolve(target)
        elements = await locator.all()
        log_element_interaction(
            self.logger, "get all elements", describe(target), f"Found {len(elements)} elements"
        )
        return elements

    async def count_elements(self, target: Target) -> int:
        locator = await self.interactions.resolve(target)
        return await locator.count()

    async def read_pairs(
        self, item_target: Target, key_selector: str, value_selector: str
    ) -> Dict[str, str]:
        """Read a label/value mapping from repeated items."""
        pairs = {}
        for item in await self.get_all_elements(item_target):
            key = await item.locator(key_selector).text_content()
            value = await item.locator(value_selector).text_content()
            if key and value:
                pairs[key.strip()] = value.strip()
        return pairs

    async def get_performance_metrics(self) -> Dict[str, Any]:
        return await self.interactions.get_performance_metrics()

    # Assertions

    async def _poll(self, probe: Callable[[], Awaitable[Any]], check: Callable[[Any], bool], timeout: Optional[int]) -> Any:
        """Re-run ``probe`` until ``check`` passes or the timeout elapses."""
        loop = asyncio.get_running_loop()
        deadline = loop.time() + (timeout if timeout is not None else self.expect_timeout) / 1000
        while True:
            actual = await probe()
            if check(actual) or loop.time() >= deadline:
                return actual
            await asyncio.sleep(POLL_INTERVAL_S)

    def _conclude(self, description: str, passed: bool, expected: Any, actual: Any) -> None:
        log_assertion(self.logger, description, passed, expected, actual)
        if not passed:
            raise PageAssertionError(
                f"{description}: expected {expected!r}, actual {actual!r}",
                description=description,
                expected=expected,
                actual=actual,
            )

    async def assert_element_visible(self, target: Target, timeout: Optional[int] = None) -> None:
        visible = await self._poll(lambda: self.is_visible(target), bool, timeout)
        self._conclude(f"Element is visible: {describe(target)}", visible, True, visible)

    async def assert_element_not_visible(self, target: Target, timeout: Optional[int] = None) -> None:
        visible = await self._poll(lambda: self.is_visible(target), lambda v: not v, timeout)
        self._conclude(f"Element is not visible: {describe(target)}", not visible, False, visible)

    async def assert_element_text(
        self, target: Target, expected_text: str, timeout: Optional[int] = None
    ) -> None:
        async def probe() -> Optional[str]:
            try:
                locator = await self.interactions.resolve(target)
                text = await locator.text_content()
            except PlaywrightError:
                return None
            return text.strip() if text is not None else None

        actual = await self._poll(probe, lambda text: text == expected_text, timeout)
        self._conclude(
            f'Element text equals "{expected_text}"', actual == expected_text, expected_text, actual
        )

    async def assert_page_title(self, expected_title: str, timeout: Optional[int] = None) -> None:
        actual = await self._poll(self.page.title, lambda title: title == expected_title, timeout)
        self._conclude(
            f'Page title equals "{expected_title}"', actual == expected_title, expected_title, actual
        )

    async def assert_page_url(
        self, expected: Union[str, Pattern[str]], timeout: Optional[int] = None
    ) -> None:
        """
        Assert the current URL.

        A string must equal the URL (relative strings are resolved against
        the base URL); a compiled pattern must be found in it.
        """
        if isinstance(expected, str):
            wanted = self.full_url(expected)

            def matches(url: str) -> bool:
                return url == wanted

            shown: Any = wanted
            description = f'Page URL equals "{wanted}"'
        else:

            def matches(url: str) -> bool:
                return re.search(expected, url) is not None

            shown = expected.pattern
            description = f"Page URL matches /{expected.pattern}/"

        async def probe() -> str:
            return self.page.url

        actual = await self._poll(probe, matches, timeout)
        self._conclude(description, matches(actual), shown, actual)
