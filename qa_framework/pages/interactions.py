"""
Interaction primitives for page objects.

Low-level safe click, safe type, wait, scroll and screenshot operations
against a Playwright page. Clicks and typing run under a bounded,
fixed-interval retry policy and raise InteractionError once the attempt
budget is spent.
"""

import asyncio
import functools
import logging
from datetime import datetime
from pathlib import Path
from typing import Any, Dict, Optional

from playwright.async_api import Locator, Page, TimeoutError as PlaywrightTimeoutError

from ..core.config import Config
from ..core.exceptions import InteractionError, TypeValidationError
from ..core.logging_config import (
    log_element_interaction,
    log_interaction_attempt,
    log_performance,
    log_screenshot,
)
from ..core.retry import RetryPolicy, retry_async
from .selectors import Target, candidates_of, describe


DEFAULT_TIMEOUT_MS = 10000
DEFAULT_RETRIES = 3
BACKOFF_MS = 1000
PAGE_LOAD_TIMEOUT_MS = 30000

PERFORMANCE_SCRIPT = """() => {
    const navigation = performance.getEntriesByType('navigation')[0];
    const paint = (name) => {
        const entry = performance.getEntriesByName(name)[0];
        return entry ? entry.startTime : 0;
    };
    return {
        loadTime: navigation ? navigation.loadEventEnd - navigation.loadEventStart : 0,
        domContentLoaded: navigation
            ? navigation.domContentLoadedEventEnd - navigation.domContentLoadedEventStart
            : 0,
        firstContentfulPaint: paint('first-contentful-paint'),
        largestContentfulPaint: paint('largest-contentful-paint'),
    };
}"""


class PageInteractions:
    """
    Retry-aware interaction primitives bound to one page handle.

    Targets are either a single selector or an ordered sequence of
    candidates; see ``resolve`` for the first-match-wins rule.
    """

    def __init__(
        self,
        page: Page,
        config: Optional[Config] = None,
        logger: Optional[logging.Logger] = None,
        policy: Optional[RetryPolicy] = None,
    ):
        """
        Initialize the interaction primitives.

        Args:
            page: Playwright page the primitives act on
            config: Run configuration (timeouts, retries, results directory)
            logger: Optional logger instance
            policy: Retry policy; defaults to the configured action retries
        """
        self.page = page
        self.config = config
        self.logger = logger or logging.getLogger(__name__)

        self.default_timeout = config.action_timeout if config else DEFAULT_TIMEOUT_MS
        self.policy = policy or RetryPolicy(
            max_attempts=config.action_retries if config else DEFAULT_RETRIES,
            backoff_ms=BACKOFF_MS,
        )
        self.screenshots_dir = (
            config.screenshots_dir if config else Path("test-results") / "screenshots"
        )

    async def resolve(self, target: Target, timeout: Optional[int] = None) -> Locator:
        """
        Resolve a target to a locator.

        The first candidate matching at least one element wins. When none
        match yet and ``timeout`` is given, waits up to ``timeout`` for any
        candidate to attach and then applies the same priority; a timeout
        propagates. Without ``timeout`` the first candidate is returned.
        """
        candidates = candidates_of(target)
        if len(candidates) == 1:
            return self.page.locator(candidates[0])

        locators = [self.page.locator(candidate) for candidate in candidates]
        for locator in locators:
            if await locator.count() > 0:
                return locator

        if timeout is None:
            return locators[0]

        union = functools.reduce(lambda left, right: left.or_(right), locators)
        await union.first.wait_for(state="attached", timeout=timeout)

        for locator in locators:
            if await locator.count() > 0:
                return locator
        return locators[0]

    async def safe_click(
        self,
        target: Target,
        timeout: Optional[int] = None,
        retries: Optional[int] = None,
        force: bool = False,
    ) -> None:
        """
        Click an element, retrying with a fixed backoff.

        Args:
            target: Selector or ordered candidate selectors
            timeout: Maximum wait per attempt in milliseconds
            retries: Maximum attempts; zero or negative means one attempt
            force: Bypass Playwright actionability checks

        Raises:
            InteractionError: When every attempt failed
        """
        timeout = timeout or self.default_timeout
        policy = self.policy.with_attempts(retries)

        async def attempt(number: int) -> None:
            locator = await self.resolve(target, timeout)
            await locator.wait_for(state="visible", timeout=timeout)
            await locator.click(timeout=timeout, force=force)

        await self._run("click", target, attempt, policy)
        log_element_interaction(self.logger, "click", describe(target))

    async def safe_type(
        self,
        target: Target,
        text: str,
        timeout: Optional[int] = None,
        retries: Optional[int] = None,
        validate: bool = False,
    ) -> None:
        """
        Clear a field and fill it with ``text``, retrying with a fixed backoff.

        Args:
            target: Selector or ordered candidate selectors
            text: Text the field should hold afterwards
            timeout: Maximum wait per attempt in milliseconds
            retries: Maximum attempts; zero or negative means one attempt
            validate: Read the value back and compare it with ``text``

        Raises:
            InteractionError: When every attempt failed
            TypeValidationError: When validation finds a different value
        """
        timeout = timeout or self.default_timeout
        policy = self.policy.with_attempts(retries)
        resolved: Dict[str, Locator] = {}

        async def attempt(number: int) -> None:
            locator = await self.resolve(target, timeout)
            await locator.wait_for(state="visible", timeout=timeout)
            await locator.clear(timeout=timeout)
            await locator.fill(text, timeout=timeout)
            resolved["locator"] = locator

        await self._run("type", target, attempt, policy)

        if validate:
            actual = await resolved["locator"].input_value(timeout=timeout)
            if actual != text:
                raise TypeValidationError(
                    f"Text validation failed for {describe(target)}. "
                    f'Expected: "{text}", Actual: "{actual}"',
                    selector=describe(target),
                    expected=text,
                    actual=actual,
                )

        log_element_interaction(self.logger, "type", describe(target), text)

    async def _run(self, action: str, target: Target, attempt, policy: RetryPolicy) -> None:
        """Run one retried interaction and translate exhaustion."""
        selector = describe(target)

        def on_attempt(number: int, error: Optional[BaseException]) -> None:
            log_interaction_attempt(
                self.logger,
                action,
                selector,
                number,
                policy.attempts,
                success=error is None,
                error=error,
            )

        try:
            await retry_async(attempt, policy, on_attempt=on_attempt)
        except Exception as e:
            self.logger.error(
                f"Failed to {action} element after {policy.attempts} attempts: {selector}"
            )
            raise InteractionError(
                f"Failed to {action} {selector} after {policy.attempts} attempt(s): {e}",
                selector=selector,
                attempts=policy.attempts,
                cause=e,
            ) from e

    async def press_key(self, key: str, target: Optional[Target] = None) -> None:
        """Press a key on an element, or on the page keyboard when no target."""
        if target is None:
            await self.page.keyboard.press(key)
            log_element_interaction(self.logger, "press", "page", key)
            return

        locator = await self.resolve(target, self.default_timeout)
        await locator.press(key, timeout=self.default_timeout)
        log_element_interaction(self.logger, "press", describe(target), key)

    async def wait_for_visible(self, target: Target, timeout: Optional[int] = None) -> Locator:
        """Wait for an element to become visible and return its locator."""
        timeout = timeout or self.default_timeout
        try:
            locator = await self.resolve(target, timeout)
            await locator.wait_for(state="visible", timeout=timeout)
        except Exception:
            self.logger.error(f"Element not visible within timeout: {describe(target)}")
            raise
        log_element_interaction(self.logger, "wait for visible", describe(target))
        return locator

    async def wait_for_page_load(self, timeout: int = PAGE_LOAD_TIMEOUT_MS) -> None:
        """
        Wait until the page reports DOM content loaded and network idle.

        A network-idle timeout is logged and ignored since pages holding
        long-polling or websocket connections never go idle. A DOM content
        loaded timeout propagates.
        """

        async def network_idle() -> None:
            try:
                await self.page.wait_for_load_state("networkidle", timeout=timeout)
            except PlaywrightTimeoutError:
                self.logger.warning(
                    "Network idle timeout, continuing",
                    extra={"metadata": {"timeout": timeout}},
                )

        waits = [
            asyncio.ensure_future(self.page.wait_for_load_state("domcontentloaded", timeout=timeout)),
            asyncio.ensure_future(network_idle()),
        ]
        try:
            await asyncio.gather(*waits)
        except BaseException:
            for wait in waits:
                wait.cancel()
            await asyncio.gather(*waits, return_exceptions=True)
            raise
        self.logger.debug("Page fully loaded")

    async def scroll_to_element(self, target: Target) -> None:
        try:
            locator = await self.resolve(target, self.default_timeout)
            await locator.scroll_into_view_if_needed(timeout=self.default_timeout)
        except Exception:
            self.logger.error(f"Failed to scroll to element: {describe(target)}")
            raise
        log_element_interaction(self.logger, "scroll", describe(target))

    async def take_screenshot(self, name: Optional[str] = None, full_page: bool = False) -> Path:
        """Capture a PNG screenshot under the screenshots directory."""
        timestamp = datetime.now().strftime("%Y-%m-%dT%H-%M-%S-%f")
        screenshot_name = name or f"screenshot-{timestamp}"
        self.screenshots_dir.mkdir(parents=True, exist_ok=True)
        path = self.screenshots_dir / f"{screenshot_name}.png"

        await self.page.screenshot(path=str(path), full_page=full_page, type="png")

        log_screenshot(self.logger, str(path), screenshot_name)
        return path

    async def get_performance_metrics(self) -> Dict[str, Any]:
        """Collect navigation timing and paint metrics from the page."""
        metrics = await self.page.evaluate(PERFORMANCE_SCRIPT)
        log_performance(
            self.logger,
            "Page metrics collected",
            (metrics.get("loadTime") or 0) / 1000,
            **metrics,
        )
        return metrics
