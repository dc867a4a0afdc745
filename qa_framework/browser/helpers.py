"""
Test helpers for direct use inside test functions.

Thin functions over a Playwright page for the chores tests reach for:
validated typing, dropdown strategies, text waits, request mocking and
blocking, and clearing browser state.
"""

import json
import logging
from typing import Any, List, Optional, Pattern, Union

from playwright.async_api import Page, Route, TimeoutError as PlaywrightTimeoutError, expect

from ..core.config import Config
from ..pages.interactions import DEFAULT_TIMEOUT_MS, PageInteractions
from ..pages.selectors import Target, describe


logger = logging.getLogger(__name__)


async def safe_click(
    page: Page,
    target: Target,
    timeout: int = DEFAULT_TIMEOUT_MS,
    attempts: int = 3,
    force: bool = False,
    config: Optional[Config] = None,
) -> None:
    """Click with the standard retry contract."""
    interactions = PageInteractions(page, config, logger)
    await interactions.safe_click(target, timeout=timeout, retries=attempts, force=force)


async def safe_type(
    page: Page,
    target: Target,
    text: str,
    timeout: int = DEFAULT_TIMEOUT_MS,
    attempts: int = 3,
    validate: bool = True,
    config: Optional[Config] = None,
) -> None:
    """Type with the standard retry contract; validates the value by default."""
    interactions = PageInteractions(page, config, logger)
    await interactions.safe_type(
        target, text, timeout=timeout, retries=attempts, validate=validate
    )


async def select_dropdown_option(
    page: Page,
    selector: str,
    option: Union[str, int],
    strategy: str = "label",
    timeout: int = DEFAULT_TIMEOUT_MS,
) -> None:
    """
    Select a dropdown option by value, label or index.

    Raises:
        ValueError: For an unknown strategy
    """
    if strategy not in ("value", "label", "index"):
        raise ValueError(f"Unknown selection strategy: {strategy}")

    element = page.locator(selector)
    await element.wait_for(state="visible", timeout=timeout)

    if strategy == "value":
        await element.select_option(value=str(option))
    elif strategy == "label":
        await element.select_option(label=str(option))
    else:
        await element.select_option(index=int(option))

    logger.debug(f"Selected option in {selector}: {option} ({strategy})")


async def wait_for_text(
    page: Page,
    selector: str,
    text: str,
    timeout: int = DEFAULT_TIMEOUT_MS,
    exact: bool = False,
) -> None:
    """Wait until an element has (or contains) ``text``."""
    element = page.locator(selector)
    try:
        if exact:
            await expect(element).to_have_text(text, timeout=timeout)
        else:
            await expect(element).to_contain_text(text, timeout=timeout)
    except AssertionError:
        logger.error(f"Text not found in {selector}: {text}")
        raise
    logger.debug(f"Text found in {selector}: {text}")


async def element_exists(page: Page, target: Target) -> bool:
    """Check if any candidate matches an element without throwing."""
    return await get_element_count(page, target) > 0


async def get_element_count(page: Page, target: Target) -> int:
    """Count elements matched by the first matching candidate; 0 on error."""
    try:
        locator = await PageInteractions(page, None, logger).resolve(target)
        return await locator.count()
    except Exception as e:
        logger.debug(f"Element count failed for {describe(target)}: {e}")
        return 0


async def wait_for_network_idle(page: Page, timeout: int = 30000) -> None:
    """Wait for network idle; a timeout is logged and ignored."""
    try:
        await page.wait_for_load_state("networkidle", timeout=timeout)
        logger.debug("Network is idle")
    except PlaywrightTimeoutError:
        logger.warning("Network idle timeout, continuing...")


async def clear_browser_data(page: Page) -> None:
    """Clear cookies, permissions and web storage for the page's context."""
    context = page.context
    await context.clear_cookies()
    await context.clear_permissions()
    await page.evaluate("() => { localStorage.clear(); sessionStorage.clear(); }")
    logger.debug("Browser data cleared")


async def mock_api_response(
    page: Page,
    url: Union[str, Pattern[str]],
    response: Any,
    status: int = 200,
) -> None:
    """Fulfil requests matching ``url`` with a JSON body."""

    async def handler(route: Route) -> None:
        await route.fulfill(
            status=status,
            content_type="application/json",
            body=json.dumps(response),
        )

    await page.route(url, handler)
    logger.debug(f"API response mocked for: {url}")


async def block_requests(page: Page, patterns: List[str]) -> None:
    """Abort every request whose URL contains one of ``patterns``."""

    async def handler(route: Route) -> None:
        url = route.request.url
        if any(pattern in url for pattern in patterns):
            await route.abort()
            logger.debug(f"Blocked request: {url}")
        else:
            await route.continue_()

    await page.route("**/*", handler)
    logger.debug(f"Request blocking enabled for patterns: {', '.join(patterns)}")
