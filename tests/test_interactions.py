"""
Unit tests for the interaction primitives.

Tests candidate resolution, the retry contract of safe click and safe type,
typed-value validation and the page-load wait.
"""

import asyncio
import logging

import pytest
from playwright.async_api import TimeoutError as PlaywrightTimeoutError

from qa_framework.core.exceptions import InteractionError, TypeValidationError
from qa_framework.core.retry import RetryPolicy
from qa_framework.pages.interactions import PageInteractions


@pytest.fixture
def interactions(mock_page, config):
    return PageInteractions(mock_page, config)


def route_locators(page, mapping):
    page.locator.side_effect = lambda selector: mapping[selector]


class TestResolve:

    @pytest.mark.asyncio
    async def test_single_selector_skips_probing(self, interactions, mock_page, locator):
        result = await interactions.resolve("#only")

        assert result is locator
        mock_page.locator.assert_called_once_with("#only")
        locator.count.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_first_matching_candidate_wins(self, interactions, mock_page, locator_factory):
        first, second, third = locator_factory(count=0), locator_factory(count=2), locator_factory(count=1)
        route_locators(mock_page, {"#a": first, "#b": second, "#c": third})

        result = await interactions.resolve(["#a", "#b", "#c"])

        assert result is second
        third.count.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_no_match_falls_back_to_first_candidate(self, interactions, mock_page, locator_factory):
        first, second = locator_factory(count=0), locator_factory(count=0)
        route_locators(mock_page, {"#a": first, "#b": second})

        assert await interactions.resolve(["#a", "#b"]) is first

    @pytest.mark.asyncio
    async def test_late_fallback_candidate_is_picked_up(self, interactions, mock_page, locator_factory):
        primary, fallback, either = locator_factory(count=0), locator_factory(count=0), locator_factory()
        primary.or_.return_value = either
        route_locators(mock_page, {"#primary": primary, ".error": fallback})

        async def render(**kwargs):
            await asyncio.sleep(0.05)
            fallback.count.return_value = 1

        either.wait_for.side_effect = render

        result = await interactions.resolve(["#primary", ".error"], timeout=200)

        assert result is fallback
        either.wait_for.assert_awaited_once_with(state="attached", timeout=200)

    @pytest.mark.asyncio
    async def test_no_candidate_within_timeout_raises(self, interactions, mock_page, locator_factory):
        primary, fallback = locator_factory(count=0), locator_factory(count=0)
        primary.wait_for.side_effect = PlaywrightTimeoutError("Timeout 200ms exceeded")
        route_locators(mock_page, {"#primary": primary, ".error": fallback})

        with pytest.raises(PlaywrightTimeoutError):
            await interactions.resolve(["#primary", ".error"], timeout=200)

    @pytest.mark.asyncio
    async def test_single_attempt_click_on_late_fallback(self, interactions, mock_page, locator_factory, no_sleep):
        primary, fallback = locator_factory(count=0), locator_factory(count=0)

        async def render(**kwargs):
            fallback.count.return_value = 1

        primary.wait_for.side_effect = render
        route_locators(mock_page, {"#primary": primary, ".submit": fallback})

        await interactions.safe_click(["#primary", ".submit"], retries=0)

        fallback.click.assert_awaited_once()
        primary.click.assert_not_awaited()


class TestSafeClick:

    @pytest.mark.asyncio
    async def test_waits_for_visible_then_clicks(self, interactions, locator, no_sleep):
        await interactions.safe_click("#submit", timeout=500)

        locator.wait_for.assert_awaited_once_with(state="visible", timeout=500)
        locator.click.assert_awaited_once_with(timeout=500, force=False)

    @pytest.mark.asyncio
    async def test_force_still_waits_for_visible(self, interactions, locator, no_sleep):
        await interactions.safe_click("#submit", force=True)

        locator.wait_for.assert_awaited_once()
        assert locator.click.await_args.kwargs["force"] is True

    @pytest.mark.asyncio
    async def test_missing_element_exhausts_retries(self, interactions, locator, no_sleep):
        locator.wait_for.side_effect = PlaywrightTimeoutError("Timeout 100ms exceeded")

        with pytest.raises(InteractionError) as exc_info:
            await interactions.safe_click("#missing", retries=2)

        error = exc_info.value
        assert error.selector == "#missing"
        assert error.attempts == 2
        assert isinstance(error.cause, PlaywrightTimeoutError)
        assert locator.wait_for.await_count == 2
        locator.click.assert_not_awaited()
        no_sleep.assert_awaited_once_with(1.0)

    @pytest.mark.asyncio
    @pytest.mark.parametrize("retries", [0, -3])
    async def test_non_positive_retries_make_one_attempt(self, interactions, locator, no_sleep, retries):
        locator.wait_for.side_effect = PlaywrightTimeoutError("Timeout")

        with pytest.raises(InteractionError) as exc_info:
            await interactions.safe_click("#missing", retries=retries)

        assert exc_info.value.attempts == 1
        assert locator.wait_for.await_count == 1
        no_sleep.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_transient_failure_recovers(self, interactions, locator, no_sleep):
        locator.click.side_effect = [PlaywrightTimeoutError("detached"), None]

        await interactions.safe_click("#flaky", retries=3)

        assert locator.click.await_count == 2

    @pytest.mark.asyncio
    async def test_each_attempt_is_logged(self, mock_page, config, locator, no_sleep, caplog):
        locator.wait_for.side_effect = PlaywrightTimeoutError("Timeout")
        interactions = PageInteractions(mock_page, config, logging.getLogger("test.interactions"))

        with caplog.at_level(logging.DEBUG, logger="test.interactions"):
            with pytest.raises(InteractionError):
                await interactions.safe_click("#missing", retries=3)

        attempts = [r for r in caplog.records if getattr(r, "event", None) == "INTERACTION_ATTEMPT"]
        assert [r.metadata["attempt"] for r in attempts] == [1, 2, 3]
        assert all(r.metadata["success"] is False for r in attempts)

    @pytest.mark.asyncio
    async def test_policy_defaults_come_from_config(self, mock_page, config, locator, no_sleep):
        config.action_retries = 4
        interactions = PageInteractions(mock_page, config)
        locator.wait_for.side_effect = PlaywrightTimeoutError("Timeout")

        with pytest.raises(InteractionError) as exc_info:
            await interactions.safe_click("#missing")

        assert exc_info.value.attempts == 4

    @pytest.mark.asyncio
    async def test_explicit_policy(self, mock_page, locator, no_sleep):
        interactions = PageInteractions(mock_page, policy=RetryPolicy(max_attempts=2, backoff_ms=250))
        locator.wait_for.side_effect = PlaywrightTimeoutError("Timeout")

        with pytest.raises(InteractionError):
            await interactions.safe_click("#missing")

        no_sleep.assert_awaited_once_with(0.25)


class TestSafeType:

    @pytest.mark.asyncio
    async def test_clears_then_fills(self, interactions, locator, no_sleep):
        await interactions.safe_type("#name", "Ada", timeout=300)

        locator.wait_for.assert_awaited_once_with(state="visible", timeout=300)
        locator.clear.assert_awaited_once_with(timeout=300)
        locator.fill.assert_awaited_once_with("Ada", timeout=300)
        locator.input_value.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_validation_passes(self, interactions, locator, no_sleep):
        locator.input_value.return_value = "Ada"

        await interactions.safe_type("#name", "Ada", validate=True)

        locator.input_value.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_validation_mismatch_is_not_retried(self, interactions, locator, no_sleep):
        locator.input_value.return_value = "Ad"

        with pytest.raises(TypeValidationError) as exc_info:
            await interactions.safe_type("#name", "Ada", retries=3, validate=True)

        assert exc_info.value.expected == "Ada"
        assert exc_info.value.actual == "Ad"
        assert locator.fill.await_count == 1

    @pytest.mark.asyncio
    async def test_exhaustion_raises_interaction_error(self, interactions, locator, no_sleep):
        locator.fill.side_effect = PlaywrightTimeoutError("not editable")

        with pytest.raises(InteractionError) as exc_info:
            await interactions.safe_type(["#name", "input[name=name]"], "Ada", retries=2)

        assert exc_info.value.selector == "#name | input[name=name]"
        assert exc_info.value.attempts == 2


class TestPageHelpers:

    @pytest.mark.asyncio
    async def test_network_idle_timeout_is_tolerated(self, interactions, mock_page):
        async def load_state(state, timeout):
            if state == "networkidle":
                raise PlaywrightTimeoutError("still busy")

        mock_page.wait_for_load_state.side_effect = load_state

        await interactions.wait_for_page_load(timeout=100)

    @pytest.mark.asyncio
    async def test_dom_content_loaded_timeout_propagates(self, interactions, mock_page):
        async def load_state(state, timeout):
            if state == "domcontentloaded":
                raise PlaywrightTimeoutError("never loaded")

        mock_page.wait_for_load_state.side_effect = load_state

        with pytest.raises(PlaywrightTimeoutError):
            await interactions.wait_for_page_load(timeout=100)

    @pytest.mark.asyncio
    async def test_failed_load_cancels_network_idle_wait(self, interactions, mock_page):
        network_idle = {}

        async def load_state(state, timeout):
            if state == "domcontentloaded":
                await asyncio.sleep(0.01)
                raise PlaywrightTimeoutError("never loaded")
            try:
                await asyncio.sleep(10)
            except asyncio.CancelledError:
                network_idle["cancelled"] = True
                raise

        mock_page.wait_for_load_state.side_effect = load_state

        with pytest.raises(PlaywrightTimeoutError):
            await interactions.wait_for_page_load(timeout=100)

        assert network_idle == {"cancelled": True}

    @pytest.mark.asyncio
    async def test_press_key_without_target_uses_keyboard(self, interactions, mock_page):
        await interactions.press_key("Escape")

        mock_page.keyboard.press.assert_awaited_once_with("Escape")

    @pytest.mark.asyncio
    async def test_take_screenshot_path(self, interactions, mock_page, config):
        path = await interactions.take_screenshot("after-login", full_page=True)

        assert path == config.screenshots_dir / "after-login.png"
        assert config.screenshots_dir.is_dir()
        mock_page.screenshot.assert_awaited_once_with(path=str(path), full_page=True, type="png")

    @pytest.mark.asyncio
    async def test_performance_metrics(self, interactions, mock_page):
        mock_page.evaluate.return_value = {"loadTime": 120, "domContentLoaded": 40}

        metrics = await interactions.get_performance_metrics()

        assert metrics["loadTime"] == 120
