"""Dashboard page object."""

import logging
from typing import Dict, Optional

from playwright.async_api import Page

from ..core.config import Config
from .base import PageActions
from .selectors import SelectorSet


DASHBOARD_SELECTORS = {
    "welcome_message": ['[data-testid="welcome-message"]', ".welcome-message"],
    "navigation_menu": ['[data-testid="nav-links"]', ".nav-links"],
    # the sample app has no profile widget; the logout button marks a signed-in user
    "user_profile": ['[data-testid="logout-button"]', ".logout-btn"],
    "logout_button": ['[data-testid="logout-button"]', ".logout-btn"],
    "notification_bell": ['[data-testid="notifications"]', ".notifications"],
    "settings_button": ['[data-testid="settings"]', ".settings-btn"],
    "dashboard_cards": ['[data-testid="dashboard-content"]', ".dashboard-content"],
    "stats_container": ['[data-testid="stats"]', ".stats-container"],
    "search_box": ['[data-testid="search"]', ".search-input"],
}


class DashboardPage:
    """Signed-in dashboard: welcome banner, navigation, search and stats."""

    path = "/dashboard"

    def __init__(
        self,
        page: Page,
        config: Config,
        logger: Optional[logging.Logger] = None,
        actions: Optional[PageActions] = None,
    ):
        self.actions = actions or PageActions(page, config, logger)
        self.selectors = SelectorSet(DASHBOARD_SELECTORS)

    async def navigate(self) -> None:
        await self.actions.goto(self.path)

    async def assert_loaded(self) -> None:
        await self.validate_dashboard_loaded()

    async def get_welcome_message(self) -> str:
        return await self.actions.get_text(self.selectors["welcome_message"])

    async def logout(self) -> None:
        await self.actions.click(self.selectors["logout_button"])

    async def search(self, query: str) -> None:
        await self.actions.type(self.selectors["search_box"], query)
        await self.actions.press("Enter", self.selectors["search_box"])

    async def click_user_profile(self) -> None:
        await self.actions.click(self.selectors["user_profile"])

    async def click_notifications(self) -> None:
        await self.actions.click(self.selectors["notification_bell"])

    async def click_settings(self) -> None:
        await self.actions.click(self.selectors["settings_button"])

    async def get_dashboard_cards_count(self) -> int:
        cards = await self.actions.get_all_elements(self.selectors["dashboard_cards"])
        return len(cards)

    async def navigate_to_section(self, section_name: str) -> None:
        link = f'a[href*="{section_name.lower()}"]'
        await self.actions.click(self.selectors.within("navigation_menu", link))

    async def validate_dashboard_loaded(self) -> None:
        for name in ("welcome_message", "navigation_menu", "user_profile"):
            await self.actions.assert_element_visible(self.selectors[name])

    async def get_user_stats(self) -> Dict[str, str]:
        """Read the label/value pairs of the stats panel."""
        items = self.selectors.within("stats_container", ".stat-item")
        return await self.actions.read_pairs(items, ".stat-label", ".stat-value")
