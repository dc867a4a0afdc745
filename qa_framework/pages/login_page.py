"""Login page object."""

import logging
import re
from typing import Optional

from playwright.async_api import Page

from ..core.config import Config
from .base import PageActions
from .selectors import SelectorSet


DASHBOARD_URL_PATTERN = re.compile(r"/dashboard")

LOGIN_SELECTORS = {
    "username_input": ['[data-testid="username"]', "#username", 'input[name="username"]'],
    "password_input": ['[data-testid="password"]', "#password", 'input[name="password"]'],
    "login_button": ['[data-testid="login-button"]', "#login-btn", 'button[type="submit"]'],
    "forgot_password_link": ['[data-testid="forgot-password"]', 'a[href*="forgot"]'],
    "error_message": ['[data-testid="error-message"]', ".error", ".alert-danger"],
    "remember_me_checkbox": ['[data-testid="remember-me"]', "#remember-me"],
    "sign_up_link": ['[data-testid="signup-link"]', 'a[href*="signup"]'],
}


class LoginPage:
    """Login screen: credentials form, remember-me and recovery links."""

    path = "/login"

    def __init__(
        self,
        page: Page,
        config: Config,
        logger: Optional[logging.Logger] = None,
        actions: Optional[PageActions] = None,
    ):
        self.actions = actions or PageActions(page, config, logger)
        self.selectors = SelectorSet(LOGIN_SELECTORS)

    async def navigate(self) -> None:
        await self.actions.goto(self.path)

    async def assert_loaded(self) -> None:
        await self.validate_login_form()

    async def login(self, username: str, password: str, remember_me: bool = False) -> None:
        """Fill the credentials form and submit it."""
        await self.enter_username(username)
        await self.enter_password(password)

        if remember_me:
            await self.check_remember_me()

        await self.click_login_button()

    async def login_and_expect_dashboard(
        self,
        username: str,
        password: str,
        remember_me: bool = False,
        timeout: Optional[int] = None,
    ) -> None:
        """
        Log in and assert the browser lands on the dashboard.

        Raises:
            PageAssertionError: When the URL never matches the dashboard path
        """
        await self.login(username, password, remember_me)
        await self.actions.assert_page_url(DASHBOARD_URL_PATTERN, timeout=timeout)

    async def enter_username(self, username: str) -> None:
        await self.actions.type(self.selectors["username_input"], username)

    async def enter_password(self, password: str) -> None:
        await self.actions.type(self.selectors["password_input"], password)

    async def click_login_button(self) -> None:
        await self.actions.click(self.selectors["login_button"])

    async def check_remember_me(self) -> None:
        checkbox = self.selectors["remember_me_checkbox"]
        if not await self.actions.is_checked(checkbox):
            await self.actions.click(checkbox)

    async def click_forgot_password(self) -> None:
        await self.actions.click(self.selectors["forgot_password_link"])

    async def click_sign_up(self) -> None:
        await self.actions.click(self.selectors["sign_up_link"])

    async def get_error_message(self) -> str:
        return await self.actions.get_text(self.selectors["error_message"])

    async def is_error_message_visible(self) -> bool:
        return await self.actions.is_visible(self.selectors["error_message"])

    async def validate_login_form(self) -> None:
        for name in ("username_input", "password_input", "login_button"):
            await self.actions.assert_element_visible(self.selectors[name])

    async def clear_form(self) -> None:
        await self.actions.clear(self.selectors["username_input"])
        await self.actions.clear(self.selectors["password_input"])
