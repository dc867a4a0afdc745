"""Page objects and the interaction primitives they are composed from."""

from .base import PageActions, PageObject
from .dashboard_page import DashboardPage
from .interactions import PageInteractions
from .login_page import LoginPage
from .selectors import SelectorSet, Target

__all__ = [
    "PageActions",
    "PageObject",
    "PageInteractions",
    "SelectorSet",
    "Target",
    "LoginPage",
    "DashboardPage",
]
