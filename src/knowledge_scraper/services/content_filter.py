"""Content filtering (structural noise removal)."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable

from bs4 import BeautifulSoup

from ..utils.html import remove_matching


@dataclass(frozen=True)
class NoiseCategory:
    name: str
    selector: str


NON_VISIBLE = "non_visible"

# Applied in this order.
NOISE_CATEGORIES: tuple[NoiseCategory, ...] = (
    NoiseCategory("navigation", "nav, .nav, .navbar, .navigation"),
    NoiseCategory("sidebar", "aside, .sidebar, .aside, .side-nav"),
    NoiseCategory("footer", "footer, .footer, .site-footer"),
    NoiseCategory("header", "header, .header, .site-header"),
    NoiseCategory("advertisement", ".advertisement, .ads, .ad-banner, .social-share"),
    NoiseCategory("breadcrumb", ".breadcrumb, .breadcrumbs, .pagination"),
    NoiseCategory("menu", ".menu, .dropdown-menu, .mobile-menu"),
    NoiseCategory("banner", ".cookie-notice, .banner, .promo-banner"),
    NoiseCategory(NON_VISIBLE, "script, style, noscript"),
)

AGGRESSIVE_SELECTORS: tuple[str, ...] = (
    "nav, aside, footer, header, .nav, .sidebar, .footer, .header",
    "script, style, noscript, iframe, video, audio",
)


class ContentFilter:
    """Processing layer component: noise filtering.

    Rules:
    - Apply noise filters before content extraction
    - Removal is unconditional (no scoring); the tree is mutated in place
    """

    def __init__(self, extra_noise_selectors: list[str] | None = None):
        self._extra_selectors = [s.strip() for s in (extra_noise_selectors or []) if s and s.strip()]

    def strip_noise(self, soup: BeautifulSoup, categories: Iterable[str] | None = None) -> int:
        """Remove noise categories (all of them by default). Returns the number of removed elements."""
        if categories is None:
            selectors = [c.selector for c in NOISE_CATEGORIES] + self._extra_selectors
        else:
            wanted = set(categories)
            selectors = [c.selector for c in NOISE_CATEGORIES if c.name in wanted]

        removed = 0
        for selector in selectors:
            removed += remove_matching(soup, selector)
        return removed

    def strip_non_visible(self, soup: BeautifulSoup) -> int:
        return self.strip_noise(soup, categories=(NON_VISIBLE,))

    def strip_aggressive(self, soup: BeautifulSoup) -> int:
        """Second pass used before falling back to the whole body."""
        removed = 0
        for selector in AGGRESSIVE_SELECTORS + tuple(self._extra_selectors):
            removed += remove_matching(soup, selector)
        return removed
