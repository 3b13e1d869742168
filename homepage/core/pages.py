"""View models for the site's pages."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, List, Optional

from homepage.auth.models import SteamUser


@dataclass
class PageData:
    """Per-request view model handed to a template. Never shared across requests."""

    title: str
    content: str = ""
    user: Optional[SteamUser] = None
    query: Optional[str] = None
    results: Optional[List[str]] = None

    def context(self) -> Dict[str, Any]:
        return {
            "title": self.title,
            "content": self.content,
            "user": self.user,
            "query": self.query,
            "results": self.results,
        }


@dataclass(frozen=True)
class StaticPage:
    path: str
    template: str
    title: str
    content: str = ""


# Informational pages; rendering differs only by template and copy.
STATIC_PAGES: List[StaticPage] = [
    StaticPage("/about", "about.html", "About", "A small personal site. Sign in with Steam to see your profile here."),
    StaticPage("/contact", "contact.html", "Contact", "Questions or feedback? Get in touch by email."),
    StaticPage("/terms", "terms.html", "Terms of Service"),
    StaticPage("/privacy", "privacy.html", "Privacy Policy"),
]


def search_results(query: str) -> List[str]:
    # Placeholder until there is content to search.
    return [f"Result {i} for: {query}" for i in range(1, 4)]


def build_search_page(query: str, user: Optional[SteamUser] = None) -> PageData:
    return PageData(
        title="Search",
        user=user,
        query=query,
        results=search_results(query),
    )


def build_home_page(user: Optional[SteamUser] = None) -> PageData:
    return PageData(title="Home", user=user)


def build_static_page(page: StaticPage, user: Optional[SteamUser] = None) -> PageData:
    return PageData(title=page.title, content=page.content, user=user)
