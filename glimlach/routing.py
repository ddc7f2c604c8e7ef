"""Page routing over an injected history.

Pages are identified by opaque ids; PAGES maps each id to its path. The
router pushes paths onto a History and reads the current one back, so the
address bar and the visible page always agree, including after a back
navigation.
"""

import logging
from types import MappingProxyType
from typing import Dict, Mapping, Optional

from glimlach.browser import History

logger = logging.getLogger(__name__)

HOME_PAGE = "home"

PAGES: Mapping[str, str] = MappingProxyType({
    "home": "/",
    "events": "/events",
    "book-event": "/book-event",
    "for-parents": "/for-parents",
    "for-municipalities": "/for-municipalities",
    "sponsors": "/sponsors",
    "impact": "/impact",
    "gallery": "/gallery",
    "blog": "/blog",
    "about-us": "/about",
    "contact": "/contact",
    "volunteering": "/volunteering",
    "pomoc": "/pomoc",
    "policies": "/policies",
    "privacy-policy": "/privacy-policy",
    "cookies-policy": "/cookies-policy",
})


def normalize_path(path: str) -> str:
    """Strip query, fragment and trailing slash.

    Examples:
        >>> normalize_path("/events/?month=7#top")
        '/events'
        >>> normalize_path("")
        '/'
    """
    path = path.split("#", 1)[0].split("?", 1)[0]
    path = path.rstrip("/")
    return path or "/"


class Router:
    """Maps page ids to paths on a History.

    Examples:
        >>> from glimlach.browser import InMemoryHistory
        >>> router = Router(InMemoryHistory())
        >>> router.navigate("volunteering")
        >>> router.get_current_page()
        'volunteering'
    """

    def __init__(self, history: History, pages: Mapping[str, str] = PAGES):
        if HOME_PAGE not in pages:
            raise ValueError(f"Page table must define '{HOME_PAGE}'")
        self.history = history
        self.pages = pages
        self._by_path: Dict[str, str] = {normalize_path(path): page for page, path in pages.items()}

    def path_for(self, page_id: str) -> str:
        """Path of ``page_id``.

        Raises:
            KeyError: If the page id is unknown
        """
        try:
            return self.pages[page_id]
        except KeyError:
            raise KeyError(f"Unknown page '{page_id}'") from None

    def page_for(self, path: str) -> Optional[str]:
        return self._by_path.get(normalize_path(path))

    def navigate(self, page_id: str) -> None:
        """Show ``page_id``; navigating to the current page adds no history entry."""
        path = self.path_for(page_id)
        if normalize_path(self.history.current_path) == normalize_path(path):
            return
        self.history.push(path)

    def get_current_page(self) -> str:
        """Page id for the history's current path; unknown paths give the home page."""
        path = self.history.current_path
        page = self.page_for(path)
        if page is None:
            logger.info(f"No page for path '{path}', showing '{HOME_PAGE}'")
            return HOME_PAGE
        return page


__all__ = [
    "HOME_PAGE",
    "PAGES",
    "normalize_path",
    "Router",
]
