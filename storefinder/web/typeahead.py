"""
Search typeahead

Server side of the search box: the sanitized results fragment shown
under the input, and the keyboard cursor over those results. The no-JS
search page moves the cursor with the `key` and `active` query
parameters; the browser widget in static/js/typeahead.js applies the
same rules to key presses and must be kept in step with ResultCursor.
"""

from dataclasses import dataclass, field
from typing import List, Optional, Sequence

import bleach
from markupsafe import Markup, escape

from storefinder.schemas.store import StoreSearchResult

ACTIVE_CLASS = "search__result--active"

KEY_UP = "ArrowUp"
KEY_DOWN = "ArrowDown"
KEY_ENTER = "Enter"

_ALLOWED_TAGS = {"a", "div", "strong"}
_ALLOWED_ATTRIBUTES = {"a": ["href", "class"], "div": ["class"]}


def render_results(
    results: Sequence[StoreSearchResult],
    query: str,
    active: Optional[int] = None
) -> Markup:
    """
    HTML for the results dropdown: one anchor per store, or a
    "no results" line echoing the query. The result at `active`, if any,
    carries ACTIVE_CLASS.

    Store names and the query are user input, so the fragment is escaped
    while it is built and sanitized once more before it is returned.
    """
    if results:
        html = "".join(
            f'<a href="/store/{escape(result.slug)}" class="{_result_class(index == active)}">'
            f"<strong>{escape(result.name)}</strong></a>"
            for index, result in enumerate(results)
        )
    else:
        html = f'<div class="search__result">No results for {escape(query)} found!</div>'

    return Markup(
        bleach.clean(html, tags=_ALLOWED_TAGS, attributes=_ALLOWED_ATTRIBUTES, strip=True)
    )


def _result_class(is_active: bool) -> str:
    return f"search__result {ACTIVE_CLASS}" if is_active else "search__result"


def result_links(results: Sequence[StoreSearchResult]) -> List[str]:
    return [f"/store/{result.slug}" for result in results]


@dataclass
class ResultCursor:
    """
    Which result is highlighted, moved by arrow keys.

    Down from nothing selects the first result, Up from nothing the last;
    both wrap around. Enter on a highlighted result returns its link.
    """

    links: List[str] = field(default_factory=list)
    active: Optional[int] = None

    def press(self, key: str) -> Optional[str]:
        """
        Handle one key press.

        Returns:
            The link to follow on Enter, otherwise None
        """
        if not self.links or key not in (KEY_UP, KEY_DOWN, KEY_ENTER):
            return None

        if key == KEY_ENTER:
            if self.active is None:
                return None
            return self.links[self.active]

        count = len(self.links)
        if key == KEY_DOWN:
            self.active = 0 if self.active is None else (self.active + 1) % count
        else:
            self.active = count - 1 if self.active is None else (self.active - 1) % count
        return None
