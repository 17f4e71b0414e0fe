import uuid

from storefinder.schemas.store import StoreSearchResult
from storefinder.web.typeahead import (
    ACTIVE_CLASS,
    KEY_DOWN,
    KEY_ENTER,
    KEY_UP,
    ResultCursor,
    render_results,
    result_links,
)

LINKS = ["/store/one", "/store/two", "/store/three"]


class TestResultCursor:

    def test_down_from_nothing_selects_first(self):
        cursor = ResultCursor(LINKS)

        cursor.press(KEY_DOWN)

        assert cursor.active == 0

    def test_up_from_first_wraps_to_last(self):
        cursor = ResultCursor(LINKS, active=0)

        cursor.press(KEY_UP)

        assert cursor.active == 2

    def test_up_from_nothing_selects_last(self):
        cursor = ResultCursor(LINKS)

        cursor.press(KEY_UP)

        assert cursor.active == 2

    def test_down_from_last_wraps_to_first(self):
        cursor = ResultCursor(LINKS, active=2)

        cursor.press(KEY_DOWN)

        assert cursor.active == 0

    def test_enter_follows_active_link(self):
        cursor = ResultCursor(LINKS, active=1)

        assert cursor.press(KEY_ENTER) == "/store/two"

    def test_enter_without_active_does_nothing(self):
        assert ResultCursor(LINKS).press(KEY_ENTER) is None

    def test_other_keys_ignored(self):
        cursor = ResultCursor(LINKS, active=1)

        assert cursor.press("a") is None
        assert cursor.active == 1

    def test_no_results(self):
        cursor = ResultCursor([])

        assert cursor.press(KEY_DOWN) is None
        assert cursor.active is None


def result(name, slug):
    return StoreSearchResult(id=uuid.uuid4(), slug=slug, name=name, score=1.0)


class TestRenderResults:

    def test_one_anchor_per_result(self):
        html = render_results([result("Beer Hall", "beer-hall"), result("Cafe", "cafe")], "b")

        assert html.count('class="search__result"') == 2
        assert 'href="/store/beer-hall"' in html

    def test_names_are_escaped(self):
        html = render_results([result("<script>alert(1)</script>", "evil")], "x")

        assert "<script>" not in html
        assert "&lt;script&gt;" in html

    def test_no_results_placeholder(self):
        html = render_results([], "<b>nothing</b>")

        assert "No results for" in html
        assert "<b>" not in html

    def test_active_result_highlighted(self):
        html = render_results([result("Beer Hall", "beer-hall"), result("Cafe", "cafe")], "b", active=1)

        first, second = html.split("</a>")[:2]
        assert ACTIVE_CLASS not in first
        assert ACTIVE_CLASS in second
        assert "/store/cafe" in second

    def test_links_follow_slugs(self):
        assert result_links([result("Beer Hall", "beer-hall")]) == ["/store/beer-hall"]
