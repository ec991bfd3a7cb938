"""
Tests for article de-duplication.
"""

from informer.services.news.deduplication import dedupe, normalize_title, normalize_url


def by_url(item):
    return item["url"]


def by_title(item):
    return item["title"]


class TestNormalization:
    """Tests for URL and title keys."""

    def test_url_query_string_stripped(self):
        """URLs differing only in tracking params collapse together."""
        base = "https://example.com/article/42"
        assert normalize_url(base + "?utm_source=twitter") == base
        assert normalize_url(base + "?id=1&ref=home") == base
        assert normalize_url(base) == base

    def test_url_empty(self):
        assert normalize_url(None) == ""
        assert normalize_url("") == ""

    def test_title_normalization(self):
        """Case, punctuation and spacing do not distinguish titles."""
        title1 = "Markets Rally: Stocks Up 3%!"
        title2 = "markets rally  stocks up 3"
        title3 = "MARKETS RALLY -- STOCKS UP 3%"

        assert normalize_title(title1) == normalize_title(title2) == normalize_title(title3)

    def test_title_empty(self):
        assert normalize_title(None) == ""
        assert normalize_title("!!!") == ""


class TestDedupe:
    """Tests for dedupe()."""

    def test_same_url_first_wins(self):
        items = [
            {"url": "https://a.com/x?utm=1", "title": "First", "n": 1},
            {"url": "https://a.com/x", "title": "Second", "n": 2},
        ]
        result = dedupe(items, by_url, by_title)

        assert [i["n"] for i in result] == [1]

    def test_same_title_different_url(self):
        items = [
            {"url": "https://a.com/1", "title": "Breaking: Storm hits coast", "n": 1},
            {"url": "https://b.com/2", "title": "breaking storm hits coast", "n": 2},
        ]
        result = dedupe(items, by_url, by_title)

        assert [i["n"] for i in result] == [1]

    def test_empty_keys_never_match(self):
        """Items without URL or title are not duplicates of each other."""
        items = [
            {"url": "", "title": "", "n": 1},
            {"url": "", "title": "", "n": 2},
            {"url": None, "title": "Only title", "n": 3},
            {"url": "https://a.com/u", "title": None, "n": 4},
        ]
        result = dedupe(items, by_url, by_title)

        assert [i["n"] for i in result] == [1, 2, 3, 4]

    def test_order_preserved(self):
        items = [{"url": f"https://a.com/{n}", "title": f"Title {n}", "n": n} for n in (3, 1, 2)]
        result = dedupe(items, by_url, by_title)

        assert [i["n"] for i in result] == [3, 1, 2]

    def test_no_shared_keys_in_output(self):
        items = [
            {"url": "https://a.com/1?x=1", "title": "Alpha"},
            {"url": "https://a.com/1?x=2", "title": "Beta"},
            {"url": "https://a.com/2", "title": "ALPHA"},
            {"url": "https://a.com/3", "title": "Gamma"},
            {"url": "https://a.com/3#frag", "title": "gamma!"},
        ]
        result = dedupe(items, by_url, by_title)

        urls = [normalize_url(i["url"]) for i in result]
        titles = [normalize_title(i["title"]) for i in result]
        assert len(urls) == len(set(urls))
        assert len(titles) == len(set(titles))

    def test_empty_input(self):
        assert dedupe([], by_url, by_title) == []
