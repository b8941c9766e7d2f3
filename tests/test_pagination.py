"""Tests for the paginated list cursor."""

import asyncio
from types import SimpleNamespace

import pytest

from devconnect.errors import NetworkFailure
from devconnect.http import RequestFailed
from devconnect.pagination import PaginatedCursor


def _items(*ids):
    return [SimpleNamespace(id=i) for i in ids]


def _ids(cursor):
    return [item.id for item in cursor.items]


class FakeFeed:
    """Page source keyed by (filter_key, page)."""

    def __init__(self, pages):
        self.pages = pages
        self.calls = []
        self.gate = None
        self.fail_with = None

    async def __call__(self, filter_key, page, limit):
        self.calls.append((filter_key, page, limit))
        if self.gate is not None:
            await self.gate.wait()
        if self.fail_with is not None:
            raise self.fail_with
        return self.pages.get((filter_key, page), [])


class TestLoadNext:
    def test_appends_pages_in_order(self):
        feed = FakeFeed({("all", 1): _items(1, 2), ("all", 2): _items(3)})
        cursor = PaginatedCursor(feed, "all", page_size=2)

        async def go():
            first = await cursor.load_next()
            second = await cursor.load_next()
            return first, second

        first, second = asyncio.run(go())

        assert [i.id for i in first] == [1, 2]
        assert [i.id for i in second] == [3]
        assert _ids(cursor) == [1, 2, 3]
        assert cursor.page == 3
        assert cursor.has_more is False
        assert feed.calls == [("all", 1, 2), ("all", 2, 2)]

    def test_duplicate_across_pages_kept_once(self):
        """Page 2 repeats an id from page 1."""
        feed = FakeFeed({("all", 1): _items("a", "b"), ("all", 2): _items("b", "c")})
        cursor = PaginatedCursor(feed, "all", page_size=2)

        async def go():
            await cursor.load_next()
            return await cursor.load_next()

        added = asyncio.run(go())

        assert _ids(cursor) == ["a", "b", "c"]
        assert [i.id for i in added] == ["c"]
        # has_more is judged on the raw page length
        assert cursor.has_more is True

    def test_full_last_page_needs_one_empty_load(self):
        """Known approximation: an exactly-full last page still reports more."""
        feed = FakeFeed({("all", 1): _items(1, 2)})
        cursor = PaginatedCursor(feed, "all", page_size=2)

        asyncio.run(cursor.load_next())
        assert cursor.has_more is True

        assert asyncio.run(cursor.load_next()) == []
        assert cursor.has_more is False
        assert _ids(cursor) == [1, 2]

    def test_no_op_when_exhausted(self):
        feed = FakeFeed({("all", 1): _items(1)})
        cursor = PaginatedCursor(feed, "all", page_size=2)

        asyncio.run(cursor.load_next())
        assert asyncio.run(cursor.load_next()) == []
        assert len(feed.calls) == 1

    def test_in_flight_guard(self):
        feed = FakeFeed({("all", 1): _items(1, 2)})
        cursor = PaginatedCursor(feed, "all", page_size=2)

        async def go():
            feed.gate = asyncio.Event()
            first = asyncio.ensure_future(cursor.load_next())
            await asyncio.sleep(0.01)
            second = await cursor.load_next()
            feed.gate.set()
            return await first, second

        first, second = asyncio.run(go())

        assert [i.id for i in first] == [1, 2]
        assert second == []
        assert len(feed.calls) == 1
        assert cursor.loading is False

    def test_failure_leaves_state_unchanged(self):
        feed = FakeFeed({("all", 1): _items(1, 2), ("all", 2): _items(3)})
        cursor = PaginatedCursor(feed, "all", page_size=2)
        asyncio.run(cursor.load_next())

        feed.fail_with = RequestFailed("Connection refused")
        with pytest.raises(NetworkFailure):
            asyncio.run(cursor.load_next())

        assert _ids(cursor) == [1, 2]
        assert cursor.page == 2
        assert cursor.has_more is True
        assert cursor.loading is False

        # Retry asks for the same page
        feed.fail_with = None
        asyncio.run(cursor.load_next())
        assert _ids(cursor) == [1, 2, 3]
        assert feed.calls[-1] == ("all", 2, 2)

    def test_load_all(self):
        feed = FakeFeed({
            ("all", 1): _items(1, 2),
            ("all", 2): _items(3, 4),
            ("all", 3): _items(5),
        })
        cursor = PaginatedCursor(feed, "all", page_size=2)

        items = asyncio.run(cursor.load_all())

        assert [i.id for i in items] == [1, 2, 3, 4, 5]
        assert len(cursor) == 5

    def test_load_all_respects_max_pages(self):
        feed = FakeFeed({("all", 1): _items(1, 2), ("all", 2): _items(3, 4)})
        cursor = PaginatedCursor(feed, "all", page_size=2)

        asyncio.run(cursor.load_all(max_pages=1))

        assert _ids(cursor) == [1, 2]

    def test_custom_key(self):
        feed = FakeFeed({("all", 1): [{"slug": "x"}, {"slug": "x"}, {"slug": "y"}]})
        cursor = PaginatedCursor(feed, "all", page_size=5, key=lambda item: item["slug"])

        asyncio.run(cursor.load_next())

        assert [i["slug"] for i in cursor] == ["x", "y"]


class TestReset:
    def test_reset_clears_state(self):
        feed = FakeFeed({("a", 1): _items(1)})
        cursor = PaginatedCursor(feed, "a", page_size=2)
        asyncio.run(cursor.load_next())

        cursor.reset("b")

        assert cursor.items == []
        assert cursor.page == 1
        assert cursor.has_more is True
        assert cursor.filter_key == "b"

    def test_in_flight_load_from_old_filter_is_discarded(self):
        """Switching tabs mid-load never mixes results across filter keys."""
        feed = FakeFeed({
            ("pending", 1): _items("p1", "p2"),
            ("rejected", 1): _items("r1"),
        })
        cursor = PaginatedCursor(feed, "pending", page_size=2)

        async def go():
            feed.gate = asyncio.Event()
            stale = asyncio.ensure_future(cursor.load_next())
            await asyncio.sleep(0.01)
            cursor.reset("rejected")
            fresh = asyncio.ensure_future(cursor.load_next())
            await asyncio.sleep(0.01)
            feed.gate.set()
            return await stale, await fresh

        stale, fresh = asyncio.run(go())

        assert stale == []
        assert [i.id for i in fresh] == ["r1"]
        assert _ids(cursor) == ["r1"]
        assert cursor.filter_key == "rejected"
        assert cursor.has_more is False
        assert cursor.loading is False

    def test_stale_failure_does_not_touch_new_filter(self):
        feed = FakeFeed({("b", 1): _items(1)})
        cursor = PaginatedCursor(feed, "a", page_size=2)

        async def go():
            feed.gate = asyncio.Event()
            feed.fail_with = RequestFailed("timeout")
            stale = asyncio.ensure_future(cursor.load_next())
            await asyncio.sleep(0.01)
            cursor.reset("b")
            feed.gate.set()
            with pytest.raises(NetworkFailure):
                await stale
            feed.gate = None
            feed.fail_with = None
            return await cursor.load_next()

        fresh = asyncio.run(go())

        assert [i.id for i in fresh] == [1]
        assert cursor.filter_key == "b"
