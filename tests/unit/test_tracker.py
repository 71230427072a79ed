import re
from dataclasses import dataclass

import pytest
from rich.console import Console

from stubport.exceptions import TrackerLookupError
from stubport.tracker import Tracker


@dataclass
class Item:
    method: str | None
    url: str | re.Pattern[str]
    path: str | None = None

    def describe(self) -> tuple[str, str, str]:
        url = self.url if isinstance(self.url, str) else self.url.pattern
        return (self.method or "*", url, "-")


@pytest.fixture
def tracker():
    tracker = Tracker("Items")
    tracker.track(Item("GET", "http://api.test/users/1", "/users/1"))
    tracker.track(Item("PUT", "http://api.test/users/1", "/users/1"))
    tracker.track(Item("GET", "http://api.test/users/2?full=1", "/users/2?full=1"))
    return tracker


def test_track_keeps_insertion_order(tracker):
    assert tracker.count() == 3
    assert len(tracker) == 3
    assert tracker.first().method == "GET"
    assert tracker.at(1).method == "PUT"
    assert tracker.most_recent().path == "/users/2?full=1"
    assert [item.method for item in tracker] == ["GET", "PUT", "GET"]


def test_empty_tracker_accessors_return_none():
    tracker = Tracker()
    assert tracker.count() == 0
    assert tracker.first() is None
    assert tracker.most_recent() is None
    assert tracker.at(0) is None


def test_at_out_of_range_returns_none(tracker):
    assert tracker.at(3) is None
    assert tracker.at(-1) is None


def test_reset_clears_everything(tracker):
    tracker.reset()
    assert tracker.count() == 0
    assert tracker.most_recent() is None


def test_duplicates_are_allowed():
    tracker = Tracker()
    item = Item("GET", "/same")
    tracker.track(item)
    tracker.track(Item("GET", "/same"))
    assert tracker.count() == 2


def test_get_is_case_insensitive_on_method(tracker):
    assert tracker.get("put", "/users/1") is tracker.at(1)
    assert tracker.get("Get", "/users/1") is tracker.at(0)


def test_get_by_relative_or_absolute_url(tracker):
    assert tracker.get("GET", "/users/2?full=1") is tracker.at(2)
    assert tracker.get("GET", "http://api.test/users/2?full=1") is tracker.at(2)
    assert tracker.get("GET", "/users/2") is None


def test_get_by_pattern(tracker):
    assert tracker.get("GET", re.compile(r"/users/2")) is tracker.at(2)
    assert tracker.get("DELETE", re.compile(r"/users/\d+")) is None


def test_get_pattern_items():
    tracker = Tracker()
    pattern = re.compile(r"/users/\d+")
    wildcard = Item(None, pattern)
    tracker.track(wildcard)

    assert tracker.get("GET", pattern) is wildcard
    assert tracker.get("POST", "/users/99") is wildcard
    assert tracker.get("GET", re.compile(r"/other")) is None


def test_remove_returns_item_and_stops_tracking(tracker):
    removed = tracker.remove("PUT", "/users/1")

    assert removed.method == "PUT"
    assert tracker.count() == 2
    assert tracker.get("PUT", "/users/1") is None


def test_remove_takes_first_of_duplicates():
    tracker = Tracker()
    first = Item("GET", "/same")
    second = Item("GET", "/same")
    tracker.track(first)
    tracker.track(second)

    assert tracker.remove("GET", "/same") is first
    assert tracker.first() is second


def test_remove_missing_item_raises(tracker):
    with pytest.raises(TrackerLookupError, match="DELETE /users/1"):
        tracker.remove("delete", "/users/1")

    with pytest.raises(LookupError):
        tracker.remove("GET", re.compile(r"/nowhere"))

    assert tracker.count() == 3


def test_debug_renders_table(tracker):
    console = Console(record=True, width=120)
    tracker.debug(console)

    output = console.export_text()
    assert "Items" in output
    assert "http://api.test/users/1" in output
    assert "put" in output


def test_get_normalizes_unencoded_query():
    tracker = Tracker("Items")
    item = Item("GET", "http://api.test/users/jos%C3%A9", "/users/jos%C3%A9")
    tracker.track(item)

    assert tracker.get("GET", "/users/josé") is item
    assert tracker.get("GET", "http://api.test/users/josé") is item
