"""Tests for the persisted session store."""

import json

import pytest

from flipdish_mcp.models import MenuItem
from flipdish_mcp.state import SessionStore


class TestDefaults:
    """Verify a store starts empty when there is nothing usable on disk."""

    def test_missing_cache_starts_empty(self, cache_path):
        """No snapshot on disk should give an all-empty session."""
        store = SessionStore(cache_path)
        assert store.session_id is None
        assert store.auth_token is None
        assert store.phone_number is None
        assert store.search_results == []
        assert not store.is_authenticated

    @pytest.mark.parametrize(
        "content",
        ["{not json", "[1, 2, 3]", '"just a string"', '{"searchResults": "nope"}'],
    )
    def test_malformed_cache_starts_empty(self, cache_path, content):
        """Corrupt or wrongly shaped snapshots fall back to defaults instead of raising."""
        cache_path.write_text(content, encoding="utf-8")
        store = SessionStore(cache_path)
        assert store.snapshot() == SessionStore().snapshot()

    def test_half_set_auth_is_treated_as_corrupt(self, cache_path):
        """A token without a phone number breaks the pair invariant."""
        cache_path.write_text(json.dumps({"chatId": "c1", "authToken": "t"}), encoding="utf-8")
        store = SessionStore(cache_path)
        assert store.auth_token is None
        assert store.phone_number is None

    def test_in_memory_store_never_writes(self, tmp_path):
        """path=None keeps everything in memory."""
        store = SessionStore()
        store.set_session_id("chat-1")
        assert store.session_id == "chat-1"
        assert list(tmp_path.iterdir()) == []


class TestPersistence:
    """Test the JSON snapshot written on every mutation."""

    def test_round_trip_restores_identical_state(self, cache_path):
        """Writing then restarting reproduces session, auth and search cache."""
        store = SessionStore(cache_path)
        store.set_session_id("chat-42")
        store.set_auth("tok-1", "+353861234567")
        store.set_search_results(
            [MenuItem.model_validate({"menuItemId": 5, "name": "Chips", "price": 3.5, "imageUrl": "x.png"})]
        )

        restored = SessionStore(cache_path)
        assert restored.snapshot() == store.snapshot()
        assert restored.session_id == "chat-42"
        assert restored.auth_token == "tok-1"
        assert restored.phone_number == "+353861234567"
        assert restored.search_results[0].menu_item_id == 5
        # Unknown wire fields survive the round trip
        assert restored.search_results[0].to_wire()["imageUrl"] == "x.png"

    def test_every_setter_persists(self, cache_path):
        """Each mutation should rewrite the snapshot on disk."""
        store = SessionStore(cache_path)
        store.set_session_id("chat-1")
        assert json.loads(cache_path.read_text())["chatId"] == "chat-1"

        store.set_auth("tok", "+1555")
        on_disk = json.loads(cache_path.read_text())
        assert on_disk["authToken"] == "tok"
        assert on_disk["phoneNumber"] == "+1555"

        store.clear_auth()
        on_disk = json.loads(cache_path.read_text())
        assert on_disk["authToken"] is None
        assert on_disk["phoneNumber"] is None

    def test_clearing_session_id(self, store):
        store.set_session_id("chat-1")
        store.set_session_id(None)
        assert store.session_id is None

    def test_write_failure_keeps_memory_state(self, tmp_path):
        """A failed snapshot write is logged and swallowed."""
        # A directory at the cache path makes write_text fail with an OSError
        blocked = tmp_path / "cache"
        blocked.mkdir()
        store = SessionStore(blocked)
        store.set_session_id("chat-9")
        store.set_auth("tok", "+1555")
        assert store.session_id == "chat-9"
        assert store.is_authenticated


class TestAuth:
    """Test the token and phone number pair."""

    def test_set_auth_requires_both_values(self, store):
        """Token and phone number should only ever be stored together."""
        with pytest.raises(ValueError):
            store.set_auth("tok", "")
        with pytest.raises(ValueError):
            store.set_auth("", "+1555")
        assert not store.is_authenticated
        assert store.phone_number is None

    def test_clear_auth_leaves_session(self, store):
        """Clearing auth should keep the ordering session."""
        store.set_session_id("chat-1")
        store.set_auth("tok", "+1555")
        store.clear_auth()
        assert not store.is_authenticated
        assert store.session_id == "chat-1"


class TestSearchCache:
    """Test the cached results of the last menu search."""

    def test_find_search_result(self, store):
        store.set_search_results(
            [
                MenuItem(menu_item_id=1, name="A", price=1),
                MenuItem(menu_item_id=2, name="B", price=2),
            ]
        )
        assert store.find_search_result(2).name == "B"
        assert store.find_search_result(3) is None

    def test_search_results_returns_copy(self, store):
        """Mutating the returned list should not change the cache."""
        store.set_search_results([MenuItem(menu_item_id=1, name="A", price=1)])
        store.search_results.clear()
        assert len(store.search_results) == 1
