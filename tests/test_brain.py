"""
Tests for the in-memory Brain.
"""

import threading

from redis_brain.brain import Brain


class TestBrainData:
    """Test the key-value API and merging."""

    def test_set_get_remove(self):
        """Values round-trip through the private namespace."""
        brain = Brain()
        brain.set("greeting", "hello")
        assert brain.get("greeting") == "hello"
        assert brain.data["_private"] == {"greeting": "hello"}

        brain.remove("greeting")
        assert brain.get("greeting", "gone") == "gone"

    def test_merge_is_additive(self):
        """Merged keys overwrite, other keys survive."""
        brain = Brain()
        brain.data["local"] = True
        brain.merge_data({"_private": {"a": 1}, "extra": [1, 2]})

        assert brain.data["_private"] == {"a": 1}
        assert brain.data["extra"] == [1, 2]
        assert brain.data["local"] is True
        assert brain.data["users"] == {}

    def test_merge_emits_loaded(self):
        """Listeners learn about merged data."""
        brain = Brain()
        loaded = []
        brain.on("loaded", loaded.append)
        brain.merge_data({})
        assert loaded == [brain.data]


class TestBrainPersistence:
    """Test save, autosave and close."""

    def test_save_emits_full_state(self):
        """save hands the whole data dict to listeners."""
        brain = Brain()
        saved = []
        brain.on("save", saved.append)
        brain.set("k", "v")
        brain.save()
        assert saved == [{"users": {}, "_private": {"k": "v"}}]

    def test_autosave_respects_flag(self):
        """An autosave tick saves only while autosave is enabled."""
        brain = Brain()
        saved = []
        brain.on("save", saved.append)

        brain.set_auto_save(False)
        assert brain.autosave() is False
        assert saved == []

        brain.set_auto_save(True)
        assert brain.autosave() is True
        assert len(saved) == 1

    def test_close_saves_then_closes_once(self):
        """close persists one last time, then emits close, only once."""
        brain = Brain()
        events = []
        brain.on("save", lambda data: events.append("save"))
        brain.on("close", lambda: events.append("close"))

        brain.close()
        brain.close()

        assert events == ["save", "close"]

    def test_background_loop_saves(self):
        """The autosave thread emits saves on its interval."""
        brain = Brain(save_interval=0.01)
        saved = threading.Event()
        brain.on("save", lambda data: saved.set())

        brain.start()
        try:
            assert saved.wait(timeout=2)
        finally:
            brain.close()

    def test_background_loop_idle_when_disabled(self):
        """No saves are emitted by the loop while autosave is off."""
        brain = Brain(save_interval=0.01)
        brain.set_auto_save(False)
        saved = threading.Event()
        brain.on("save", lambda data: saved.set())

        brain.start()
        try:
            assert not saved.wait(timeout=0.1)
        finally:
            brain.clear_event_handlers()
            brain.close()

    def test_reset_save_interval(self):
        """The interval can be changed while the loop runs."""
        brain = Brain(save_interval=10)
        saved = threading.Event()
        brain.on("save", lambda data: saved.set())

        brain.start()
        try:
            brain.reset_save_interval(0.01)
            assert brain.save_interval == 0.01
            assert saved.wait(timeout=2)
        finally:
            brain.close()
