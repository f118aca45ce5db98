"""
SessionManager: one AppStore per client, bounded by count and idle time
"""
import pytest

import utils.session_manager as session_manager
from services.providers import Providers
from utils.session_manager import SessionManager
from utils.state_store import FileStateStore


@pytest.fixture
def sessions(tmp_path):
    manager = SessionManager(Providers.mocked(), FileStateStore(tmp_path / "state"), max_stores=3, idle_seconds=60)
    yield manager
    manager.close()


class FakeClock:

    def __init__(self, now=1000.0):
        self.now = now

    def __call__(self):
        return self.now


def test_same_client_gets_same_store(sessions):
    first = sessions.get_store("client-a")
    second = sessions.get_store("client-a")

    assert first is second
    assert len(sessions) == 1


def test_invalid_client_id_is_rejected(sessions):
    with pytest.raises(ValueError):
        sessions.get_store("../etc/passwd")
    assert len(sessions) == 0


def test_store_count_is_bounded(sessions):
    for i in range(5):
        sessions.get_store(f"client-{i}")

    assert len(sessions) == 3
    assert "client-0" not in sessions
    assert "client-1" not in sessions
    assert "client-4" in sessions


def test_recent_use_protects_a_store(sessions):
    for client_id in ("client-a", "client-b", "client-c"):
        sessions.get_store(client_id)
    sessions.get_store("client-a")

    sessions.get_store("client-d")

    assert "client-a" in sessions
    assert "client-b" not in sessions


@pytest.mark.asyncio
async def test_evicted_client_comes_back_from_snapshot(sessions):
    store = sessions.get_store("client-a")
    await store.sign_in("user@example.com", "secret123")
    await store.select_jurisdiction("NY")

    for i in range(3):
        sessions.get_store(f"client-{i}")
    assert "client-a" not in sessions

    reloaded = sessions.get_store("client-a")

    assert reloaded is not store
    assert reloaded.authenticated is True
    assert reloaded.identity.email == "user@example.com"
    assert reloaded.selected_jurisdiction == "NY"


def test_idle_stores_are_closed(sessions, monkeypatch):
    clock = FakeClock()
    monkeypatch.setattr(session_manager, "time", clock)

    sessions.get_store("client-a")
    clock.now += 30
    sessions.get_store("client-b")
    clock.now += 45

    sessions.get_store("client-c")

    # client-a idle 75s, client-b idle 45s
    assert "client-a" not in sessions
    assert "client-b" in sessions
    assert len(sessions) == 2


def test_recording_store_survives_idle_expiry(sessions, monkeypatch):
    clock = FakeClock()
    monkeypatch.setattr(session_manager, "time", clock)

    recording = sessions.get_store("client-rec")
    recording.recording.start()
    sessions.get_store("client-idle")
    clock.now += 120

    sessions.get_store("client-new")

    assert "client-rec" in sessions
    assert "client-idle" not in sessions


def test_capacity_eviction_skips_recording_store(sessions):
    sessions.get_store("client-rec").recording.start()
    sessions.get_store("client-b")
    sessions.get_store("client-c")

    sessions.get_store("client-d")

    assert "client-rec" in sessions
    assert "client-b" not in sessions


def test_close_releases_every_store(sessions):
    sessions.get_store("client-a")
    sessions.get_store("client-b")

    sessions.close()

    assert len(sessions) == 0
