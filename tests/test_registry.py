"""Tests for the session registry: lookup, removal and idle expiry."""

import pytest

from customer_match.directory.base import DirectoryResponseError
from customer_match.matching.models import SessionState
from customer_match.sessions.registry import SessionNotFoundError, SessionRegistry


@pytest.fixture
def registry(directory, fast_config):
    registry = SessionRegistry(directory, config=fast_config, idle_timeout=60)
    yield registry
    registry.dispose_all()


class TestSessionRemoval:
    """Finished sessions leave the registry."""

    @pytest.mark.asyncio
    async def test_select_removes_session(self, registry):
        entries = [registry.create() for _ in range(3)]
        for entry in entries:
            entry.session.input_changed("Ahmed", "+92")
            await entry.session.wait_idle()

        for entry in entries:
            entry.session.select_existing(entry.session.candidates[0])

        assert len(registry) == 0
        with pytest.raises(SessionNotFoundError):
            registry.get(entries[0].session.session_id)

    @pytest.mark.asyncio
    async def test_create_removes_session(self, registry, directory):
        entry = registry.create()
        entry.session.input_changed("New Shop", "+923450000000")

        outcome = await entry.session.submit()

        assert outcome.status == "created"
        assert len(registry) == 0

    @pytest.mark.asyncio
    async def test_failed_create_keeps_session(self, registry, directory):
        directory.create_error = DirectoryResponseError("Directory is read-only")
        entry = registry.create()
        entry.session.input_changed("New Shop", "+923450000000")

        assert (await entry.session.submit()).status == "failed"
        assert len(registry) == 1

    @pytest.mark.asyncio
    async def test_close_and_dispose_all(self, registry):
        first = registry.create()
        registry.create()

        registry.close(first.session.session_id)
        assert len(registry) == 1

        assert len(registry.dispose_all()) == 1
        assert len(registry) == 0


class TestIdleSweep:
    """Abandoned sessions expire."""

    @pytest.mark.asyncio
    async def test_idle_sessions_swept(self, registry):
        stale = registry.create()
        fresh = registry.create()
        fresh.last_seen = stale.last_seen + 50

        swept = registry.sweep_idle(now=stale.last_seen + 61)

        assert swept == [stale.session.session_id]
        assert stale.session.state == SessionState.TERMINAL
        assert len(registry) == 1
        assert registry.get(fresh.session.session_id) is fresh

    @pytest.mark.asyncio
    async def test_lookup_refreshes_last_seen(self, registry):
        entry = registry.create()
        entry.last_seen -= 120

        registry.get(entry.session.session_id)

        assert registry.sweep_idle() == []
        assert len(registry) == 1

    @pytest.mark.asyncio
    async def test_create_sweeps_expired(self, registry):
        stale = registry.create()
        stale.last_seen -= 120

        registry.create()

        assert len(registry) == 1
        with pytest.raises(SessionNotFoundError):
            registry.get(stale.session.session_id)
