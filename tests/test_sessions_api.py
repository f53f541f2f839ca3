"""Tests for the session HTTP API."""

import httpx
import pytest
import pytest_asyncio

from customer_match.directory.base import DirectoryResponseError
from customer_match.main import app
from customer_match.sessions.registry import SessionRegistry, get_registry


@pytest.fixture
def registry(directory, fast_config):
    registry = SessionRegistry(directory, config=fast_config)
    app.dependency_overrides[get_registry] = lambda: registry
    yield registry
    registry.dispose_all()
    app.dependency_overrides.clear()


@pytest_asyncio.fixture
async def api(registry):
    transport = httpx.ASGITransport(app=app)
    async with httpx.AsyncClient(transport=transport, base_url="http://test") as client:
        yield client


async def _open_with_input(api, registry, name, phone):
    session_id = (await api.post("/sessions")).json()["session_id"]
    response = await api.put(
        f"/sessions/{session_id}/input", json={"name": name, "phone": phone}
    )
    assert response.status_code == 202
    await registry.get(session_id).session.wait_idle()
    return session_id


class TestSessionLifecycle:
    """Create, type, read and close."""

    @pytest.mark.asyncio
    async def test_create_session(self, api, registry):
        response = await api.post("/sessions")

        assert response.status_code == 201
        body = response.json()
        assert body["state"] == "idle"
        assert body["phone"] == "+92"
        assert body["candidates"] == []
        assert len(registry) == 1

    @pytest.mark.asyncio
    async def test_input_then_candidates(self, api, registry):
        session_id = (await api.post("/sessions")).json()["session_id"]

        response = await api.put(
            f"/sessions/{session_id}/input", json={"name": "Ahmed", "phone": "+92"}
        )
        assert response.json()["state"] == "debouncing"

        await registry.get(session_id).session.wait_idle()
        body = (await api.get(f"/sessions/{session_id}")).json()

        assert body["state"] == "results_ready"
        assert body["duplicate_risk"] is True
        assert [c["name"] for c in body["candidates"]] == [
            "Ahmed Raza",
            "Ahmed Traders",
            "Bilal Ahmed",
        ]
        assert body["notifications"][0]["title"] == "3 Similar Customers Found"
        assert body["metrics"]["name_lookups"] == 1
        assert body["metrics"]["phone_lookups"] == 0

    @pytest.mark.asyncio
    async def test_unknown_session(self, api, registry):
        assert (await api.get("/sessions/nope")).status_code == 404
        assert (
            await api.put("/sessions/nope/input", json={"name": "A", "phone": ""})
        ).status_code == 404
        assert (await api.delete("/sessions/nope")).status_code == 404

    @pytest.mark.asyncio
    async def test_close_session(self, api, registry):
        session_id = (await api.post("/sessions")).json()["session_id"]

        response = await api.delete(f"/sessions/{session_id}")

        assert response.status_code == 204
        assert (await api.get(f"/sessions/{session_id}")).status_code == 404
        assert len(registry) == 0


class TestSubmitEndpoint:
    """Status codes for each submission outcome."""

    @pytest.mark.asyncio
    async def test_created(self, api, registry, directory):
        session_id = await _open_with_input(api, registry, "Ahmed", "+923009998877")

        response = await api.post(
            f"/sessions/{session_id}/submit", json={"initial_credit": 500}
        )

        assert response.status_code == 201
        assert response.json()["name"] == "Ahmed"
        assert directory.created[0].initial_credit == 500
        assert (await api.get(f"/sessions/{session_id}")).status_code == 404
        assert len(registry) == 0

    @pytest.mark.asyncio
    async def test_submit_without_body(self, api, registry, directory):
        session_id = await _open_with_input(api, registry, "New Shop", "+923450000000")

        response = await api.post(f"/sessions/{session_id}/submit")

        assert response.status_code == 201
        assert directory.created[0].initial_credit is None

    @pytest.mark.asyncio
    async def test_missing_information(self, api, registry):
        session_id = (await api.post("/sessions")).json()["session_id"]

        response = await api.post(f"/sessions/{session_id}/submit")

        assert response.status_code == 422
        assert response.json()["detail"]["errors"][0] == "Please provide customer name"

    @pytest.mark.asyncio
    async def test_blocked(self, api, registry, directory):
        session_id = await _open_with_input(
            api, registry, "Ali Khan", "+923001234567"
        )

        response = await api.post(f"/sessions/{session_id}/submit")

        assert response.status_code == 409
        detail = response.json()["detail"]
        assert detail["existing"]["id"] == 1
        assert detail["message"].endswith("Ali Khan")
        assert directory.created == []

    @pytest.mark.asyncio
    async def test_create_failed(self, api, registry, directory):
        directory.create_error = DirectoryResponseError("Directory is read-only")
        session_id = await _open_with_input(api, registry, "New Shop", "+923450000000")

        response = await api.post(f"/sessions/{session_id}/submit")

        assert response.status_code == 502
        assert "Directory is read-only" in response.json()["detail"]

    @pytest.mark.asyncio
    async def test_finished_session_is_gone(self, api, registry):
        session_id = await _open_with_input(api, registry, "New Shop", "+923450000000")
        assert (await api.post(f"/sessions/{session_id}/submit")).status_code == 201

        response = await api.post(f"/sessions/{session_id}/submit")

        assert response.status_code == 404


class TestSelectEndpoint:
    @pytest.mark.asyncio
    async def test_select_candidate(self, api, registry):
        session_id = await _open_with_input(api, registry, "Ahmed", "+92")

        response = await api.post(
            f"/sessions/{session_id}/select", json={"candidate_id": 3}
        )

        assert response.status_code == 200
        assert response.json()["name"] == "Ahmed Traders"
        assert (await api.get(f"/sessions/{session_id}")).status_code == 404
        assert len(registry) == 0

    @pytest.mark.asyncio
    async def test_select_unknown_candidate(self, api, registry):
        session_id = await _open_with_input(api, registry, "Ahmed", "+92")

        response = await api.post(
            f"/sessions/{session_id}/select", json={"candidate_id": 1}
        )

        assert response.status_code == 404


class TestHealth:
    @pytest.mark.asyncio
    async def test_health_endpoints(self, api):
        assert (await api.get("/")).json() == {"status": "ok"}
        response = await api.get("/healthz", headers={"x-request-id": "abc"})
        assert response.json()["status"] == "healthy"
        assert response.headers["x-request-id"] == "abc"
