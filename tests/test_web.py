"""Tests for the WalkCity plugin and the wizard session REST API.

This module tests:
- WalkCityPlugin registration and dependency injection
- Session lifecycle endpoints (start, edit, navigate, undo, cancel, submit)
- Inline validation feedback
- Error mapping for state conflicts and unknown sessions
"""

from __future__ import annotations

from typing import Any
from uuid import uuid4

import pytest
from litestar import Litestar, get
from litestar.status_codes import (
    HTTP_200_OK,
    HTTP_201_CREATED,
    HTTP_400_BAD_REQUEST,
    HTTP_404_NOT_FOUND,
    HTTP_409_CONFLICT,
)
from litestar.testing import AsyncTestClient, TestClient

from walkcity_flows.plugin import WalkCityPlugin, WalkCityPluginConfig
from walkcity_flows.sessions import SessionRegistry

BASE = "/walkcity/sessions"


@pytest.fixture
def app() -> Litestar:
    """Application with the default plugin configuration."""
    return Litestar(plugins=[WalkCityPlugin()])


async def _start(client: AsyncTestClient, screen: str = "issue_report") -> dict[str, Any]:
    response = await client.post(BASE, json={"screen": screen})
    assert response.status_code == HTTP_201_CREATED
    return response.json()


@pytest.mark.unit
class TestWalkCityPlugin:
    """Tests for plugin registration."""

    def test_registry_before_init(self) -> None:
        plugin = WalkCityPlugin()

        with pytest.raises(RuntimeError, match="not been initialized"):
            _ = plugin.registry

    def test_registers_default_screen(self) -> None:
        plugin = WalkCityPlugin()
        Litestar(plugins=[plugin])

        assert plugin.registry.list_screens() == ["issue_report"]

    def test_uses_provided_registry(self) -> None:
        from walkcity_flows.screens import RouteRecordingFlow

        registry = SessionRegistry()
        plugin = WalkCityPlugin(
            config=WalkCityPluginConfig(registry=registry, screens={"route_recording": RouteRecordingFlow})
        )
        Litestar(plugins=[plugin])

        assert plugin.registry is registry
        assert registry.list_screens() == ["route_recording"]

    def test_registry_injected_into_handlers(self) -> None:
        @get("/active", sync_to_thread=False)
        def active(walkcity_sessions: SessionRegistry) -> int:
            walkcity_sessions.start("issue_report")
            return len(walkcity_sessions)

        app = Litestar(route_handlers=[active], plugins=[WalkCityPlugin()])

        with TestClient(app=app) as client:
            response = client.get("/active")

        assert response.status_code == HTTP_200_OK
        assert response.json() == 1

    def test_api_disabled(self) -> None:
        app = Litestar(plugins=[WalkCityPlugin(config=WalkCityPluginConfig(enable_api=False))])

        with TestClient(app=app) as client:
            response = client.get(f"{BASE}/screens")

        assert response.status_code == HTTP_404_NOT_FOUND

    def test_custom_prefix(self) -> None:
        app = Litestar(plugins=[WalkCityPlugin(config=WalkCityPluginConfig(api_path_prefix="/api"))])

        with TestClient(app=app) as client:
            response = client.get("/api/sessions/screens")

        assert response.status_code == HTTP_200_OK
        assert response.json() == ["issue_report"]


@pytest.mark.integration
@pytest.mark.asyncio
class TestSessionEndpoints:
    """Tests for the wizard session endpoints."""

    async def test_list_screens(self, app: Litestar) -> None:
        async with AsyncTestClient(app=app) as client:
            response = await client.get(f"{BASE}/screens")

        assert response.status_code == HTTP_200_OK
        assert response.json() == ["issue_report"]

    async def test_start_session(self, app: Litestar) -> None:
        async with AsyncTestClient(app=app) as client:
            body = await _start(client)

        assert body["screen"] == "issue_report"
        assert body["step"]["name"] == "location"
        assert body["step"]["index"] == 0
        assert body["step_count"] == 3
        assert body["fields"]["location"] == [40.7128, -74.006]
        assert body["can_advance"] is True
        assert body["can_undo"] is False
        assert body["exited"] is False

    async def test_start_unknown_screen(self, app: Litestar) -> None:
        async with AsyncTestClient(app=app) as client:
            response = await client.post(BASE, json={"screen": "settings"})

        assert response.status_code == HTTP_404_NOT_FOUND
        assert response.json()["error"] == "not_found"

    async def test_get_unknown_session(self, app: Litestar) -> None:
        async with AsyncTestClient(app=app) as client:
            response = await client.get(f"{BASE}/{uuid4()}")

        assert response.status_code == HTTP_404_NOT_FOUND

    async def test_report_lifecycle(self, app: Litestar) -> None:
        """Test filing an issue report end to end over the API."""
        async with AsyncTestClient(app=app) as client:
            session_id = (await _start(client))["id"]

            response = await client.post(f"{BASE}/{session_id}/advance")
            assert response.status_code == HTTP_200_OK
            assert response.json()["step"]["name"] == "details"

            response = await client.post(f"{BASE}/{session_id}/advance")
            body = response.json()
            assert body["step"]["name"] == "details"
            assert body["validation_error"] == "Please provide the issue type"

            response = await client.put(
                f"{BASE}/{session_id}/fields",
                json={"values": {"issue_type": "missing_crosswalk", "description": "No crossing at the school"}},
            )
            assert response.status_code == HTTP_200_OK
            assert response.json()["can_advance"] is True

            response = await client.post(f"{BASE}/{session_id}/advance")
            assert response.json()["step"]["name"] == "photo"

            response = await client.post(f"{BASE}/{session_id}/submit")
            body = response.json()
            assert response.status_code == HTTP_200_OK
            assert body["exited"] is True
            assert body["exit_reason"] == "submitted"
            assert body["submission_id"] is not None

            response = await client.get(f"{BASE}/{session_id}")
            assert response.status_code == HTTP_404_NOT_FOUND

    async def test_undo_and_retreat(self, app: Litestar) -> None:
        async with AsyncTestClient(app=app) as client:
            session_id = (await _start(client))["id"]

            await client.put(f"{BASE}/{session_id}/fields", json={"values": {"description": "first"}})
            await client.put(f"{BASE}/{session_id}/fields", json={"values": {"description": "second"}})

            response = await client.post(f"{BASE}/{session_id}/undo")
            assert response.json()["fields"]["description"] == "first"

            await client.post(f"{BASE}/{session_id}/advance")
            response = await client.post(f"{BASE}/{session_id}/retreat")
            body = response.json()
            assert body["step"]["name"] == "location"
            assert body["fields"]["description"] == "first"

    async def test_unknown_field_rejected(self, app: Litestar) -> None:
        async with AsyncTestClient(app=app) as client:
            session_id = (await _start(client))["id"]
            response = await client.put(f"{BASE}/{session_id}/fields", json={"values": {"severity": "high"}})

        assert response.status_code == HTTP_400_BAD_REQUEST

    @pytest.mark.parametrize(
        ("values", "message"),
        [
            ({"location": [999, -999]}, "out of range"),
            ({"issue_type": "graffiti"}, "Unknown issue type"),
            ({"photo": {"filename": "notes.txt", "content_type": "text/plain", "size_bytes": 10}}, "must be an image"),
            ({"photo": {"filename": "huge.png", "content_type": "image/png", "size_bytes": 10**10}}, "limit"),
        ],
    )
    async def test_invalid_field_values_rejected(self, app: Litestar, values: dict[str, Any], message: str) -> None:
        """Test the API applies the same field checks as the screen."""
        async with AsyncTestClient(app=app) as client:
            started = await _start(client)
            session_id = started["id"]

            response = await client.put(f"{BASE}/{session_id}/fields", json={"values": values})
            assert response.status_code == HTTP_400_BAD_REQUEST
            assert message in response.json()["detail"]

            body = (await client.get(f"{BASE}/{session_id}")).json()
            assert body["fields"] == started["fields"]
            assert body["can_undo"] is False

    async def test_photo_attached_through_api(self, app: Litestar) -> None:
        async with AsyncTestClient(app=app) as client:
            session_id = (await _start(client))["id"]
            photo = {"filename": "curb.jpg", "content_type": "image/jpeg", "size_bytes": 2048}

            response = await client.put(f"{BASE}/{session_id}/fields", json={"values": {"photo": photo}})

        assert response.status_code == HTTP_200_OK
        assert response.json()["fields"]["photo"] == photo

    async def test_recording_state_not_editable(self) -> None:
        from walkcity_flows.screens import RouteRecordingFlow

        config = WalkCityPluginConfig(screens={"route_recording": RouteRecordingFlow})
        app = Litestar(plugins=[WalkCityPlugin(config=config)])
        async with AsyncTestClient(app=app) as client:
            session_id = (await _start(client, "route_recording"))["id"]

            response = await client.put(f"{BASE}/{session_id}/fields", json={"values": {"recording_state": "stopped"}})
            assert response.status_code == HTTP_400_BAD_REQUEST

            body = (await client.get(f"{BASE}/{session_id}")).json()
            assert body["fields"]["recording_state"] == "recording"
            assert body["step"]["name"] == "record"

    async def test_submit_from_first_step_conflicts(self, app: Litestar) -> None:
        async with AsyncTestClient(app=app) as client:
            session_id = (await _start(client))["id"]
            response = await client.post(f"{BASE}/{session_id}/submit")

        assert response.status_code == HTTP_409_CONFLICT
        body = response.json()
        assert body["error"] == "invalid_state"
        assert "submit" in body["message"]

    async def test_cancel_confirmation(self, app: Litestar) -> None:
        async with AsyncTestClient(app=app) as client:
            session_id = (await _start(client))["id"]
            await client.put(f"{BASE}/{session_id}/fields", json={"values": {"description": "draft"}})

            response = await client.post(f"{BASE}/{session_id}/cancel")
            assert response.json()["cancel_confirming"] is True

            response = await client.post(f"{BASE}/{session_id}/advance")
            assert response.status_code == HTTP_409_CONFLICT

            response = await client.post(f"{BASE}/{session_id}/cancel/dismiss")
            assert response.json()["cancel_confirming"] is False

            await client.post(f"{BASE}/{session_id}/cancel")
            response = await client.post(f"{BASE}/{session_id}/cancel/confirm")
            body = response.json()
            assert body["exited"] is True
            assert body["exit_reason"] == "canceled"

    async def test_dismiss_without_request_conflicts(self, app: Litestar) -> None:
        async with AsyncTestClient(app=app) as client:
            session_id = (await _start(client))["id"]
            response = await client.post(f"{BASE}/{session_id}/cancel/dismiss")

        assert response.status_code == HTTP_409_CONFLICT
