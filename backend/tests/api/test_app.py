"""Tests for the application factory and error mapping."""

import pytest
from fastapi.testclient import TestClient

from shared.exceptions import (
    BackstageError,
    NotFoundError,
    ValidationError,
    AuthenticationError,
    AuthorizationError,
    ExternalServiceError,
    InternalError,
)
from api.app import create_app, status_for
from api.dependencies import ServiceContainer


class TestStatusMapping:
    @pytest.mark.parametrize(
        "error,status_code",
        [
            (NotFoundError("x"), 404),
            (AuthenticationError("x"), 401),
            (AuthorizationError("x"), 403),
            (ValidationError("x"), 400),
            (ExternalServiceError("x", service="payments"), 502),
            (BackstageError("x"), 400),
            (InternalError(), 500),
        ],
    )
    def test_status_for(self, error, status_code):
        """Should map each error family to its HTTP status."""
        assert status_for(error) == status_code


class TestCreateApp:
    def test_container_on_app_state(self, settings, directory):
        """Should keep the injected container on app.state."""
        container = ServiceContainer(settings, directory=directory)
        app = create_app(container)
        assert app.state.container is container

    def test_apps_are_independent(self, settings):
        """Should give every app its own rooms and connections."""
        first = create_app(ServiceContainer(settings))
        second = create_app(ServiceContainer(settings))
        assert first.state.container.rooms is not second.state.container.rooms

    def test_lifespan_builds_memory_directory(self, settings):
        """Should fall back to the in-memory directory at startup."""
        container = ServiceContainer(settings)
        with TestClient(create_app(container)):
            assert container.directory is not None
            assert type(container.directory).__name__ == "InMemoryDirectory"

    def test_realtime_config(self, settings):
        """Should publish the ICE servers and socket endpoint."""
        client = TestClient(create_app(ServiceContainer(settings)))
        data = client.get("/api/realtime/config").json()
        assert data["endpoint"] == "/ws"
        assert len(data["ice_servers"]) == 3
