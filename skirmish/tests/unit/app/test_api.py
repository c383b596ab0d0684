"""
HTTP surface tests.

The container is handed to create_app un-initialized so the lifespan builds
it inside the TestClient's event loop.
"""

from datetime import UTC, datetime

import pytest
from fastapi import Request
from fastapi.testclient import TestClient

from skirmish.app import create_app
from skirmish.config.models import AppConfig, DatabaseConfig
from skirmish.container import ApplicationContainer
from skirmish.dependencies import get_container
from skirmish.exceptions import CombatError
from skirmish.tests.helpers import FixedClock

# pylint: disable=redefined-outer-name  # Reason: pytest fixture parameter names must match fixture names


@pytest.fixture
def epoch_clock() -> FixedClock:
    """Newcomers registered at the epoch get STR 8, DEX 11 and 13 HP."""
    return FixedClock(datetime(1970, 1, 1, tzinfo=UTC))


@pytest.fixture
def app_container(dice, epoch_clock) -> ApplicationContainer:
    return ApplicationContainer(
        config=AppConfig(database=DatabaseConfig(url=None)),
        dice=dice,
        now_provider=epoch_clock,
        room_names={"arena": "The Arena"},
    )


@pytest.fixture
def client(app_container):
    app = create_app(app_container)

    @app.get("/boom")
    async def boom():
        raise CombatError("duel already resolved", reason="resolved", user_friendly="That fight is over.")

    with TestClient(app) as test_client:
        yield test_client


def _enter(client, combatant_id: str, name: str, room_id: str = "arena"):
    response = client.post(f"/api/rooms/{room_id}/combatants", json={"combatant_id": combatant_id, "name": name})
    assert response.status_code == 200
    return response.json()


def test_lifespan_initializes_the_container(client, app_container):
    assert app_container.is_initialized
    assert ApplicationContainer.get_instance() is app_container


def test_enter_room_registers_newcomers(client):
    body = _enter(client, "alice", "Alice")
    assert body["combatant_id"] == "alice"
    assert body["room_id"] == "arena"
    assert body["lives"] == 3
    assert body["status"] == "alive"
    assert body["created_at"].startswith("1970-01-01T00:00:00")


def test_attack_over_http(client, dice):
    _enter(client, "alice", "Alice")
    _enter(client, "bob", "Bob")
    dice.push(15, 5, 12, 6)

    response = client.post(
        "/api/rooms/arena/messages",
        json={"actor_id": "alice", "content": "take this 🗡️ Bob", "message_id": "m-1"},
    )

    assert response.status_code == 200
    body = response.json()
    assert body["clean_text"] == "take this"
    assert body["results"] == [
        {
            "action": "attack",
            "symbol": "🗡️",
            "params": ["Bob"],
            "response": "-# ⚔️ [ Alice hits Bob for 5 damage! (11 vs AC 10) | HP: 8/13 ]",
        }
    ]

    encounter = client.get("/api/rooms/arena/encounter").json()
    assert encounter["state"] == "active"
    assert encounter["current_turn"] == "bob"
    assert {c["combatant_id"]: c["final_hp"] for c in encounter["combatants"]} == {"alice": 13, "bob": 8}

    actions = client.get("/api/rooms/arena/actions", params={"limit": 5}).json()
    assert actions["room_id"] == "arena"
    assert [a["action"] for a in actions["actions"]] == ["attack"]
    assert actions["actions"][0]["target"] == "Bob"


def test_no_encounter_is_404(client):
    response = client.get("/api/rooms/cellar/encounter")
    assert response.status_code == 404
    error = response.json()["detail"]["error"]
    assert error["type"] == "resource_not_found"
    assert error["user_friendly"] == "There is no fight here."


def test_unknown_actor_message(client):
    response = client.post("/api/rooms/arena/messages", json={"actor_id": "ghost", "content": "🛡️"})
    assert response.json()["results"][0]["response"] == "-# 🤔 [ The avatar can't be found! ]"


def test_request_validation(client):
    assert client.post("/api/rooms/arena/messages", json={"actor_id": "", "content": "hi"}).status_code == 422
    assert client.get("/api/rooms/arena/actions", params={"limit": 0}).status_code == 422


def test_domain_errors_use_the_error_envelope(client):
    response = client.get("/boom")
    assert response.status_code == 400
    error = response.json()["error"]
    assert error["message"] == "duel already resolved"
    assert error["user_friendly"] == "That fight is over."
    assert error["details"] == {"reason": "resolved"}


def test_missing_container_is_a_runtime_error():
    app = create_app()
    request = Request({"type": "http", "app": app, "headers": []})
    with pytest.raises(RuntimeError, match="ApplicationContainer not found"):
        get_container(request)
