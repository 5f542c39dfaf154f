"""WebSocket endpoint: identity headers, project joins and event delivery.

Runs the app under Starlette's TestClient (its own event loop); the schema
and seed rows are created on that loop through the client's portal.
"""

import pytest
from fastapi.testclient import TestClient
from starlette.websockets import WebSocketDisconnect

from app.infrastructure.persistence import database
from app.infrastructure.persistence.client import DataClient
from app.main import create_app


async def _seed() -> dict[str, str]:
    async with database.engine.begin() as conn:
        await conn.run_sync(database.Base.metadata.create_all)
    db = DataClient(database.get_session_factory())
    tenant = await db.tenant.create({"name": "Acme", "slug": "acme-ws"})
    other = await db.tenant.create({"name": "Other", "slug": "other-ws"})
    user = await db.user.create({"email": "ws@acme.test"})
    project = await db.project.create({"tenant_id": tenant.id, "name": "Deck"})
    foreign = await db.project.create({"tenant_id": other.id, "name": "Fence"})
    return {"tenant": tenant.id, "user": user.id, "project": project.id, "foreign": foreign.id}


@pytest.fixture
def ws_app():
    database.engine = None
    database.AsyncSessionLocal = None
    app = create_app()
    with TestClient(app) as test_client:
        ids = test_client.portal.call(_seed)
        yield app, test_client, ids


def _headers(ids: dict[str, str]) -> dict[str, str]:
    return {"X-Tenant-ID": ids["tenant"], "X-User-ID": ids["user"]}


def test_missing_identity_headers_rejected(ws_app) -> None:
    _, test_client, _ = ws_app
    with test_client.websocket_connect("/api/v1/ws") as ws:
        with pytest.raises(WebSocketDisconnect) as exc_info:
            ws.receive_json()
    assert exc_info.value.code == 1008


def test_join_own_project_and_receive_events(ws_app) -> None:
    app, test_client, ids = ws_app
    with test_client.websocket_connect("/api/v1/ws", headers=_headers(ids)) as ws:
        ws.send_json({"type": "project:join", "projectId": ids["project"]})
        assert ws.receive_json() == {"event": "project:joined", "payload": {"projectId": ids["project"]}}

        publisher = app.state.realtime_publisher
        test_client.portal.call(
            publisher.publish, "task:created", f"project:{ids['project']}", {"taskId": "k1"}
        )
        assert ws.receive_json() == {"event": "task:created", "payload": {"taskId": "k1"}}

        test_client.portal.call(publisher.publish, "notification:new", f"user:{ids['user']}", {"id": "n1"})
        assert ws.receive_json() == {"event": "notification:new", "payload": {"id": "n1"}}


def test_join_foreign_project_refused(ws_app) -> None:
    app, test_client, ids = ws_app
    with test_client.websocket_connect("/api/v1/ws", headers=_headers(ids)) as ws:
        ws.send_json({"type": "project:join", "projectId": ids["foreign"]})
        reply = ws.receive_json()
        assert reply["event"] == "error"

        manager = app.state.ws_manager
        count = test_client.portal.call(manager.get_connection_count, f"project:{ids['foreign']}")
        assert count == 0


def test_non_json_frames_ignored_and_repeat_join_acknowledged(ws_app) -> None:
    app, test_client, ids = ws_app
    joined = {"event": "project:joined", "payload": {"projectId": ids["project"]}}
    with test_client.websocket_connect("/api/v1/ws", headers=_headers(ids)) as ws:
        ws.send_text("not json")
        ws.send_json(["not", "a", "request"])
        ws.send_json({"type": "project:join", "projectId": ids["project"]})
        assert ws.receive_json() == joined
        ws.send_json({"type": "project:join", "projectId": ids["project"]})
        assert ws.receive_json() == joined

        manager = app.state.ws_manager
        count = test_client.portal.call(manager.get_connection_count, f"project:{ids['project']}")
        assert count == 1
