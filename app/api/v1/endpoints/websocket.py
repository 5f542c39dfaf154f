"""WebSocket endpoint: single /ws that uses the connection manager from app.state.

Identity comes from the gateway headers (X-Tenant-ID, X-User-ID by default);
the socket joins its tenant and user channels. Clients join project channels
by sending {"type": "project:join", "projectId": ...}, honoured only when the
project is visible to the tenant.
"""

import logging
from typing import Any

from fastapi import APIRouter, WebSocket, WebSocketDisconnect

from app.api.websocket import ConnectionManager
from app.core.config import get_settings
from app.infrastructure.persistence.scoped_clients import tenant_scoped_client
from app.infrastructure.realtime.channels import project_channel, tenant_channel, user_channel

logger = logging.getLogger(__name__)

router = APIRouter()

PROJECT_JOIN = "project:join"
PROJECT_LEAVE = "project:leave"


async def _reject_websocket(websocket: WebSocket, reason: str, code: int = 1008) -> None:
    """Accept then immediately close with code/reason so client gets a proper close frame."""
    await websocket.accept()
    await websocket.close(code=code, reason=reason)


async def _project_visible(tenant_id: str, project_id: Any) -> bool:
    if not isinstance(project_id, str) or not project_id:
        return False
    db = tenant_scoped_client(tenant_id)
    return await db.project.count({"id": project_id}) > 0


async def _join_project(
    websocket: WebSocket, manager: ConnectionManager, tenant_id: str, user_id: str, project_id: Any
) -> None:
    """Join the project channel when the tenant can see the project; a repeat join skips the lookup."""
    channel = project_channel(project_id) if isinstance(project_id, str) and project_id else None
    joined = channel is not None and channel in await manager.channels_of(websocket)
    if not joined and await _project_visible(tenant_id, project_id):
        await manager.join(websocket, channel)
        joined = True
    if joined:
        await websocket.send_json({"event": "project:joined", "payload": {"projectId": project_id}})
        return
    logger.info("Refused project join for user %s: %s", user_id, project_id)
    await websocket.send_json(
        {"event": "error", "payload": {"message": "Project not found", "projectId": project_id}}
    )


@router.websocket("/ws")
async def websocket_endpoint(websocket: WebSocket):
    """Register the socket on its tenant and user channels and serve join/leave requests.

    Connection manager is on app.state.ws_manager (set in lifespan).
    """
    settings = get_settings()
    manager = websocket.app.state.ws_manager
    tenant_id = websocket.headers.get(settings.tenant_header_name)
    user_id = websocket.headers.get(settings.user_header_name)
    if not tenant_id or not user_id:
        await _reject_websocket(websocket, "Missing identity headers")
        return
    await manager.connect(websocket, [tenant_channel(tenant_id), user_channel(user_id)])
    try:
        while True:
            try:
                data = await websocket.receive_json()
            except ValueError:
                logger.debug("Ignoring non-JSON frame from user %s", user_id)
                continue
            if not isinstance(data, dict):
                continue
            kind = data.get("type")
            project_id = data.get("projectId")
            if kind == PROJECT_JOIN:
                await _join_project(websocket, manager, tenant_id, user_id, project_id)
            elif kind == PROJECT_LEAVE and isinstance(project_id, str) and project_id:
                await manager.leave(websocket, project_channel(project_id))
    except WebSocketDisconnect:
        pass
    finally:
        await manager.disconnect(websocket)
