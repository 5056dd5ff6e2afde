from typing import Optional
from fastapi import APIRouter, Query, WebSocket, WebSocketDisconnect
from taskflow.core.security import decode_access_token
from taskflow.models.user import ROLE_ADMIN
from taskflow.services.notifications import manager

router = APIRouter(tags=["events"])

# code de fermeture applicatif pour "non authentifié"
WS_UNAUTHORIZED = 4401


@router.websocket("/ws")
async def task_events(websocket: WebSocket, token: Optional[str] = Query(None)):
    payload = decode_access_token(token) if token else None
    if not payload:
        await websocket.close(code=WS_UNAUTHORIZED)
        return

    await websocket.accept()
    subscriber = manager.connect(websocket, payload["user_id"], payload.get("role") == ROLE_ADMIN)
    try:
        # le serveur ne fait qu'émettre; les messages entrants sont ignorés
        while True:
            await websocket.receive_text()
    except WebSocketDisconnect:
        pass
    finally:
        manager.disconnect(subscriber)
