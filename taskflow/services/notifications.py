"""
Diffusion temps réel des changements de tâches.

Simple signal d'invalidation: {"event": ..., "task_id": ...}. Le client refait un GET /tasks.
Pas de buffer ni de rejeu: un client déconnecté rattrape au prochain fetch.
"""

import logging
from typing import Iterable, List, Optional

from fastapi import WebSocket

from taskflow.core.config import settings

logger = logging.getLogger(__name__)

TASK_CREATED = "taskCreated"
TASK_UPDATED = "taskUpdated"
TASK_DELETED = "taskDeleted"
EVENTS = (TASK_CREATED, TASK_UPDATED, TASK_DELETED)


class Subscriber:
    def __init__(self, websocket: WebSocket, user_id: int, is_admin: bool):
        self.websocket = websocket
        self.user_id = user_id
        self.is_admin = is_admin

    def wants(self, audience: Iterable[int]) -> bool:
        return self.is_admin or self.user_id in audience


class ConnectionManager:
    def __init__(self):
        self.subscribers: List[Subscriber] = []

    def connect(self, websocket: WebSocket, user_id: int, is_admin: bool) -> Subscriber:
        subscriber = Subscriber(websocket, user_id, is_admin)
        self.subscribers.append(subscriber)
        logger.debug(f"Websocket connected for user {user_id} ({len(self.subscribers)} open)")
        return subscriber

    def disconnect(self, subscriber: Subscriber) -> None:
        if subscriber in self.subscribers:
            self.subscribers.remove(subscriber)
            logger.debug(f"Websocket closed for user {subscriber.user_id} ({len(self.subscribers)} open)")

    async def broadcast(self, event: str, task_id: int, audience: Optional[Iterable[int]] = None) -> int:
        """Envoie l'événement aux admins et à l'audience; retourne le nombre d'envois réussis."""
        if event not in EVENTS:
            raise ValueError(f"Unknown event: {event}")

        audience = set(audience or ())
        message = {"event": event, "task_id": task_id}
        sent = 0
        for subscriber in list(self.subscribers):
            if not subscriber.wants(audience):
                continue
            try:
                await subscriber.websocket.send_json(message)
                sent += 1
            except Exception as e:
                # connexion morte: on la retire, pas de retry
                logger.debug(f"Dropping websocket of user {subscriber.user_id}: {e}")
                self.disconnect(subscriber)
        logger.debug(f"{event} for task {task_id} sent to {sent} client(s)")
        return sent


manager = ConnectionManager()


def notify(background_tasks, event: str, task_id: int, audience: Iterable[int]) -> None:
    """Planifie la diffusion après l'envoi de la réponse HTTP."""
    if not settings.NOTIFICATIONS_ENABLED:
        return
    background_tasks.add_task(manager.broadcast, event, task_id, list(audience))
