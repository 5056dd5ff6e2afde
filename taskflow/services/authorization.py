"""Contrôles d'accès par requête: admin voit tout, un utilisateur ses tâches assignées."""

import logging
from fastapi import HTTPException, status

from taskflow.models.task import Task
from taskflow.models.user import User

logger = logging.getLogger(__name__)


def can_access_task(user: User, task: Task) -> bool:
    if user.is_admin:
        return True
    return user.id in task.assignee_ids


def ensure_task_access(user: User, task: Task) -> None:
    if not can_access_task(user, task):
        logger.info(f"Access denied: user {user.id} on task {task.id}")
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Access denied")


def can_access_user(user: User, target_id: int) -> bool:
    return user.is_admin or user.id == target_id


def ensure_user_access(user: User, target_id: int) -> None:
    if not can_access_user(user, target_id):
        logger.info(f"Access denied: user {user.id} on user record {target_id}")
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Access denied")
