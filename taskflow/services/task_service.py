"""Task service"""

import logging
from datetime import datetime
from typing import List, Optional

from fastapi import HTTPException, status
from sqlalchemy.orm import Session

from taskflow.models.task import Task, TaskAssignee
from taskflow.models.user import User
from taskflow.schemas.task import TaskCreate, TaskUpdate
from taskflow.services.storage import BlobStorage, StorageError

logger = logging.getLogger(__name__)


def resolve_assignees(db: Session, user_ids: List[int]) -> List[User]:
    """Charge les utilisateurs dans l'ordre demandé, 400 si un id est inconnu."""
    users = db.query(User).filter(User.id.in_(user_ids)).all()
    by_id = {u.id: u for u in users}
    missing = [str(uid) for uid in user_ids if uid not in by_id]
    if missing:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=f"Unknown assignee id(s): {', '.join(missing)}"
        )
    return [by_id[uid] for uid in user_ids]


def list_tasks(db: Session, user: User) -> List[Task]:
    query = db.query(Task)
    if not user.is_admin:
        query = query.join(TaskAssignee, TaskAssignee.task_id == Task.id).filter(
            TaskAssignee.user_id == user.id
        )
    return query.order_by(Task.created_at.desc(), Task.id.desc()).all()


def get_task(db: Session, task_id: int) -> Task:
    task = db.query(Task).filter(Task.id == task_id).first()
    if not task:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Task not found")
    return task


def create_task(db: Session, data: TaskCreate, creator: User) -> Task:
    assignees = resolve_assignees(db, data.assigned_to)

    now = datetime.utcnow()
    task = Task(
        title=data.title,
        description=data.description,
        status=data.status,
        priority=data.priority,
        due_date=data.due_date,
        created_by_id=creator.id,
        created_at=now,
        updated_at=now,
    )
    task.set_assignees(assignees)

    db.add(task)
    db.commit()
    db.refresh(task)
    logger.info(f"Task {task.id} created by user {creator.id}")
    return task


def update_task(db: Session, task: Task, data: TaskUpdate) -> Task:
    update_data = data.model_dump(exclude_unset=True)

    assignee_ids = update_data.pop("assigned_to", None)
    if assignee_ids is not None:
        task.set_assignees(resolve_assignees(db, assignee_ids))

    for field, value in update_data.items():
        # aucun champ n'est nullable: null == non fourni
        if value is not None:
            setattr(task, field, value)

    task.updated_at = datetime.utcnow()
    db.commit()
    db.refresh(task)
    logger.info(f"Task {task.id} updated ({', '.join(sorted(data.model_fields_set)) or 'no fields'})")
    return task


def delete_task(db: Session, task: Task, storage: Optional[BlobStorage] = None) -> None:
    task_id = task.id
    locators = [a.locator for a in task.attachments]

    db.delete(task)
    db.commit()
    logger.info(f"Task {task_id} deleted")

    # les blobs partent après le commit: un échec ici laisse au pire un fichier orphelin
    if storage is not None:
        for locator in locators:
            try:
                storage.delete(locator)
            except StorageError as e:
                logger.warning(f"Could not delete blob {locator} of task {task_id}: {e}")
