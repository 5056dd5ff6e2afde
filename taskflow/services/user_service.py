"""User service"""

import logging
from typing import List, Tuple

from fastapi import HTTPException, status
from sqlalchemy.orm import Session

from taskflow.models.task import Task, TaskAssignee
from taskflow.models.user import User
from taskflow.schemas.user import UserCreate, UserUpdate

logger = logging.getLogger(__name__)


def get_user(db: Session, user_id: int) -> User:
    user = db.query(User).filter(User.id == user_id).first()
    if not user:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="User not found")
    return user


def list_users(db: Session) -> List[User]:
    return db.query(User).order_by(User.created_at, User.id).all()


def _ensure_email_free(db: Session, email: str, exclude_id: int = None) -> None:
    query = db.query(User).filter(User.email == email)
    if exclude_id is not None:
        query = query.filter(User.id != exclude_id)
    if query.first():
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Email already in use")


def create_user(db: Session, data: UserCreate) -> User:
    email = data.email.lower()
    _ensure_email_free(db, email)

    user = User(email=email, role=data.role)
    user.set_password(data.password)
    db.add(user)
    db.commit()
    db.refresh(user)
    logger.info(f"User {user.id} registered with role {user.role}")
    return user


def authenticate(db: Session, email: str, password: str):
    user = db.query(User).filter(User.email == email.lower()).first()
    if not user or not user.verify_password(password):
        logger.warning(f"Failed login for {email}")
        return None
    return user


def update_user(db: Session, user: User, data: UserUpdate) -> User:
    update_data = data.model_dump(exclude_unset=True)

    if update_data.get("email"):
        email = update_data["email"].lower()
        _ensure_email_free(db, email, exclude_id=user.id)
        user.email = email
    if update_data.get("role"):
        user.role = update_data["role"]
    if update_data.get("password"):
        user.set_password(update_data["password"])

    db.commit()
    db.refresh(user)
    logger.info(f"User {user.id} updated")
    return user


def delete_user(db: Session, user: User, acting_admin: User) -> Tuple[int, List[int]]:
    """
    Supprime un utilisateur.

    - retiré de toutes les listes d'assignés (les tâches restent)
    - created_by des tâches qu'il a créées passe à NULL

    Asymétrie assumée: la création et la mise à jour refusent une liste d'assignés vide,
    mais une tâche dont il était le seul assigné se retrouve ici sans assigné, visible
    des seuls admins jusqu'à réassignation. Ces tâches sont signalées dans le retour.

    Retourne (nombre de tâches dont la liste d'assignés a changé, ids des tâches restées sans assigné).
    """
    if user.id == acting_admin.id:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Admins cannot delete their own account")

    task_ids = [row.task_id for row in db.query(TaskAssignee.task_id).filter(TaskAssignee.user_id == user.id)]
    affected = db.query(TaskAssignee).filter(TaskAssignee.user_id == user.id).delete(synchronize_session=False)
    db.query(Task).filter(Task.created_by_id == user.id).update(
        {Task.created_by_id: None}, synchronize_session=False
    )
    still_assigned = set()
    if task_ids:
        still_assigned = {
            row.task_id for row in db.query(TaskAssignee.task_id).filter(TaskAssignee.task_id.in_(task_ids))
        }
    unassigned = sorted(task_id for task_id in task_ids if task_id not in still_assigned)
    db.delete(user)
    db.commit()
    # les relations déjà chargées dans la session ne doivent pas pointer vers l'utilisateur supprimé
    db.expire_all()

    logger.info(f"User {user.id} deleted by admin {acting_admin.id}, {affected} task(s) unassigned")
    if unassigned:
        logger.warning(f"Tasks left without assignee after deleting user {user.id}: {unassigned}")
    return affected, unassigned
