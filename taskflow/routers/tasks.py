from typing import List
from fastapi import APIRouter, BackgroundTasks, Depends, File, UploadFile, status
from fastapi.responses import FileResponse, RedirectResponse
from sqlalchemy.orm import Session

from taskflow.core.config import settings
from taskflow.core.database import get_db
from taskflow.core.deps import get_current_user
from taskflow.models.user import User
from taskflow.schemas.task import TaskCreate, TaskUpdate, TaskResponse, AttachmentListResponse, AttachmentResponse
from taskflow.services import attachment_service, task_service
from taskflow.services.attachment_service import IncomingFile
from taskflow.services.authorization import ensure_task_access
from taskflow.services.notifications import notify, TASK_CREATED, TASK_UPDATED, TASK_DELETED
from taskflow.services.storage import BlobStorage, get_storage

router = APIRouter(prefix="/tasks", tags=["tasks"])


# Accès public: les liens d'aperçu/téléchargement du navigateur n'ont pas de token
@router.get("/attachments/{file_name}")
def download_attachment(
    file_name: str,
    db: Session = Depends(get_db),
    storage: BlobStorage = Depends(get_storage)
):
    blob = attachment_service.fetch(db, file_name, storage)
    if blob.is_redirect:
        return RedirectResponse(blob.url, status_code=status.HTTP_307_TEMPORARY_REDIRECT)
    return FileResponse(blob.path, media_type="application/pdf", filename=file_name, content_disposition_type="inline")


@router.get("", response_model=List[TaskResponse])
def list_tasks(db: Session = Depends(get_db), current_user: User = Depends(get_current_user)):
    # admin: tout, sinon uniquement les tâches assignées
    return task_service.list_tasks(db, current_user)


@router.get("/{task_id}", response_model=TaskResponse)
def get_task(task_id: int, db: Session = Depends(get_db), current_user: User = Depends(get_current_user)):
    task = task_service.get_task(db, task_id)
    ensure_task_access(current_user, task)
    return task


@router.post("", response_model=TaskResponse, status_code=status.HTTP_201_CREATED)
def create_task(
    task_data: TaskCreate,
    background_tasks: BackgroundTasks,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    task = task_service.create_task(db, task_data, current_user)
    notify(background_tasks, TASK_CREATED, task.id, task.assignee_ids)
    return task


@router.put("/{task_id}", response_model=TaskResponse)
def update_task(
    task_id: int,
    task_data: TaskUpdate,
    background_tasks: BackgroundTasks,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    task = task_service.get_task(db, task_id)
    ensure_task_access(current_user, task)

    # anciens + nouveaux assignés sont prévenus
    audience = set(task.assignee_ids)
    task = task_service.update_task(db, task, task_data)
    audience.update(task.assignee_ids)

    notify(background_tasks, TASK_UPDATED, task.id, audience)
    return task


@router.delete("/{task_id}")
def delete_task(
    task_id: int,
    background_tasks: BackgroundTasks,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
    storage: BlobStorage = Depends(get_storage)
):
    task = task_service.get_task(db, task_id)
    ensure_task_access(current_user, task)

    audience = list(task.assignee_ids)
    task_service.delete_task(db, task, storage)

    notify(background_tasks, TASK_DELETED, task_id, audience)
    return {"message": "Task deleted"}


@router.post("/{task_id}/attachments", response_model=AttachmentListResponse)
def upload_attachments(
    task_id: int,
    background_tasks: BackgroundTasks,
    files: List[UploadFile] = File(...),
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
    storage: BlobStorage = Depends(get_storage)
):
    task = task_service.get_task(db, task_id)
    ensure_task_access(current_user, task)

    # lit au plus limite+1 octets: suffisant pour détecter un fichier trop gros
    incoming = [
        IncomingFile(f.filename, f.content_type, f.file.read(settings.MAX_ATTACHMENT_SIZE + 1))
        for f in files
    ]
    attachments = attachment_service.attach(db, task, incoming, storage)

    notify(background_tasks, TASK_UPDATED, task.id, task.assignee_ids)
    return {"message": "Files uploaded", "attachments": [AttachmentResponse.model_validate(a) for a in attachments]}


@router.delete("/{task_id}/attachments/{file_name}", response_model=AttachmentListResponse)
def delete_attachment(
    task_id: int,
    file_name: str,
    background_tasks: BackgroundTasks,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
    storage: BlobStorage = Depends(get_storage)
):
    task = task_service.get_task(db, task_id)
    ensure_task_access(current_user, task)

    attachments = attachment_service.detach(db, task, file_name, storage)

    notify(background_tasks, TASK_UPDATED, task.id, task.assignee_ids)
    return {"message": "Attachment deleted", "attachments": [AttachmentResponse.model_validate(a) for a in attachments]}
