"""
Pièces jointes des tâches.

- 3 fichiers max par tâche (existants + nouveaux)
- PDF uniquement, 10MB max par fichier
- toute la validation passe avant la première écriture
"""

import logging
import re
import secrets
import time
from datetime import datetime
from typing import List

from fastapi import HTTPException, status
from sqlalchemy.orm import Session

from taskflow.core.config import settings
from taskflow.models.task import Attachment, Task
from taskflow.services.storage import BlobStorage, StorageError, StoredBlob

logger = logging.getLogger(__name__)

_UNSAFE_CHARS = re.compile(r"[^A-Za-z0-9._-]+")


class IncomingFile:
    """Fichier reçu (multipart) avant stockage."""

    def __init__(self, filename: str, content_type: str, data: bytes):
        self.filename = filename or "file"
        self.content_type = content_type
        self.data = data

    @property
    def size(self) -> int:
        return len(self.data)


def safe_file_name(original: str) -> str:
    # garde le nom de base, sans séparateurs ni caractères exotiques
    base = original.replace("\\", "/").split("/")[-1]
    base = _UNSAFE_CHARS.sub("_", base).strip("._")
    return base or "file"


def unique_file_name(original: str) -> str:
    return f"{int(time.time() * 1000)}-{secrets.randbelow(10**9)}-{safe_file_name(original)}"


def _bad_request(detail: str) -> HTTPException:
    return HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=detail)


def validate_files(task: Task, files: List[IncomingFile]) -> None:
    if not files:
        raise _bad_request("No files uploaded")

    limit = settings.MAX_ATTACHMENTS
    existing = len(task.attachments)
    if existing + len(files) > limit:
        raise _bad_request(
            f"A task can have at most {limit} attachments "
            f"({existing} already attached, {len(files)} uploaded)"
        )

    for f in files:
        if f.content_type not in settings.ALLOWED_ATTACHMENT_TYPES:
            raise _bad_request(f"Only PDF files are allowed: {f.filename} is {f.content_type or 'unknown'}")
        if f.size > settings.MAX_ATTACHMENT_SIZE:
            max_mb = settings.MAX_ATTACHMENT_SIZE / (1024 * 1024)
            raise _bad_request(f"File too large: {f.filename} exceeds {max_mb:.0f}MB")


def attach(db: Session, task: Task, files: List[IncomingFile], storage: BlobStorage) -> List[Attachment]:
    validate_files(task, files)

    stored = []
    try:
        for f in files:
            name = unique_file_name(f.filename)
            locator = storage.store(name, f.data, f.content_type)
            stored.append((f, name, locator))
    except StorageError as e:
        logger.error(f"Upload to task {task.id} failed: {e}")
        # annule le lot déjà écrit
        for _, _, locator in stored:
            try:
                storage.delete(locator)
            except StorageError as cleanup_error:
                logger.warning(f"Could not clean up {locator}: {cleanup_error}")
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail="Failed to upload files")

    now = datetime.utcnow()
    for f, name, locator in stored:
        task.attachments.append(Attachment(
            file_name=name,
            original_name=f.filename,
            file_size=f.size,
            content_type=f.content_type,
            provider=storage.provider,
            locator=locator,
            url=storage.public_url(locator),
            uploaded_at=now,
        ))
    task.updated_at = now

    db.commit()
    db.refresh(task)
    logger.info(f"{len(stored)} attachment(s) added to task {task.id}")
    return task.attachments


def detach(db: Session, task: Task, file_name: str, storage: BlobStorage) -> List[Attachment]:
    attachment = next((a for a in task.attachments if a.file_name == file_name), None)
    if attachment is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Attachment not found")

    try:
        storage.delete(attachment.locator)
    except StorageError as e:
        # best-effort: la métadonnée part quand même
        logger.warning(f"Could not delete blob {attachment.locator} of task {task.id}: {e}")

    task.attachments.remove(attachment)
    task.updated_at = datetime.utcnow()
    db.commit()
    db.refresh(task)
    logger.info(f"Attachment {file_name} removed from task {task.id}")
    return task.attachments


def fetch(db: Session, file_name: str, storage: BlobStorage) -> StoredBlob:
    attachment = db.query(Attachment).filter(Attachment.file_name == file_name).first()
    if attachment is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="File not found")

    if attachment.url and attachment.provider != storage.provider:
        # fichier stocké avant un changement de backend
        return StoredBlob(url=attachment.url)

    try:
        return storage.retrieve(attachment.locator)
    except StorageError:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="File not found")
