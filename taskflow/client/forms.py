"""
Contrôles du formulaire de tâche côté client.

Le serveur reste l'arbitre; ces contrôles évitent seulement un aller-retour
pour les erreurs évidentes (champ vide, statut inconnu, 4e pièce jointe, non-PDF).
"""

from datetime import datetime, timezone
from pathlib import Path
from typing import Dict, Iterable, List, Optional, Tuple

from taskflow.client.constants import (
    ALLOWED_EXTENSIONS,
    MAX_ATTACHMENTS,
    TASK_PRIORITIES,
    TASK_STATUSES,
    TITLE_MAX_LENGTH,
)
from taskflow.client.view_model import to_instant


class FormError(ValueError):
    """Erreurs par champ, levées avant tout appel réseau."""

    def __init__(self, errors: Dict[str, str]):
        super().__init__("; ".join(f"{name}: {message}" for name, message in errors.items()))
        self.errors = errors


def validate_task_form(fields: dict, partial: bool = False, now: Optional[datetime] = None) -> None:
    """
    Création (partial=False): titre, description, échéance future et assignés obligatoires.
    Mise à jour (partial=True): seuls les champs fournis sont contrôlés, None = non fourni,
    et l'échéance n'est pas comparée à maintenant.
    """
    if partial:
        fields = {k: v for k, v in fields.items() if v is not None}
    errors = {}

    if not partial or "title" in fields:
        title = (fields.get("title") or "").strip()
        if not title:
            errors["title"] = "Title is required"
        elif len(title) > TITLE_MAX_LENGTH:
            errors["title"] = f"Title must be less than {TITLE_MAX_LENGTH} characters"

    if not partial and not (fields.get("description") or "").strip():
        errors["description"] = "Description is required"

    if "status" in fields and fields["status"] not in TASK_STATUSES:
        errors["status"] = f"Status must be one of {', '.join(TASK_STATUSES)}"

    if "priority" in fields and fields["priority"] not in TASK_PRIORITIES:
        errors["priority"] = f"Priority must be one of {', '.join(TASK_PRIORITIES)}"

    if not partial:
        due_date = fields.get("due_date")
        if not due_date:
            errors["due_date"] = "Due date is required"
        else:
            current = to_instant(now) if now is not None else datetime.now(timezone.utc)
            try:
                if to_instant(due_date) <= current:
                    errors["due_date"] = "Due date must be in the future"
            except (TypeError, ValueError):
                errors["due_date"] = "Invalid due date"

    if not partial or "assigned_to" in fields:
        if not fields.get("assigned_to"):
            errors["assigned_to"] = "At least one assignee is required"

    if errors:
        raise FormError(errors)


def validate_attachments(files: Iterable[Tuple[str, bytes]], existing_count: int = 0) -> List[Tuple[str, bytes]]:
    """Retourne le lot sous forme de liste; existing_count = pièces déjà attachées à la tâche."""
    files = list(files)
    if not files:
        raise FormError({"files": "No files provided"})
    if existing_count + len(files) > MAX_ATTACHMENTS:
        raise FormError({"files": f"Maximum {MAX_ATTACHMENTS} files allowed (including already uploaded)"})
    for name, _ in files:
        if Path(name).suffix.lower() not in ALLOWED_EXTENSIONS:
            raise FormError({"files": "Only PDF files are allowed"})
    return files
