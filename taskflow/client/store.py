"""
Store côté client.

- données serveur (tâches, utilisateurs): en mémoire seulement, remplacées par refresh()
- état d'interface (page, modale ouverte, tâche sélectionnée, filtres, tri):
  persisté en JSON pour la continuité, jamais utilisé comme source de vérité
"""

import json
import logging
from dataclasses import asdict
from pathlib import Path
from typing import Dict, List, Optional

from taskflow.client.api import TaskFlowClient
from taskflow.client.constants import PAGE_SIZE, TASK_EVENTS
from taskflow.client.forms import validate_attachments, validate_task_form
from taskflow.client.view_model import DueBucket, TaskFilters, TaskPage, TaskSort, build_page, due_bucket

logger = logging.getLogger(__name__)

MODALS = ("task_form", "task_details")


class TaskStore:
    def __init__(self, client: TaskFlowClient, user: dict, state_path=None, page_size: int = PAGE_SIZE):
        self.client = client
        self.user = user
        self.state_path = Path(state_path) if state_path else None
        self.page_size = page_size

        self.tasks: List[dict] = []
        self.users: List[dict] = []

        self.current_page = 1
        self.open_modal: Optional[str] = None
        self.selected_task_id: Optional[int] = None
        self.filters = TaskFilters()
        self.sort = TaskSort()

    # --- état d'interface ---

    def hydrate(self) -> None:
        """Restaure l'état d'interface; fichier absent ou illisible -> valeurs par défaut."""
        if not self.state_path or not self.state_path.exists():
            return
        try:
            state = json.loads(self.state_path.read_text(encoding="utf-8"))
            self.current_page = max(1, int(state.get("current_page", 1)))
            modal = state.get("open_modal")
            self.open_modal = modal if modal in MODALS else None
            self.selected_task_id = state.get("selected_task_id")
            self.filters = TaskFilters(**state.get("filters", {}))
            self.sort = TaskSort(**state.get("sort", {}))
        except (OSError, ValueError, TypeError) as e:
            logger.warning(f"Ignoring unreadable UI state {self.state_path}: {e}")
            self._reset_ui_state()

    def persist(self) -> None:
        if not self.state_path:
            return
        state = {
            "current_page": self.current_page,
            "open_modal": self.open_modal,
            "selected_task_id": self.selected_task_id,
            "filters": asdict(self.filters),
            "sort": asdict(self.sort),
        }
        self.state_path.parent.mkdir(parents=True, exist_ok=True)
        self.state_path.write_text(json.dumps(state, default=str), encoding="utf-8")

    def _reset_ui_state(self) -> None:
        self.current_page = 1
        self.open_modal = None
        self.selected_task_id = None
        self.filters = TaskFilters()
        self.sort = TaskSort()

    # --- données serveur ---

    def refresh(self) -> None:
        """Refetch complet; la sélection restaurée est abandonnée si la tâche n'existe plus."""
        self.tasks = self.client.list_tasks()
        if self.user.get("role") == "admin":
            self.users = self.client.list_users()

        if self.selected_task_id is not None and not any(t["id"] == self.selected_task_id for t in self.tasks):
            self.selected_task_id = None
            if self.open_modal == "task_details":
                self.open_modal = None

    def handle_event(self, name: str, payload: Optional[dict] = None) -> bool:
        """Signal temps réel: simple invalidation du cache, pas de diff."""
        if name not in TASK_EVENTS:
            logger.debug(f"Ignoring unknown event {name}")
            return False
        self.refresh()
        return True

    @property
    def selected_task(self) -> Optional[dict]:
        return next((t for t in self.tasks if t["id"] == self.selected_task_id), None)

    # --- mutations: contrôlées localement, puis toujours suivies d'un refetch ---

    def create_task(self, **fields) -> dict:
        validate_task_form(fields)
        task = self.client.create_task(**fields)
        self.refresh()
        return task

    def update_task(self, task_id: int, **fields) -> dict:
        validate_task_form(fields, partial=True)
        task = self.client.update_task(task_id, **fields)
        self.refresh()
        return task

    def delete_task(self, task_id: int) -> None:
        self.client.delete_task(task_id)
        self.refresh()

    def upload_attachments(self, task_id: int, files) -> List[dict]:
        """Le compte inclut les pièces déjà présentes dans le cache de la tâche."""
        cached = next((t for t in self.tasks if t["id"] == task_id), None)
        existing = len(cached.get("attachments") or []) if cached else 0
        files = validate_attachments(files, existing_count=existing)
        attachments = self.client.upload_attachments(task_id, files)
        self.refresh()
        return attachments

    def delete_attachment(self, task_id: int, file_name: str) -> List[dict]:
        attachments = self.client.delete_attachment(task_id, file_name)
        self.refresh()
        return attachments

    # --- vue ---

    def set_filters(self, filters: TaskFilters) -> None:
        self.filters = filters
        self.current_page = 1

    def set_sort(self, sort_field: str) -> None:
        """Clic sur un en-tête: même champ -> inverse le sens, sinon tri ascendant."""
        if self.sort.field == sort_field:
            direction = "desc" if self.sort.direction == "asc" else "asc"
        else:
            direction = "asc"
        self.sort = TaskSort(sort_field, direction)

    def page(self) -> TaskPage:
        result = build_page(self.tasks, self.user, self.filters, self.sort, self.current_page, self.page_size)
        self.current_page = result.page
        return result

    def due_buckets(self, page: TaskPage, now=None) -> Dict[int, DueBucket]:
        """Badge d'échéance de chaque ligne de la page, par id de tâche."""
        return {t["id"]: due_bucket(t, now) for t in page.items}
