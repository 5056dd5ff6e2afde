"""
Projection de la liste des tâches pour l'affichage.

Pipeline pur sur les tâches déjà récupérées (dicts JSON de l'API):
visibilité -> recherche -> filtres exacts -> plage de dates -> tri -> pagination.
Aucune étape ne modifie les listes reçues.
"""

import math
from dataclasses import dataclass, field
from datetime import date, datetime, time, timedelta, timezone
from typing import Any, Iterable, List, Optional, Union

from taskflow.client.constants import DUE_SOON_DAYS, PAGE_SIZE, PRIORITY_ORDER, SORT_DIRECTIONS, SORT_FIELDS

DateLike = Union[str, date, datetime]


@dataclass
class TaskFilters:
    search: Optional[str] = None
    status: Optional[str] = None
    priority: Optional[str] = None
    assigned_to: Optional[str] = None
    due_date_from: Optional[DateLike] = None
    due_date_to: Optional[DateLike] = None


@dataclass
class TaskSort:
    field: str = "due_date"
    direction: str = "asc"

    def __post_init__(self):
        if self.field not in SORT_FIELDS:
            raise ValueError(f"Unknown sort field: {self.field}")
        if self.direction not in SORT_DIRECTIONS:
            raise ValueError(f"Unknown sort direction: {self.direction}")


@dataclass
class TaskPage:
    items: List[dict] = field(default_factory=list)
    page: int = 1
    total_pages: int = 1
    total: int = 0


def ref_id(ref: Any) -> Optional[str]:
    """Id d'une référence utilisateur: id brut ou objet {id|_id, ...}."""
    if ref is None:
        return None
    if isinstance(ref, dict):
        value = ref.get("id", ref.get("_id"))
        return None if value is None else str(value)
    return str(ref)


def assignee_ids(task: dict) -> List[str]:
    refs = task.get("assigned_to") or []
    if not isinstance(refs, list):
        refs = [refs]
    return [i for i in (ref_id(r) for r in refs) if i is not None]


def to_instant(value: DateLike, end_of_day: bool = False) -> datetime:
    """Convertit en datetime UTC aware; une date seule couvre toute la journée."""
    if isinstance(value, str):
        text = value.strip()
        if text.endswith("Z"):
            text = text[:-1] + "+00:00"
        if len(text) == 10:
            value = date.fromisoformat(text)
        else:
            value = datetime.fromisoformat(text)
    if isinstance(value, datetime):
        if value.tzinfo is None:
            return value.replace(tzinfo=timezone.utc)
        return value.astimezone(timezone.utc)
    # date seule
    bound = time.max if end_of_day else time.min
    return datetime.combine(value, bound, tzinfo=timezone.utc)


@dataclass(frozen=True)
class DueBucket:
    kind: str
    days: int

    @property
    def label(self) -> str:
        if self.kind == "overdue":
            return f"{-self.days} days overdue"
        if self.kind == "today":
            return "Due today"
        if self.kind == "soon":
            return f"Due in {self.days} day{'s' if self.days > 1 else ''}"
        return "Due later"


def due_bucket(task: dict, now: Optional[DateLike] = None) -> DueBucket:
    """
    Classe l'échéance d'une tâche par rapport à `now`.

    Le nombre de jours est arrondi au-dessus: une échéance dans 2h compte pour 1 jour,
    une échéance dépassée de 2h pour 0 (aujourd'hui).
    """
    current = to_instant(now) if now is not None else datetime.now(timezone.utc)
    delta = to_instant(task["due_date"]) - current
    days = math.ceil(delta / timedelta(days=1))
    if days < 0:
        return DueBucket("overdue", days)
    if days == 0:
        return DueBucket("today", 0)
    if days <= DUE_SOON_DAYS:
        return DueBucket("soon", days)
    return DueBucket("later", days)


def visible_tasks(tasks: Iterable[dict], user: dict) -> List[dict]:
    if user.get("role") == "admin":
        return list(tasks)
    user_id = ref_id(user)
    return [t for t in tasks if user_id in assignee_ids(t)]


def filter_tasks(tasks: Iterable[dict], filters: TaskFilters) -> List[dict]:
    result = list(tasks)

    if filters.search:
        term = filters.search.lower()
        result = [
            t for t in result
            if term in (t.get("title") or "").lower() or term in (t.get("description") or "").lower()
        ]

    if filters.status:
        result = [t for t in result if t.get("status") == filters.status]

    if filters.priority:
        result = [t for t in result if t.get("priority") == filters.priority]

    if filters.assigned_to:
        wanted = str(filters.assigned_to)
        result = [t for t in result if wanted in assignee_ids(t)]

    if filters.due_date_from:
        lower = to_instant(filters.due_date_from)
        result = [t for t in result if to_instant(t["due_date"]) >= lower]

    if filters.due_date_to:
        upper = to_instant(filters.due_date_to, end_of_day=True)
        result = [t for t in result if to_instant(t["due_date"]) <= upper]

    return result


def _sort_key(task: dict, sort_field: str):
    if sort_field == "title":
        return (task.get("title") or "").lower()
    if sort_field == "status":
        return (task.get("status") or "").lower()
    if sort_field == "priority":
        return PRIORITY_ORDER.get(task.get("priority"), 0)
    return to_instant(task[sort_field])


def sort_tasks(tasks: Iterable[dict], sort: TaskSort) -> List[dict]:
    # sorted() est stable, reverse=True conserve l'ordre d'entrée des égalités
    return sorted(tasks, key=lambda t: _sort_key(t, sort.field), reverse=sort.direction == "desc")


def total_pages(total: int, page_size: int = PAGE_SIZE) -> int:
    return max(1, math.ceil(total / page_size))


def paginate(tasks: List[dict], page: int, page_size: int = PAGE_SIZE) -> TaskPage:
    if page_size < 1:
        raise ValueError("page_size must be positive")
    pages = total_pages(len(tasks), page_size)
    page = min(max(page, 1), pages)
    start = (page - 1) * page_size
    return TaskPage(items=tasks[start:start + page_size], page=page, total_pages=pages, total=len(tasks))


def build_page(
    tasks: Iterable[dict],
    user: dict,
    filters: Optional[TaskFilters] = None,
    sort: Optional[TaskSort] = None,
    page: int = 1,
    page_size: int = PAGE_SIZE,
) -> TaskPage:
    rows = visible_tasks(tasks, user)
    rows = filter_tasks(rows, filters or TaskFilters())
    rows = sort_tasks(rows, sort or TaskSort())
    return paginate(rows, page, page_size)
