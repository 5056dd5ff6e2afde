TASK_STATUSES = ("todo", "in-progress", "completed")
TASK_PRIORITIES = ("low", "medium", "high")

# tri par priorité: ordinal explicite, pas alphabétique
PRIORITY_ORDER = {"low": 1, "medium": 2, "high": 3}

SORT_FIELDS = ("title", "status", "priority", "due_date", "created_at")
SORT_DIRECTIONS = ("asc", "desc")

PAGE_SIZE = 10

TASK_EVENTS = ("taskCreated", "taskUpdated", "taskDeleted")

# mêmes limites que le serveur, vérifiées avant l'appel réseau
TITLE_MAX_LENGTH = 100
MAX_ATTACHMENTS = 3
ALLOWED_EXTENSIONS = (".pdf",)

# échéance "proche": dans 1 à 3 jours
DUE_SOON_DAYS = 3
