"""Task, assignee and attachment tables"""

from sqlalchemy import Column, Integer, String, Text, DateTime, ForeignKey
from sqlalchemy.orm import relationship
from datetime import datetime
from taskflow.core.database import Base

STATUSES = ("todo", "in-progress", "completed")
PRIORITIES = ("low", "medium", "high")
TITLE_MAX_LENGTH = 100


class TaskAssignee(Base):
    """Lien ordonné tâche -> utilisateur assigné."""
    __tablename__ = "task_assignees"

    task_id = Column(Integer, ForeignKey("tasks.id", ondelete="CASCADE"), primary_key=True)
    user_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), primary_key=True, index=True)
    position = Column(Integer, nullable=False, default=0)

    user = relationship("User", lazy="joined")


class Attachment(Base):
    __tablename__ = "attachments"

    id = Column(Integer, primary_key=True, index=True)
    task_id = Column(Integer, ForeignKey("tasks.id", ondelete="CASCADE"), nullable=False, index=True)

    file_name = Column(String, unique=True, nullable=False, index=True)
    original_name = Column(String, nullable=False)
    file_size = Column(Integer, nullable=False)
    content_type = Column(String, nullable=False, default="application/pdf")
    provider = Column(String, nullable=False, default="local")
    locator = Column(String, nullable=False)
    url = Column(String, nullable=True)
    uploaded_at = Column(DateTime, default=datetime.utcnow)


class Task(Base):
    __tablename__ = "tasks"

    id = Column(Integer, primary_key=True, index=True)
    title = Column(String(TITLE_MAX_LENGTH), nullable=False)
    description = Column(Text, nullable=False)
    status = Column(String, nullable=False, default="todo")
    priority = Column(String, nullable=False, default="medium")
    due_date = Column(DateTime, nullable=False, index=True)

    created_by_id = Column(Integer, ForeignKey("users.id", ondelete="SET NULL"), nullable=True, index=True)

    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow)

    creator = relationship("User", foreign_keys=[created_by_id], lazy="joined")
    assignee_links = relationship(
        "TaskAssignee",
        order_by=TaskAssignee.position,
        cascade="all, delete-orphan",
        lazy="selectin",
    )
    attachments = relationship(
        "Attachment",
        order_by=Attachment.id,
        cascade="all, delete-orphan",
        lazy="selectin",
    )

    @property
    def assignees(self):
        return [link.user for link in self.assignee_links]

    @property
    def assignee_ids(self):
        return [link.user_id for link in self.assignee_links]

    def set_assignees(self, users):
        # Réutilise les liens existants pour ne pas réinsérer la même clé
        existing = {link.user_id: link for link in self.assignee_links}
        links = []
        for position, user in enumerate(users):
            link = existing.get(user.id) or TaskAssignee(user_id=user.id, user=user)
            link.position = position
            links.append(link)
        self.assignee_links = links
