"""Client HTTP de l'API TaskFlow (requests)."""

import logging
from typing import Iterable, List, Optional, Tuple

import requests

logger = logging.getLogger(__name__)

REQUEST_TIMEOUT = 30


class ApiError(Exception):
    def __init__(self, status_code: int, message: str):
        super().__init__(f"{status_code}: {message}")
        self.status_code = status_code
        self.message = message


class TaskFlowClient:
    def __init__(self, base_url: str, token: Optional[str] = None, session=None):
        self.base_url = base_url.rstrip("/")
        self.token = token
        self.session = session or requests.Session()

    def _headers(self) -> dict:
        return {"Authorization": f"Bearer {self.token}"} if self.token else {}

    def _request(self, method: str, path: str, **kwargs):
        response = self.session.request(
            method,
            f"{self.base_url}{path}",
            headers=self._headers(),
            timeout=REQUEST_TIMEOUT,
            **kwargs
        )
        if response.status_code >= 400:
            try:
                message = response.json().get("error", response.reason)
            except ValueError:
                message = response.reason or "Request failed"
            logger.warning(f"{method} {path} -> {response.status_code}: {message}")
            raise ApiError(response.status_code, message)
        if response.status_code == 204 or not response.content:
            return None
        return response.json()

    # Auth
    def login(self, email: str, password: str) -> dict:
        data = self._request("POST", "/auth/login", json={"email": email, "password": password})
        self.token = data["token"]
        return data["user"]

    def register(self, email: str, password: str, role: str = "user") -> dict:
        return self._request("POST", "/auth/register", json={"email": email, "password": password, "role": role})

    def health(self) -> dict:
        return self._request("GET", "/health")

    # Tasks
    def list_tasks(self) -> List[dict]:
        return self._request("GET", "/tasks")

    def get_task(self, task_id: int) -> dict:
        return self._request("GET", f"/tasks/{task_id}")

    def create_task(self, **fields) -> dict:
        return self._request("POST", "/tasks", json=fields)

    def update_task(self, task_id: int, **fields) -> dict:
        return self._request("PUT", f"/tasks/{task_id}", json=fields)

    def delete_task(self, task_id: int) -> dict:
        return self._request("DELETE", f"/tasks/{task_id}")

    # Attachments
    def upload_attachments(self, task_id: int, files: Iterable[Tuple[str, bytes]]) -> List[dict]:
        """files: (nom, contenu); un seul appel multipart par lot."""
        payload = [("files", (name, content, "application/pdf")) for name, content in files]
        return self._request("POST", f"/tasks/{task_id}/attachments", files=payload)["attachments"]

    def delete_attachment(self, task_id: int, file_name: str) -> List[dict]:
        return self._request("DELETE", f"/tasks/{task_id}/attachments/{file_name}")["attachments"]

    def attachment_url(self, file_name: str) -> str:
        return f"{self.base_url}/tasks/attachments/{file_name}"

    # Users
    def list_users(self) -> List[dict]:
        return self._request("GET", "/users")

    def get_user(self, user_id: int) -> dict:
        return self._request("GET", f"/users/{user_id}")

    def update_user(self, user_id: int, **fields) -> dict:
        return self._request("PUT", f"/users/{user_id}", json=fields)

    def delete_user(self, user_id: int) -> dict:
        return self._request("DELETE", f"/users/{user_id}")
