from typing import Optional

from todo_api.client.api import ApiClient, ApiClientError

_UNSET = object()


class AuthSession:
    """Current user for a client, backed by the adapter's token store."""

    def __init__(self, api: ApiClient):
        self.api = api
        self.user: Optional[dict] = None

    @property
    def authenticated(self) -> bool:
        return self.api.tokens.get() is not None

    def _accept(self, res: dict) -> dict:
        self.api.tokens.set(res["token"])
        self.user = res["user"]
        return self.user

    def register(self, email: str, password: str, name: Optional[str] = None) -> dict:
        body = {"email": email, "password": password}
        if name:
            body["name"] = name
        return self._accept(self.api.post("/api/auth/register", body))

    def login(self, email: str, password: str) -> dict:
        return self._accept(self.api.post("/api/auth/login", {"email": email, "password": password}))

    def restore(self) -> Optional[dict]:
        """Resolve the stored token to a user; drop the token if the server rejects it."""
        if not self.authenticated:
            return None
        try:
            self.user = self.api.get("/api/auth/me")["user"]
        except ApiClientError:
            self.api.tokens.clear()
            self.user = None
        return self.user

    def logout(self) -> None:
        self.api.tokens.clear()
        self.user = None


class TaskService:
    def __init__(self, api: ApiClient):
        self.api = api

    def create(self, title: str, description: Optional[str] = None, status: Optional[str] = None,
               due_date: Optional[str] = None) -> dict:
        body = {"title": title}
        if description is not None:
            body["description"] = description
        if status is not None:
            body["status"] = status
        if due_date is not None:
            body["dueDate"] = due_date
        return self.api.post("/api/tasks", body)["task"]

    def list(self, page: Optional[int] = None, limit: Optional[int] = None,
             status: Optional[str] = None, search: Optional[str] = None) -> dict:
        params = {k: v for k, v in (("page", page), ("limit", limit), ("status", status), ("search", search)) if v}
        return self.api.get("/api/tasks", params=params or None)

    def get(self, task_id: str) -> dict:
        return self.api.get(f"/api/tasks/{task_id}")["task"]

    def update(self, task_id: str, title=_UNSET, description=_UNSET, status=_UNSET, due_date=_UNSET) -> dict:
        """Send only the given fields; ``due_date=None`` clears the due date."""
        body = {}
        for key, value in (("title", title), ("description", description), ("status", status), ("dueDate", due_date)):
            if value is not _UNSET:
                body[key] = value
        return self.api.patch(f"/api/tasks/{task_id}", body)["task"]

    def mark_done(self, task_id: str) -> dict:
        return self.update(task_id, status="done")

    def delete(self, task_id: str) -> bool:
        return bool(self.api.delete(f"/api/tasks/{task_id}").get("ok"))
