from typing import Optional

import requests


class ApiError(Exception):
    def __init__(self, status_code: int, message: str):
        super().__init__(f"{status_code}: {message}")
        self.status_code = status_code
        self.message = message


class TaskApiClient:
    """
    Thin client for the task manager REST API.

    Holds the bearer token returned by signup/login in memory and attaches
    it to every call. Methods return the ``data`` part of the response
    envelope and raise ApiError for anything that is not a success.
    """

    def __init__(self, base_url: str, session=None, token: Optional[str] = None, timeout: float = 15):
        self.base_url = base_url.rstrip("/")
        self.session = session or requests.Session()
        self.token = token
        self.timeout = timeout

    def _request(self, method: str, path: str, **kwargs):
        headers = {"Content-Type": "application/json"}
        if self.token:
            headers["Authorization"] = f"Bearer {self.token}"

        res = self.session.request(
            method, f"{self.base_url}{path}", headers=headers, timeout=self.timeout, **kwargs
        )
        try:
            payload = res.json()
        except ValueError:
            raise ApiError(res.status_code, "Invalid JSON response")

        if res.status_code >= 400 or not payload.get("success", False):
            raise ApiError(res.status_code, payload.get("error") or "Request failed")
        return payload.get("data")

    # -------------------------------
    # Authentication
    # -------------------------------

    def signup(self, email: str, password: str) -> dict:
        data = self._request("POST", "/auth/signup", json={"email": email, "password": password})
        self.token = data["token"]
        return data

    def login(self, email: str, password: str) -> dict:
        data = self._request("POST", "/auth/login", json={"email": email, "password": password})
        self.token = data["token"]
        return data

    def logout(self) -> None:
        self.token = None

    # -------------------------------
    # Tasks
    # -------------------------------

    def get_tasks(self, status: Optional[str] = None, search: Optional[str] = None) -> dict:
        params = {}
        if status and status != "all":
            params["status"] = status
        if search:
            params["search"] = search
        return self._request("GET", "/tasks", params=params)

    def get_task(self, task_id: str) -> dict:
        return self._request("GET", f"/tasks/{task_id}")["task"]

    def create_task(self, **fields) -> dict:
        return self._request("POST", "/tasks", json=fields)["task"]

    def update_task(self, task_id: str, **fields) -> dict:
        return self._request("PUT", f"/tasks/{task_id}", json=fields)["task"]

    def delete_task(self, task_id: str) -> dict:
        return self._request("DELETE", f"/tasks/{task_id}")["task"]
