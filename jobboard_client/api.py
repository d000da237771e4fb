"""
HTTP client for the job board API.

Sends the session's bearer token on every call. A 401 triggers exactly one refresh
attempt followed by a single replay of the request; if the refresh is rejected the
session is cleared and the original error surfaces.
"""
import json
import logging
from typing import Any

import httpx

from .errors import ApiError, categorize_error
from .session import Session

logger = logging.getLogger(__name__)

DEFAULT_BASE_URL = "http://localhost:5000"
DEFAULT_API_PREFIX = "/api"


class JobBoardClient:
    def __init__(
        self,
        base_url: str = DEFAULT_BASE_URL,
        *,
        api_prefix: str = DEFAULT_API_PREFIX,
        session: Session | None = None,
        http: httpx.Client | None = None,
        timeout: float = 10.0,
    ):
        self.http = http or httpx.Client(base_url=base_url, timeout=timeout)
        self.api_prefix = api_prefix.rstrip("/")
        self.session = session or Session()

    def close(self) -> None:
        self.http.close()

    def __enter__(self) -> "JobBoardClient":
        return self

    def __exit__(self, *exc_info) -> None:
        self.close()

    # -------------------- transport --------------------

    def _url(self, path: str) -> str:
        return f"{self.api_prefix}{path}"

    def _send(self, method: str, path: str, *, auth: bool, **kwargs) -> httpx.Response:
        headers = dict(kwargs.pop("headers", None) or {})
        if auth and self.session.access_token:
            headers["Authorization"] = f"Bearer {self.session.access_token}"
        try:
            return self.http.request(method, self._url(path), headers=headers, **kwargs)
        except httpx.RequestError as e:
            raise ApiError(categorize_error(e)) from e

    def _request(self, method: str, path: str, *, auth: bool = True, **kwargs) -> Any:
        response = self._send(method, path, auth=auth, **kwargs)

        if response.status_code == 401 and auth and self.session.refresh_token:
            if self.refresh_access_token():
                response = self._send(method, path, auth=auth, **kwargs)
            else:
                logger.info("Refresh rejected; clearing session")
                self.session.clear()

        try:
            response.raise_for_status()
        except httpx.HTTPStatusError as e:
            raise ApiError(categorize_error(e)) from e
        return response.json()

    def refresh_access_token(self) -> bool:
        """Swap the refresh token for a new access token. Returns False if rejected."""
        if not self.session.refresh_token:
            return False
        response = self._send(
            "POST",
            "/auth/refresh",
            auth=False,
            json={"refreshToken": self.session.refresh_token},
        )
        if response.status_code != 200:
            return False
        self.session.access_token = response.json().get("accessToken")
        return bool(self.session.access_token)

    # -------------------- auth --------------------

    def register(
        self,
        *,
        name: str,
        email: str,
        phone: str,
        role: str,
        company_name: str | None = None,
        company_location: str | None = None,
        company_description: str | None = None,
        experiences: list[dict] | None = None,
        photo: tuple[str, bytes, str] | None = None,
    ) -> dict:
        form = {"name": name, "email": email, "phone": phone, "role": role}
        if role == "employer":
            form["companyName"] = company_name or ""
            form["companyLocation"] = company_location or ""
            form["companyDescription"] = company_description or ""
        elif experiences is not None:
            form["experiences"] = json.dumps(experiences)

        kwargs: dict[str, Any] = {"data": form}
        if photo is not None:
            kwargs["files"] = {"photo": photo}

        payload = self._request("POST", "/auth/register", auth=False, **kwargs)
        self.session.start(payload)
        return payload

    def login(self, email: str) -> dict:
        payload = self._request("POST", "/auth/login", auth=False, json={"email": email})
        self.session.start(payload)
        return payload

    def logout(self) -> None:
        try:
            if self.session.is_authenticated:
                self._request("POST", "/auth/logout", json={"refreshToken": self.session.refresh_token})
        finally:
            self.session.clear()

    def logout_all(self) -> dict:
        try:
            return self._request("POST", "/auth/logout-all")
        finally:
            self.session.clear()

    # -------------------- users --------------------

    def get_profile(self, user_id: str) -> dict:
        return self._request("GET", f"/users/{user_id}")

    def get_user_jobs(self, user_id: str) -> list[dict]:
        return self._request("GET", f"/users/{user_id}/jobs")

    def get_user_interests(self, user_id: str) -> list[dict]:
        return self._request("GET", f"/users/{user_id}/interests")

    # -------------------- jobs --------------------

    def create_job(self, **fields: str) -> dict:
        return self._request("POST", "/jobs", json=fields)["job"]

    def list_jobs(self) -> list[dict]:
        return self._request("GET", "/jobs")

    def get_job(self, job_id: str) -> dict:
        return self._request("GET", f"/jobs/{job_id}")

    def close_job(self, job_id: str) -> dict:
        return self._request("PATCH", f"/jobs/{job_id}/close")["job"]

    def show_interest(self, job_id: str) -> dict:
        return self._request("POST", f"/jobs/{job_id}/interest")["interest"]

    def get_applicants(self, job_id: str) -> list[dict]:
        return self._request("GET", f"/jobs/{job_id}/applicants")
