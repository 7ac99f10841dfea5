"""``requests`` wrapper holding an immutable session per client.

Logging in returns a new client rather than mutating shared headers, so two
clients never leak credentials into each other's calls. Failed calls are
raised, never retried.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, replace
from typing import IO, Any, Optional

import requests

logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT = 10


class PortalAPIError(Exception):
    """A non-2xx response; ``message`` is the server's text, unchanged."""

    def __init__(self, status_code: int, message: str, payload: Optional[dict] = None):
        super().__init__(f"{status_code}: {message}")
        self.status_code = status_code
        self.message = message
        self.payload = payload or {}


@dataclass(frozen=True)
class PortalSession:
    base_url: str
    token: Optional[str] = None
    timeout: float = DEFAULT_TIMEOUT

    def headers(self) -> dict:
        headers = {"Accept": "application/json"}
        if self.token:
            headers["Authorization"] = f"Bearer {self.token}"
        return headers

    def url(self, path: str) -> str:
        return "{}/api/{}".format(self.base_url.rstrip("/"), path.lstrip("/"))


class PortalClient:
    def __init__(self, session: PortalSession):
        self.session = session

    @classmethod
    def connect(cls, base_url: str, timeout: float = DEFAULT_TIMEOUT) -> "PortalClient":
        return cls(PortalSession(base_url=base_url, timeout=timeout))

    @property
    def is_authenticated(self) -> bool:
        return bool(self.session.token)

    def _request(
        self,
        method: str,
        path: str,
        *,
        json: Any = None,
        params: Optional[dict] = None,
        files: Optional[dict] = None,
        data: Optional[dict] = None,
    ) -> dict:
        response = requests.request(
            method,
            self.session.url(path),
            headers=self.session.headers(),
            json=json,
            params=params,
            files=files,
            data=data,
            timeout=self.session.timeout,
        )
        try:
            payload = response.json()
        except ValueError:
            payload = {}
        if not response.ok:
            message = payload.get("message") or payload.get("detail") or response.reason
            logger.warning("%s %s failed with %s: %s", method, path, response.status_code, message)
            raise PortalAPIError(response.status_code, message, payload)
        return payload

    # Authentication

    def login(self, email: str, password: str) -> "PortalClient":
        payload = self._request("POST", "users/login", json={"email": email, "password": password})
        return PortalClient(replace(self.session, token=payload["token"]))

    def logout(self) -> "PortalClient":
        return PortalClient(replace(self.session, token=None))

    def register(self, email: str, password: str, **extra) -> dict:
        return self._request("POST", "users", json={"email": email, "password": password, **extra})

    def profile(self) -> dict:
        return self._request("GET", "users/profile")["user"]

    # Applications

    def list_applications(self, **filters) -> dict:
        return self._request("GET", "applications", params=filters or None)

    def get_application(self, application_id: int) -> dict:
        return self._request("GET", f"applications/{application_id}")["application"]

    def create_application(self, fields: dict) -> dict:
        return self._request("POST", "applications", json=fields)

    def update_application(self, application_id: int, fields: dict) -> dict:
        return self._request("PUT", f"applications/{application_id}", json=fields)

    def delete_application(self, application_id: int) -> dict:
        return self._request("DELETE", f"applications/{application_id}")

    def submit_application(self, application_id: int) -> dict:
        return self._request("PUT", f"applications/{application_id}/submit")

    def review_application(
        self, application_id: int, decision: str, comments: Optional[str] = None
    ) -> dict:
        return self._request(
            "PUT",
            f"applications/{application_id}/review",
            json={"decision": decision, "comments": comments},
        )

    def application_history(self, application_id: int) -> list:
        return self._request("GET", f"applications/{application_id}/history")["history"]

    def bulk_update(self, application_ids: list, updates: dict) -> dict:
        return self._request(
            "PUT",
            "applications/bulk",
            json={"applicationIds": application_ids, "updates": updates},
        )

    def bulk_delete(self, application_ids: list) -> dict:
        return self._request(
            "DELETE",
            "applications/bulk",
            json={"applicationIds": application_ids, "confirmDelete": True},
        )

    # Documents and files

    def upload_file(self, filename: str, stream: IO[bytes], description: str = "") -> dict:
        return self._request(
            "POST",
            "files",
            files={"file": (filename, stream)},
            data={"description": description},
        )["file"]

    def add_document(self, application_id: int, certificate_type_id: int, file_upload_id: int, **extra) -> dict:
        return self._request(
            "POST",
            f"applications/{application_id}/documents",
            json={
                "certificateTypeId": certificate_type_id,
                "fileUploadId": file_upload_id,
                **extra,
            },
        )["document"]

    def verification_status(self, application_id: int) -> dict:
        return self._request("GET", f"applications/{application_id}/documents/verification-status")

    def verify_document(self, application_id: int, document_id: int, remarks: Optional[str] = None) -> dict:
        return self._request(
            "PUT",
            f"applications/{application_id}/documents/{document_id}/verify",
            json={"isVerified": True, "verificationRemarks": remarks},
        )["document"]

    def delete_document(self, application_id: int, document_id: int) -> dict:
        return self._request("DELETE", f"applications/{application_id}/documents/{document_id}")

    # Catalog and notifications

    def list_programs(self, **filters) -> list:
        return self._request("GET", "programs", params=filters or None)["programs"]

    def notifications(self, **filters) -> dict:
        return self._request("GET", "notifications", params=filters or None)

    def mark_notification_read(self, notification_id: int) -> dict:
        return self._request("PUT", f"notifications/{notification_id}/read")["notification"]
