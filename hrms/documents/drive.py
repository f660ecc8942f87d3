"""Google Drive v3 REST client for the HR document folder."""

from __future__ import annotations

import json
import logging
import uuid
from typing import Any, Optional

import httpx

from hrms.common.exceptions import ExternalServiceError
from hrms.config import settings

logger = logging.getLogger(__name__)

DRIVE_API = "https://www.googleapis.com/drive/v3/files"
DRIVE_UPLOAD_API = "https://www.googleapis.com/upload/drive/v3/files"
FOLDER_MIME = "application/vnd.google-apps.folder"
FILE_FIELDS = "id,name,webViewLink,webContentLink,mimeType,size,createdTime,description"


def _quote(value: str) -> str:
    return value.replace("\\", "\\\\").replace("'", "\\'")


def multipart_related(metadata: dict[str, Any], content: bytes, content_type: str) -> tuple[bytes, str]:
    """Body and Content-Type for a Drive ``uploadType=multipart`` request."""
    boundary = uuid.uuid4().hex
    head = (
        f"--{boundary}\r\n"
        "Content-Type: application/json; charset=UTF-8\r\n\r\n"
        f"{json.dumps(metadata)}\r\n"
        f"--{boundary}\r\n"
        f"Content-Type: {content_type}\r\n\r\n"
    ).encode()
    tail = f"\r\n--{boundary}--\r\n".encode()
    return head + content + tail, f"multipart/related; boundary={boundary}"


class GoogleDriveClient:
    def __init__(
        self,
        access_token: str,
        *,
        timeout: float = 30.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        self.access_token = access_token
        self.timeout = timeout
        self.transport = transport

    async def _call(self, method: str, url: str, **kw: Any) -> httpx.Response:
        if not self.access_token:
            raise ExternalServiceError("google_drive", "Google Drive is not connected")
        headers = {"Authorization": f"Bearer {self.access_token}", **kw.pop("headers", {})}
        try:
            async with httpx.AsyncClient(timeout=self.timeout, transport=self.transport) as client:
                return await client.request(method, url, headers=headers, **kw)
        except httpx.HTTPError as exc:
            logger.warning("Drive %s failed: %s", method, exc)
            raise ExternalServiceError("google_drive", f"Google Drive request failed: {exc}")

    async def find_folder(self, name: str) -> Optional[str]:
        resp = await self._call(
            "GET",
            DRIVE_API,
            params={"q": f"name='{_quote(name)}' and mimeType='{FOLDER_MIME}' and trashed=false"},
        )
        if resp.status_code != 200:
            raise ExternalServiceError("google_drive", f"Folder lookup failed: {resp.text}")
        files = resp.json().get("files") or []
        return files[0]["id"] if files else None

    async def create_folder(self, name: str) -> str:
        resp = await self._call("POST", DRIVE_API, json={"name": name, "mimeType": FOLDER_MIME})
        if resp.status_code not in (200, 201):
            raise ExternalServiceError("google_drive", f"Failed to create folder: {resp.text}")
        return resp.json()["id"]

    async def list_files(self, folder_name: str, search_query: Optional[str] = None) -> dict[str, Any]:
        folder_id = await self.find_folder(folder_name)
        if folder_id is None:
            return {"files": [], "message": "No folder found"}

        query = f"'{folder_id}' in parents and trashed=false"
        if search_query:
            query += f" and name contains '{_quote(search_query)}'"
        resp = await self._call(
            "GET",
            DRIVE_API,
            params={"q": query, "fields": f"files({FILE_FIELDS})", "orderBy": "createdTime desc"},
        )
        if resp.status_code != 200:
            raise ExternalServiceError("google_drive", f"Failed to list files: {resp.text}")
        return {"files": resp.json().get("files", []), "folderId": folder_id}

    async def upload(
        self,
        folder_name: str,
        filename: str,
        content: bytes,
        content_type: str,
        description: str = "",
    ) -> dict[str, Any]:
        folder_id = await self.find_folder(folder_name) or await self.create_folder(folder_name)
        body, mime = multipart_related(
            {"name": filename, "parents": [folder_id], "description": description},
            content,
            content_type or "application/octet-stream",
        )
        resp = await self._call(
            "POST",
            DRIVE_UPLOAD_API,
            params={"uploadType": "multipart", "fields": FILE_FIELDS},
            content=body,
            headers={"Content-Type": mime},
        )
        if resp.status_code not in (200, 201):
            raise ExternalServiceError("google_drive", f"Failed to upload to Google Drive: {resp.text}")
        uploaded = resp.json()
        logger.info("Uploaded %s to Drive folder %s", filename, folder_name)
        return {**uploaded, "folderId": folder_id}

    async def delete(self, file_id: str) -> None:
        resp = await self._call("DELETE", f"{DRIVE_API}/{file_id}")
        if resp.status_code not in (200, 204):
            raise ExternalServiceError("google_drive", f"Failed to delete file: {resp.text}")


def get_drive_client() -> GoogleDriveClient:
    return GoogleDriveClient(
        settings.GOOGLE_DRIVE_ACCESS_TOKEN,
        timeout=settings.HTTP_TIMEOUT_SECONDS,
    )
