"""Source connectors: where folder listings and file contents come from."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Dict, List, Protocol

from google.oauth2.credentials import Credentials
from googleapiclient.discovery import build
from googleapiclient.errors import HttpError

from folderchat.errors import SourceError
from folderchat.models import FileDescriptor
from folderchat.utils.files import compute_sha256, guess_mime_type, iter_folder_files

LOGGER = logging.getLogger(__name__)

LIST_FIELDS = "files(id,name,mimeType,size)"


class SourceConnector(Protocol):
    def get_folder_name(self, folder_id: str) -> str: ...

    def list_files(self, folder_id: str, *, page_size: int = 100) -> List[FileDescriptor]: ...

    def export(self, file_id: str, mime_type: str) -> str: ...

    def download(self, file_id: str) -> bytes: ...


def _as_text(data: bytes | str) -> str:
    if isinstance(data, bytes):
        return data.decode("utf-8", errors="replace")
    return data


class DriveConnector:
    """Google Drive v3 connector authenticated with a user OAuth access token."""

    def __init__(self, access_token: str, *, service=None) -> None:
        if service is None:
            credentials = Credentials(token=access_token)
            service = build("drive", "v3", credentials=credentials, cache_discovery=False)
        self._files = service.files()

    def _execute(self, request, action: str):
        try:
            return request.execute()
        except HttpError as exc:
            status = getattr(exc.resp, "status", None)
            LOGGER.error("Drive %s failed (%s): %s", action, status, exc)
            raise SourceError(str(exc), status_code=int(status) if status else None) from exc

    def get_folder_name(self, folder_id: str) -> str:
        data = self._execute(self._files.get(fileId=folder_id, fields="name"), "folder lookup")
        return data.get("name") or "Untitled Folder"

    def list_files(self, folder_id: str, *, page_size: int = 100) -> List[FileDescriptor]:
        data = self._execute(
            self._files.list(
                q=f"'{folder_id}' in parents and trashed=false",
                fields=LIST_FIELDS,
                pageSize=page_size,
            ),
            "file listing",
        )
        return [
            FileDescriptor(
                id=item.get("id", ""),
                name=item.get("name", ""),
                mime_type=item.get("mimeType", ""),
                size=int(item.get("size") or 0),
            )
            for item in data.get("files", [])
        ]

    def export(self, file_id: str, mime_type: str) -> str:
        data = self._execute(self._files.export(fileId=file_id, mimeType=mime_type), "export")
        return _as_text(data)

    def download(self, file_id: str) -> bytes:
        data = self._execute(self._files.get_media(fileId=file_id), "download")
        if isinstance(data, str):
            return data.encode("utf-8")
        return data


class LocalFolderConnector:
    """Serve a local directory through the connector interface.

    The folder id is the directory path; file ids are content hashes.
    """

    def __init__(self) -> None:
        self._paths: Dict[str, Path] = {}

    def _folder(self, folder_id: str) -> Path:
        folder = Path(folder_id).expanduser()
        if not folder.is_dir():
            raise SourceError(f"File not found: {folder_id}", status_code=404)
        return folder

    def get_folder_name(self, folder_id: str) -> str:
        return self._folder(folder_id).resolve().name or "Untitled Folder"

    def list_files(self, folder_id: str, *, page_size: int = 100) -> List[FileDescriptor]:
        files: List[FileDescriptor] = []
        for path in iter_folder_files(self._folder(folder_id)):
            if len(files) >= page_size:
                break
            file_id = compute_sha256(path)
            self._paths[file_id] = path
            files.append(
                FileDescriptor(
                    id=file_id,
                    name=path.name,
                    mime_type=guess_mime_type(path),
                    size=path.stat().st_size,
                )
            )
        return files

    def export(self, file_id: str, mime_type: str) -> str:
        raise SourceError(f"Local files cannot be exported as {mime_type}")

    def download(self, file_id: str) -> bytes:
        path = self._paths.get(file_id)
        if path is None:
            raise SourceError(f"File not found: {file_id}", status_code=404)
        return path.read_bytes()
