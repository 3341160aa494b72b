"""Exception hierarchy for FolderChat."""

from __future__ import annotations


class FolderChatError(Exception):
    """Base class for FolderChat errors."""

    status_code = 500


class SourceError(FolderChatError):
    """A source connector call failed."""

    def __init__(self, message: str, *, status_code: int | None = None) -> None:
        super().__init__(message)
        if status_code is not None:
            self.status_code = status_code


class DecoderError(FolderChatError):
    """The format decoder could not decode a file."""


class IndexBuildError(FolderChatError):
    """Neither the enriched nor the basic indexing path produced an index."""


class IndexUnavailable(FolderChatError):
    """No index is registered for the requested folder.

    Usually the hosting process was recycled after the folder was processed;
    the caller should reprocess the folder.
    """

    status_code = 404
    code = "INDEX_NOT_FOUND"

    def __init__(self, folder_id: str) -> None:
        super().__init__(f"No index registered for folder {folder_id}")
        self.folder_id = folder_id


class JobInputError(FolderChatError):
    """A job could not produce any usable document."""

    status_code = 400


class NoSupportedFilesError(JobInputError):
    pass


class NoReadableContentError(JobInputError):
    pass
