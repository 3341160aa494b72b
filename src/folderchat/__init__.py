"""FolderChat - chat with a folder of documents, with source citations."""

__version__ = "0.1.0"
