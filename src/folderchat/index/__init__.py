"""Index construction, storage and the process-wide registry."""
