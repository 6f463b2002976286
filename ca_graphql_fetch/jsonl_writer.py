"""
JSONL Writer — Appends one JSON object per line to the output file.

The writer opens the target in append mode (creating parent directories),
writes UTF-8 with non-ASCII characters kept as-is, and flushes after every
record so partial output survives an interrupted fetch. Use it as a context
manager so the handle is closed on every exit path:

    with JsonlWriter.open("var/ca_objects.jsonl") as writer:
        writer.write({"id": "1", "idno": "2019.1.7", "table": "ca_objects"})
"""

import json
import os
from typing import Any, Dict


class JsonlWriter:
    """Append-only JSON Lines sink.

    Attributes:
        path: File being written.
        written: Number of records written through this writer.
    """

    def __init__(self, path: str):
        self.path = path
        self.written = 0
        self._handle = None

    @classmethod
    def open(cls, path: str) -> "JsonlWriter":
        writer = cls(path)
        parent = os.path.dirname(os.path.abspath(path))
        os.makedirs(parent, exist_ok=True)
        writer._handle = open(path, "a", encoding="utf-8")
        return writer

    def write(self, record: Dict[str, Any]) -> None:
        if self._handle is None:
            raise RuntimeError(f"JsonlWriter for {self.path} is not open")
        self._handle.write(json.dumps(record, ensure_ascii=False) + "\n")
        self._handle.flush()
        self.written += 1

    def close(self) -> None:
        if self._handle is not None:
            self._handle.close()
            self._handle = None

    @property
    def closed(self) -> bool:
        return self._handle is None

    def __enter__(self) -> "JsonlWriter":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()
