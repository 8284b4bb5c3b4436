from __future__ import annotations

from abc import ABC, abstractmethod
from collections.abc import Mapping
from pathlib import Path
from typing import Any

import orjson
import yaml


class FileHandler(ABC):
    """Abstract interface for storing one record payload per file.

    ``write`` with ``exclusive=True`` must fail with :class:`FileExistsError`
    when the target already exists; the collection relies on it to enforce
    unique slugs at the storage level.
    """

    extension: str

    @abstractmethod
    def read(self, path: Path) -> dict[str, Any]:
        """Read the file and return a dictionary payload for Pydantic."""

    @abstractmethod
    def dumps(self, data: Mapping[str, Any]) -> bytes:
        """Serialize a dictionary payload."""

    def write(self, path: Path, data: Mapping[str, Any], *, exclusive: bool = False) -> None:
        payload = self.dumps(data)
        path.parent.mkdir(parents=True, exist_ok=True)
        with path.open("xb" if exclusive else "wb") as fh:
            fh.write(payload)


class JsonHandler(FileHandler):
    extension = ".json"

    def read(self, path: Path) -> dict[str, Any]:
        payload = orjson.loads(path.read_bytes())
        if not isinstance(payload, dict):
            raise ValueError(f"JSON file {path} did not produce an object")
        return payload

    def dumps(self, data: Mapping[str, Any]) -> bytes:
        return orjson.dumps(dict(data), option=orjson.OPT_INDENT_2) + b"\n"


class YamlHandler(FileHandler):
    extension = ".yaml"

    def read(self, path: Path) -> dict[str, Any]:
        with path.open("r", encoding="utf-8") as fh:
            payload = yaml.safe_load(fh) or {}
        if not isinstance(payload, dict):
            raise ValueError(f"YAML file {path} did not produce a mapping")
        return payload

    def dumps(self, data: Mapping[str, Any]) -> bytes:
        return yaml.safe_dump(dict(data), allow_unicode=True, sort_keys=False).encode("utf-8")
