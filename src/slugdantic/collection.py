from __future__ import annotations

from pathlib import Path
from typing import Any, Container, Generic, Iterator, List, Mapping, Optional, Protocol, TypeVar
from uuid import uuid4
import weakref

from loguru import logger
from pydantic import BaseModel

from .exceptions import MissingPathError, SlugConflictError, UnknownFormatError
from .handlers import FileHandler, JsonHandler, YamlHandler

T = TypeVar("T", bound=BaseModel)

FORMAT_REGISTRY: Mapping[str, type[FileHandler]] = {
    "json": JsonHandler,
    "yaml": YamlHandler,
    "yml": YamlHandler,
}


class SaveStage(Protocol):
    """A step run on a record right before the collection writes it.

    A stage may only assign ``field`` on the record. ``exclude`` lists values
    of that field known to be taken by a concurrent writer.
    """

    field: str

    def __call__(self, record: Any, store: "Collection[Any]", *, exclude: Container[str] = ()) -> None:
        ...


def _resolve_handler(name: str) -> FileHandler:
    try:
        handler_cls = FORMAT_REGISTRY[name.lower()]
    except KeyError as exc:
        raise UnknownFormatError(f"Unsupported format '{name}'") from exc
    return handler_cls()


class Collection(Generic[T]):
    """Disk-backed store of Pydantic records, one file per record.

    Parameters
    ----------
    model:
        Pydantic model type used to validate each record found on disk.
    path:
        Root directory where files live. Created automatically if missing.
    format:
        Named handler for the files (``"json"`` or ``"yaml"``).
    key_field:
        Field whose value names the record's file. Files are created
        exclusively, so two records can never hold the same key: the second
        writer gets :class:`SlugConflictError`. Records with an empty key are
        stored under a random name.
    conflict_retries:
        How many times :meth:`save` re-runs the stages after a key conflict,
        with the conflicting value excluded, before giving up.

    Records remain plain Pydantic models; the file behind each instance is
    tracked separately, keyed by object identity.
    """

    def __init__(
        self,
        model: type[T],
        path: Path | str,
        *,
        format: str = "yaml",
        key_field: str = "slug",
        conflict_retries: int = 1,
    ) -> None:
        self.model = model
        self.root = Path(path).expanduser().resolve()
        self.root.mkdir(parents=True, exist_ok=True)
        self.key_field = key_field
        self.conflict_retries = conflict_retries
        self._handler = _resolve_handler(format)
        self._stages: List[SaveStage] = []

        self._model_cache: dict[Path, T] = {}
        self._path_refs: dict[int, tuple[weakref.ReferenceType[T], Path]] = {}

    def register_stage(self, stage: SaveStage) -> SaveStage:
        """Run ``stage`` before every save, after the stages already registered."""
        self._stages.append(stage)
        return stage

    # Lookups -----------------------------------------------------------
    def __iter__(self) -> Iterator[T]:
        for path in sorted(self.root.glob(f"*{self._handler.extension}")):
            yield self._load_model(path)

    def __len__(self) -> int:
        return sum(1 for _ in self.root.glob(f"*{self._handler.extension}"))

    def find_one_by(self, field: str, value: Any) -> Optional[T]:
        """Return any stored record whose ``field`` equals ``value``."""
        for item in self:
            if getattr(item, field, None) == value:
                return item
        return None

    def find_one_by_slug(self, slug: str) -> Optional[T]:
        return self.find_one_by(self.key_field, slug)

    def get_by_key(self, key: str) -> Optional[T]:
        """Load the record stored under ``key``, e.g. a slug taken from a URL."""
        path = self.root / f"{key}{self._handler.extension}"
        if not path.is_file():
            return None
        return self._load_model(path)

    def is_same(self, left: T, right: T) -> bool:
        """Tell whether two instances stand for the same stored record."""
        if left is right:
            return True
        path = self._lookup_path(left)
        return path is not None and path == self._lookup_path(right)

    # Lifecycle operations ----------------------------------------------
    def save(self, model: T) -> Path:
        """Run the registered stages on ``model`` and write it.

        A key conflict raised by the write is retried up to
        ``conflict_retries`` times: stage fields are restored, the stages run
        again with the conflicting value excluded, and the write is repeated.
        When the save fails for good the stage fields are restored as well.
        """
        snapshot = {stage.field: getattr(model, stage.field, None) for stage in self._stages}
        excluded: set[str] = set()
        attempts = 0
        try:
            while True:
                for stage in self._stages:
                    stage(model, self, exclude=frozenset(excluded))
                try:
                    return self._commit(model)
                except SlugConflictError as exc:
                    if attempts >= self.conflict_retries or exc.field not in snapshot:
                        raise
                    attempts += 1
                    excluded.add(exc.value)
                    logger.warning("Retrying save of {}: {}", type(model).__name__, exc)
                    self._restore(model, snapshot)
        except BaseException:
            self._restore(model, snapshot)
            raise

    def delete(self, model: T) -> None:
        path = self._lookup_path(model)
        if path is None:
            raise MissingPathError("Model has no associated path; cannot delete")
        self._path_refs.pop(id(model), None)
        self._model_cache.pop(path, None)
        path.unlink(missing_ok=True)

    # Internal helpers --------------------------------------------------
    @staticmethod
    def _restore(model: T, snapshot: dict[str, Any]) -> None:
        for name, value in snapshot.items():
            setattr(model, name, value)

    def _commit(self, model: T) -> Path:
        data = model.model_dump()
        current = self._lookup_path(model)
        key = getattr(model, self.key_field, None)
        target = self.root / f"{key}{self._handler.extension}" if key else None

        if current is not None and (target is None or target == current):
            self._handler.write(current, data)
            self._model_cache[current] = model
            return current

        if target is None:
            target = self.root / (uuid4().hex + self._handler.extension)
        try:
            self._handler.write(target, data, exclusive=True)
        except FileExistsError as exc:
            raise SlugConflictError(self.key_field, str(key), target) from exc

        if current is not None:
            self._model_cache.pop(current, None)
            current.unlink(missing_ok=True)
        self._register_model(model, target)
        self._model_cache[target] = model
        return target

    def _register_model(self, model: T, path: Path) -> None:
        model_id = id(model)

        def _cleanup(_: weakref.ReferenceType[T]) -> None:
            self._path_refs.pop(model_id, None)

        ref = weakref.ref(model, _cleanup)
        self._path_refs[model_id] = (ref, path)

    def _load_model(self, path: Path) -> T:
        if path in self._model_cache:
            return self._model_cache[path]
        instance = self.model.model_validate(self._handler.read(path))
        self._register_model(instance, path)
        self._model_cache[path] = instance
        return instance

    def _lookup_path(self, model: T) -> Path | None:
        entry = self._path_refs.get(id(model))
        if not entry:
            return None
        ref, path = entry
        if ref() is None:
            self._path_refs.pop(id(model), None)
            return None
        return path
