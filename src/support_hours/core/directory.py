"""Storage for properties, residents and support workers."""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any, Callable, Generic, Protocol, TypeVar

import portalocker

from .exceptions import NotFoundError, RepositoryError, ValidationError
from .models import Property, Resident, SupportWorker
from .paths import (
    PROPERTIES_FILENAME,
    RESIDENTS_FILENAME,
    WORKERS_FILENAME,
    properties_path,
    residents_path,
    workers_path,
)

MAX_PROPERTY_CAPACITY = 50


class _Record(Protocol):
    is_active: bool

    @property
    def record_id(self) -> str: ...

    def to_json_dict(self) -> dict[str, Any]: ...


RecordT = TypeVar("RecordT", bound=_Record)


class DirectoryStore(Generic[RecordT]):
    """Handles CRUD operations for one kind of directory record.

    Records are kept as a JSON array and are never removed; ``deactivate``
    clears ``is_active`` instead.
    """

    def __init__(
        self,
        path: Path,
        entity: str,
        loader: Callable[[dict[str, Any]], RecordT],
        lock_timeout: float = 10.0,
        logger: logging.Logger | None = None,
    ) -> None:
        self._path = Path(path)
        self._path.parent.mkdir(parents=True, exist_ok=True)
        if not self._path.exists():
            self._path.write_text("[]", encoding="utf-8")
        self._entity = entity
        self._loader = loader
        self._lock_timeout = lock_timeout
        self._logger = logger or logging.getLogger(f"support_hours.directory.{entity.lower()}")

    @property
    def entity(self) -> str:
        return self._entity

    # ------------------------------------------------------------------
    def list_all(self, *, active_only: bool = False) -> list[RecordT]:
        records = self._load()
        if active_only:
            records = [record for record in records if record.is_active]
        return records

    def find_by_id(self, record_id: str) -> RecordT | None:
        for record in self._load():
            if record.record_id == record_id:
                return record
        return None

    def get(self, record_id: str) -> RecordT:
        record = self.find_by_id(record_id)
        if record is None:
            raise NotFoundError(self._entity, record_id)
        return record

    def add(self, record: RecordT) -> RecordT:
        records = self._load()
        if any(existing.record_id == record.record_id for existing in records):
            raise RepositoryError(f"{self._entity} id already exists: {record.record_id}")
        records.append(record)
        self._save(records)
        self._logger.info(
            "Added record",
            extra={"event": "directory_add", "entity": self._entity, "record_id": record.record_id},
        )
        return record

    def update(self, record: RecordT) -> RecordT:
        records = self._load()
        for index, existing in enumerate(records):
            if existing.record_id == record.record_id:
                records[index] = record
                break
        else:
            raise NotFoundError(self._entity, record.record_id)
        self._save(records)
        self._logger.info(
            "Updated record",
            extra={"event": "directory_update", "entity": self._entity, "record_id": record.record_id},
        )
        return record

    def deactivate(self, record_id: str) -> RecordT:
        record = self.get(record_id)
        record.is_active = False
        return self.update(record)

    # ------------------------------------------------------------------
    def _load(self) -> list[RecordT]:
        try:
            with portalocker.Lock(
                self._path,
                mode="r",
                timeout=self._lock_timeout,
                flags=portalocker.LockFlags.SHARED | portalocker.LockFlags.NON_BLOCKING,
                encoding="utf-8",
            ) as locked_file:
                try:
                    data = json.load(locked_file)
                except json.JSONDecodeError as exc:
                    self._logger.exception("%s file malformed", self._entity)
                    raise RepositoryError(f"Unable to read {self._entity.lower()} records") from exc
        except FileNotFoundError:
            self._path.write_text("[]", encoding="utf-8")
            return []
        except RepositoryError:
            raise
        except Exception as exc:
            self._logger.exception("Unable to read %s file", self._entity)
            raise RepositoryError(f"Unable to read {self._entity.lower()} records") from exc

        records: list[RecordT] = []
        for index, item in enumerate(data if isinstance(data, list) else []):
            try:
                records.append(self._loader(item))
            except (KeyError, TypeError, ValueError):
                self._logger.exception(
                    "Skipping malformed record",
                    extra={"event": "directory_skip_invalid", "entity": self._entity, "record_index": index},
                )
        return records

    def _save(self, records: list[RecordT]) -> None:
        payload = [record.to_json_dict() for record in records]
        try:
            with portalocker.Lock(
                self._path,
                mode="w",
                timeout=self._lock_timeout,
                flags=portalocker.LockFlags.EXCLUSIVE | portalocker.LockFlags.NON_BLOCKING,
                encoding="utf-8",
            ) as locked_file:
                json.dump(payload, locked_file, ensure_ascii=False, indent=2)
                locked_file.flush()
        except Exception as exc:
            self._logger.exception("Unable to save %s file", self._entity)
            raise RepositoryError(f"Unable to save {self._entity.lower()} records") from exc


class Directory:
    """The three directory stores the scheduling engine reads from."""

    def __init__(self, base_dir: Path | None = None, lock_timeout: float = 10.0) -> None:
        def _path(filename: str, default: Callable[[], Path]) -> Path:
            return base_dir / filename if base_dir is not None else default()

        self.properties: DirectoryStore[Property] = DirectoryStore(
            _path(PROPERTIES_FILENAME, properties_path), "Property", Property.from_json_dict, lock_timeout
        )
        self.residents: DirectoryStore[Resident] = DirectoryStore(
            _path(RESIDENTS_FILENAME, residents_path), "Resident", Resident.from_json_dict, lock_timeout
        )
        self.workers: DirectoryStore[SupportWorker] = DirectoryStore(
            _path(WORKERS_FILENAME, workers_path), "SupportWorker", SupportWorker.from_json_dict, lock_timeout
        )

    def update_property(self, record: Property) -> Property:
        errors: dict[str, str] = {}
        if not record.name.strip():
            errors["name"] = "This field is required."
        if not 1 <= record.max_capacity <= MAX_PROPERTY_CAPACITY:
            errors["max_capacity"] = f"Capacity must be between 1 and {MAX_PROPERTY_CAPACITY}."
        if errors:
            raise ValidationError(errors, "Please provide valid property information")
        return self.properties.update(record)

    def deactivate_property(self, property_id: str) -> Property:
        """Retire a property; refused while active residents still live there."""
        self.properties.get(property_id)
        housed = [
            resident
            for resident in self.residents.list_all(active_only=True)
            if resident.property_id == property_id
        ]
        if housed:
            raise ValidationError(
                {"property_id": "Cannot deactivate a property with active residents. Move residents first."}
            )
        return self.properties.deactivate(property_id)

    def update_resident(self, record: Resident) -> Resident:
        errors: dict[str, str] = {}
        if not record.name.strip():
            errors["name"] = "This field is required."
        if record.monthly_support_hours < 0:
            errors["monthly_support_hours"] = "Monthly hours cannot be negative."
        if record.start_date and record.end_date and record.end_date < record.start_date:
            errors["end_date"] = "End date cannot be before the start date."
        if errors:
            raise ValidationError(errors, "Please provide valid resident information")
        if record.property_id is not None:
            self.properties.get(record.property_id)
        return self.residents.update(record)

    def update_worker(self, record: SupportWorker) -> SupportWorker:
        errors: dict[str, str] = {}
        if not record.name.strip():
            errors["name"] = "This field is required."
        if record.max_hours_per_week < 0:
            errors["max_hours_per_week"] = "Hours cannot be negative."
        if record.max_hours_per_month < 0:
            errors["max_hours_per_month"] = "Hours cannot be negative."
        if errors:
            raise ValidationError(errors, "Please provide valid support worker information")
        return self.workers.update(record)
