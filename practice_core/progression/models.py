"""
Progression Models

Data models for the progression record and for the backup/migration
workflow: stored backups, audit log entries and the status objects returned
by the migration manager.
"""

import enum
from dataclasses import dataclass
from typing import Any, Dict, Optional

from practice_core.common.exceptions import ValidationError
from practice_core.common.serialization import SerializableMixin


def _is_int(value: Any) -> bool:
    return isinstance(value, int) and not isinstance(value, bool)


@dataclass
class ProgressionRecord(SerializableMixin):
    """
    A player's level and experience.

    Owned and mutated by the caller; the core only writes an adjusted copy
    back to storage during migration or restore.
    """

    __serializable_fields__ = [
        "level", "experience", "schema_version", "bonus_experience", "migration_date"
    ]

    __optional_fields__ = [
        "schema_version", "bonus_experience", "migration_date"
    ]

    level: int = 1
    experience: int = 0
    schema_version: Optional[int] = None
    bonus_experience: Optional[int] = None
    migration_date: Optional[str] = None

    def validate(self) -> None:
        """
        Check field types and ranges.

        Raises:
            ValidationError: If any field is malformed
        """
        errors = {}
        if not _is_int(self.level) or self.level < 1:
            errors["level"] = f"must be an integer >= 1, got {self.level!r}"
        if not _is_int(self.experience) or self.experience < 0:
            errors["experience"] = f"must be an integer >= 0, got {self.experience!r}"
        if self.schema_version is not None and not _is_int(self.schema_version):
            errors["schema_version"] = f"must be an integer, got {self.schema_version!r}"
        if self.bonus_experience is not None and (
            not _is_int(self.bonus_experience) or self.bonus_experience < 0
        ):
            errors["bonus_experience"] = f"must be an integer >= 0, got {self.bonus_experience!r}"

        if errors:
            raise ValidationError(f"invalid progression record ({', '.join(sorted(errors))})", errors)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'ProgressionRecord':
        """
        Create a validated record from a dictionary.

        Raises:
            ValidationError: If required fields are missing or malformed
        """
        if not isinstance(data, dict):
            raise ValidationError(f"progression record must be a mapping, got {type(data).__name__}")

        missing = [name for name in ("level", "experience") if name not in data]
        if missing:
            raise ValidationError(
                "missing required fields",
                {name: "required" for name in missing}
            )

        record = cls(**{
            name: data[name] for name in cls.__serializable_fields__ if name in data
        })
        record.validate()
        return record


class MigrationAction(enum.Enum):
    """Actions recorded in the migration audit log."""
    BACKUP = "backup"
    VERIFY = "verify"
    MIGRATE = "migrate"
    ROLLBACK = "rollback"


@dataclass
class MigrationLogEntry(SerializableMixin):
    """One audit log entry."""

    __serializable_fields__ = ["timestamp", "action", "success", "details", "error"]
    __optional_fields__ = ["error"]

    timestamp: str
    action: MigrationAction
    success: bool
    details: str
    error: Optional[str] = None

    def __post_init__(self):
        if isinstance(self.action, str):
            self.action = MigrationAction(self.action)


@dataclass
class BackupRecord(SerializableMixin):
    """The stored backup slot: a record snapshot and its checksum."""

    __serializable_fields__ = ["record", "timestamp", "schema_version", "checksum"]
    __optional_fields__ = ["schema_version"]

    record: Dict[str, Any]
    timestamp: str
    checksum: str
    schema_version: Optional[int] = None

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'BackupRecord':
        """
        Create a backup from its stored form.

        Raises:
            ValidationError: If required fields are missing or empty
        """
        if not isinstance(data, dict):
            raise ValidationError("backup data is not a mapping")

        missing = [
            name for name in ("record", "timestamp", "checksum")
            if not data.get(name)
        ]
        if missing:
            raise ValidationError(
                "backup data incomplete",
                {name: "required" for name in missing}
            )
        if not isinstance(data["record"], dict):
            raise ValidationError("backup snapshot is not a mapping", {"record": "must be a mapping"})

        return cls(
            record=data["record"],
            timestamp=data["timestamp"],
            checksum=data["checksum"],
            schema_version=data.get("schema_version")
        )


@dataclass
class BackupResult(SerializableMixin):
    """Outcome of creating a backup."""

    __serializable_fields__ = ["success", "timestamp", "checksum", "error"]
    __optional_fields__ = ["timestamp", "checksum", "error"]

    success: bool
    timestamp: Optional[str] = None
    checksum: Optional[str] = None
    error: Optional[str] = None


@dataclass
class BackupValidation(SerializableMixin):
    """Outcome of verifying the stored backup."""

    __serializable_fields__ = ["valid", "error"]
    __optional_fields__ = ["error"]

    valid: bool
    error: Optional[str] = None


@dataclass
class RestoreResult(SerializableMixin):
    """Outcome of restoring the stored backup over live data."""

    __serializable_fields__ = ["success", "record", "error"]
    __optional_fields__ = ["record", "error"]

    success: bool
    record: Optional[ProgressionRecord] = None
    error: Optional[str] = None


@dataclass
class MigrationResult(SerializableMixin):
    """
    Outcome of migrating a record to the current curve revision.

    ``bonus_experience`` is present only when the record was topped up to
    keep its level.
    """

    __serializable_fields__ = [
        "success", "old_level", "new_level", "old_experience",
        "adjusted_experience", "bonus_experience", "migration_date",
        "record", "error"
    ]

    __optional_fields__ = ["bonus_experience", "record", "error"]

    success: bool
    old_level: int
    new_level: int
    old_experience: int
    adjusted_experience: int
    migration_date: str
    bonus_experience: Optional[int] = None
    record: Optional[ProgressionRecord] = None
    error: Optional[str] = None


@dataclass
class MigrationStats(SerializableMixin):
    """Summary of the migration entries in the audit log."""

    __serializable_fields__ = [
        "total_migrations", "successful_migrations", "failed_migrations",
        "last_migration", "has_backup"
    ]

    __optional_fields__ = ["last_migration"]

    total_migrations: int
    successful_migrations: int
    failed_migrations: int
    has_backup: bool
    last_migration: Optional[str] = None
