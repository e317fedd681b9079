"""
Progression Migration & Backup Manager

This module moves progression records between experience-curve revisions.
Every attempt follows the same flow:

1. BACKUP  - snapshot the record and checksum it
2. VERIFY  - implicit before any restore
3. MIGRATE - recompute the level on the current curve, never lowering it
4. LOG     - append an audit entry, whatever the outcome

The manager is the sole writer of its storage keys. No exception leaves the
public methods; failures come back as result objects with an ``error``.
"""

import json
import hashlib
import datetime
from typing import Any, Callable, Dict, List, Optional, Union

from practice_core.common.config import MigrationConfig, get_config
from practice_core.common.exceptions import IntegrityError, StorageError, ValidationError
from practice_core.common.logger import LoggerAdapter, app_logger
from practice_core.common.serialization import canonical_json
from practice_core.common.storage.base import KeyValueStorage
from practice_core.progression.curve import ExperienceCurve, default_curve
from practice_core.progression.models import (
    BackupRecord,
    BackupResult,
    BackupValidation,
    MigrationAction,
    MigrationLogEntry,
    MigrationResult,
    MigrationStats,
    ProgressionRecord,
    RestoreResult,
)

# Module logger
logger = app_logger.getChild("progression.migration")

RecordInput = Union[ProgressionRecord, Dict[str, Any]]


def compute_checksum(snapshot: Dict[str, Any]) -> str:
    """
    Compute the checksum of a record snapshot.

    SHA-256 over the canonical JSON form, so the digest is deterministic and
    sensitive to every field value.
    """
    return hashlib.sha256(canonical_json(snapshot).encode("utf-8")).hexdigest()


def _utcnow() -> datetime.datetime:
    return datetime.datetime.now(datetime.timezone.utc)


class MigrationManager:
    """
    Backup, verification, restore and migration of one progression record.

    Storage layout under ``<key_prefix>``:
    - ``:backup`` holds the single current backup
    - ``:migration_log`` holds the bounded audit log (oldest first)
    - ``:record`` holds the live record written by migrate and restore
    """

    def __init__(
        self,
        storage: KeyValueStorage,
        curve: Optional[ExperienceCurve] = None,
        config: Optional[MigrationConfig] = None,
        clock: Optional[Callable[[], datetime.datetime]] = None
    ):
        """
        Initialize the migration manager.

        Args:
            storage: Key-value storage capability
            curve: Current experience curve revision
            config: Migration configuration (key prefix, log cap)
            clock: Source of timestamps
        """
        self.storage = storage
        self.curve = curve or default_curve
        self.config = config or get_config().migration
        self.clock = clock or _utcnow

        prefix = self.config.key_prefix
        self.backup_key = f"{prefix}:backup"
        self.log_key = f"{prefix}:migration_log"
        self.record_key = f"{prefix}:record"

        self.log = LoggerAdapter(logger, {"storage": storage.name, "key_prefix": prefix})

    def _now(self) -> str:
        return self.clock().isoformat()

    @staticmethod
    def _coerce_record(record: RecordInput) -> ProgressionRecord:
        if isinstance(record, ProgressionRecord):
            record.validate()
            return record
        return ProgressionRecord.from_dict(record)

    # ------------------------------------------------------------------ #
    # Backup
    # ------------------------------------------------------------------ #

    def create_backup(self, record: RecordInput) -> BackupResult:
        """
        Snapshot a record into the backup slot.

        Args:
            record: Record to back up

        Returns:
            Backup result with the snapshot timestamp and checksum
        """
        try:
            progression = self._coerce_record(record)
            timestamp = self._now()
            snapshot = progression.to_dict()
            checksum = compute_checksum(snapshot)

            backup = BackupRecord(
                record=snapshot,
                timestamp=timestamp,
                checksum=checksum,
                schema_version=progression.schema_version
            )
            self.storage.set(self.backup_key, canonical_json(backup.to_dict()))

            self.append_log_entry(MigrationAction.BACKUP, True, f"Backup created at {timestamp}")
            self.log.info(f"Backup created at {timestamp}")
            return BackupResult(success=True, timestamp=timestamp, checksum=checksum)
        except Exception as e:
            self.append_log_entry(MigrationAction.BACKUP, False, "Failed to create backup", str(e))
            self.log.error(f"Failed to create backup: {e}")
            return BackupResult(success=False, error=str(e))

    def _load_backup(self) -> Optional[BackupRecord]:
        raw = self.storage.get(self.backup_key)
        if raw is None:
            return None
        try:
            data = json.loads(raw)
        except json.JSONDecodeError as e:
            raise ValidationError(f"backup is not valid JSON: {e}")
        return BackupRecord.from_dict(data)

    @staticmethod
    def _verify_checksum(backup: BackupRecord) -> None:
        actual = compute_checksum(backup.record)
        if actual != backup.checksum:
            raise IntegrityError(
                "backup data corrupted (checksum mismatch)",
                expected=backup.checksum,
                actual=actual
            )

    def validate_backup(self) -> BackupValidation:
        """
        Verify the stored backup.

        The backup must be present, carry its required fields, and its
        checksum must match the one recomputed from the stored snapshot.

        Returns:
            Validation outcome
        """
        try:
            backup = self._load_backup()
            if backup is None:
                self.append_log_entry(MigrationAction.VERIFY, False, "Backup validation failed", "No backup found")
                return BackupValidation(valid=False, error="No backup found")

            self._verify_checksum(backup)
            ProgressionRecord.from_dict(backup.record)

            self.append_log_entry(MigrationAction.VERIFY, True, "Backup validation successful")
            return BackupValidation(valid=True)
        except Exception as e:
            if isinstance(e, IntegrityError):
                self.log.warning(f"Backup integrity check failed: {e}")
            self.append_log_entry(MigrationAction.VERIFY, False, "Backup validation failed", str(e))
            return BackupValidation(valid=False, error=str(e))

    def restore_backup(self) -> RestoreResult:
        """
        Overwrite the live record with the stored backup.

        Refuses to touch live data unless the backup validates.

        Returns:
            Restore result carrying the restored record
        """
        try:
            validation = self.validate_backup()
            if not validation.valid:
                self.append_log_entry(
                    MigrationAction.ROLLBACK, False, "Restore refused: backup invalid", validation.error
                )
                return RestoreResult(success=False, error=validation.error)

            backup = self._load_backup()
            # Re-check: the slot could have changed since validation
            self._verify_checksum(backup)
            restored = ProgressionRecord.from_dict(backup.record)
            self.save_record(restored)

            self.append_log_entry(
                MigrationAction.ROLLBACK, True, f"Data restored from backup created at {backup.timestamp}"
            )
            self.log.info(f"Restored backup created at {backup.timestamp}")
            return RestoreResult(success=True, record=restored)
        except Exception as e:
            self.append_log_entry(MigrationAction.ROLLBACK, False, "Failed to restore backup", str(e))
            self.log.error(f"Failed to restore backup: {e}")
            return RestoreResult(success=False, error=str(e))

    def has_backup(self) -> bool:
        """Check whether the backup slot is filled."""
        try:
            return self.storage.get(self.backup_key) is not None
        except StorageError as e:
            self.log.error(f"Could not read backup slot: {e}")
            return False

    # ------------------------------------------------------------------ #
    # Live record slot
    # ------------------------------------------------------------------ #

    def load_record(self) -> Optional[ProgressionRecord]:
        """
        Read the live record written by migrate or restore.

        Returns:
            The stored record, or None when absent or unreadable
        """
        try:
            raw = self.storage.get(self.record_key)
            if raw is None:
                return None
            return ProgressionRecord.from_dict(json.loads(raw))
        except (StorageError, ValidationError, json.JSONDecodeError) as e:
            self.log.error(f"Could not load live record: {e}")
            return None

    def save_record(self, record: ProgressionRecord) -> None:
        """
        Write a record to the live slot.

        Raises:
            ValidationError: If the record is malformed
            StorageError: If the write fails
        """
        record.validate()
        self.storage.set(self.record_key, canonical_json(record.to_dict()))

    # ------------------------------------------------------------------ #
    # Migration
    # ------------------------------------------------------------------ #

    def needs_migration(self, record: RecordInput) -> bool:
        """
        Check whether a record predates the current curve revision.

        Side-effect free; safe to call on every load.
        """
        if isinstance(record, dict):
            version = record.get("schema_version")
        else:
            version = getattr(record, "schema_version", None)
        return version is None or version < self.curve.version

    def migrate_progression(self, record: RecordInput) -> MigrationResult:
        """
        Move a record onto the current curve without lowering its level.

        A backup is always taken first; if it fails nothing is changed. When
        the current curve would place the record at a lower level, experience
        is raised to the old level's requirement and the difference is
        reported as bonus experience.

        Args:
            record: Record to migrate

        Returns:
            Migration result; on success the adjusted record is also written
            to the live slot
        """
        migration_date = self._now()
        old_level = getattr(record, "level", None) if not isinstance(record, dict) else record.get("level")
        old_experience = (
            getattr(record, "experience", None) if not isinstance(record, dict) else record.get("experience")
        )

        def failure(error: str) -> MigrationResult:
            return MigrationResult(
                success=False,
                old_level=old_level,
                new_level=old_level,
                old_experience=old_experience,
                adjusted_experience=old_experience,
                migration_date=migration_date,
                error=error
            )

        try:
            progression = self._coerce_record(record)
        except Exception as e:
            self.append_log_entry(MigrationAction.MIGRATE, False, "Migration failed", str(e))
            return failure(str(e))

        backup_result = self.create_backup(progression)
        if not backup_result.success:
            error = f"Backup failed: {backup_result.error}"
            self.append_log_entry(MigrationAction.MIGRATE, False, "Migration aborted", error)
            return failure(error)

        try:
            old_level = progression.level
            old_experience = progression.experience
            new_level = self.curve.calculate_level(old_experience)
            # Levels above the cap are held at the cap
            kept_level = min(old_level, self.curve.max_level)

            adjusted_experience = old_experience
            bonus_experience = None
            reported_level = new_level

            if new_level < kept_level:
                target_exp = self.curve.experience_required_for_level(kept_level)
                bonus_experience = max(0, target_exp - old_experience)
                adjusted_experience = old_experience + bonus_experience
                reported_level = kept_level
                details = f"Level adjustment: {old_level} -> {new_level}, bonus experience: {bonus_experience}"
            else:
                details = f"Level migration: {old_level} -> {new_level}, no adjustment needed"

            migrated = ProgressionRecord(
                level=reported_level,
                experience=adjusted_experience,
                schema_version=self.curve.version,
                bonus_experience=bonus_experience,
                migration_date=migration_date
            )
            self.save_record(migrated)

            self.append_log_entry(MigrationAction.MIGRATE, True, details)
            self.log.info(details)

            return MigrationResult(
                success=True,
                old_level=old_level,
                new_level=reported_level,
                old_experience=old_experience,
                adjusted_experience=adjusted_experience,
                bonus_experience=bonus_experience,
                migration_date=migration_date,
                record=migrated
            )
        except Exception as e:
            self.append_log_entry(MigrationAction.MIGRATE, False, "Migration failed", str(e))
            self.log.error(f"Migration failed: {e}")
            return failure(str(e))

    def migrate_if_needed(self, record: RecordInput) -> Optional[MigrationResult]:
        """
        Migrate only records that predate the current curve revision.

        Returns:
            The migration result, or None when the record is already current
        """
        if not self.needs_migration(record):
            return None
        return self.migrate_progression(record)

    # ------------------------------------------------------------------ #
    # Audit log
    # ------------------------------------------------------------------ #

    def _read_log(self) -> List[Dict[str, Any]]:
        raw = self.storage.get(self.log_key)
        if raw is None:
            return []
        entries = json.loads(raw)
        if not isinstance(entries, list):
            raise ValidationError("migration log is not a list")
        return entries

    def append_log_entry(
        self,
        action: MigrationAction,
        success: bool,
        details: str,
        error: Optional[str] = None
    ) -> MigrationLogEntry:
        """
        Append an entry to the audit log, evicting the oldest past the cap.

        A storage failure here is logged and otherwise ignored, so it never
        masks the outcome of the operation being audited.

        Returns:
            The entry that was appended
        """
        entry = MigrationLogEntry(
            timestamp=self._now(),
            action=action,
            success=success,
            details=details,
            error=error
        )

        try:
            entries = self._read_log()
            entries.append(entry.to_dict())
            overflow = len(entries) - self.config.max_log_entries
            if overflow > 0:
                del entries[:overflow]
            self.storage.set(self.log_key, json.dumps(entries, ensure_ascii=False))
        except (StorageError, ValidationError, json.JSONDecodeError) as e:
            self.log.error(f"Failed to write migration log entry: {e}")

        return entry

    def get_migration_logs(self, limit: Optional[int] = None) -> List[MigrationLogEntry]:
        """
        Read the most recent audit entries.

        Args:
            limit: Maximum number of entries (defaults to the configured limit)

        Returns:
            Entries ordered oldest to newest
        """
        limit = self.config.default_log_limit if limit is None else limit
        if limit <= 0:
            return []

        try:
            entries = self._read_log()
            return [MigrationLogEntry.from_dict(item) for item in entries[-limit:]]
        except (StorageError, ValidationError, ValueError) as e:
            self.log.error(f"Failed to load migration logs: {e}")
            return []

    def clear_migration_logs(self) -> bool:
        """
        Delete the audit log.

        Returns:
            True when the log was removed
        """
        try:
            self.storage.remove(self.log_key)
            return True
        except StorageError as e:
            self.log.error(f"Failed to clear migration logs: {e}")
            return False

    def get_migration_stats(self) -> MigrationStats:
        """Summarize the migrate entries of the audit log."""
        migrations = [
            entry for entry in self.get_migration_logs(self.config.max_log_entries)
            if entry.action == MigrationAction.MIGRATE
        ]
        successful = sum(1 for entry in migrations if entry.success)

        return MigrationStats(
            total_migrations=len(migrations),
            successful_migrations=successful,
            failed_migrations=len(migrations) - successful,
            last_migration=migrations[-1].timestamp if migrations else None,
            has_backup=self.has_backup()
        )
