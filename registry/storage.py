"""
DSS Collection - Registry Storage Backend

This module provides JSON-based persistence of the registry document with an
exclusive fcntl lock, atomic write-and-rename, optional gzip compression,
checksums and rotating backups.
"""

import fcntl
import gzip
import hashlib
import json
import logging
import os
import shutil
import time
from contextlib import contextmanager
from datetime import datetime
from pathlib import Path
from threading import RLock
from typing import Any, Dict, List, Optional, Union

from pydantic import ValidationError

from .exceptions import InvalidArgumentError
from .schema import RegistryState


class StorageError(Exception):
    """Base storage exception."""
    pass


class LockTimeoutError(StorageError):
    """Lock acquisition timeout exception."""
    pass


class IntegrityError(StorageError):
    """Stored document is unreadable or fails validation."""
    pass


class FileLock:
    """
    Exclusive fcntl.flock on a lock file next to the target.

    The lock file stays on disk between holders. The kernel drops the flock
    when the holding process exits, so a crashed holder never blocks later
    callers; the pid written into the file is informational only.
    """

    def __init__(self, file_path: Union[str, Path], timeout: float = 30.0,
                 poll_interval: float = 0.05):
        self.file_path = Path(file_path)
        self.lock_file_path = self.file_path.with_suffix(self.file_path.suffix + '.lock')
        self.timeout = timeout
        self.poll_interval = poll_interval
        self.lock_fd: Optional[int] = None
        self._thread_lock = RLock()
        self._depth = 0

    def acquire(self) -> None:
        """Acquire the lock or raise LockTimeoutError."""
        self._thread_lock.acquire()
        if self.lock_fd is not None:
            # Re-entrant use from the same thread
            self._depth += 1
            return

        try:
            fd = os.open(str(self.lock_file_path), os.O_CREAT | os.O_RDWR, 0o644)
        except OSError as e:
            self._thread_lock.release()
            raise StorageError(f"Failed to open lock file: {e}") from e

        deadline = time.monotonic() + self.timeout
        while True:
            try:
                fcntl.flock(fd, fcntl.LOCK_EX | fcntl.LOCK_NB)
                break
            except BlockingIOError:
                if time.monotonic() >= deadline:
                    holder = self.holder_pid()
                    os.close(fd)
                    self._thread_lock.release()
                    raise LockTimeoutError(
                        f"Failed to acquire lock on {self.file_path} within {self.timeout} seconds"
                        + (f" (held by pid {holder})" if holder else "")
                    )
                time.sleep(self.poll_interval)
            except OSError as e:
                os.close(fd)
                self._thread_lock.release()
                raise StorageError(f"Failed to acquire lock: {e}") from e

        os.ftruncate(fd, 0)
        os.write(fd, str(os.getpid()).encode('ascii'))
        self.lock_fd = fd
        self._depth = 1

    def release(self) -> None:
        """Release the lock."""
        if self.lock_fd is None:
            return
        try:
            self._depth -= 1
            if self._depth == 0:
                fcntl.flock(self.lock_fd, fcntl.LOCK_UN)
                os.close(self.lock_fd)
                self.lock_fd = None
        finally:
            self._thread_lock.release()

    def holder_pid(self) -> Optional[int]:
        """Pid recorded by the last holder, if readable."""
        try:
            return int(self.lock_file_path.read_text().strip())
        except (OSError, ValueError):
            return None

    def __enter__(self):
        self.acquire()
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.release()


class JSONStorage:
    """JSON document storage with atomic writes and backups."""

    def __init__(
        self,
        file_path: Union[str, Path],
        compressed: bool = False,
        backup_count: int = 5,
        lock_timeout: float = 30.0
    ):
        self.logger = logging.getLogger(__name__)
        self.file_path = Path(file_path)
        self.compressed = compressed
        self.backup_count = backup_count
        self.lock = FileLock(self.file_path, timeout=lock_timeout)

        self.file_path.parent.mkdir(parents=True, exist_ok=True)

    @property
    def backup_dir(self) -> Path:
        return self.file_path.parent / 'backups'

    def _calculate_checksum(self, data: bytes) -> str:
        """Calculate SHA-256 checksum of data."""
        return hashlib.sha256(data).hexdigest()

    def _read_file(self) -> bytes:
        """Read raw file data."""
        opener = gzip.open if self.compressed else open
        with opener(self.file_path, 'rb') as f:
            return f.read()

    def _write_file(self, data: Dict[str, Any]) -> None:
        """Write data to a temporary file and rename it into place."""
        json_data = json.dumps(data, indent=2, default=str).encode('utf-8')
        temp_file = self.file_path.with_suffix(self.file_path.suffix + '.tmp')

        try:
            opener = gzip.open if self.compressed else open
            with opener(temp_file, 'wb') as f:
                f.write(json_data)
            os.replace(temp_file, self.file_path)
        except OSError as e:
            if temp_file.exists():
                temp_file.unlink()
            raise StorageError(f"Failed to write {self.file_path}: {e}") from e

    def _create_backup(self) -> None:
        """Create timestamped backup of current file."""
        if not self.file_path.exists():
            return

        timestamp = datetime.now().strftime('%Y%m%d_%H%M%S_%f')
        backup_path = self.backup_dir / f"{self.file_path.stem}_{timestamp}{self.file_path.suffix}"
        backup_path.parent.mkdir(parents=True, exist_ok=True)
        shutil.copy2(self.file_path, backup_path)

        self._cleanup_old_backups()

    def _cleanup_old_backups(self) -> None:
        """Remove backups beyond backup_count, oldest first."""
        for backup_file in self.list_backups()[self.backup_count:]:
            try:
                backup_file.unlink()
            except OSError as e:
                self.logger.warning(f"Failed to remove old backup {backup_file}: {e}")

    @contextmanager
    def locked(self):
        """Hold the storage lock across several operations."""
        with self.lock:
            yield self

    def read(self) -> Dict[str, Any]:
        """Read and deserialize the document; missing or empty files read as {}."""
        with self.lock:
            if not self.file_path.exists():
                return {}
            try:
                data = self._read_file()
            except OSError as e:
                raise StorageError(f"Failed to read {self.file_path}: {e}") from e

            if not data:
                return {}

            try:
                return json.loads(data.decode('utf-8'))
            except (json.JSONDecodeError, UnicodeDecodeError) as e:
                raise IntegrityError(f"Invalid JSON data in {self.file_path}: {e}") from e

    def write(self, data: Dict[str, Any], create_backup: bool = True) -> str:
        """Write the document atomically and return its checksum."""
        with self.lock:
            if create_backup and self.backup_count > 0:
                self._create_backup()
            self._write_file(data)
            return self._calculate_checksum(self._read_file())

    def exists(self) -> bool:
        return self.file_path.exists()

    def size(self) -> int:
        if not self.file_path.exists():
            return 0
        return self.file_path.stat().st_size

    def checksum(self) -> Optional[str]:
        if not self.file_path.exists():
            return None
        return self._calculate_checksum(self._read_file())

    def verify(self, expected_checksum: Optional[str] = None) -> bool:
        """Check the file is readable and, if given, matches a checksum."""
        if not self.file_path.exists():
            return False
        try:
            data = self._read_file()
        except OSError:
            return False
        if expected_checksum:
            return self._calculate_checksum(data) == expected_checksum
        return True

    def list_backups(self) -> List[Path]:
        """Backup files, newest first."""
        if not self.backup_dir.exists():
            return []
        pattern = f"{self.file_path.stem}_*{self.file_path.suffix}"
        return sorted(self.backup_dir.glob(pattern), key=lambda p: p.name, reverse=True)

    def restore_backup(self, backup_timestamp: str) -> bool:
        """Restore from a specific backup."""
        backup_path = self.backup_dir / f"{self.file_path.stem}_{backup_timestamp}{self.file_path.suffix}"
        if not backup_path.exists():
            return False

        with self.lock:
            self._create_backup()
            shutil.copy2(backup_path, self.file_path)
            return True


class RegistryStorage:
    """High-level registry document storage."""

    def __init__(
        self,
        storage_dir: Union[str, Path] = "dss_data",
        compressed: bool = False,
        backup_count: int = 5,
        lock_timeout: float = 30.0
    ):
        self.storage_dir = Path(storage_dir)
        self.storage_dir.mkdir(parents=True, exist_ok=True)

        filename = "registry.json.gz" if compressed else "registry.json"
        self.json_storage = JSONStorage(
            self.storage_dir / filename,
            compressed=compressed,
            backup_count=backup_count,
            lock_timeout=lock_timeout
        )

    def locked(self):
        """Hold the storage lock for a load-modify-save cycle."""
        return self.json_storage.locked()

    def load_state(self) -> RegistryState:
        """Load the registry document; a missing file yields an empty registry."""
        data = self.json_storage.read()
        if not data:
            return RegistryState()
        try:
            return RegistryState.model_validate(data)
        except (ValidationError, InvalidArgumentError) as e:
            raise IntegrityError(f"Stored registry document is invalid: {e}") from e

    def save_state(self, state: RegistryState) -> str:
        """Persist the registry document and return its checksum."""
        return self.json_storage.write(state.model_dump(mode='json'))

    def list_backups(self) -> List[str]:
        """Backup timestamps, newest first."""
        prefix = f"{self.json_storage.file_path.stem}_"
        suffix = self.json_storage.file_path.suffix
        return [
            backup.name[len(prefix):len(backup.name) - len(suffix)]
            for backup in self.json_storage.list_backups()
        ]

    def restore_backup(self, timestamp: str) -> bool:
        return self.json_storage.restore_backup(timestamp)

    def verify(self, expected_checksum: Optional[str] = None) -> Dict[str, Any]:
        """
        Check the stored document loads as a valid registry.

        Raises:
            IntegrityError: If the document is unreadable or invalid
        """
        with self.locked():
            if not self.json_storage.exists():
                return {'exists': False, 'valid': True, 'checksum': None}

            state = self.load_state()
            result = {
                'exists': True,
                'valid': True,
                'checksum': self.json_storage.checksum(),
                'groups': len(state.groups),
                'total_supply': state.total_supply,
            }
            if expected_checksum:
                result['checksum_matches'] = self.json_storage.verify(expected_checksum)
            return result

    def get_storage_info(self) -> Dict[str, Any]:
        return {
            'file_path': str(self.json_storage.file_path),
            'compressed': self.json_storage.compressed,
            'size_bytes': self.json_storage.size(),
            'exists': self.json_storage.exists(),
            'backup_count': len(self.json_storage.list_backups()),
        }
