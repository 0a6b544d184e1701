"""JSON-file backed record store.

The whole collection lives in one JSON file. Writers never touch that
file in place: they serialize to a temporary file in the same directory,
fsync it and ``os.replace`` it over the target, so readers see either the
old or the new collection and a failed write leaves the old one intact.

Access is coordinated with ``flock`` on a sidecar ``<file>.lock``: readers
take a shared lock, writers an exclusive one, both non-blocking with a
bounded backoff. The exclusive lock covers only the write itself, not the
read-modify-write cycle around it, so two concurrent updates can still
race and the last write wins (lost update). Callers that need stronger
guarantees must serialize at a higher level.
"""
import fcntl
import json
import logging
import os
import shutil
import tempfile
import time
import uuid
from contextlib import contextmanager
from datetime import datetime, timedelta, timezone
from typing import Callable, Generic, List, Optional, Sequence, Type, TypeVar, Union
from uuid import UUID

from pydantic import TypeAdapter, ValidationError

from ticketdesk.core.errors import CorruptedDataError, StorageUnavailableError
from ticketdesk.models.records import Record

LOG = logging.getLogger(__name__)

# Delays between attempts, in seconds: one initial try plus three retries.
RETRY_DELAYS = (0.1, 0.2, 0.4)

R = TypeVar("R", bound=Record)


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class FileRecordStore(Generic[R]):
    """CRUD over an ordered collection of ``record_type`` records."""

    def __init__(
        self,
        file_path: str,
        record_type: Type[R],
        *,
        clock: Callable[[], datetime] = utcnow,
        sleep: Callable[[float], None] = time.sleep,
        retry_delays: Sequence[float] = RETRY_DELAYS,
    ):
        self.file_path = file_path
        self.lock_path = file_path + ".lock"
        self.record_type = record_type
        self._adapter = TypeAdapter(List[record_type])
        self._clock = clock
        self._sleep = sleep
        self._retry_delays = tuple(retry_delays)

    # -- public API ------------------------------------------------------

    def create(self, record: R) -> R:
        """Assign id and timestamps, append and persist. Returns the stored record."""
        records = self._load_for_write()
        existing_ids = {r.id for r in records}
        new_id = uuid.uuid4()
        while new_id in existing_ids:
            new_id = uuid.uuid4()

        now = self._clock()
        stored = record.model_copy(
            update={"id": new_id, "created_at": now, "updated_at": now}
        )
        records.append(stored)
        self._write(records)
        return stored

    def get_all(self) -> List[R]:
        """Return every record; a corrupted file reads as an empty collection."""
        try:
            return self._read()
        except CorruptedDataError as exc:
            LOG.error("Corrupted record file %s: %s", self.file_path, exc)
            return []

    def get_by_id(self, record_id: Union[UUID, str]) -> Optional[R]:
        record_id = _as_uuid(record_id)
        if record_id is None:
            return None
        for record in self.get_all():
            if record.id == record_id:
                return record
        return None

    def update(self, record: R) -> bool:
        """Overwrite the mutable fields of the stored record with ``record.id``."""
        return self.update_and_get(record) is not None

    def update_and_get(self, record: R) -> Optional[R]:
        """Like :meth:`update` but return the stored record, or None when missing."""
        record_id = _as_uuid(record.id)
        if record_id is None:
            return None
        records = self._load_for_write()
        for index, existing in enumerate(records):
            if existing.id == record_id:
                break
        else:
            return None

        changes = {name: getattr(record, name) for name in self.record_type.mutable_fields()}
        changes["updated_at"] = self._next_timestamp(existing.updated_at)
        records[index] = existing.model_copy(update=changes)
        self._write(records)
        return records[index]

    def delete(self, record_id: Union[UUID, str]) -> bool:
        record_id = _as_uuid(record_id)
        if record_id is None:
            return False
        records = self._load_for_write()
        remaining = [r for r in records if r.id != record_id]
        if len(remaining) == len(records):
            return False
        self._write(remaining)
        return True

    # -- reading ---------------------------------------------------------

    def _read(self) -> List[R]:
        if not os.path.exists(self.file_path):
            return []
        try:
            with self._locked(exclusive=False):
                with open(self.file_path, "rb") as fh:
                    raw = fh.read()
        except FileNotFoundError:
            return []
        except OSError as exc:
            LOG.error("Cannot read record file %s: %s", self.file_path, exc)
            raise StorageUnavailableError("The record store is not accessible") from exc
        return self._deserialize(raw)

    def _load_for_write(self) -> List[R]:
        # A corrupt file is copied aside before it gets overwritten so the
        # operator can still recover its contents.
        try:
            return self._read()
        except CorruptedDataError as exc:
            LOG.error("Corrupted record file %s: %s", self.file_path, exc)
            self._quarantine()
            return []

    def _deserialize(self, raw: bytes) -> List[R]:
        if not raw.strip():
            return []
        try:
            data = json.loads(raw)
            if data is None:
                return []
            return self._adapter.validate_python(data)
        except (ValueError, ValidationError) as exc:
            raise CorruptedDataError(str(exc)) from exc

    def _quarantine(self) -> None:
        target = "%s.corrupt-%s" % (self.file_path, self._clock().strftime("%Y%m%dT%H%M%S%f"))
        try:
            shutil.copy2(self.file_path, target)
            LOG.warning("Copied corrupted record file to %s", target)
        except OSError as exc:
            LOG.error("Could not quarantine corrupted file %s: %s", self.file_path, exc)

    # -- writing ---------------------------------------------------------

    def _serialize(self, records: List[R]) -> bytes:
        data = [r.model_dump(mode="json", by_alias=True) for r in records]
        return json.dumps(data, indent=2).encode("utf-8")

    def _write(self, records: List[R]) -> None:
        payload = self._serialize(records)
        directory = os.path.dirname(os.path.abspath(self.file_path))
        try:
            os.makedirs(directory, exist_ok=True)
            with self._locked(exclusive=True):
                self._replace_atomically(directory, payload)
        except OSError as exc:
            LOG.error("Cannot write record file %s: %s", self.file_path, exc)
            raise StorageUnavailableError("The record store is not accessible") from exc
        self._fsync_directory(directory)

    def _replace_atomically(self, directory: str, payload: bytes) -> None:
        fd, tmp_path = tempfile.mkstemp(
            dir=directory, prefix=os.path.basename(self.file_path) + ".", suffix=".tmp"
        )
        try:
            with os.fdopen(fd, "wb") as fh:
                fh.write(payload)
                fh.flush()
                os.fsync(fh.fileno())
            os.replace(tmp_path, self.file_path)
        except BaseException:
            self._discard(tmp_path)
            raise

    @staticmethod
    def _discard(tmp_path: str) -> None:
        try:
            os.unlink(tmp_path)
        except FileNotFoundError:
            pass
        except OSError as exc:
            LOG.warning("Could not remove temporary file %s: %s", tmp_path, exc)

    @staticmethod
    def _fsync_directory(directory: str) -> None:
        try:
            fd = os.open(directory, os.O_RDONLY)
        except OSError as exc:
            LOG.debug("Cannot open %s for fsync: %s", directory, exc)
            return
        try:
            os.fsync(fd)
        except OSError as exc:
            LOG.debug("Directory fsync failed for %s: %s", directory, exc)
        finally:
            os.close(fd)

    # -- locking ---------------------------------------------------------

    @contextmanager
    def _locked(self, exclusive: bool):
        """Hold a shared or exclusive flock on the sidecar lock file."""
        mode = fcntl.LOCK_EX if exclusive else fcntl.LOCK_SH
        fd = os.open(self.lock_path, os.O_RDWR | os.O_CREAT, 0o644)
        try:
            self._acquire(fd, mode | fcntl.LOCK_NB)
            yield
        finally:
            # Closing the descriptor releases the lock
            os.close(fd)

    def _acquire(self, fd: int, mode: int) -> None:
        attempts = len(self._retry_delays) + 1
        for attempt in range(attempts):
            try:
                fcntl.flock(fd, mode)
                return
            except BlockingIOError:
                if attempt == attempts - 1:
                    break
                delay = self._retry_delays[attempt]
                LOG.debug(
                    "Record file %s is locked, retrying in %.0f ms", self.file_path, delay * 1000
                )
                self._sleep(delay)
        LOG.error("Record file %s still locked after %d attempts", self.file_path, attempts)
        raise StorageUnavailableError(
            f"Unable to access the record store after {attempts} attempts; it may be locked"
        )

    def _next_timestamp(self, previous: Optional[datetime]) -> datetime:
        now = self._clock()
        if previous is not None and now <= previous:
            now = previous + timedelta(microseconds=1)
        return now


def _as_uuid(value) -> Optional[UUID]:
    if value is None or isinstance(value, UUID):
        return value
    try:
        return UUID(str(value))
    except ValueError:
        return None
