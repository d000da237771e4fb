"""
Flat-file JSON storage.

Each collection is one JSON array on disk that is read in full, mutated in memory and
written back in full. Writers on the same file are serialized by a per-path lock and
every write lands through an atomic rename, so a crash never leaves a half-written file.
"""
import copy
import json
import logging
import os
import tempfile
import threading
from contextlib import contextmanager, suppress
from datetime import datetime, timezone
from pathlib import Path
from typing import Iterator
from uuid import uuid4

from .config import DATA_DIR
from .models.interest import Interest
from .models.job import Job
from .models.refresh_token import RefreshTokenRecord
from .models.user import User
from .utils.error_handlers import (
    ConflictError,
    NotFoundError,
    StorageError,
    ValidationError,
    get_error_message,
)

logger = logging.getLogger(__name__)

USERS_FILE = "users.json"
JOBS_FILE = "jobs.json"
INTERESTS_FILE = "interests.json"
REFRESH_TOKENS_FILE = "refreshTokens.json"

_locks: dict[str, threading.RLock] = {}
_locks_guard = threading.Lock()


def _lock_for(path: Path) -> threading.RLock:
    key = str(path.resolve())
    with _locks_guard:
        lock = _locks.get(key)
        if lock is None:
            lock = _locks[key] = threading.RLock()
        return lock


def utc_now_iso() -> str:
    """ISO-8601 UTC timestamp with millisecond precision, e.g. 2026-01-01T00:00:00.000Z."""
    return datetime.now(timezone.utc).isoformat(timespec="milliseconds").replace("+00:00", "Z")


def _newest_first(rows: list[dict]) -> list[dict]:
    # Ties on createdAt fall back to insertion order, later rows first.
    ordered = sorted(enumerate(rows), key=lambda pair: (pair[1].get("createdAt") or "", pair[0]), reverse=True)
    return [row for _, row in ordered]


class JsonCollection:
    """A single JSON array file."""

    def __init__(self, path: str | Path):
        self.path = Path(path)
        self._lock = _lock_for(self.path)

    def ensure(self) -> None:
        with self._lock:
            if not self.path.exists():
                self._write([])

    def read(self) -> list[dict]:
        with self._lock:
            return self._read()

    @contextmanager
    def mutate(self) -> Iterator[list[dict]]:
        """
        Yield the full array under the collection lock and write it back on clean exit.

        Nothing is written if the block raises or leaves the rows unchanged.
        """
        with self._lock:
            rows = self._read()
            before = copy.deepcopy(rows)
            yield rows
            if rows != before:
                self._write(rows)

    def _read(self) -> list[dict]:
        if not self.path.exists():
            return []
        try:
            content = self.path.read_text(encoding="utf-8").strip()
        except OSError as e:
            logger.error("Failed to read %s: %s", self.path, e)
            raise StorageError(get_error_message("storage_error")) from e
        if not content:
            return []
        try:
            data = json.loads(content)
        except json.JSONDecodeError as e:
            # Refuse to treat a corrupt file as empty; the next write would wipe it.
            logger.error("Collection file %s is not valid JSON: %s", self.path, e)
            raise StorageError(get_error_message("storage_error")) from e
        if not isinstance(data, list):
            logger.error("Collection file %s does not hold a JSON array", self.path)
            raise StorageError(get_error_message("storage_error"))
        return data

    def _write(self, rows: list[dict]) -> None:
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            fd, tmp_path = tempfile.mkstemp(
                prefix=f".{self.path.name}.", suffix=".tmp", dir=self.path.parent
            )
        except OSError as e:
            logger.error("Failed to prepare write for %s: %s", self.path, e)
            raise StorageError(get_error_message("storage_error")) from e
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                json.dump(rows, f, indent=2, ensure_ascii=False)
            os.replace(tmp_path, self.path)
        except OSError as e:
            with suppress(OSError):
                os.unlink(tmp_path)
            logger.error("Failed to write %s: %s", self.path, e)
            raise StorageError(get_error_message("storage_error")) from e


class FlatFileStore:
    """Users, jobs, interests and refresh tokens kept as JSON arrays under `data_dir`."""

    def __init__(self, data_dir: str | Path):
        self.data_dir = Path(data_dir)
        self.users = JsonCollection(self.data_dir / USERS_FILE)
        self.jobs = JsonCollection(self.data_dir / JOBS_FILE)
        self.interests = JsonCollection(self.data_dir / INTERESTS_FILE)
        self.refresh_tokens = JsonCollection(self.data_dir / REFRESH_TOKENS_FILE)

    def initialize(self) -> None:
        for collection in (self.users, self.jobs, self.interests, self.refresh_tokens):
            collection.ensure()
        logger.info("Flat-file storage ready at %s", self.data_dir)

    # -------------------- Users --------------------

    def create_user(self, data: dict) -> User:
        email = (data.get("email") or "").strip().lower()
        with self.users.mutate() as rows:
            if any((r.get("email") or "").lower() == email for r in rows):
                raise ConflictError(get_error_message("email_exists"))
            user = User(
                **{**data, "email": email},
                id=str(uuid4()),
                created_at=utc_now_iso(),
            )
            rows.append(user.to_record())
        logger.info("Created %s user %s", user.role, user.id)
        return user

    def get_user(self, user_id: str) -> User | None:
        for row in self.users.read():
            if row.get("id") == user_id:
                return User.model_validate(row)
        return None

    def get_user_by_email(self, email: str) -> User | None:
        email = (email or "").strip().lower()
        for row in self.users.read():
            if (row.get("email") or "").lower() == email:
                return User.model_validate(row)
        return None

    def list_users(self) -> list[User]:
        return [User.model_validate(r) for r in self.users.read()]

    # -------------------- Jobs --------------------

    def create_job(self, data: dict) -> Job:
        if self.get_user(data.get("posted_by") or "") is None:
            raise ValidationError(get_error_message("poster_not_found"))
        now = utc_now_iso()
        job = Job(
            **data,
            id=str(uuid4()),
            is_closed=False,
            created_at=now,
            updated_at=now,
        )
        with self.jobs.mutate() as rows:
            rows.append(job.to_record())
        logger.info("Job %s posted by %s", job.id, job.posted_by)
        return job

    def get_job(self, job_id: str) -> Job | None:
        for row in self.jobs.read():
            if row.get("id") == job_id:
                return Job.model_validate(row)
        return None

    def list_jobs(self) -> list[Job]:
        return [Job.model_validate(r) for r in self.jobs.read()]

    def list_active_jobs(self) -> list[Job]:
        rows = [r for r in self.jobs.read() if not r.get("isClosed")]
        return [Job.model_validate(r) for r in _newest_first(rows)]

    def list_jobs_by_user(self, user_id: str) -> list[Job]:
        rows = [r for r in self.jobs.read() if r.get("postedBy") == user_id]
        return [Job.model_validate(r) for r in _newest_first(rows)]

    def close_job(self, job_id: str) -> Job:
        with self.jobs.mutate() as rows:
            row = next((r for r in rows if r.get("id") == job_id), None)
            if row is None:
                raise NotFoundError(get_error_message("job_not_found"))
            # Closing is one-way; a repeated close leaves the record as it is.
            if not row.get("isClosed"):
                row["isClosed"] = True
                row["updatedAt"] = utc_now_iso()
                logger.info("Job %s closed", job_id)
            return Job.model_validate(row)

    # -------------------- Interests --------------------

    def add_interest(self, job_id: str, user_id: str) -> tuple[Interest, bool]:
        """Record interest once per (job, user). Returns (interest, created)."""
        with self.interests.mutate() as rows:
            existing = next(
                (r for r in rows if r.get("jobId") == job_id and r.get("userId") == user_id),
                None,
            )
            if existing is not None:
                return Interest.model_validate(existing), False
            interest = Interest(
                id=str(uuid4()),
                job_id=job_id,
                user_id=user_id,
                created_at=utc_now_iso(),
            )
            rows.append(interest.to_record())
        logger.info("User %s interested in job %s", user_id, job_id)
        return interest, True

    def list_interests_by_job(self, job_id: str) -> list[Interest]:
        return [Interest.model_validate(r) for r in self.interests.read() if r.get("jobId") == job_id]

    def list_interests_by_user(self, user_id: str) -> list[Interest]:
        return [Interest.model_validate(r) for r in self.interests.read() if r.get("userId") == user_id]

    # -------------------- Refresh tokens --------------------

    def add_refresh_token(self, token: str, user_id: str) -> RefreshTokenRecord:
        record = RefreshTokenRecord(token=token, user_id=user_id, created_at=utc_now_iso())
        with self.refresh_tokens.mutate() as rows:
            rows.append(record.to_record())
        return record

    def has_refresh_token(self, token: str, user_id: str) -> bool:
        return any(
            r.get("token") == token and r.get("userId") == user_id
            for r in self.refresh_tokens.read()
        )

    def remove_refresh_token(self, token: str, user_id: str | None = None) -> int:
        def matches(r: dict) -> bool:
            return r.get("token") == token and (user_id is None or r.get("userId") == user_id)

        return self._remove_refresh_tokens(matches)

    def remove_user_refresh_tokens(self, user_id: str) -> int:
        return self._remove_refresh_tokens(lambda r: r.get("userId") == user_id)

    def _remove_refresh_tokens(self, predicate) -> int:
        with self.refresh_tokens.mutate() as rows:
            kept = [r for r in rows if not predicate(r)]
            removed = len(rows) - len(kept)
            rows[:] = kept
        return removed


_store: FlatFileStore | None = None
_store_guard = threading.Lock()


def get_store() -> FlatFileStore:
    """FastAPI dependency: the process-wide store rooted at DATA_DIR."""
    global _store
    with _store_guard:
        if _store is None:
            _store = FlatFileStore(DATA_DIR)
            _store.initialize()
        return _store


def init_storage() -> FlatFileStore:
    return get_store()
