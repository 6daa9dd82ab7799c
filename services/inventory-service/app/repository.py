"""JSON-file repository for the account inventory."""

from __future__ import annotations

import hashlib
import json
import logging
import os
import tempfile
import threading
from contextlib import contextmanager
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Iterator, Tuple

from .domain.account import DEFAULT_MAX_USERS, Account, Inventory
from .domain.catalog import display_name
from .domain.errors import ConflictError, StorageCorruptionError, StorageWriteError

logger = logging.getLogger(__name__)


class AccountStore:
    """Whole-file persistence of the service id -> accounts mapping.

    Writers go through :meth:`transaction`, which holds a process-wide lock for
    the load-mutate-save cycle. Files are replaced atomically, so readers only
    ever see a complete old or new snapshot.
    """

    def __init__(self, path: str | os.PathLike[str]) -> None:
        """Store the location of the backing file; it is created on first save."""
        self._path = Path(path)
        self._write_lock = threading.Lock()

    @property
    def path(self) -> Path:
        return self._path

    def load(self) -> Inventory:
        """Return the stored inventory, or an empty mapping when no file exists yet."""
        inventory, _ = self.snapshot()
        return inventory

    def snapshot(self) -> Tuple[Inventory, str | None]:
        """Return the inventory together with the revision digest it was read at."""
        raw = self._read_bytes()
        if raw is None:
            return {}, None
        return self._parse(raw), self._revision(raw)

    def save(self, inventory: Inventory, expected_revision: str | None = None, *, check: bool = False) -> str:
        """Replace the store with ``inventory`` and return the new revision.

        When ``check`` is set the write only happens if the file is still at
        ``expected_revision`` (``None`` meaning "no file yet").
        """
        if check:
            current = self._read_bytes()
            current_revision = self._revision(current) if current is not None else None
            if current_revision != expected_revision:
                logger.warning(
                    "inventory revision mismatch at %s (expected %s, found %s)",
                    self._path,
                    expected_revision,
                    current_revision,
                )
                raise ConflictError()

        payload = json.dumps(
            {service: [self._to_record(account) for account in accounts] for service, accounts in inventory.items()},
            indent=2,
        ).encode("utf-8")
        self._write_atomic(payload)
        return self._revision(payload)

    @contextmanager
    def transaction(self) -> Iterator[Inventory]:
        """Serialize a load-mutate-save cycle; the inventory is saved if the block exits cleanly."""
        with self._write_lock:
            inventory, revision = self.snapshot()
            yield inventory
            self.save(inventory, revision, check=True)

    def _read_bytes(self) -> bytes | None:
        try:
            return self._path.read_bytes()
        except FileNotFoundError:
            return None
        except OSError as exc:
            logger.error("failed to read inventory file %s: %s", self._path, exc)
            raise StorageCorruptionError(f"cannot read {self._path}: {exc}") from exc

    def _parse(self, raw: bytes) -> Inventory:
        try:
            data = json.loads(raw.decode("utf-8"))
        except (UnicodeDecodeError, json.JSONDecodeError) as exc:
            logger.error("inventory file %s is not valid JSON: %s", self._path, exc)
            raise StorageCorruptionError(f"{self._path} is not valid JSON") from exc

        if not isinstance(data, dict) or not all(isinstance(value, list) for value in data.values()):
            logger.error("inventory file %s does not hold a service -> accounts mapping", self._path)
            raise StorageCorruptionError(f"{self._path} has an unexpected layout")

        try:
            return {service: [self._map_record(service, row) for row in rows] for service, rows in data.items()}
        except (AttributeError, TypeError, ValueError, KeyError) as exc:
            logger.error("inventory file %s holds a malformed account: %s", self._path, exc)
            raise StorageCorruptionError(f"{self._path} holds a malformed account") from exc

    def _write_atomic(self, payload: bytes) -> None:
        directory = self._path.parent
        tmp_name: str | None = None
        try:
            directory.mkdir(parents=True, exist_ok=True)
            fd, tmp_name = tempfile.mkstemp(prefix=f".{self._path.name}.", suffix=".tmp", dir=directory)
            with os.fdopen(fd, "wb") as handle:
                handle.write(payload)
                handle.flush()
                os.fsync(handle.fileno())
            os.replace(tmp_name, self._path)
            tmp_name = None
        except OSError as exc:
            logger.error("failed to write inventory file %s: %s", self._path, exc)
            raise StorageWriteError(f"cannot write {self._path}: {exc}") from exc
        finally:
            if tmp_name is not None:
                try:
                    os.unlink(tmp_name)
                except OSError:
                    logger.warning("could not remove temporary file %s", tmp_name)

    @staticmethod
    def _revision(raw: bytes) -> str:
        return hashlib.sha256(raw).hexdigest()

    def _map_record(self, service: str, row: dict[str, Any]) -> Account:
        """Convert a stored JSON object into an ``Account``, defaulting missing fields."""
        email = str(row.get("email") or "")
        max_users = int(row.get("maxUsers") or DEFAULT_MAX_USERS)
        added_at = row.get("addedAt")
        return Account(
            account_id=str(row["id"]),
            service=str(row.get("service") or service),
            service_name=str(row.get("serviceName") or display_name(service)),
            email=email,
            password=str(row.get("password") or ""),
            username=str(row.get("username") or email.split("@")[0]),
            added_at=_parse_timestamp(added_at) if added_at else datetime.fromtimestamp(0, timezone.utc),
            notes=str(row.get("notes") or ""),
            current_users=int(row.get("currentUsers") or 0),
            max_users=max_users if max_users > 0 else DEFAULT_MAX_USERS,
            used_by=[str(item) for item in row.get("usedBy") or []],
        )

    def _to_record(self, account: Account) -> dict[str, Any]:
        return {
            "id": account.account_id,
            "email": account.email,
            "password": account.password,
            "username": account.username,
            "service": account.service,
            "serviceName": account.service_name,
            "currentUsers": account.current_users,
            "maxUsers": account.max_users,
            # Written for older readers; never read back.
            "fullyUsed": account.is_full,
            "notes": account.notes,
            "addedAt": format_timestamp(account.added_at),
            "usedBy": list(account.used_by),
        }


def format_timestamp(value: datetime) -> str:
    """Render a UTC timestamp the way the stored records expect (millisecond precision, ``Z``)."""
    return value.astimezone(timezone.utc).isoformat(timespec="milliseconds").replace("+00:00", "Z")


def _parse_timestamp(value: str) -> datetime:
    parsed = datetime.fromisoformat(str(value).replace("Z", "+00:00"))
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed
