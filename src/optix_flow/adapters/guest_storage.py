"""Guest record storage.

The guest record is the only copy of an unauthenticated user's data: one JSON
document ``{"tasks": [...], "projects": [...]}`` stored under a fixed key in
the user data directory and overwritten with a full snapshot on every
guest-mode mutation.
"""

from __future__ import annotations

import json
import logging
import os
from pathlib import Path

from pydantic import ValidationError

from optix_flow.models import GuestSnapshot, Project, Task
from optix_flow.models.exceptions import GuestStorageError

GUEST_KEY = "optix-flow-guest-data"

logger = logging.getLogger(__name__)


class GuestStore:
    """Reads and writes the guest snapshot."""

    def __init__(self, storage_dir: str | Path, key: str = GUEST_KEY):
        """Initialize guest storage.

        Args:
            storage_dir: Directory holding the record file
            key: Namespace key, used as the record file name
        """
        self.storage_dir = Path(storage_dir)
        self.key = key
        self.path = self.storage_dir / f"{key}.json"
        self.last_error: str | None = None

    def exists(self) -> bool:
        """Return True if a guest record is stored."""
        return self.path.exists()

    def save(self, tasks: list[Task], projects: list[Project]) -> bool:
        """Overwrite the guest record with a full snapshot.

        Never raises. A failed write is logged and reported through the
        return value and ``last_error`` so callers can offer a retry; there is
        no other copy of guest data.

        Returns:
            True if the record was written
        """
        try:
            self.write(GuestSnapshot(tasks=list(tasks), projects=list(projects)))
        except GuestStorageError as e:
            self.last_error = str(e)
            logger.error("Guest record write failed: %s", e)
            return False
        self.last_error = None
        return True

    def write(self, snapshot: GuestSnapshot) -> None:
        """Write a snapshot atomically.

        Raises:
            GuestStorageError: If the file cannot be written
        """
        payload = snapshot.model_dump(mode="json", by_alias=True)
        tmp_path = self.path.with_suffix(".json.tmp")
        try:
            self.storage_dir.mkdir(parents=True, exist_ok=True)
            with open(tmp_path, "w", encoding="utf-8") as f:
                json.dump(payload, f, indent=2)
            os.replace(tmp_path, self.path)
        except OSError as e:
            raise GuestStorageError(f"Cannot write {self.path}: {e}") from e

    def load_snapshot(self) -> GuestSnapshot:
        """Return the stored snapshot, or an empty one.

        A missing, unreadable or malformed record is treated as empty.
        """
        if not self.path.exists():
            return GuestSnapshot()

        try:
            with open(self.path, encoding="utf-8") as f:
                raw = f.read()
        except OSError as e:
            logger.warning("Guest record unreadable, treating as empty: %s", e)
            return GuestSnapshot()

        if not raw.strip():
            return GuestSnapshot()

        try:
            data = json.loads(raw)
            if not isinstance(data, dict):
                raise ValueError(f"expected an object, got {type(data).__name__}")
            return GuestSnapshot.model_validate(
                {"tasks": data.get("tasks") or [], "projects": data.get("projects") or []}
            )
        except (ValueError, ValidationError) as e:
            # json.JSONDecodeError is a ValueError
            logger.warning("Guest record malformed, treating as empty: %s", e)
            return GuestSnapshot()

    def load(self) -> tuple[list[Task], list[Project]]:
        """Return the stored (tasks, projects) pair, empty if absent or malformed."""
        snapshot = self.load_snapshot()
        return snapshot.tasks, snapshot.projects

    def clear(self) -> None:
        """Remove the guest record."""
        try:
            self.path.unlink(missing_ok=True)
        except OSError as e:
            logger.error("Guest record could not be removed: %s", e)
