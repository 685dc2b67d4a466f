"""
One-time token journal.

Tracks consumed one-time tokens by UUID so that a token can only be used for
a single successful validation. Entries are stored in a YAML mapping:

    <uuid>:
      validto: <POSIX seconds>
      data: {...}

Several autosign processes may run at once against the same file. Every
insert happens under an exclusive flock on a sibling lock file, which blocks
until the current holder finishes its read-check-write cycle.
"""

import fcntl
import logging
import os
import re
import tempfile
from contextlib import contextmanager
from pathlib import Path
from typing import Any, Dict, Iterator, Optional

import yaml

from ...errors import DuplicateCredentialID, InvalidCredentialID, ReplayError

UUID_V4 = re.compile(r"[0-9a-fA-F]{8}-[0-9a-fA-F]{4}-4[0-9a-fA-F]{3}-[89abAB][0-9a-fA-F]{3}-[0-9a-fA-F]{12}")


class Journal:
    """Durable, multi-process safe ledger of consumed one-time tokens."""

    def __init__(self, journalfile: str, logger: Optional[logging.Logger] = None):
        """
        Initialize journal.

        Args:
            journalfile: Path to the YAML journal file
            logger: Optional logger replacing the module logger
        """
        self.path = Path(journalfile)
        self.lock_path = self.path.with_name(self.path.name + ".lock")
        self.log = logger or logging.getLogger(__name__)

    def add(self, uuid: str, valid_to: int, data: Optional[Dict[str, Any]] = None) -> bool:
        """
        Record a token as consumed.

        Args:
            uuid: v4 UUID identifying the token
            valid_to: POSIX timestamp the token is valid until
            data: Arbitrary auditing payload stored with the entry

        Returns:
            True if this is the first time the UUID was recorded, False if it
            was already present or is not a v4 UUID

        Raises:
            TypeError: If uuid is not a string
        """
        if not isinstance(uuid, str):
            raise TypeError(f"journal key must be a string, got {type(uuid).__name__}")

        self.log.debug(f"Attempting to add UUID '{uuid}' valid to {valid_to}")
        try:
            self._validate_uuid(uuid)
            with self._locked():
                entries = self._read()
                if uuid in entries:
                    raise DuplicateCredentialID(uuid)
                entries[uuid] = {"validto": int(valid_to), "data": data or {}}
                self._write(entries)
        except InvalidCredentialID:
            self.log.error(f"'{uuid}' is not a valid v4 UUID")
            return False
        except DuplicateCredentialID:
            self.log.warning(f"Token with UUID '{uuid}' is already in the journal, will not add")
            return False

        self.log.info(f"Added token with UUID '{uuid}' to journal {self.path}")
        return True

    def get(self, uuid: str) -> Optional[Dict[str, Any]]:
        """Return the journal entry for a UUID, or None."""
        with self._locked():
            return self._read().get(uuid)

    @staticmethod
    def _validate_uuid(uuid: str) -> None:
        if not UUID_V4.fullmatch(uuid):
            raise InvalidCredentialID(uuid)

    @contextmanager
    def _locked(self) -> Iterator[None]:
        """Hold an exclusive lock on the journal for the duration of the block."""
        self.path.parent.mkdir(parents=True, exist_ok=True)
        fd = os.open(self.lock_path, os.O_RDWR | os.O_CREAT, 0o600)
        try:
            # Blocks until any other process releases the lock
            fcntl.flock(fd, fcntl.LOCK_EX)
            try:
                yield
            finally:
                fcntl.flock(fd, fcntl.LOCK_UN)
        finally:
            os.close(fd)

    def _read(self) -> Dict[str, Any]:
        if not self.path.exists():
            return {}
        with open(self.path, "r", encoding="utf-8") as f:
            try:
                entries = yaml.safe_load(f)
            except yaml.YAMLError as e:
                raise ReplayError(f"journal {self.path} is corrupt: {e}") from e
        if entries is None:
            return {}
        if not isinstance(entries, dict):
            raise ReplayError(f"journal {self.path} does not contain a mapping")
        return entries

    def _write(self, entries: Dict[str, Any]) -> None:
        """Replace the journal file atomically."""
        fd, tmp_path = tempfile.mkstemp(dir=str(self.path.parent), prefix=f".{self.path.name}.")
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                yaml.safe_dump(entries, f, default_flow_style=False)
                f.flush()
                os.fsync(f.fileno())
            os.replace(tmp_path, self.path)
        except BaseException:
            if os.path.exists(tmp_path):
                os.unlink(tmp_path)
            raise
