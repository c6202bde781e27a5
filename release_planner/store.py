"""
Record Store — whole-file JSON persistence for named collections.

Each collection lives in ``<data_dir>/<name>.json`` as a pretty-printed JSON
array.  There is no partial update, index or lock: callers load the whole
list, mutate it in memory and save the whole list back.

Reads fail soft (missing / unreadable / invalid file → ``[]`` plus a warning
in the log).  Writes fail loud with ``StorageError``.

Usage:
    store = RecordStore("/var/lib/release-planner")
    store.initialize()
    releases = store.load(RELEASES)
    store.save(RELEASES, releases)
"""

import json
import logging
import os
import tempfile

from release_planner.core.exceptions import StorageError

logger = logging.getLogger(__name__)

ACCOUNTS = "accounts"
RELEASE_VERSIONS = "release_versions"
RELEASES = "releases"
MIGRATIONS = "_migrations"

COLLECTIONS = (ACCOUNTS, RELEASE_VERSIONS, RELEASES, MIGRATIONS)


class RecordStore:
    """Handle on a data directory holding one JSON file per collection."""

    def __init__(self, data_dir, collections=COLLECTIONS):
        self.data_dir = os.fspath(data_dir)
        self.collections = tuple(collections)

    def __repr__(self):
        return f"<RecordStore {self.data_dir!r}>"

    def path_for(self, name):
        return os.path.join(self.data_dir, f"{name}.json")

    def initialize(self):
        """Create the data directory and an empty array for every absent collection."""
        try:
            os.makedirs(self.data_dir, exist_ok=True)
        except OSError as exc:
            raise StorageError(f"Cannot create data directory {self.data_dir}: {exc}") from exc

        for name in self.collections:
            if not os.path.exists(self.path_for(name)):
                self.save(name, [])
                logger.info("Initialized empty collection %s", name)

    def load(self, name):
        """Return every record of a collection, or ``[]`` if it cannot be read."""
        path = self.path_for(name)
        try:
            with open(path, encoding="utf-8") as fh:
                data = json.load(fh)
        except FileNotFoundError:
            logger.warning("Collection %s missing at %s; treating as empty", name, path)
            return []
        except (OSError, UnicodeDecodeError) as exc:
            logger.warning("Cannot read collection %s: %s", name, exc)
            return []
        except json.JSONDecodeError as exc:
            logger.warning("Collection %s holds invalid JSON (%s); treating as empty", name, exc)
            return []

        if not isinstance(data, list):
            logger.warning("Collection %s is not a JSON array; treating as empty", name)
            return []
        return data

    def save(self, name, records):
        """Serialize and atomically replace a collection file.

        The list is written to a temporary file in the same directory and
        moved over the target, so a reader never observes a half-written file.
        """
        path = self.path_for(name)
        try:
            payload = json.dumps(list(records), indent=2, ensure_ascii=False)
        except (TypeError, ValueError) as exc:
            raise StorageError(f"Cannot serialize collection {name}: {exc}") from exc

        tmp_path = None
        try:
            fd, tmp_path = tempfile.mkstemp(prefix=f".{name}.", suffix=".tmp", dir=self.data_dir)
            with os.fdopen(fd, "w", encoding="utf-8") as fh:
                fh.write(payload)
                fh.write("\n")
            os.replace(tmp_path, path)
        except OSError as exc:
            if tmp_path and os.path.exists(tmp_path):
                os.unlink(tmp_path)
            logger.error("Failed writing collection %s: %s", name, exc)
            raise StorageError(f"Cannot write collection {name}: {exc}") from exc

        logger.debug("Saved %d record(s) to %s", len(records), name)
