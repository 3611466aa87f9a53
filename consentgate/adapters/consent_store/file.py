"""File-backed consent store.

Persists a flat JSON object of key -> string value, the server-side
analogue of browser localStorage. Writes go through a temp file and
``os.replace`` so a crash mid-write never leaves a truncated file.
"""

import json
import logging
import os
import tempfile
from pathlib import Path
from typing import Optional

from consentgate.core.exceptions import ConsentStoreError

logger = logging.getLogger(__name__)


class FileConsentStore:
    """JSON-file implementation of the ConsentStore protocol.

    A missing file reads as an empty store. A file that is not a JSON
    object is reported as a read failure.
    """

    def __init__(self, path: Path) -> None:
        """Bind the store to ``path``; the file is created on first write."""
        self.path = Path(path).expanduser()

    def get(self, key: str) -> Optional[str]:
        """Return the value stored under ``key``."""
        value = self._read_all(key).get(key)
        if value is None:
            return None
        if not isinstance(value, str):
            # Tolerate hand-edited files that inline the record as an object.
            return json.dumps(value)
        return value

    def set(self, key: str, value: str) -> None:
        """Atomically replace the value stored under ``key``."""
        data = self._read_all(key)
        data[key] = value
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            fd, tmp_name = tempfile.mkstemp(
                prefix=f".{self.path.name}.", suffix=".tmp", dir=self.path.parent
            )
            try:
                with os.fdopen(fd, "w", encoding="utf-8") as handle:
                    json.dump(data, handle, ensure_ascii=True, sort_keys=True)
                os.replace(tmp_name, self.path)
            except BaseException:
                Path(tmp_name).unlink(missing_ok=True)
                raise
        except OSError as e:
            raise ConsentStoreError(key, f"Could not write {self.path}: {e}") from e
        logger.debug(f"FileConsentStore: wrote '{key}' to {self.path}")

    def _read_all(self, key: str) -> dict:
        if not self.path.exists():
            return {}
        try:
            text = self.path.read_text(encoding="utf-8")
        except OSError as e:
            raise ConsentStoreError(key, f"Could not read {self.path}: {e}") from e
        except UnicodeDecodeError as e:
            raise ConsentStoreError(key, f"Store file {self.path} is not UTF-8: {e}") from e
        if not text.strip():
            return {}
        try:
            data = json.loads(text)
        except json.JSONDecodeError as e:
            raise ConsentStoreError(key, f"Corrupt store file {self.path}: {e}") from e
        if not isinstance(data, dict):
            raise ConsentStoreError(key, f"Store file {self.path} is not a JSON object")
        return data
