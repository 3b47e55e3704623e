from __future__ import annotations

import contextlib
import json
import os
from pathlib import Path
from typing import Any, Optional


class StorageFault(Exception):
    """Reading or writing a data file failed for a reason other than "missing"."""

    def __init__(self, path: Path, message: str) -> None:
        super().__init__(f"{message}: {path}")
        self.path = path


class JsonFileStorage:
    """One JSON array on disk, always rewritten as a whole."""

    def __init__(self, path: str | Path) -> None:
        self.path = Path(path)

    def read(self) -> Optional[list[dict[str, Any]]]:
        """Return the stored array, or None when the file does not exist yet."""
        try:
            raw = self.path.read_text(encoding="utf-8")
        except FileNotFoundError:
            return None
        except OSError as exc:
            raise StorageFault(self.path, "Failed to read data file") from exc
        try:
            data = json.loads(raw)
        except json.JSONDecodeError as exc:
            raise StorageFault(self.path, "Data file is not valid JSON") from exc
        if not isinstance(data, list):
            raise StorageFault(self.path, "Data file must contain a JSON array")
        return data

    def write(self, records: list[dict[str, Any]]) -> None:
        try:
            payload = json.dumps(records, ensure_ascii=False, indent=2)
        except (TypeError, ValueError) as exc:
            raise StorageFault(self.path, "Records are not JSON serializable") from exc

        tmp = self.path.with_name(f".{self.path.name}.{os.getpid()}.tmp")
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            tmp.write_text(payload, encoding="utf-8")
            os.replace(tmp, self.path)
        except OSError as exc:
            with contextlib.suppress(OSError):
                tmp.unlink()
            raise StorageFault(self.path, "Failed to write data file") from exc
