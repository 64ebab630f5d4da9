from __future__ import annotations

import json
import logging
import re
import uuid
from dataclasses import asdict, dataclass
from datetime import datetime, timezone
from pathlib import Path
from typing import List

from posescore.config import Settings
from posescore.utils.files import remove_tree, safe_filename


logger = logging.getLogger("uvicorn.error")

_ID_RE = re.compile(r"^[0-9a-f]{32}$")
META_FILE = "standard.json"


@dataclass(frozen=True)
class StandardRecord:
    id: str
    name: str
    date: str
    filename: str

    def to_dict(self) -> dict:
        return {"id": self.id, "name": self.name, "date": self.date}


class StandardsService:
    """Stores reference ("standard") exercise videos on disk.

    Layout: ``<data_dir>/standards/<id>/<video>`` plus ``standard.json``.
    """

    def __init__(self, data_dir: Path = Settings.DATA_DIR) -> None:
        self.root = Path(data_dir) / "standards"

    def add(self, name: str, filename: str, data: bytes) -> StandardRecord:
        name = (name or "").strip()
        if not name:
            raise ValueError("Standard name must not be empty")
        record = StandardRecord(
            id=uuid.uuid4().hex,
            name=name,
            date=datetime.now(timezone.utc).isoformat(),
            filename=safe_filename(filename, default="standard.mp4"),
        )
        folder = self.root / record.id
        folder.mkdir(parents=True, exist_ok=False)
        try:
            (folder / record.filename).write_bytes(data)
            with (folder / META_FILE).open("w", encoding="utf-8") as f:
                json.dump(asdict(record), f, ensure_ascii=False)
        except OSError:
            remove_tree(folder)
            raise
        logger.info("Stored standard %s (%s)", record.id, record.name)
        return record

    def list_all(self) -> List[StandardRecord]:
        if not self.root.is_dir():
            return []
        records = []
        for meta in self.root.glob(f"*/{META_FILE}"):
            try:
                records.append(self._read(meta))
            except (OSError, ValueError, KeyError, TypeError) as exc:
                logger.warning("Skipping unreadable standard metadata %s: %s", meta, exc)
        return sorted(records, key=lambda r: r.date)

    def get(self, standard_id: str) -> StandardRecord:
        if not _ID_RE.match(standard_id or ""):
            raise KeyError(standard_id)
        meta = self.root / standard_id / META_FILE
        if not meta.is_file():
            raise KeyError(standard_id)
        return self._read(meta)

    def video_path(self, record: StandardRecord) -> Path:
        return self.root / record.id / record.filename

    @staticmethod
    def _read(meta: Path) -> StandardRecord:
        with meta.open("r", encoding="utf-8") as f:
            data = json.load(f)
        return StandardRecord(
            id=data["id"],
            name=data["name"],
            date=data["date"],
            filename=data["filename"],
        )
