"""
Purpose: Durable history artifact (JSON file) for per-user conversations.
Why: Memory survives restarts; the file is the only durability boundary.

What is inside:
JsonHistoryStore with load/save.
- load never raises: a missing, empty or corrupt file yields {} and a log line.
- save writes a temp file next to the artifact and os.replace()s it, so a
  reader never sees a partial write. Failures are logged, not raised.

Testing: tmp_path fixture; corrupt/empty files; save→load round trip.
"""

from __future__ import annotations
import json
import logging
import os
import tempfile
import threading
from pathlib import Path
from typing import Optional

from ..errors import StoreLoadError, StoreSaveError
from ..models import ConversationTurn

logger = logging.getLogger("bot.store")

Sessions = dict[str, list[ConversationTurn]]


class JsonHistoryStore:
    def __init__(self, path: str | os.PathLike, *, max_turns: Optional[int] = None) -> None:
        self.path = Path(path)
        self.max_turns = max_turns
        self._lock = threading.Lock()

    def load(self) -> Sessions:
        """Read the artifact; any problem yields an empty mapping."""
        try:
            raw = self._read_object()
        except StoreLoadError as e:
            logger.warning(
                "history reset: %s",
                e,
                extra={"event_type": "store_load", "metadata": {"path": str(self.path)}},
            )
            return {}

        sessions: Sessions = {}
        dropped = 0
        for user_id, items in raw.items():
            if not isinstance(items, list):
                dropped += 1
                continue
            turns = []
            for item in items:
                try:
                    turns.append(ConversationTurn.from_dict(item))
                except ValueError:
                    dropped += 1
            if self.max_turns is not None:
                turns = turns[-self.max_turns :]
            sessions[str(user_id)] = turns

        if dropped:
            logger.warning(
                "dropped malformed history entries",
                extra={
                    "event_type": "store_load",
                    "metadata": {"path": str(self.path), "dropped": dropped},
                },
            )
        logger.info(
            "history loaded",
            extra={"event_type": "store_load", "metadata": {"users": len(sessions)}},
        )
        return sessions

    def save(self, sessions: Sessions) -> bool:
        """Overwrite the artifact with `sessions`. Returns False on failure."""
        payload = {
            user_id: [turn.to_dict() for turn in turns]
            for user_id, turns in sessions.items()
        }
        try:
            with self._lock:
                self._write_atomic(json.dumps(payload, indent=2))
        except StoreSaveError as e:
            logger.error(
                "history save failed: %s",
                e,
                extra={"event_type": "store_save", "metadata": {"path": str(self.path)}},
            )
            return False
        return True

    def _read_object(self) -> dict:
        if not self.path.exists():
            raise StoreLoadError(f"{self.path.name} not found, starting fresh")
        try:
            text = self.path.read_text(encoding="utf-8").strip()
        except (OSError, UnicodeDecodeError) as e:
            raise StoreLoadError(f"cannot read {self.path.name}: {e}") from e
        if not text:
            raise StoreLoadError(f"{self.path.name} is empty")
        try:
            data = json.loads(text)
        except (json.JSONDecodeError, RecursionError) as e:
            raise StoreLoadError(f"{self.path.name} parse error: {e}") from e
        if not isinstance(data, dict):
            raise StoreLoadError(f"{self.path.name} is not an object")
        return data

    def _write_atomic(self, text: str) -> None:
        tmp_path = None
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            with tempfile.NamedTemporaryFile(
                "w",
                encoding="utf-8",
                dir=self.path.parent,
                prefix=f".{self.path.name}.",
                suffix=".tmp",
                delete=False,
            ) as tmp:
                tmp_path = tmp.name
                tmp.write(text)
                tmp.flush()
                os.fsync(tmp.fileno())
            os.replace(tmp_path, self.path)
        except (OSError, ValueError) as e:
            raise StoreSaveError(str(e)) from e
        finally:
            if tmp_path and os.path.exists(tmp_path):
                try:
                    os.remove(tmp_path)
                except OSError:
                    pass
