"""JSON document persistence for the local store."""
from __future__ import annotations

import json
from pathlib import Path
from typing import Any, Callable, Dict, Mapping, Optional

from core.settings import SYNC
from storage.local_store import LocalStore


def _ensure_parent(path: Path) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)


class StatePersistence:
    """Saves the whole store under one storage key and restores it verbatim."""

    def __init__(self, path: Optional[Path | str] = None):
        self.path = Path(path or SYNC.state_path)

    def load(self) -> Dict[str, Any]:
        if not self.path.exists():
            return {}
        try:
            data = json.loads(self.path.read_text(encoding="utf-8"))
        except (OSError, json.JSONDecodeError):
            return {}
        return data if isinstance(data, dict) else {}

    def save(self, state: Mapping[str, Any]) -> None:
        _ensure_parent(self.path)
        payload = json.dumps(state, ensure_ascii=False, indent=2, sort_keys=True)
        tmp = self.path.with_suffix(".tmp")
        try:
            tmp.write_text(payload, encoding="utf-8")
            tmp.replace(self.path)
        finally:
            if tmp.exists():
                try:
                    tmp.unlink()
                except OSError:
                    pass

    def attach(self, store: LocalStore) -> Callable[[], None]:
        """Save after every store mutation; returns the unsubscribe hook."""
        return store.subscribe(lambda s: self.save(s.to_dict()))

    def open_store(self, **kwargs: Any) -> LocalStore:
        """Restore the store from disk and keep it persisted from now on."""
        store = LocalStore(self.load(), **kwargs)
        self.attach(store)
        return store


__all__ = ["StatePersistence"]
