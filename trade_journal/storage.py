"""
Key-Value Store.

Small persistence abstraction used by the journal and the settings layer.
The import pipeline never touches it; it only persists what a user has
reviewed and confirmed.

Two implementations:
- MemoryStore: process-local dict, used in tests.
- FileStore: the whole key space saved as one gzip-compressed pickle,
  rewritten on every change.
"""
import copy
import gzip
import os
import pickle
import time
from typing import Any, Dict


class KeyValueStore:
    """Interface: get / set / remove. Setting None removes the key."""

    def get(self, key: str, fallback: Any = None) -> Any:
        raise NotImplementedError

    def set(self, key: str, value: Any) -> None:
        raise NotImplementedError

    def remove(self, key: str) -> None:
        raise NotImplementedError


class MemoryStore(KeyValueStore):

    def __init__(self, initial: Dict[str, Any] = None) -> None:
        self._data: Dict[str, Any] = dict(initial or {})

    def get(self, key: str, fallback: Any = None) -> Any:
        if key not in self._data:
            return fallback
        # Callers get their own copy, as with a serialising backend
        return copy.deepcopy(self._data[key])

    def set(self, key: str, value: Any) -> None:
        if value is None:
            self.remove(key)
            return
        self._data[key] = copy.deepcopy(value)

    def remove(self, key: str) -> None:
        self._data.pop(key, None)


class FileStore(MemoryStore):
    """
    Persists the key space to a single .pkl.gz file.

    An unreadable file is reported and replaced by an empty store rather than
    blocking the application.
    """

    def __init__(self, path: str) -> None:
        super().__init__()
        self.path = path
        self._load()

    def _load(self) -> None:
        if not os.path.exists(self.path):
            return
        try:
            with gzip.open(self.path, 'rb') as f:
                data = pickle.load(f)
        except (OSError, EOFError, pickle.UnpicklingError) as e:
            print(f" [!] Warning: Could not read store '{self.path}': {e}")
            time.sleep(0.5)
            return
        if isinstance(data, dict):
            self._data = data

    def _flush(self) -> None:
        directory = os.path.dirname(self.path)
        if directory:
            os.makedirs(directory, exist_ok=True)
        with gzip.open(self.path, 'wb') as f:
            pickle.dump(self._data, f)

    def set(self, key: str, value: Any) -> None:
        super().set(key, value)
        self._flush()

    def remove(self, key: str) -> None:
        super().remove(key)
        self._flush()
