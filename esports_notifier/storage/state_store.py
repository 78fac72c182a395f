"""Persistence for subscriptions and seen match ids.

The whole WatchState is loaded once at startup and rewritten in full on every
mutation. There are no partial writes.
"""

import json
import os
import tempfile
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Optional, Union

from loguru import logger
from pydantic import ValidationError

from esports_notifier.models.state import WatchState


class PersistenceError(Exception):
    """State could not be written durably."""

    pass


class StateStore(ABC):
    """Holds the live WatchState and knows how to load and save it."""

    def __init__(self):
        self.state = WatchState()

    @abstractmethod
    def load(self) -> WatchState:
        """Load state, falling back to an empty state when absent or corrupt."""
        pass

    @abstractmethod
    def save(self) -> None:
        """Persist the current state. Raises PersistenceError on failure."""
        pass


class InMemoryStateStore(StateStore):
    """State store that keeps a JSON snapshot in memory, for tests and dry runs."""

    def __init__(self, initial: Optional[WatchState] = None):
        super().__init__()
        self._snapshot: Optional[str] = (
            initial.model_dump_json(by_alias=True) if initial is not None else None
        )
        self.save_count = 0

    def load(self) -> WatchState:
        if self._snapshot is None:
            self.state = WatchState()
        else:
            self.state = WatchState.model_validate_json(self._snapshot)
        return self.state

    def save(self) -> None:
        self._snapshot = self.state.model_dump_json(by_alias=True)
        self.save_count += 1


class JsonFileStateStore(StateStore):
    """State store backed by a single JSON file, replaced atomically on save."""

    def __init__(self, path: Union[str, os.PathLike]):
        super().__init__()
        self.path = Path(path)

    def load(self) -> WatchState:
        if not self.path.exists():
            logger.info(f"No state file at {self.path}, starting empty.")
            self.state = WatchState()
            return self.state

        try:
            with open(self.path, "r", encoding="utf-8") as f:
                raw = json.load(f)
            self.state = WatchState.model_validate(raw)
        except (OSError, TypeError, ValueError, ValidationError) as e:
            # json.JSONDecodeError is a ValueError
            logger.error(f"Failed to read state file {self.path}, starting empty: {e}")
            self.state = WatchState()
            return self.state

        logger.info(
            f"Loaded state from {self.path}: {len(self.state.subscriptions)} subscription(s), "
            f"{len(self.state.seen_matches)} team(s) with seen matches."
        )
        return self.state

    def save(self) -> None:
        data = self.state.model_dump(mode="json", by_alias=True)
        directory = self.path.parent
        tmp_name = None
        try:
            directory.mkdir(parents=True, exist_ok=True)
            with tempfile.NamedTemporaryFile(
                "w",
                encoding="utf-8",
                dir=directory,
                prefix=f".{self.path.name}.",
                suffix=".tmp",
                delete=False,
            ) as f:
                tmp_name = f.name
                json.dump(data, f, indent=2, ensure_ascii=False)
                f.flush()
                os.fsync(f.fileno())
            os.replace(tmp_name, self.path)
        except OSError as e:
            if tmp_name and os.path.exists(tmp_name):
                os.unlink(tmp_name)
            raise PersistenceError(f"Could not write state file {self.path}: {e}") from e
        logger.debug(f"State saved to {self.path}")
