"""Expense persistence over a key-value backend."""

from __future__ import annotations

import logging
from collections.abc import Iterable
from typing import TYPE_CHECKING, Protocol

from pydantic import TypeAdapter, ValidationError

from expense_tracker.models import ExpenseDraft, ExpenseRecord

if TYPE_CHECKING:
    from pathlib import Path

logger = logging.getLogger(__name__)

EXPENSES_KEY = "expenses"

_EXPENSE_LIST = TypeAdapter(list[ExpenseRecord])


class KeyValueStore(Protocol):
    """Protocol for string key-value storage backends."""

    def get(self, key: str) -> str | None: ...

    def set(self, key: str, value: str) -> None: ...


class JsonFileKeyValueStore:
    """Local filesystem implementation of KeyValueStore.

    Directory layout: {root}/{key}.json
    """

    def __init__(self, root: Path) -> None:
        self.root = root

    def get(self, key: str) -> str | None:
        """Return the stored value, or None if the key was never set."""
        path = self._path(key)
        if not path.exists():
            return None
        return path.read_text(encoding="utf-8")

    def set(self, key: str, value: str) -> None:
        """Overwrite the value, writing through a temporary file."""
        self.root.mkdir(parents=True, exist_ok=True)
        path = self._path(key)
        tmp = path.with_suffix(".json.tmp")
        tmp.write_text(value, encoding="utf-8")
        tmp.replace(path)

    def _path(self, key: str) -> Path:
        return self.root / f"{key}.json"


class ExpenseStore:
    """The single owner of the expense list.

    The whole list lives under one key and is rewritten on every add.
    Storage failures are logged and never raised; the in-memory list
    stays authoritative for the session.
    """

    def __init__(self, backend: KeyValueStore, key: str = EXPENSES_KEY) -> None:
        self.backend = backend
        self.key = key
        self._expenses: list[ExpenseRecord] = []

    @property
    def expenses(self) -> tuple[ExpenseRecord, ...]:
        """All expenses, most recently added first."""
        return tuple(self._expenses)

    def load(self) -> list[ExpenseRecord]:
        """Read the stored list; missing or corrupt data yields an empty list."""
        try:
            raw = self.backend.get(self.key)
        except UnicodeDecodeError:
            logger.error("Stored expenses are corrupt; starting empty", exc_info=True)
            raw = None
        except OSError:
            logger.error("Failed to load expenses from storage", exc_info=True)
            raw = None

        if not raw:
            self._expenses = []
            return []

        try:
            self._expenses = _EXPENSE_LIST.validate_json(raw)
        except ValidationError:
            logger.error("Stored expenses are corrupt; starting empty", exc_info=True)
            self._expenses = []
        return list(self._expenses)

    def add(
        self, records: ExpenseRecord | Iterable[ExpenseRecord]
    ) -> list[ExpenseRecord]:
        """Prepend one or more records and persist the full list."""
        new = [records] if isinstance(records, ExpenseRecord) else list(records)
        self._expenses = new + self._expenses
        self.persist()
        return new

    def add_draft(self, draft: ExpenseDraft) -> ExpenseRecord:
        """Validate a reviewed draft and add it."""
        record = draft.to_record()
        self.add(record)
        return record

    def persist(self) -> bool:
        """Write the full list; returns False if the backend failed."""
        try:
            self.backend.set(self.key, _EXPENSE_LIST.dump_json(self._expenses).decode())
        except OSError:
            logger.error("Failed to save expenses to storage", exc_info=True)
            return False
        return True
