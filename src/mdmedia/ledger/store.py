"""Ledger persistence: store interface, in-memory and JSON file implementations"""

import json
import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from pathlib import Path

from pydantic import ValidationError

from mdmedia.ledger.models import Ledger, LedgerEntry


logger = logging.getLogger("mdmedia.ledger")


class LedgerStore(ABC):
    @abstractmethod
    def load(self) -> Ledger:
        """Return the persisted ledger, or an empty one."""
        raise NotImplementedError

    @abstractmethod
    def save(self, ledger: Ledger) -> None:
        """Replace the persisted ledger with `ledger`."""
        raise NotImplementedError


@dataclass
class MemoryLedgerStore(LedgerStore):
    _entries: Ledger = field(default_factory=dict)
    saves: int = 0

    def load(self) -> Ledger:
        return {h: e.model_copy() for h, e in self._entries.items()}

    def save(self, ledger: Ledger) -> None:
        self._entries = {h: e.model_copy() for h, e in ledger.items()}
        self.saves += 1


def dump_ledger(ledger: Ledger) -> dict:
    return {h: e.model_dump(by_alias=True) for h, e in ledger.items()}


class JsonLedgerStore(LedgerStore):
    """Ledger kept as a JSON object `{hash: {ext, path, lastUsed}}`, fully rewritten on save."""

    def __init__(self, path: Path | str):
        self.path = Path(path)

    def load(self) -> Ledger:
        if not self.path.exists():
            return {}
        try:
            data = json.loads(self.path.read_text(encoding="utf-8"))
            if not isinstance(data, dict):
                raise ValueError(f"expected a JSON object, got {type(data).__name__}")
            return {h: LedgerEntry.model_validate(e) for h, e in data.items()}
        except (ValueError, ValidationError) as e:
            logger.warning("Ignoring unreadable usage ledger %s: %s", self.path, e)
            return {}

    def save(self, ledger: Ledger) -> None:
        if self.path.parent != Path("."):
            self.path.parent.mkdir(parents=True, exist_ok=True)
        self.path.write_text(json.dumps(dump_ledger(ledger), indent=2), encoding="utf-8")
