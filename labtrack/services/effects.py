"""Nekritické vedlejší efekty (broadcast adminům, auditní záznamy notifikací).

Běží až po commitu hlavní transakce, každý ve vlastní transakci. Selhání se
zaloguje a uloží do failures, hlavní přechod zůstává platný.
"""
import logging
from dataclasses import dataclass, field
from typing import Callable

from sqlalchemy.orm import Session

logger = logging.getLogger(__name__)


@dataclass
class EffectFailure:
    name: str
    error: str


@dataclass
class EffectQueue:
    _pending: list[tuple[str, Callable[[Session], object]]] = field(default_factory=list)
    failures: list[EffectFailure] = field(default_factory=list)

    def defer(self, name: str, fn: Callable[[Session], object]) -> None:
        self._pending.append((name, fn))

    def __len__(self) -> int:
        return len(self._pending)

    def run(self, db: Session) -> list[EffectFailure]:
        pending, self._pending = self._pending, []
        for name, fn in pending:
            try:
                fn(db)
                db.commit()
            except Exception as exc:
                db.rollback()
                logger.exception("Vedlejší efekt '%s' selhal, přeskočeno", name)
                self.failures.append(EffectFailure(name=name, error=repr(exc)))
        return self.failures
