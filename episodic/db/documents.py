"""
Document-style access to rows with embedded JSON collections.

The social-state services think in documents: one user or review row,
mutated through set-like operators on its embedded arrays. DocumentStore
gives them exactly that contract on top of a SQLAlchemy session:

    find_one(model, ident)
    update_one(model, ident, add_to_set=..., pull=..., set_=...)
    replace_field(model, ident, field, value)

Every write locks the target row (SELECT ... FOR UPDATE), applies the change
in Python against the freshly-read value and commits, so each call is atomic
for the one document it touches. Nothing here coordinates across documents;
``atomic()`` merely lets a caller put several writes into one commit.
"""
import logging
from collections.abc import Iterable, Iterator, Mapping
from contextlib import contextmanager
from typing import Any, TypeVar
from uuid import UUID

from sqlalchemy.orm import Session

from episodic.db.models import Base

logger = logging.getLogger(__name__)

ModelT = TypeVar("ModelT", bound=Base)


def encode_member(value: Any) -> str:
    """Canonical stored form of a set member (ids are stored as strings)."""
    return str(value)


def decode_ids(values: Iterable[Any] | None) -> frozenset[UUID]:
    """Stored id array -> set of UUIDs. Unparseable members are skipped."""
    result = set()
    for raw in values or ():
        try:
            result.add(raw if isinstance(raw, UUID) else UUID(str(raw)))
        except ValueError:
            logger.warning("Skipping malformed id %r in embedded id set", raw)
    return frozenset(result)


class DocumentStore:
    """Per-request document gateway. Wraps, but does not own, a Session."""

    def __init__(self, session: Session) -> None:
        self._session = session
        self._atomic_depth = 0

    @property
    def session(self) -> Session:
        return self._session

    # ── Reads ─────────────────────────────────────────────────────────────────

    def find_one(self, model: type[ModelT], ident: UUID) -> ModelT | None:
        """Return the current committed state of one document, or None."""
        return self._session.get(model, ident, populate_existing=True)

    def find_many(self, model: type[ModelT], idents: Iterable[UUID]) -> list[ModelT]:
        """Fetch several documents by id. Missing ids are silently absent."""
        wanted = list(dict.fromkeys(idents))
        if not wanted:
            return []
        return (
            self._session.query(model)
            .filter(model.id.in_(wanted))
            .populate_existing()
            .all()
        )

    # ── Writes ────────────────────────────────────────────────────────────────

    def update_one(
        self,
        model: type[ModelT],
        ident: UUID,
        *,
        add_to_set: Mapping[str, Iterable[Any]] | None = None,
        pull: Mapping[str, Iterable[Any]] | None = None,
        set_: Mapping[str, Any] | None = None,
    ) -> ModelT | None:
        """
        Apply set operators to one document and return it, or None if absent.

        ``pull`` runs before ``add_to_set``. Both are idempotent: pulling a
        missing member or adding a present one is a no-op. ``set_`` replaces
        whole fields.
        """
        try:
            row = self._locked(model, ident)
            if row is None:
                return None

            for field, members in (pull or {}).items():
                drop = {encode_member(m) for m in members}
                current = list(getattr(row, field) or [])
                setattr(row, field, [m for m in current if m not in drop])

            for field, members in (add_to_set or {}).items():
                current = list(getattr(row, field) or [])
                for member in members:
                    encoded = encode_member(member)
                    if encoded not in current:
                        current.append(encoded)
                setattr(row, field, current)

            for field, value in (set_ or {}).items():
                setattr(row, field, value)

            self._commit()
        except Exception:
            self._rollback()
            raise
        return row

    def replace_field(
        self,
        model: type[ModelT],
        ident: UUID,
        field: str,
        value: Any,
    ) -> ModelT | None:
        """Overwrite one field of one document wholesale."""
        return self.update_one(model, ident, set_={field: value})

    def insert(self, row: ModelT) -> ModelT:
        """Persist a brand-new document."""
        try:
            self._session.add(row)
            self._commit()
        except Exception:
            self._rollback()
            raise
        self._session.refresh(row)
        return row

    @contextmanager
    def atomic(self) -> Iterator["DocumentStore"]:
        """
        Group every write issued inside the block into one commit.

        Nested blocks join the outermost one. An exception rolls the whole
        group back and propagates.
        """
        self._atomic_depth += 1
        try:
            yield self
        except Exception:
            self._atomic_depth -= 1
            if self._atomic_depth == 0:
                self._session.rollback()
            raise
        self._atomic_depth -= 1
        if self._atomic_depth == 0:
            self._session.commit()

    # ── Internals ─────────────────────────────────────────────────────────────

    def _locked(self, model: type[ModelT], ident: UUID) -> ModelT | None:
        return self._session.get(
            model,
            ident,
            with_for_update=True,
            populate_existing=True,
        )

    def _commit(self) -> None:
        if self._atomic_depth:
            self._session.flush()
        else:
            self._session.commit()

    def _rollback(self) -> None:
        # Inside atomic() the outer block owns the rollback
        if not self._atomic_depth:
            self._session.rollback()
