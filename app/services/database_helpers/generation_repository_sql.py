# /note-polish-backend/app/services/database_helpers/generation_repository_sql.py

"""
This module contains all the raw SQLAlchemy queries for the `generations`
table. It is the direct interface to the database for generation records and
the single point of concurrency control for them.

Every mutating method is a conditional write: it names the record by
`(id, owner_id)` and, for lifecycle writes, the status the caller believes the
record is in. If another request moved the record first, the predicate no
longer matches, nothing is written and the method reports zero affected rows.
The calling service decides whether that means "not found" or "conflict".
"""

from datetime import datetime, timezone
from typing import Callable, Dict, Iterable, List, Optional, Set, Tuple

from sqlalchemy import delete, func, or_, select, update
from sqlalchemy.orm import Session

from app.db.models.generation_models import Generation


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def _escape_like(term: str) -> str:
    return term.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")


class GenerationRepositorySQL:
    def __init__(self, db_session: Session):
        self.db = db_session

    # --- Reads ---

    def find_by_id(self, generation_id: str) -> Optional[Generation]:
        return self.db.get(Generation, generation_id, populate_existing=True)

    def find_owned(self, generation_id: str, owner_id: str) -> Optional[Generation]:
        """
        Retrieves a generation only if it belongs to `owner_id`. A record owned
        by someone else is indistinguishable from a missing one.
        """
        stmt = (
            select(Generation)
            .where(Generation.id == generation_id, Generation.owner_id == owner_id)
            .execution_options(populate_existing=True)
        )
        return self.db.execute(stmt).scalars().first()

    def find_latest_pending(self, owner_id: str) -> Optional[Generation]:
        stmt = (
            select(Generation)
            .where(Generation.owner_id == owner_id, Generation.status == "pending")
            .order_by(Generation.updated_at.desc())
            .limit(1)
        )
        return self.db.execute(stmt).scalars().first()

    def list_owned(
        self,
        owner_id: str,
        search: Optional[str] = None,
        status: Optional[str] = None,
        offset: int = 0,
        limit: int = 12,
    ) -> Tuple[List[Generation], int]:
        """Newest-first page of an owner's generations plus the unpaged total."""
        conditions = [Generation.owner_id == owner_id]
        if status:
            conditions.append(Generation.status == status)
        if search:
            pattern = f"%{_escape_like(search)}%"
            conditions.append(
                or_(
                    Generation.title.ilike(pattern, escape="\\"),
                    Generation.input_text.ilike(pattern, escape="\\"),
                    Generation.id == search,
                )
            )

        total = self.db.execute(select(func.count()).select_from(Generation).where(*conditions)).scalar_one()
        items = (
            self.db.execute(
                select(Generation)
                .where(*conditions)
                .order_by(Generation.created_at.desc())
                .offset(offset)
                .limit(limit)
            )
            .scalars()
            .all()
        )
        return list(items), total

    def list_recent(self, owner_id: str, limit: int = 4) -> List[Generation]:
        stmt = (
            select(Generation)
            .where(Generation.owner_id == owner_id)
            .order_by(Generation.created_at.desc())
            .limit(limit)
        )
        return list(self.db.execute(stmt).scalars().all())

    def owner_references_key(self, owner_id: str, key: str) -> bool:
        rows = self.db.execute(
            select(Generation.input_files, Generation.output_files).where(Generation.owner_id == owner_id)
        )
        return any(key in (input_files or []) or key in (output_files or []) for input_files, output_files in rows)

    def iter_referenced_keys(self) -> Set[str]:
        """Every blob key referenced by any generation, inputs and outputs alike."""
        keys: Set[str] = set()
        for input_files, output_files in self.db.execute(select(Generation.input_files, Generation.output_files)):
            keys.update(input_files or [])
            keys.update(output_files or [])
        return keys

    # --- Dashboard Counters ---

    def count_created_since(self, owner_id: str, since: datetime) -> int:
        stmt = select(func.count()).select_from(Generation).where(
            Generation.owner_id == owner_id, Generation.created_at >= since
        )
        return self.db.execute(stmt).scalar_one()

    def count_downloaded_since(self, owner_id: str, since: datetime) -> int:
        # Approximation: there is no `downloaded_at`, so "downloaded and touched
        # within the period" stands in for "downloaded within the period".
        stmt = select(func.count()).select_from(Generation).where(
            Generation.owner_id == owner_id,
            Generation.is_downloaded.is_(True),
            Generation.updated_at >= since,
        )
        return self.db.execute(stmt).scalar_one()

    def count_favourites(self, owner_id: str) -> int:
        stmt = select(func.count()).select_from(Generation).where(
            Generation.owner_id == owner_id, Generation.is_favourite.is_(True)
        )
        return self.db.execute(stmt).scalar_one()

    # --- Writes ---

    def create(self, record: Dict) -> Generation:
        """Creates a new Generation record in the database from a dictionary."""
        now = _utcnow()
        record.setdefault("created_at", now)
        record.setdefault("updated_at", now)
        new_generation = Generation(**record)
        self.db.add(new_generation)
        self.db.commit()
        self.db.refresh(new_generation)
        return new_generation

    def conditional_update(
        self,
        generation_id: str,
        owner_id: str,
        expected_status: str,
        patch: Optional[Dict] = None,
        add_files: Optional[Iterable[str]] = None,
        remove_files: Optional[Iterable[str]] = None,
    ) -> int:
        """
        Compare-and-swap write keyed on `(id, owner_id, expected_status)`.

        Plain field patches are a single `UPDATE ... WHERE`. Changes to the
        `input_files` list need the current value, so they lock the matching
        row (`SELECT ... FOR UPDATE`) and apply the change inside the same
        transaction; a concurrent writer either waits or no longer matches.

        Returns:
            The number of records written, 0 or 1.
        """
        patch = dict(patch or {})
        patch["updated_at"] = _utcnow()
        predicate = (
            Generation.id == generation_id,
            Generation.owner_id == owner_id,
            Generation.status == expected_status,
        )

        if add_files is None and remove_files is None:
            result = self.db.execute(
                update(Generation).where(*predicate).values(**patch).execution_options(synchronize_session=False)
            )
            self.db.commit()
            return result.rowcount

        record = self.db.execute(
            select(Generation).where(*predicate).with_for_update().execution_options(populate_existing=True)
        ).scalars().first()
        if record is None:
            self.db.rollback()
            return 0

        files = list(record.input_files or [])
        for key in add_files or []:
            if key not in files:
                files.append(key)
        removed = set(remove_files or [])
        files = [key for key in files if key not in removed]

        for field, value in patch.items():
            setattr(record, field, value)
        # Reassign so the JSON column is flagged dirty.
        record.input_files = files
        self.db.commit()
        return 1

    def update_flags(self, generation_id: str, owner_id: str, patch: Dict) -> int:
        """Status-independent write for the user-set boolean flags."""
        allowed = {k: v for k, v in patch.items() if k in ("is_favourite", "is_downloaded")}
        allowed["updated_at"] = _utcnow()
        result = self.db.execute(
            update(Generation)
            .where(Generation.id == generation_id, Generation.owner_id == owner_id)
            .values(**allowed)
            .execution_options(synchronize_session=False)
        )
        self.db.commit()
        return result.rowcount

    def delete(
        self,
        generation_id: str,
        owner_id: str,
        release_keys: Optional[Callable[[List[str]], None]] = None,
    ) -> bool:
        """
        Deletes a single generation record, but only for its owner.

        The row is locked and its blob keys are read inside the same
        transaction as the DELETE, so a concurrent attach or worker completion
        either lands before the lock (and its keys are seen here) or after the
        delete (and matches no row). `release_keys` receives those keys before
        the row is removed; if it raises, the transaction is rolled back and
        the record survives for a retry.
        """
        try:
            record = self.db.execute(
                select(Generation)
                .where(Generation.id == generation_id, Generation.owner_id == owner_id)
                .with_for_update()
                .execution_options(populate_existing=True)
            ).scalars().first()
            if record is None:
                self.db.rollback()
                return False

            keys = list(record.input_files or []) + list(record.output_files or [])
            if release_keys is not None:
                release_keys(keys)

            self.db.execute(
                delete(Generation)
                .where(Generation.id == generation_id, Generation.owner_id == owner_id)
                .execution_options(synchronize_session=False)
            )
            self.db.commit()
        except Exception:
            self.db.rollback()
            raise
        return True

    # --- Worker Boundary ---

    def claim_next(self, stale_before: datetime) -> Optional[Generation]:
        """
        Moves the oldest claimable generation to `processing` and returns it.

        Claimable means `queued`, or `processing` with no heartbeat since
        `stale_before` (its worker is presumed dead). Each candidate is taken
        with a conditional update on its current status, so two workers never
        claim the same record.
        """
        candidates = self.db.execute(
            select(Generation.id, Generation.owner_id, Generation.status)
            .where(
                or_(
                    Generation.status == "queued",
                    (Generation.status == "processing") & (Generation.updated_at <= stale_before),
                )
            )
            .order_by(Generation.updated_at.asc())
            .limit(10)
        ).all()

        for generation_id, owner_id, status in candidates:
            claim_predicate = [
                Generation.id == generation_id,
                Generation.owner_id == owner_id,
                Generation.status == status,
            ]
            if status == "processing":
                claim_predicate.append(Generation.updated_at <= stale_before)
            result = self.db.execute(
                update(Generation)
                .where(*claim_predicate)
                .values(status="processing", updated_at=_utcnow())
                .execution_options(synchronize_session=False)
            )
            self.db.commit()
            if result.rowcount == 1:
                return self.find_by_id(generation_id)
        return None

    def touch(self, generation_id: str, expected_status: str) -> int:
        result = self.db.execute(
            update(Generation)
            .where(Generation.id == generation_id, Generation.status == expected_status)
            .values(updated_at=_utcnow())
            .execution_options(synchronize_session=False)
        )
        self.db.commit()
        return result.rowcount
