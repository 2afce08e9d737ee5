"""
Local place store (SQLModel over SQLite).

The store is the durable cache behind the coordinator:
- `upsert_all` replaces rows on id conflict (a refreshed record replaces the old one whole),
- reads return frozen `Place` models ordered by id,
- `subscribe` pushes a full snapshot immediately and again after every write.
"""

from __future__ import annotations

import logging
import threading
from dataclasses import dataclass, field
from typing import Callable, Iterable

from sqlalchemy import delete, func
from sqlalchemy.engine import make_url
from sqlalchemy.pool import StaticPool
from sqlmodel import Field, Session, SQLModel, create_engine, select

from geoassist.config.settings import Settings
from geoassist.core.env import resolve_project_path
from geoassist.domain.models import Place

logger = logging.getLogger(__name__)

SnapshotListener = Callable[[list[Place]], None]


class PlaceRow(SQLModel, table=True):
    __tablename__ = "places"

    id: int = Field(primary_key=True)
    name: str
    category: str = Field(index=True)
    latitude: float
    longitude: float
    address: str

    def to_place(self) -> Place:
        return Place(
            id=self.id,
            name=self.name,
            category=self.category,
            latitude=self.latitude,
            longitude=self.longitude,
            address=self.address,
        )


def _engine_for(url: str):
    parsed = make_url(url)
    if parsed.get_backend_name() != "sqlite":
        return create_engine(url)

    database = parsed.database
    if not database or database == ":memory:":
        # One shared connection, otherwise every session sees an empty database.
        return create_engine(
            "sqlite://",
            connect_args={"check_same_thread": False},
            poolclass=StaticPool,
        )

    path = resolve_project_path(database)
    path.parent.mkdir(parents=True, exist_ok=True)
    return create_engine(
        parsed.set(database=str(path)),
        connect_args={"check_same_thread": False},
    )


@dataclass(eq=False)
class Subscription:
    """Handle returned by `PlaceStore.subscribe`; `cancel()` stops delivery."""

    _store: "PlaceStore"
    listener: SnapshotListener
    category: str | None = None
    _active: bool = field(default=True, init=False)

    @property
    def active(self) -> bool:
        return self._active

    def cancel(self) -> None:
        if self._active:
            self._active = False
            self._store._remove(self)

    def __enter__(self) -> "Subscription":
        return self

    def __exit__(self, *exc_info) -> None:
        self.cancel()


class PlaceStore:
    """Durable place cache with snapshot subscriptions."""

    def __init__(self, url: str = "sqlite://"):
        self._url = url
        self._engine = _engine_for(url)
        SQLModel.metadata.create_all(self._engine, tables=[PlaceRow.__table__])
        self._lock = threading.Lock()
        self._subscriptions: list[Subscription] = []

    @classmethod
    def from_settings(cls, settings: Settings) -> "PlaceStore":
        return cls(settings.store.url)

    @property
    def url(self) -> str:
        return self._url

    def upsert_all(self, places: Iterable[Place]) -> int:
        """Insert places, replacing existing rows with the same id. Returns the row count written."""
        written = 0
        with Session(self._engine) as session:
            for place in places:
                session.merge(PlaceRow(**place.model_dump()))
                written += 1
            session.commit()
        logger.debug("Upserted %d place(s)", written)
        self._notify()
        return written

    def all_places(self) -> list[Place]:
        with Session(self._engine) as session:
            rows = session.exec(select(PlaceRow).order_by(PlaceRow.id)).all()
            return [r.to_place() for r in rows]

    def places_by_category(self, category: str) -> list[Place]:
        """Places whose category matches exactly (case-sensitive)."""
        with Session(self._engine) as session:
            stmt = select(PlaceRow).where(PlaceRow.category == category).order_by(PlaceRow.id)
            return [r.to_place() for r in session.exec(stmt).all()]

    def delete_all(self) -> None:
        with self._engine.begin() as conn:
            conn.execute(delete(PlaceRow))
        self._notify()

    def count(self) -> int:
        with Session(self._engine) as session:
            return int(session.exec(select(func.count()).select_from(PlaceRow)).one())

    def subscribe(self, listener: SnapshotListener, *, category: str | None = None) -> Subscription:
        """Register `listener`; it gets the current snapshot now and after every write."""
        sub = Subscription(self, listener, category)
        with self._lock:
            self._subscriptions.append(sub)
        listener(self._snapshot(category))
        return sub

    def close(self) -> None:
        with self._lock:
            subs = list(self._subscriptions)
        for sub in subs:
            sub.cancel()
        self._engine.dispose()

    def _snapshot(self, category: str | None) -> list[Place]:
        return self.all_places() if category is None else self.places_by_category(category)

    def _remove(self, sub: Subscription) -> None:
        with self._lock:
            if sub in self._subscriptions:
                self._subscriptions.remove(sub)

    def _notify(self) -> None:
        with self._lock:
            subs = list(self._subscriptions)
        snapshots: dict[str | None, list[Place]] = {}
        for sub in subs:
            if not sub.active:
                continue
            if sub.category not in snapshots:
                snapshots[sub.category] = self._snapshot(sub.category)
            sub.listener(list(snapshots[sub.category]))
