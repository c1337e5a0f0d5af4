from __future__ import annotations

import copy
import math
from dataclasses import dataclass, field
from typing import Any

import pytest

from src.fleetfare.api.dependencies import FareStores
from src.fleetfare.models.domain import Coordinate

ASUNCION = Coordinate(latitude=-25.2808, longitude=-57.6312)


def point_north_of(origin: Coordinate, distance_km: float) -> Coordinate:
    """Point due north of ``origin`` at a great-circle distance of ``distance_km``."""
    delta = math.degrees(distance_km / 6371.0)
    return Coordinate(latitude=origin.latitude + delta, longitude=origin.longitude)


@dataclass
class FakeResponse:
    data: list[dict]
    count: int | None = None


class FakeQuery:
    """Covers the slice of the PostgREST builder the stores use."""

    def __init__(self, db: "FakeSupabase", table: str) -> None:
        self.db = db
        self.table_name = table
        self._mode = "select"
        self._columns: list[str] | None = None
        self._filters: list = []
        self._order: tuple[str, bool] | None = None
        self._limit: int | None = None
        self._payload: list[dict] = []

    def select(self, columns: str = "*", count: str | None = None) -> "FakeQuery":
        self._mode = "select"
        if columns.strip() != "*":
            self._columns = [c.strip() for c in columns.split(",")]
        return self

    def insert(self, rows: dict | list[dict]) -> "FakeQuery":
        self._mode = "insert"
        self._payload = [rows] if isinstance(rows, dict) else list(rows)
        return self

    def eq(self, column: str, value: Any) -> "FakeQuery":
        self._filters.append(lambda row: row.get(column) == value)
        return self

    def in_(self, column: str, values: list) -> "FakeQuery":
        self._filters.append(lambda row: row.get(column) in values)
        return self

    def order(self, column: str, desc: bool = False) -> "FakeQuery":
        self._order = (column, desc)
        return self

    def limit(self, count: int) -> "FakeQuery":
        self._limit = count
        return self

    def execute(self) -> FakeResponse:
        if self.db.failure is not None:
            raise self.db.failure
        rows = self.db.tables.setdefault(self.table_name, [])
        if self._mode == "insert":
            inserted = [copy.deepcopy(row) for row in self._payload]
            rows.extend(inserted)
            self.db.inserts.append((self.table_name, inserted))
            return FakeResponse(data=copy.deepcopy(inserted))

        result = [row for row in rows if all(check(row) for check in self._filters)]
        if self._order is not None:
            column, desc = self._order
            result.sort(key=lambda row: row.get(column), reverse=desc)
        if self._limit is not None:
            result = result[: self._limit]
        if self._columns is not None:
            result = [{c: row.get(c) for c in self._columns} for row in result]
        return FakeResponse(data=copy.deepcopy(result), count=len(result))


@dataclass
class FakeSupabase:
    tables: dict[str, list[dict]] = field(default_factory=dict)
    inserts: list[tuple[str, list[dict]]] = field(default_factory=list)
    failure: Exception | None = None

    def table(self, name: str) -> FakeQuery:
        return FakeQuery(self, name)

    def rows(self, name: str) -> list[dict]:
        return self.tables.get(name, [])

    def add_destination(
        self,
        destination_id: str,
        name: str,
        coordinate: Coordinate,
        *,
        address: str | None = None,
        zone: str | None = None,
        is_active: bool = True,
    ) -> None:
        self.tables.setdefault("destinations", []).append(
            {
                "id": destination_id,
                "name": name,
                "address": address,
                "latitude": coordinate.latitude,
                "longitude": coordinate.longitude,
                "zone": zone,
                "is_active": is_active,
            }
        )


@pytest.fixture
def fake_db() -> FakeSupabase:
    db = FakeSupabase()
    db.add_destination("dest-centro", "Centro", point_north_of(ASUNCION, 3.0), address="Palma 123", zone="Centro")
    db.add_destination("dest-mburicao", "Mburicao", point_north_of(ASUNCION, 6.0), zone="Norte")
    db.add_destination("dest-here", "Terminal", ASUNCION, address="Av. Fernando de la Mora")
    db.add_destination("dest-closed", "Estación Vieja", point_north_of(ASUNCION, 1.0), is_active=False)
    return db


@pytest.fixture
def stores(fake_db: FakeSupabase) -> FareStores:
    return FareStores.from_client(fake_db)
