"""Shared test fixtures."""

from collections.abc import Callable
from datetime import UTC, datetime, timedelta
from pathlib import Path

import pytest

from protein_quality.calculations import calculate_digestible_protein, create_calculation_record
from protein_quality.history import HistoryStore, JsonFileHistoryStore, SqliteHistoryStore
from protein_quality.models import CalculationInput, CalculationRecord, ProteinSource

BASE_TIME = datetime(2024, 3, 1, 12, 0, tzinfo=UTC)

WHEY = ProteinSource(
    id="whey-protein-isolate",
    name="Whey Protein Isolate",
    category="supplement",
    diaas_score=1.25,
    pdcaas_score=1.0,
    description="Complete protein with excellent amino acid profile",
)
CHICKPEAS = ProteinSource(
    id="chickpeas-cooked",
    name="Chickpeas (Cooked)",
    category="plant",
    diaas_score=0.58,
    pdcaas_score=0.71,
    description="Versatile legume protein",
)
BCAA = ProteinSource(id="bcaa-powder", name="BCAA Powder", category="supplement")

RecordFactory = Callable[..., CalculationRecord]


@pytest.fixture
def make_record() -> RecordFactory:
    def _make(
        index: int,
        *,
        source: ProteinSource = WHEY,
        stated: float = 20.0,
        dv: float | None = None,
    ) -> CalculationRecord:
        calc_input = CalculationInput(stated_protein=stated, dv_percentage=dv, protein_source=source)
        result = calculate_digestible_protein(calc_input)
        return create_calculation_record(
            calc_input,
            result,
            record_id=f"rec-{index:03d}",
            timestamp=BASE_TIME + timedelta(minutes=index),
        )

    return _make


@pytest.fixture(params=["sqlite", "json"])
def store_factory(request: pytest.FixtureRequest, tmp_path: Path) -> Callable[..., HistoryStore]:
    def _open(name: str = "history", limit: int = 100) -> HistoryStore:
        if request.param == "sqlite":
            return SqliteHistoryStore(tmp_path / f"{name}.db", limit=limit)
        return JsonFileHistoryStore(tmp_path / f"{name}.json", limit=limit)

    return _open
