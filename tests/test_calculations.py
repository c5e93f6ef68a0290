import math
from datetime import UTC, datetime

import pytest

from protein_quality.calculations import (
    DEFAULT_QUALITY_SCORE,
    DIGESTIBILITY_COLORS,
    STREAMLIT_COLORS,
    CalculationInputError,
    calculate_digestible_protein,
    calculate_dv_from_protein,
    calculate_protein_from_dv,
    compare_protein_quality,
    create_calculation_record,
    digestibility_band,
    effective_quality_score,
    format_percentage,
    format_protein_amount,
    get_digestibility_color,
    get_protein_quality_rating,
    parse_calculation_input,
    sort_by_quality,
    validate_calculation_input,
)
from protein_quality.models import CalculationInput, ProteinSource
from tests.conftest import BCAA, CHICKPEAS, WHEY


def _source(diaas: float | None = None, pdcaas: float | None = None, name: str = "Test") -> ProteinSource:
    return ProteinSource(id=name.lower(), name=name, category="other", diaas_score=diaas, pdcaas_score=pdcaas)


def _calc(stated: float, source: ProteinSource, dv: float | None = None):
    return calculate_digestible_protein(CalculationInput(stated_protein=stated, dv_percentage=dv, protein_source=source))


def test_whey_isolate_without_dv() -> None:
    result = _calc(40.0, WHEY)
    assert result.quality_adjusted_protein == pytest.approx(50.0)
    assert result.protein_quality_percentage == pytest.approx(125.0)
    assert result.calculation_method == "DIAAS"
    assert result.score_used == 1.25
    assert result.adjusted_protein is None
    assert result.dv_discrepancy is None


def test_dv_percentage_replaces_stated_amount() -> None:
    result = _calc(20.0, CHICKPEAS, dv=25.0)
    assert result.adjusted_protein == pytest.approx(12.5)
    assert result.quality_adjusted_protein == pytest.approx(7.25)
    assert result.protein_quality_percentage == pytest.approx(36.25)
    assert result.dv_discrepancy == pytest.approx(7.5)
    assert result.calculation_method == "DIAAS"


def test_unscored_source_uses_default_score() -> None:
    result = _calc(10.0, BCAA)
    assert result.score_used == DEFAULT_QUALITY_SCORE == 0.75
    assert result.calculation_method == "DIAAS"
    assert result.quality_adjusted_protein == pytest.approx(7.5)
    assert result.protein_quality_percentage == pytest.approx(75.0)


@pytest.mark.parametrize(
    ("diaas", "pdcaas", "expected_method", "expected_score"),
    [
        (0.9, None, "DIAAS", 0.9),
        (None, 0.63, "PDCAAS", 0.63),
        (0.58, 0.71, "DIAAS", 0.58),
        (1.25, 1.0, "DIAAS", 1.25),
        (None, None, "DIAAS", 0.75),
        (0.0, 0.9, "DIAAS", 0.0),
    ],
)
def test_score_selection(diaas, pdcaas, expected_method, expected_score) -> None:
    result = _calc(30.0, _source(diaas, pdcaas))
    assert result.calculation_method == expected_method
    assert result.score_used == expected_score


def test_small_dv_discrepancy_is_not_reported() -> None:
    result = _calc(20.3, WHEY, dv=40.0)
    assert result.adjusted_protein == pytest.approx(20.0)
    assert result.quality_adjusted_protein == pytest.approx(25.0)
    assert result.dv_discrepancy is None


def test_zero_dv_is_ignored_but_still_reported_as_present() -> None:
    result = _calc(20.0, CHICKPEAS, dv=0.0)
    assert result.adjusted_protein == 20.0
    assert result.quality_adjusted_protein == pytest.approx(11.6)
    assert result.dv_discrepancy is None


def test_negative_dv_is_ignored() -> None:
    result = _calc(20.0, CHICKPEAS, dv=-10.0)
    assert result.adjusted_protein == 20.0
    assert result.protein_quality_percentage == pytest.approx(58.0)


def test_zero_stated_protein_does_not_raise() -> None:
    assert math.isnan(_calc(0.0, WHEY).protein_quality_percentage)
    assert _calc(0.0, WHEY, dv=10.0).protein_quality_percentage == math.inf


def test_negative_stated_protein_does_not_raise() -> None:
    result = _calc(-10.0, BCAA, dv=20.0)
    assert result.quality_adjusted_protein == pytest.approx(7.5)
    assert result.protein_quality_percentage == pytest.approx(-75.0)


def test_dv_conversions() -> None:
    assert calculate_protein_from_dv(25.0) == pytest.approx(12.5)
    assert calculate_protein_from_dv(100.0) == pytest.approx(50.0)
    assert calculate_dv_from_protein(12.5) == pytest.approx(25.0)
    assert calculate_dv_from_protein(0.0) == 0.0


@pytest.mark.parametrize("value", [0.0, 1.0, 12.5, 33.3, 100.0, 250.0, -40.0])
def test_dv_conversions_are_inverse(value: float) -> None:
    assert calculate_dv_from_protein(calculate_protein_from_dv(value)) == pytest.approx(value)
    assert calculate_protein_from_dv(calculate_dv_from_protein(value)) == pytest.approx(value)


@pytest.mark.parametrize(
    ("diaas", "pdcaas", "expected"),
    [
        (1.25, None, "Excellent"),
        (1.0, None, "Excellent"),
        (0.99, None, "High"),
        (0.8, None, "High"),
        (0.79, None, "Good"),
        (0.6, None, "Good"),
        (0.59, None, "Fair"),
        (0.4, None, "Fair"),
        (0.37, None, "Poor"),
        (0.01, None, "Poor"),
        (0.0, None, "Incomplete"),
        (None, None, "Incomplete"),
        (None, 0.8, "High"),
    ],
)
def test_quality_rating_bands(diaas, pdcaas, expected) -> None:
    assert get_protein_quality_rating(_source(diaas, pdcaas)).rating == expected


def test_quality_rating_has_description_and_color() -> None:
    rating = get_protein_quality_rating(BCAA)
    assert rating.description == "Missing essential amino acids"
    assert rating.color == "#B71C1C"
    assert get_protein_quality_rating(WHEY).description == "Complete, high-quality protein"


def test_rating_and_calculation_use_different_fallbacks() -> None:
    assert effective_quality_score(BCAA) == 0.0
    assert _calc(10.0, BCAA).score_used == 0.75


@pytest.mark.parametrize(
    ("percentage", "band"),
    [
        (0.0, "red"),
        (40.0, "red"),
        (40.01, "yellow"),
        (80.0, "yellow"),
        (80.01, "green"),
        (125.0, "green"),
    ],
)
def test_digestibility_band_boundaries(percentage: float, band: str) -> None:
    assert digestibility_band(percentage) == band
    assert get_digestibility_color(percentage) == DIGESTIBILITY_COLORS[band]
    assert get_digestibility_color(percentage, STREAMLIT_COLORS) == STREAMLIT_COLORS[band]


def test_digestibility_color_palette() -> None:
    assert get_digestibility_color(40) == "#FF5252"
    assert get_digestibility_color(60) == "#FFD54F"
    assert get_digestibility_color(90) == "#66BB6A"


def test_compare_protein_quality() -> None:
    assert compare_protein_quality(WHEY, CHICKPEAS) == 1
    assert compare_protein_quality(CHICKPEAS, WHEY) == -1
    assert compare_protein_quality(WHEY, _source(1.25)) == 0
    assert compare_protein_quality(BCAA, _source(0.0)) == 0
    assert compare_protein_quality(BCAA, _source(None, 0.2)) == -1


def test_sort_by_quality_is_stable() -> None:
    a = _source(0.5, name="A")
    b = _source(None, 0.9, name="B")
    c = _source(0.5, name="C")
    assert [s.name for s in sort_by_quality([a, b, c, BCAA])] == ["B", "A", "C", "BCAA Powder"]
    assert [s.name for s in sort_by_quality([a, b, c], descending=False)] == ["A", "C", "B"]


def test_create_calculation_record() -> None:
    calc_input = CalculationInput(stated_protein=20.0, dv_percentage=25.0, protein_source=CHICKPEAS)
    result = calculate_digestible_protein(calc_input)
    record = create_calculation_record(calc_input, result)
    assert record.id
    assert record.timestamp.tzinfo is not None
    assert record.stated_protein == 20.0
    assert record.dv_percentage == 25.0
    assert record.protein_source == CHICKPEAS
    assert record.digestible_protein == pytest.approx(7.25)
    assert record.digestibility_percentage == pytest.approx(36.25)
    assert record.calculation_method == "DIAAS"

    other = create_calculation_record(calc_input, result)
    assert other.id != record.id

    fixed = create_calculation_record(
        calc_input, result, record_id="abc", timestamp=datetime(2024, 1, 1, tzinfo=UTC)
    )
    assert fixed.id == "abc"
    assert fixed.timestamp == datetime(2024, 1, 1, tzinfo=UTC)


def test_formatting() -> None:
    assert format_protein_amount(12.5) == "12.5g"
    assert format_protein_amount(7.25) == "7.2g"
    assert format_percentage(36.25) == "36.2%"
    assert format_percentage(125) == "125.0%"


@pytest.mark.parametrize(
    ("stated", "dv"),
    [
        (0.0, None),
        (-1.0, None),
        (math.nan, None),
        (math.inf, None),
        (10.0, -5.0),
        (10.0, math.nan),
    ],
)
def test_validate_rejects_degenerate_input(stated: float, dv: float | None) -> None:
    with pytest.raises(CalculationInputError):
        validate_calculation_input(CalculationInput(stated_protein=stated, dv_percentage=dv, protein_source=WHEY))


def test_validate_accepts_good_input() -> None:
    calc_input = CalculationInput(stated_protein=10.0, dv_percentage=0.0, protein_source=WHEY)
    assert validate_calculation_input(calc_input) is calc_input


def test_parse_calculation_input() -> None:
    parsed = parse_calculation_input(" 20 ", "25", CHICKPEAS)
    assert parsed.stated_protein == 20.0
    assert parsed.dv_percentage == 25.0
    assert parsed.protein_source == CHICKPEAS

    assert parse_calculation_input("20", "", WHEY).dv_percentage is None
    assert parse_calculation_input("20", None, WHEY).dv_percentage is None
    assert parse_calculation_input("20", "0", WHEY).dv_percentage is None


@pytest.mark.parametrize(
    ("stated", "dv", "has_source"),
    [
        ("", "", True),
        ("abc", "", True),
        ("0", "", True),
        ("-3", "", True),
        ("20", "lots", True),
        ("20", "-1", True),
        ("20", "", False),
    ],
)
def test_parse_calculation_input_errors(stated: str, dv: str, has_source: bool) -> None:
    with pytest.raises(CalculationInputError):
        parse_calculation_input(stated, dv, WHEY if has_source else None)


def test_input_error_is_value_error() -> None:
    assert issubclass(CalculationInputError, ValueError)
