from __future__ import annotations

import logging
import math
from collections.abc import Iterable
from datetime import UTC, datetime
from functools import cmp_to_key
from typing import Literal
from uuid import uuid4

from .models import (
    CalculationInput,
    CalculationMethod,
    CalculationRecord,
    CalculationResult,
    ProteinQualityRating,
    ProteinSource,
)

logger = logging.getLogger(__name__)

# Regulatory reference daily value for protein, grams per day.
FDA_DAILY_VALUE_PROTEIN = 50.0
# Stated-vs-DV differences at or below this many grams are not reported.
DV_DISCREPANCY_THRESHOLD = 0.5
# Applied when a source has neither score; reported as DIAAS.
DEFAULT_QUALITY_SCORE = 0.75

DigestibilityBand = Literal["red", "yellow", "green"]

DIGESTIBILITY_COLORS: dict[DigestibilityBand, str] = {
    "red": "#FF5252",
    "yellow": "#FFD54F",
    "green": "#66BB6A",
}
# Named colors understood by streamlit markdown (:red[...] etc.).
STREAMLIT_COLORS: dict[DigestibilityBand, str] = {
    "red": "red",
    "yellow": "orange",
    "green": "green",
}


class CalculationInputError(ValueError):
    """Raised by the explicit validation step, never by the calculation itself."""


def _divide(numerator: float, denominator: float) -> float:
    # IEEE 754 semantics instead of ZeroDivisionError.
    try:
        return numerator / denominator
    except ZeroDivisionError:
        if numerator == 0 or math.isnan(numerator):
            return math.nan
        return math.copysign(math.inf, numerator) * math.copysign(1.0, denominator)


def calculate_protein_from_dv(dv_percentage: float) -> float:
    """Convert a Daily Value percentage into grams of protein."""
    return (dv_percentage / 100) * FDA_DAILY_VALUE_PROTEIN


def calculate_dv_from_protein(protein_grams: float) -> float:
    """Convert grams of protein into a Daily Value percentage."""
    return (protein_grams / FDA_DAILY_VALUE_PROTEIN) * 100


def resolve_quality_score(source: ProteinSource) -> tuple[float, CalculationMethod]:
    """Score and method used by `calculate_digestible_protein`.

    DIAAS wins over PDCAAS. A source with neither is scored at
    ``DEFAULT_QUALITY_SCORE`` under DIAAS. Comparison and rating use
    `effective_quality_score` instead, which falls back to 0.
    """
    if source.diaas_score is not None:
        return source.diaas_score, "DIAAS"
    if source.pdcaas_score is not None:
        return source.pdcaas_score, "PDCAAS"
    logger.debug("No quality score for %s, using default %.2f", source.name, DEFAULT_QUALITY_SCORE)
    return DEFAULT_QUALITY_SCORE, "DIAAS"


def effective_quality_score(source: ProteinSource) -> float:
    """Score used for comparing and rating sources: DIAAS, then PDCAAS, then 0."""
    if source.diaas_score is not None:
        return source.diaas_score
    if source.pdcaas_score is not None:
        return source.pdcaas_score
    return 0.0


def calculate_digestible_protein(calc_input: CalculationInput) -> CalculationResult:
    """Calculate quality-adjusted protein from a stated amount or DV%.

    A DV% above zero replaces the stated grams as the base amount. The
    quality percentage is always relative to the stated grams, so with a
    DV% it reflects both the substitution and the score.

    Total over numeric input: a zero or negative stated amount yields
    inf/nan/negative percentages rather than an exception. Call
    `validate_calculation_input` first to get a reported error instead.
    """
    stated_protein = calc_input.stated_protein
    dv_percentage = calc_input.dv_percentage

    adjusted_protein = stated_protein
    dv_discrepancy: float | None = None
    if dv_percentage is not None and dv_percentage > 0:
        protein_from_dv = calculate_protein_from_dv(dv_percentage)
        adjusted_protein = protein_from_dv
        discrepancy = abs(protein_from_dv - stated_protein)
        if discrepancy > DV_DISCREPANCY_THRESHOLD:
            dv_discrepancy = discrepancy

    score, method = resolve_quality_score(calc_input.protein_source)
    quality_adjusted = adjusted_protein * score
    percentage = _divide(quality_adjusted, stated_protein) * 100

    return CalculationResult(
        quality_adjusted_protein=quality_adjusted,
        protein_quality_percentage=percentage,
        calculation_method=method,
        adjusted_protein=adjusted_protein if dv_percentage is not None else None,
        score_used=score,
        dv_discrepancy=dv_discrepancy,
    )


def create_calculation_record(
    calc_input: CalculationInput,
    result: CalculationResult,
    *,
    record_id: str | None = None,
    timestamp: datetime | None = None,
) -> CalculationRecord:
    return CalculationRecord(
        id=record_id or str(uuid4()),
        stated_protein=calc_input.stated_protein,
        dv_percentage=calc_input.dv_percentage,
        protein_source=calc_input.protein_source,
        digestible_protein=result.quality_adjusted_protein,
        digestibility_percentage=result.protein_quality_percentage,
        calculation_method=result.calculation_method,
        timestamp=timestamp or datetime.now(tz=UTC),
    )


def compare_protein_quality(source_a: ProteinSource, source_b: ProteinSource) -> int:
    """Return -1, 0 or 1 as `source_a` scores lower than, equal to or higher than `source_b`."""
    score_a = effective_quality_score(source_a)
    score_b = effective_quality_score(source_b)
    if score_a > score_b:
        return 1
    if score_a < score_b:
        return -1
    return 0


def sort_by_quality(sources: Iterable[ProteinSource], *, descending: bool = True) -> list[ProteinSource]:
    return sorted(sources, key=cmp_to_key(compare_protein_quality), reverse=descending)


def get_protein_quality_rating(source: ProteinSource) -> ProteinQualityRating:
    score = effective_quality_score(source)
    if score >= 1.0:
        return ProteinQualityRating("Excellent", "Complete, high-quality protein")
    if score >= 0.8:
        return ProteinQualityRating("High", "Good quality protein with minor limitations")
    if score >= 0.6:
        return ProteinQualityRating("Good", "Moderate quality protein")
    if score >= 0.4:
        return ProteinQualityRating("Fair", "Lower quality protein")
    if score > 0:
        return ProteinQualityRating("Poor", "Limited protein quality")
    return ProteinQualityRating("Incomplete", "Missing essential amino acids")


def digestibility_band(percentage: float) -> DigestibilityBand:
    """Classify a quality percentage: <=40 red, <=80 yellow, otherwise green."""
    if percentage <= 40:
        return "red"
    if percentage <= 80:
        return "yellow"
    return "green"


def get_digestibility_color(
    percentage: float,
    palette: dict[DigestibilityBand, str] = DIGESTIBILITY_COLORS,
) -> str:
    return palette[digestibility_band(percentage)]


def format_protein_amount(amount: float) -> str:
    return f"{amount:.1f}g"


def format_percentage(percentage: float) -> str:
    return f"{percentage:.1f}%"


def validate_calculation_input(calc_input: CalculationInput) -> CalculationInput:
    stated = calc_input.stated_protein
    if not isinstance(stated, (int, float)) or not math.isfinite(stated) or stated <= 0:
        raise CalculationInputError("stated_protein must be a finite number greater than 0")
    dv = calc_input.dv_percentage
    if dv is not None and (not isinstance(dv, (int, float)) or not math.isfinite(dv) or dv < 0):
        raise CalculationInputError("dv_percentage must be a finite number >= 0")
    if calc_input.protein_source is None:
        raise CalculationInputError("protein_source is required")
    return calc_input


def _parse_number(text: str, field: str) -> float:
    try:
        return float(text.strip())
    except (TypeError, ValueError):
        raise CalculationInputError(f"{field} must be a number, got {text!r}") from None


def parse_calculation_input(
    stated_text: str,
    dv_text: str | None,
    source: ProteinSource | None,
) -> CalculationInput:
    """Build a validated input from raw form text.

    An empty DV field or a DV of 0 means "no DV%".
    """
    if source is None:
        raise CalculationInputError("protein_source is required")
    if not stated_text or not stated_text.strip():
        raise CalculationInputError("stated_protein is required")
    stated = _parse_number(stated_text, "stated_protein")
    dv: float | None = None
    if dv_text is not None and dv_text.strip():
        dv = _parse_number(dv_text, "dv_percentage")
        if dv == 0:
            dv = None
    return validate_calculation_input(CalculationInput(stated_protein=stated, dv_percentage=dv, protein_source=source))
