from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Literal

ProteinCategory = Literal["all", "meat", "dairy", "plant", "supplement", "other"]
CalculationMethod = Literal["DIAAS", "PDCAAS"]
QualityRating = Literal["Excellent", "High", "Good", "Fair", "Poor", "Incomplete"]

# Enum order; "all" is a filter value only.
CATEGORIES: tuple[ProteinCategory, ...] = ("all", "meat", "dairy", "plant", "supplement", "other")
CATEGORY_DISPLAY_NAMES: dict[ProteinCategory, str] = {
    "all": "All Sources",
    "meat": "Meat & Fish",
    "dairy": "Dairy & Eggs",
    "plant": "Plant Sources",
    "supplement": "Supplements",
    "other": "Other",
}
CALCULATION_METHODS: tuple[CalculationMethod, ...] = ("DIAAS", "PDCAAS")

RATING_COLORS: dict[QualityRating, str] = {
    "Excellent": "#1B5E20",
    "High": "#2E7D32",
    "Good": "#F57F17",
    "Fair": "#E65100",
    "Poor": "#C62828",
    "Incomplete": "#B71C1C",
}


@dataclass(frozen=True)
class AminoAcidProfile:
    """Indispensable amino acid content, mg per g of protein."""

    histidine: float
    isoleucine: float
    leucine: float
    lysine: float
    methionine: float
    phenylalanine: float
    threonine: float
    tryptophan: float
    valine: float


@dataclass(frozen=True)
class ProteinSource:
    """A catalog entry with its published quality scores."""

    id: str
    name: str
    category: ProteinCategory
    diaas_score: float | None = None
    pdcaas_score: float | None = None
    amino_acid_profile: AminoAcidProfile | None = None
    description: str | None = None

    def __post_init__(self) -> None:
        if not self.id.strip():
            raise ValueError("id cannot be empty")
        if not self.name.strip():
            raise ValueError("name cannot be empty")
        if self.category == "all":
            raise ValueError("'all' is a filter category and cannot be assigned to a source")
        if self.category not in CATEGORIES:
            raise ValueError(f"category must be one of: {', '.join(CATEGORIES[1:])}")
        if self.diaas_score is not None and self.diaas_score < 0:
            raise ValueError("diaas_score must be >= 0")

    @property
    def category_display_name(self) -> str:
        return CATEGORY_DISPLAY_NAMES[self.category]


@dataclass(frozen=True)
class CalculationInput:
    stated_protein: float
    dv_percentage: float | None
    protein_source: ProteinSource


@dataclass(frozen=True)
class CalculationResult:
    quality_adjusted_protein: float
    protein_quality_percentage: float
    calculation_method: CalculationMethod
    adjusted_protein: float | None
    score_used: float
    dv_discrepancy: float | None


@dataclass(frozen=True)
class CalculationRecord:
    """A persisted calculation: the input plus the headline numbers of its result."""

    id: str
    stated_protein: float
    dv_percentage: float | None
    protein_source: ProteinSource
    digestible_protein: float
    digestibility_percentage: float
    calculation_method: CalculationMethod
    timestamp: datetime


@dataclass(frozen=True)
class ProteinQualityRating:
    rating: QualityRating
    description: str

    @property
    def color(self) -> str:
        return RATING_COLORS[self.rating]


@dataclass(frozen=True)
class CalculationStatistics:
    total_calculations: int
    average_stated_protein: float
    average_quality_adjusted_protein: float
    most_used_sources: list[tuple[str, int]]
