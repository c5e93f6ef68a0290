from __future__ import annotations

import re
from collections.abc import Iterable, Iterator

from .calculations import sort_by_quality
from .models import CATEGORIES, ProteinCategory, ProteinSource


def _slug(name: str) -> str:
    return re.sub(r"[^a-z0-9]+", "-", name.lower()).strip("-")


def _source(
    name: str,
    category: ProteinCategory,
    diaas: float | None,
    pdcaas: float | None,
    description: str,
) -> ProteinSource:
    return ProteinSource(
        id=_slug(name),
        name=name,
        category=category,
        diaas_score=diaas,
        pdcaas_score=pdcaas,
        description=description,
    )


# (name, category, DIAAS, PDCAAS, description)
_SOURCE_TABLE: tuple[tuple[str, ProteinCategory, float | None, float | None, str], ...] = (
    # meat & fish
    ("Beef (Lean)", "meat", 1.11, 0.92, "High-quality complete protein"),
    ("Chicken Breast", "meat", 1.08, 0.97, "Lean, complete protein source"),
    ("Fish (Salmon)", "meat", 1.09, 1.0, "Complete protein with omega-3 fatty acids"),
    ("Pork (Lean)", "meat", 1.06, 0.87, "Complete protein source"),
    ("Turkey Breast", "meat", 1.07, 0.95, "Lean, high-quality protein"),
    ("Tuna (Canned)", "meat", 1.08, 1.0, "Lean fish protein"),
    ("Sardines", "meat", 1.05, 1.0, "Small fish with complete protein"),
    ("Shrimp", "meat", 1.09, 1.0, "Low-fat seafood protein"),
    # dairy & eggs
    ("Milk (Whole)", "dairy", 1.18, 1.0, "Complete protein with casein and whey"),
    ("Egg (Whole)", "dairy", 1.13, 1.0, "Gold standard for protein quality"),
    ("Greek Yogurt", "dairy", 1.15, 1.0, "Concentrated protein with probiotics"),
    ("Cottage Cheese", "dairy", 1.16, 1.0, "High-casein dairy protein"),
    ("Cheddar Cheese", "dairy", 1.12, 1.0, "Complete dairy protein"),
    # plants, grains, vegetables
    ("Tofu (Firm)", "plant", 0.87, 0.95, "Complete plant protein"),
    ("Quinoa", "plant", 0.84, 0.73, "Complete grain protein"),
    ("Hemp Seeds", "plant", 0.61, 0.63, "Complete plant protein with healthy fats"),
    ("Lentils (Cooked)", "plant", 0.63, 0.52, "High-fiber legume protein"),
    ("Chickpeas (Cooked)", "plant", 0.58, 0.71, "Versatile legume protein"),
    ("Black Beans (Cooked)", "plant", 0.56, 0.65, "High-fiber bean protein"),
    ("Almonds", "plant", 0.40, 0.52, "Nut protein with healthy fats"),
    ("Peanuts", "plant", 0.43, 0.52, "Legume with moderate protein quality"),
    ("Chia Seeds", "plant", 0.58, None, "Seeds with omega-3 fatty acids"),
    ("Pumpkin Seeds", "plant", 0.46, None, "Mineral-rich seed protein"),
    ("Oats", "plant", 0.54, 0.57, "Whole grain with moderate protein"),
    ("Wheat (Whole)", "plant", 0.45, 0.54, "Cereal grain protein"),
    ("Barley", "plant", 0.56, None, "Ancient grain protein"),
    ("Broccoli", "plant", 0.58, None, "Vegetable with moderate protein"),
    ("Spinach", "plant", 0.51, None, "Leafy green with some protein"),
    # supplements
    ("Whey Protein Isolate", "supplement", 1.25, 1.0, "Complete protein with excellent amino acid profile"),
    ("Whey Protein Concentrate", "supplement", 1.20, 1.0, "High-quality protein with good bioavailability"),
    ("Casein Protein", "supplement", 1.14, 1.0, "Slow-digesting complete protein"),
    ("Soy Protein Isolate", "supplement", 0.90, 1.0, "Highest quality plant protein"),
    ("Spirulina", "supplement", 0.69, 0.68, "Blue-green algae protein"),
    ("Pea Protein", "supplement", 0.67, 0.69, "Popular plant protein powder"),
    ("Brown Rice Protein", "supplement", 0.42, 0.55, "Hypoallergenic grain protein"),
    ("Collagen Peptides", "supplement", 0.37, None, "Incomplete protein for skin/joint health"),
    ("BCAA Powder", "supplement", None, None, "Branched-chain amino acids only"),
)

DEFAULT_SOURCES: tuple[ProteinSource, ...] = tuple(_source(*row) for row in _SOURCE_TABLE)


class ProteinCatalog:
    """Read-only collection of protein sources.

    Built explicitly and passed to whatever needs lookups; tests can build
    one from their own sources.
    """

    def __init__(self, sources: Iterable[ProteinSource]) -> None:
        items = tuple(sources)
        by_id: dict[str, ProteinSource] = {}
        for source in items:
            if source.category == "all":
                raise ValueError(f"{source.name}: 'all' cannot be assigned to a source")
            if source.id in by_id:
                raise ValueError(f"Duplicate protein source id: {source.id}")
            by_id[source.id] = source
        self._sources = items
        self._by_id = by_id

    def __len__(self) -> int:
        return len(self._sources)

    def __iter__(self) -> Iterator[ProteinSource]:
        return iter(self._sources)

    def __contains__(self, source_id: object) -> bool:
        return source_id in self._by_id

    def get(self, source_id: str) -> ProteinSource | None:
        return self._by_id.get(source_id)

    def categories(self) -> list[ProteinCategory]:
        used = {source.category for source in self._sources}
        return [category for category in CATEGORIES if category in used]

    def get_sources(self, category: ProteinCategory = "all") -> list[ProteinSource]:
        if category not in CATEGORIES:
            raise ValueError(f"category must be one of: {', '.join(CATEGORIES)}")
        sources = self._sources if category == "all" else [s for s in self._sources if s.category == category]
        return sorted(sources, key=lambda s: s.name)

    def search_sources(self, query: str, category: ProteinCategory = "all") -> list[ProteinSource]:
        sources = self.get_sources(category)
        q = query.strip().lower()
        if not q:
            return sources
        return [
            s for s in sources
            if q in s.name.lower() or (s.description is not None and q in s.description.lower())
        ]

    def highest_quality_sources(self, limit: int = 10) -> list[ProteinSource]:
        if limit <= 0:
            raise ValueError("limit must be > 0")
        return sort_by_quality(self._sources)[:limit]


def default_catalog() -> ProteinCatalog:
    return ProteinCatalog(DEFAULT_SOURCES)
