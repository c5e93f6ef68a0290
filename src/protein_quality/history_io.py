from __future__ import annotations

import json
import logging
import math
from dataclasses import asdict, fields
from datetime import UTC, datetime
from pathlib import Path
from typing import TYPE_CHECKING, Any

from .models import CALCULATION_METHODS, AminoAcidProfile, CalculationRecord, ProteinSource

if TYPE_CHECKING:
    from .history import HistoryStore

logger = logging.getLogger(__name__)

_AMINO_ACIDS = tuple(f.name for f in fields(AminoAcidProfile))


class HistoryImportError(ValueError):
    """Raised when an import payload cannot be decoded into calculation records."""


def _to_float(value: Any, field: str) -> float:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise HistoryImportError(f"{field} must be a number, got {value!r}")
    return float(value)


def _to_optional_float(value: Any, field: str) -> float | None:
    if value is None:
        return None
    return _to_float(value, field)


def _to_str(value: Any, field: str) -> str:
    if not isinstance(value, str) or not value.strip():
        raise HistoryImportError(f"{field} must be a non-empty string")
    return value


def _json_number(value: float) -> float | None:
    # JSON has no inf/nan.
    return value if math.isfinite(value) else None


def format_timestamp(value: datetime) -> str:
    if value.tzinfo is None:
        value = value.replace(tzinfo=UTC)
    return value.astimezone(UTC).isoformat(timespec="microseconds").replace("+00:00", "Z")


def parse_timestamp(raw: str) -> datetime:
    text = raw.strip()
    if text.endswith(("Z", "z")):
        text = text[:-1] + "+00:00"
    try:
        parsed = datetime.fromisoformat(text)
    except ValueError:
        raise HistoryImportError(f"timestamp is not ISO-8601: {raw!r}") from None
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=UTC)
    return parsed.astimezone(UTC)


def source_to_dict(source: ProteinSource) -> dict[str, Any]:
    data: dict[str, Any] = {
        "id": source.id,
        "name": source.name,
        "category": source.category,
    }
    if source.diaas_score is not None:
        data["diaasScore"] = source.diaas_score
    if source.pdcaas_score is not None:
        data["pdcaasScore"] = source.pdcaas_score
    if source.amino_acid_profile is not None:
        data["aminoAcidProfile"] = asdict(source.amino_acid_profile)
    if source.description is not None:
        data["description"] = source.description
    return data


def source_from_dict(data: Any) -> ProteinSource:
    if not isinstance(data, dict):
        raise HistoryImportError("proteinSource must be an object")
    profile_raw = data.get("aminoAcidProfile")
    profile: AminoAcidProfile | None = None
    if profile_raw is not None:
        if not isinstance(profile_raw, dict):
            raise HistoryImportError("aminoAcidProfile must be an object")
        profile = AminoAcidProfile(
            **{name: _to_float(profile_raw.get(name), f"aminoAcidProfile.{name}") for name in _AMINO_ACIDS}
        )
    description = data.get("description")
    try:
        return ProteinSource(
            id=_to_str(data.get("id"), "proteinSource.id"),
            name=_to_str(data.get("name"), "proteinSource.name"),
            category=_to_str(data.get("category"), "proteinSource.category"),
            diaas_score=_to_optional_float(data.get("diaasScore"), "proteinSource.diaasScore"),
            pdcaas_score=_to_optional_float(data.get("pdcaasScore"), "proteinSource.pdcaasScore"),
            amino_acid_profile=profile,
            description=description if isinstance(description, str) else None,
        )
    except HistoryImportError:
        raise
    except ValueError as exc:
        raise HistoryImportError(f"invalid proteinSource: {exc}") from exc


def record_to_dict(record: CalculationRecord) -> dict[str, Any]:
    data: dict[str, Any] = {
        "id": record.id,
        "statedProtein": record.stated_protein,
        "proteinSource": source_to_dict(record.protein_source),
        "digestibleProtein": _json_number(record.digestible_protein),
        "digestibilityPercentage": _json_number(record.digestibility_percentage),
        "calculationMethod": record.calculation_method,
        "timestamp": format_timestamp(record.timestamp),
    }
    if record.dv_percentage is not None:
        data["dvPercentage"] = record.dv_percentage
    return data


def record_from_dict(data: Any) -> CalculationRecord:
    if not isinstance(data, dict):
        raise HistoryImportError("each record must be an object")
    method = data.get("calculationMethod")
    if method not in CALCULATION_METHODS:
        raise HistoryImportError(f"calculationMethod must be one of {CALCULATION_METHODS}, got {method!r}")
    digestible = data.get("digestibleProtein")
    percentage = data.get("digestibilityPercentage")
    return CalculationRecord(
        id=_to_str(data.get("id"), "id"),
        stated_protein=_to_float(data.get("statedProtein"), "statedProtein"),
        dv_percentage=_to_optional_float(data.get("dvPercentage"), "dvPercentage"),
        protein_source=source_from_dict(data.get("proteinSource")),
        digestible_protein=math.nan if digestible is None else _to_float(digestible, "digestibleProtein"),
        digestibility_percentage=math.nan if percentage is None else _to_float(percentage, "digestibilityPercentage"),
        calculation_method=method,
        timestamp=parse_timestamp(_to_str(data.get("timestamp"), "timestamp")),
    )


def dump_records(records: list[CalculationRecord], *, indent: int | None = 2) -> str:
    return json.dumps([record_to_dict(r) for r in records], ensure_ascii=False, indent=indent)


def load_records(payload: str | bytes) -> list[CalculationRecord]:
    try:
        data = json.loads(payload)
    except (json.JSONDecodeError, UnicodeDecodeError) as exc:
        raise HistoryImportError(f"payload is not valid JSON: {exc}") from exc
    if not isinstance(data, list):
        raise HistoryImportError("payload must be a JSON array of records")
    records: list[CalculationRecord] = []
    for idx, item in enumerate(data):
        try:
            records.append(record_from_dict(item))
        except HistoryImportError as exc:
            raise HistoryImportError(f"record {idx}: {exc}") from exc
    return records


def export_history_file(store: HistoryStore, path: Path) -> int:
    payload = store.export_all()
    path.write_text(payload, encoding="utf-8")
    count = len(json.loads(payload))
    logger.info("Exported %d records to %s", count, path)
    return count


def import_history_file(store: HistoryStore, path: Path, *, replace_existing: bool = False) -> int:
    payload = path.read_text(encoding="utf-8")
    accepted = store.import_merge(payload, replace_existing=replace_existing)
    logger.info("Imported %d records from %s (replace=%s)", accepted, path, replace_existing)
    return accepted
