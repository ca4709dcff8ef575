"""
Entity-driven shipment enrichment.

- build_linking_keys: identifiers of one email from its entity extractions
- parse_entity_date: ISO and common freight date formats (dateutil)
- build_field_updates: fill-empty-only updates for a shipment

A field is written only when it is currently empty on the shipment; the first
entity (in extraction order) providing a value wins.
"""

import re
from datetime import datetime, timezone
from typing import Any, Iterable, Optional

import structlog
from dateutil import parser as date_parser
from dateutil.parser import ParserError

from shipment_intel.models.enums import EntityType
from shipment_intel.models.shipment_models import EntityExtraction, LinkingKeys, Shipment


logger = structlog.get_logger(__name__)

E = EntityType

# Shipment field -> entity types that can fill it, in preference order
TEXT_FIELD_SOURCES = {
    "booking_number": (E.BOOKING_NUMBER,),
    "bl_number": (E.BL_NUMBER,),
    "container_number_primary": (E.CONTAINER_NUMBER,),
    "vessel_name": (E.VESSEL_NAME,),
    "voyage_number": (E.VOYAGE_NUMBER,),
    "port_of_loading": (E.PORT_OF_LOADING,),
    "port_of_loading_code": (E.PORT_OF_LOADING_CODE,),
    "port_of_discharge": (E.PORT_OF_DISCHARGE,),
    "port_of_discharge_code": (E.PORT_OF_DISCHARGE_CODE,),
    "place_of_receipt": (E.PLACE_OF_RECEIPT,),
    "place_of_delivery": (E.PLACE_OF_DELIVERY,),
    "commodity_description": (E.COMMODITY_DESCRIPTION, E.COMMODITY),
    "weight_unit": (E.WEIGHT_UNIT,),
    "volume_unit": (E.VOLUME_UNIT,),
    "incoterms": (E.INCOTERMS,),
    "freight_terms": (E.FREIGHT_TERMS,),
}

DATE_FIELD_SOURCES = {
    "etd": (E.ETD, E.ESTIMATED_DEPARTURE_DATE),
    "eta": (E.ETA, E.ESTIMATED_ARRIVAL_DATE),
    "atd": (E.ATD,),
    "ata": (E.ATA,),
    "si_cutoff": (E.SI_CUTOFF,),
    "vgm_cutoff": (E.VGM_CUTOFF,),
    "cargo_cutoff": (E.CARGO_CUTOFF,),
    "gate_cutoff": (E.GATE_CUTOFF,),
}

NUMERIC_FIELD_SOURCES = {
    "total_weight": (E.WEIGHT, "weight_unit"),
    "total_volume": (E.VOLUME, "volume_unit"),
}

# Propagated after an auto-link
CUTOFF_FIELDS = ("si_cutoff", "vgm_cutoff", "cargo_cutoff", "gate_cutoff", "etd", "eta")

# Backfilled on auto-link and resync (everything except dates)
BACKFILL_FIELDS = (
    tuple(TEXT_FIELD_SOURCES) + tuple(NUMERIC_FIELD_SOURCES) + ("container_numbers",) + ("atd", "ata")
)

ALL_FIELDS = BACKFILL_FIELDS + CUTOFF_FIELDS

_NUMBER = re.compile(r'(-?\d[\d,]*(?:\.\d+)?)\s*([A-Za-z]{1,6}\.?)?')
_CONTAINER_NOISE = re.compile(r'[\s\-/]')
_DATE_NOISE = re.compile(r"\b(?:hrs|hours|lt)\b\.?", re.IGNORECASE)
_YEAR_FIRST = re.compile(r"^\d{4}[-/.]")


def normalize_identifier(value: str) -> str:
    return value.strip().upper()


def normalize_container_number(value: str) -> str:
    """'MSKU 123456-7' -> 'MSKU1234567'."""
    return _CONTAINER_NOISE.sub("", value).upper()


def _unique(values: Iterable[str]) -> list[str]:
    seen = []
    for value in values:
        if value and value not in seen:
            seen.append(value)
    return seen


def _values(entities: Iterable[EntityExtraction], entity_type: EntityType) -> list[str]:
    return [e.value.strip() for e in entities if e.entity_type == entity_type.value and e.value and e.value.strip()]


def build_linking_keys(entities: list[EntityExtraction]) -> LinkingKeys:
    """Every identifier value of every type, de-duplicated in extraction order."""
    vessels = _values(entities, E.VESSEL_NAME)
    voyages = _values(entities, E.VOYAGE_NUMBER)
    return LinkingKeys(
        booking_numbers=_unique(normalize_identifier(v) for v in _values(entities, E.BOOKING_NUMBER)),
        bl_numbers=_unique(normalize_identifier(v) for v in _values(entities, E.BL_NUMBER)),
        container_numbers=_unique(normalize_container_number(v) for v in _values(entities, E.CONTAINER_NUMBER)),
        reference_numbers=_unique(normalize_identifier(v) for v in _values(entities, E.REFERENCE_NUMBER)),
        vessel_name=vessels[0] if vessels else None,
        voyage_number=voyages[0] if voyages else None,
    )


def parse_entity_date(value: Optional[str]) -> Optional[datetime]:
    """
    Parse an extracted date; naive results are taken as UTC.

    Day-first unless the value starts with a four-digit year, so
    "05/01/2025" is 5 January and "2025-01-05" stays ISO. Trailing
    "hrs" / "LT" markers are ignored. Returns None for anything unparseable.

    Examples:
        >>> parse_entity_date("15-Jan-2025 14:00").hour
        14
    """
    if not value:
        return None
    text = _DATE_NOISE.sub(" ", value).strip()
    if not text:
        return None

    year_first = bool(_YEAR_FIRST.match(text))
    try:
        parsed = date_parser.parse(text, dayfirst=not year_first, yearfirst=year_first)
    except (ParserError, OverflowError, ValueError):
        logger.debug("Unparseable entity date", value=value)
        return None

    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


def parse_quantity(value: Optional[str]) -> tuple[Optional[float], Optional[str]]:
    """'12,500.5 KGS' -> (12500.5, 'KGS')."""
    if not value:
        return None, None
    match = _NUMBER.search(value)
    if not match:
        return None, None
    try:
        amount = float(match.group(1).replace(",", ""))
    except ValueError:
        return None, None
    unit = match.group(2).rstrip(".").upper() if match.group(2) else None
    return amount, unit


def _is_empty(value: Any) -> bool:
    return value is None or value == "" or value == []


def build_field_updates(
    shipment: Shipment,
    entities: list[EntityExtraction],
    fields: Iterable[str] = ALL_FIELDS,
) -> dict[str, Any]:
    """
    Updates for the currently-empty `fields` of `shipment`.

    Non-empty shipment values are never overwritten.
    """
    wanted = set(fields)
    updates: dict[str, Any] = {}

    def empty(field_name: str) -> bool:
        return field_name in wanted and field_name not in updates and _is_empty(getattr(shipment, field_name))

    for field_name, sources in TEXT_FIELD_SOURCES.items():
        if not empty(field_name):
            continue
        for entity_type in sources:
            values = _values(entities, entity_type)
            if values:
                if field_name == "container_number_primary":
                    updates[field_name] = normalize_container_number(values[0])
                elif field_name in ("booking_number", "bl_number"):
                    updates[field_name] = normalize_identifier(values[0])
                else:
                    updates[field_name] = values[0]
                break

    if empty("container_numbers"):
        containers = _unique(normalize_container_number(v) for v in _values(entities, E.CONTAINER_NUMBER))
        if containers:
            updates["container_numbers"] = containers

    for field_name, (entity_type, unit_field) in NUMERIC_FIELD_SOURCES.items():
        if not empty(field_name):
            continue
        for raw in _values(entities, entity_type):
            amount, unit = parse_quantity(raw)
            if amount is None:
                continue
            updates[field_name] = amount
            if unit and unit_field in wanted and unit_field not in updates and _is_empty(getattr(shipment, unit_field)):
                updates[unit_field] = unit
            break

    for field_name, sources in DATE_FIELD_SOURCES.items():
        if not empty(field_name):
            continue
        parsed = next(
            (d for entity_type in sources for d in map(parse_entity_date, _values(entities, entity_type)) if d),
            None,
        )
        if parsed is not None:
            updates[field_name] = parsed

    return updates
