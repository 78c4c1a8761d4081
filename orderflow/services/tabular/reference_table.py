# orderflow/services/tabular/reference_table.py
"""
ReferencePack <-> one table per dictionary.

Sheet names and column headers are matched tolerantly (exact, alias, then
partial) because packs are maintained by hand in spreadsheets.
"""

from __future__ import annotations

import json
import logging
from typing import Any, Callable, Dict, List, Optional

from orderflow.services.policy.loader import parse_reference_pack
from orderflow.services.reference.schema import ReferencePack
from orderflow.services.tabular.headers import (
    cell,
    join_list,
    read_csv_rows,
    resolve_headers,
    split_list,
    write_csv,
)
from orderflow.services.versioning import utc_now_iso

logger = logging.getLogger(__name__)


SHEETS = {
    "manufacturers": "Manufacturers",
    "finishes": "Finishes",
    "categories": "Categories",
    "electrified_devices": "ElectrifiedDevices",
    "wiring_configs": "WiringConfigs",
    "hardware_sets": "HardwareSets",
}

SHEET_ALIASES: Dict[str, List[str]] = {
    "manufacturers": ["manufacturer", "mfr", "mfrs", "mfg", "mfgs", "brands", "mfr list"],
    "finishes": ["finish", "color", "colors", "finish list"],
    "categories": ["category", "cat", "cats", "mapping", "hardware types"],
    "electrified_devices": ["electrified", "electrifieddevice", "devices", "device", "power", "elec"],
    "wiring_configs": ["wiring", "wiringconfig", "wiring_configs", "cables", "wiring logic"],
    "hardware_sets": ["set", "sets", "hardware_sets", "templates", "template", "hw sets"],
}

COLUMN_ALIASES: Dict[str, List[str]] = {
    "abbr": ["abbreviation", "code", "mfr_code", "prefix", "mfr code"],
    "name": ["description", "manufacturer", "full_name", "manufacturer name", "mfr name"],
    "aliases": ["alias", "synonyms", "search_terms", "other names"],
    "us_code": ["us", "finish_code", "finish", "us code", "finish code"],
    "bhma_code": ["bhma", "ansi_code", "ansi", "bhma code"],
    "gordon_symbol": ["symbol", "key", "mapping_id", "gordon code", "symbol code"],
    "category": ["cat", "group", "hardware category"],
    "subcategory": ["subcat", "subgroup", "hardware subcategory"],
    "device_type": ["type", "hardware_type", "device", "device type"],
    "voltage": ["volts", "power_req", "power"],
    "fail_modes": ["fail_mode", "failsafe", "operation", "fail safe"],
    "keywords": ["keyword", "search", "tags", "terms"],
    "device_types": ["devices", "compatible_devices", "device types"],
    "wire_count": ["wires", "conductors", "wire count"],
    "template_id": ["id", "template", "set_id", "set code", "template id"],
    "defaults_json": ["defaults", "config_json", "json", "set defaults"],
}

SECTION_COLUMNS: Dict[str, List[str]] = {
    "manufacturers": ["abbr", "name", "aliases"],
    "finishes": ["us_code", "bhma_code", "name"],
    "categories": ["gordon_symbol", "category", "subcategory"],
    "electrified_devices": ["device_type", "voltage", "fail_modes", "keywords"],
    "wiring_configs": ["name", "device_types", "wire_count"],
    "hardware_sets": ["template_id", "keywords", "defaults_json"],
}

LIST_SEPARATORS = ",;"


# =========================================================
# Export
# =========================================================

def export_reference_pack_tables(pack: ReferencePack) -> Dict[str, str]:
    """Sheet name -> CSV text."""
    out: Dict[str, str] = {}

    out[SHEETS["manufacturers"]] = write_csv(
        SECTION_COLUMNS["manufacturers"],
        ([m.abbr, m.name, join_list(m.aliases, ", ")] for m in pack.manufacturers),
    )
    out[SHEETS["finishes"]] = write_csv(
        SECTION_COLUMNS["finishes"],
        ([f.us_code, f.bhma_code or "", f.name] for f in pack.finishes),
    )
    out[SHEETS["categories"]] = write_csv(
        SECTION_COLUMNS["categories"],
        ([c.gordon_symbol, c.category, c.subcategory or ""] for c in pack.categories),
    )
    out[SHEETS["electrified_devices"]] = write_csv(
        SECTION_COLUMNS["electrified_devices"],
        (
            [d.device_type, join_list(d.voltage, ", "), join_list(d.fail_modes, ", "), join_list(d.keywords, ", ")]
            for d in pack.electrified_devices
        ),
    )
    out[SHEETS["wiring_configs"]] = write_csv(
        SECTION_COLUMNS["wiring_configs"],
        (
            [w.name, join_list(w.device_types, ", "), "" if w.wire_count is None else w.wire_count]
            for w in pack.wiring_configs
        ),
    )
    out[SHEETS["hardware_sets"]] = write_csv(
        SECTION_COLUMNS["hardware_sets"],
        ([s.template_id, join_list(s.keywords, ", "), json.dumps(s.defaults, sort_keys=True)] for s in pack.hardware_sets),
    )
    return out


# =========================================================
# Import
# =========================================================

def find_sheet(section: str, sheet_names: List[str]) -> Optional[str]:
    target = SHEETS[section].lower()
    aliases = SHEET_ALIASES.get(section, [])

    for n in sheet_names:
        if n.lower() == target:
            return n
    for n in sheet_names:
        if n.lower() in aliases:
            return n
    for n in sheet_names:
        if target in n.lower():
            return n
    return None


def _wire_count(raw: str) -> Optional[int]:
    if not raw:
        return None
    try:
        return int(float(raw))
    except (ValueError, OverflowError):
        return None


def _defaults(raw: str, template_id: str) -> Dict[str, str]:
    if not raw:
        return {}
    try:
        parsed = json.loads(raw)
    except ValueError:
        logger.warning("could not parse defaults_json for template %s", template_id)
        return {}
    if not isinstance(parsed, dict):
        return {}
    return {str(k): str(v) for k, v in parsed.items()}


def _section_rows(section: str, text: str) -> List[Dict[str, Any]]:
    fieldnames, rows = read_csv_rows(text)
    cols = resolve_headers(
        fieldnames,
        {k: COLUMN_ALIASES.get(k, []) for k in SECTION_COLUMNS[section]},
        partial=True,
    )
    logger.info("reference sheet section=%s rows=%s headers=%s", section, len(rows), fieldnames)

    out: List[Dict[str, Any]] = []
    for row in rows:
        def c(name: str) -> str:
            return cell(row, cols, name)

        if section == "manufacturers":
            item = {"abbr": c("abbr"), "name": c("name"), "aliases": split_list(c("aliases"), LIST_SEPARATORS)}
            keep = item["abbr"] or item["name"]
        elif section == "finishes":
            item = {"us_code": c("us_code"), "bhma_code": c("bhma_code") or None, "name": c("name")}
            keep = item["us_code"] or item["name"]
        elif section == "categories":
            item = {"gordon_symbol": c("gordon_symbol"), "category": c("category"), "subcategory": c("subcategory") or None}
            keep = item["gordon_symbol"] or item["category"]
        elif section == "electrified_devices":
            item = {
                "device_type": c("device_type"),
                "voltage": split_list(c("voltage"), LIST_SEPARATORS),
                "fail_modes": split_list(c("fail_modes"), LIST_SEPARATORS),
                "keywords": split_list(c("keywords"), LIST_SEPARATORS),
            }
            keep = item["device_type"]
        elif section == "wiring_configs":
            item = {
                "name": c("name"),
                "device_types": split_list(c("device_types"), LIST_SEPARATORS),
                "wire_count": _wire_count(c("wire_count")),
            }
            keep = item["name"]
        else:
            template_id = c("template_id")
            item = {
                "template_id": template_id,
                "keywords": split_list(c("keywords"), LIST_SEPARATORS),
                "defaults": _defaults(c("defaults_json"), template_id),
            }
            keep = template_id

        if keep:
            out.append(item)
    return out


def import_reference_pack_tables(
    tables: Dict[str, str],
    existing: ReferencePack,
    *,
    clock: Callable[[], str] = utc_now_iso,
) -> ReferencePack:
    """
    Merge sheets into `existing`. A section whose sheet is absent keeps its
    current entries; a present sheet replaces the section wholesale.
    """
    data = existing.model_dump(mode="json")
    names = list(tables.keys())
    replaced: List[str] = []

    for section in SHEETS:
        sheet = find_sheet(section, names)
        if sheet is None:
            logger.warning("reference sheet not found section=%s checked=%s", section, SHEET_ALIASES[section])
            continue
        data[section] = _section_rows(section, tables[sheet])
        replaced.append(section)

    now = clock()
    data["updated_at"] = now
    data["sha256"] = None
    if replaced:
        data["changelog"] = list(data.get("changelog") or []) + [
            f"Imported {', '.join(replaced)} from tables ({now})"
        ]

    return parse_reference_pack(data)
