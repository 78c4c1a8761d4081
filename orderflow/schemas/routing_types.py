from __future__ import annotations

from typing import Any, Literal, Tuple, get_args


Lane = Literal["AUTO", "ASSIST", "REVIEW", "BLOCK"]
Phase = Literal["PHASE_1", "PHASE_2", "PHASE_3"]
ItemClass = Literal["CATALOG", "CONFIGURED", "CUSTOM", "UNKNOWN"]
DocType = Literal["INVOICE", "SALES_ORDER", "PURCHASE_ORDER", "CREDIT_MEMO", "UNKNOWN"]
EdgeCaseCode = Literal[
    "CREDIT_MEMO",
    "RGA",
    "SPECIAL_LAYOUT",
    "CUSTOM_LENGTH",
    "ZERO_DOLLAR",
    "WIRING_SPEC",
    "CUSTOMER_PICKUP",
]

LANES: Tuple[str, ...] = get_args(Lane)
PHASES: Tuple[str, ...] = get_args(Phase)
ITEM_CLASSES: Tuple[str, ...] = get_args(ItemClass)
DOC_TYPES: Tuple[str, ...] = get_args(DocType)
EDGE_CASE_CODES: Tuple[str, ...] = get_args(EdgeCaseCode)

# older exports used HUMAN for the hard-block lane
_LANE_ALIASES = {"HUMAN": "BLOCK"}


def normalize_lane(v: Any) -> Any:
    if isinstance(v, str):
        key = v.strip().upper()
        return _LANE_ALIASES.get(key, key)
    return v


# ============================================================
# DOCUMENT TYPE NORMALIZATION
# ============================================================

def normalize_doc_type(v: Any) -> str:
    """
    Map extraction labels ("Sales Order", "Credit Memo", "INVOICE") onto the
    closed doc type set. Anything unrecognized becomes UNKNOWN.
    """
    if not v or not isinstance(v, str):
        return "UNKNOWN"
    key = v.strip().upper().replace("_", " ")
    if key.replace(" ", "_") in DOC_TYPES:
        return key.replace(" ", "_")
    if "INVOICE" in key:
        return "INVOICE"
    if "SALES ORDER" in key:
        return "SALES_ORDER"
    if "PURCHASE ORDER" in key:
        return "PURCHASE_ORDER"
    if "CREDIT" in key:
        return "CREDIT_MEMO"
    return "UNKNOWN"


def phase_number(phase: str) -> int:
    """PHASE_2 -> 2; used for the phase_target export column."""
    try:
        return int(str(phase).rsplit("_", 1)[-1])
    except ValueError:
        return 1
