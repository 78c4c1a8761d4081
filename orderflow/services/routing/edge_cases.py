from __future__ import annotations

import re
from typing import Iterable, List, Optional, Sequence, Tuple


# ============================================================
# DETECTION VOCABULARY
# ============================================================

CREDIT_MEMO_DOC_ID_MARKER = "-CM"

DIMENSION_RE = re.compile(
    r"\bCUT\s*TO\b|(\d+\s*-\s*\d+/\d+)|(\d+\s*/\s*\d+)\s*\"",
    re.IGNORECASE,
)

WIRING_TERMS: Tuple[str, ...] = ("ALLEGION", "WIRING", "VON DUPRIN")
PICKUP_TERMS: Tuple[str, ...] = ("P/U", "PICK UP", "CUSTOMER PICKUP")

CUSTOM_FLAGS = frozenset({"SPECIAL_LAYOUT", "CUSTOM_LENGTH", "WIRING_SPEC"})


def _has_any(text: str, terms: Iterable[str]) -> bool:
    return any(t in text for t in terms)


def _dedupe(flags: Iterable[str]) -> List[str]:
    out: List[str] = []
    for f in flags:
        if f and f not in out:
            out.append(f)
    return out


class EdgeCaseDetector:
    """
    Deterministic edge-case flags for a single line.

    Flags are listed in detection order:
    CREDIT_MEMO, RGA, SPECIAL_LAYOUT, CUSTOM_LENGTH, ZERO_DOLLAR,
    WIRING_SPEC, CUSTOMER_PICKUP.
    """

    def __init__(
        self,
        *,
        wiring_terms: Sequence[str] = WIRING_TERMS,
        pickup_terms: Sequence[str] = PICKUP_TERMS,
    ):
        self.wiring_terms = tuple(t.upper() for t in wiring_terms)
        self.pickup_terms = tuple(t.upper() for t in pickup_terms)

    def detect(
        self,
        *,
        description: Optional[str],
        doc_type: Optional[str] = None,
        doc_id: Optional[str] = None,
        unit_price: Optional[float] = None,
        extended_price: Optional[float] = None,
    ) -> List[str]:
        desc_raw = description or ""
        desc = desc_raw.upper()
        flags: List[str] = []

        if doc_type == "CREDIT_MEMO" or CREDIT_MEMO_DOC_ID_MARKER in (doc_id or "").upper():
            flags.append("CREDIT_MEMO")
        if "RGA" in desc:
            flags.append("RGA")
        if "SPECIAL LAYOUT" in desc:
            flags.append("SPECIAL_LAYOUT")
        if DIMENSION_RE.search(desc_raw):
            flags.append("CUSTOM_LENGTH")
        if unit_price == 0 or extended_price == 0:
            flags.append("ZERO_DOLLAR")
        if _has_any(desc, self.wiring_terms):
            flags.append("WIRING_SPEC")
        if _has_any(desc, self.pickup_terms):
            flags.append("CUSTOMER_PICKUP")

        return _dedupe(flags)


def derive_item_class(flags: Sequence[str], customer_item_no: Optional[str]) -> str:
    if CUSTOM_FLAGS.intersection(flags):
        return "CUSTOM"
    if customer_item_no and customer_item_no.strip():
        return "CATALOG"
    return "UNKNOWN"


def flag_slots(flags: Sequence[str]) -> Tuple[str, str, str]:
    """First three distinct flags, padded with blanks (legacy export columns)."""
    uniq = _dedupe(flags)
    padded = uniq + ["", "", ""]
    return padded[0], padded[1], padded[2]
