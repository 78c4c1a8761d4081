from __future__ import annotations

import csv
import io
import math
import re
from typing import Any, Dict, Iterable, List, Optional, Sequence, Tuple

from orderflow.core.errors import ConfigImportError


_NON_ALNUM = re.compile(r"[^a-z0-9]")


def normalize_header(h: Any) -> str:
    return _NON_ALNUM.sub("", str(h or "").lower())


def resolve_headers(
    fieldnames: Sequence[str],
    aliases: Dict[str, Sequence[str]],
    *,
    partial: bool = False,
) -> Dict[str, str]:
    """
    Map canonical column -> actual header present in the file.

    Exact (normalized) alias matches win. With partial=True a header that
    contains an alias, or is contained by one, is accepted as a fallback,
    so "Manufacturer Name" still finds `name`.
    """
    normalized = [(h, normalize_header(h)) for h in fieldnames if h is not None]
    out: Dict[str, str] = {}

    for canonical, names in aliases.items():
        targets = [normalize_header(n) for n in (canonical, *names)]
        hit = next((h for h, n in normalized if n and n in targets), None)
        if hit is None and partial:
            hit = next(
                (h for h, n in normalized if n and any(t and (t in n or n in t) for t in targets)),
                None,
            )
        if hit is not None:
            out[canonical] = hit

    return out


def read_csv_rows(text: str) -> Tuple[List[str], List[Dict[str, str]]]:
    if text is None:
        raise ConfigImportError("no CSV content")
    try:
        reader = csv.DictReader(io.StringIO(text.lstrip("\ufeff")))
        rows = [r for r in reader]
        fieldnames = list(reader.fieldnames or [])
    except csv.Error as e:
        raise ConfigImportError(f"CSV could not be parsed: {e}") from e
    return fieldnames, rows


def write_csv(headers: Sequence[str], rows: Iterable[Sequence[Any]]) -> str:
    buf = io.StringIO()
    writer = csv.writer(buf, lineterminator="\n")
    writer.writerow(list(headers))
    for r in rows:
        writer.writerow(["" if v is None else v for v in r])
    return buf.getvalue()


# ============================================================
# Cell helpers
# ============================================================

def cell(row: Dict[str, Any], columns: Dict[str, str], canonical: str) -> str:
    header = columns.get(canonical)
    if header is None:
        return ""
    v = row.get(header)
    return "" if v is None else str(v).strip()


def split_list(s: Optional[str], seps: str = ",") -> List[str]:
    if not s:
        return []
    parts = re.split(f"[{re.escape(seps)}]", s)
    return [p.strip() for p in parts if p.strip()]


def join_list(items: Optional[Iterable[str]], sep: str = ",") -> str:
    return sep.join(items or [])


def format_number(v: Optional[float]) -> str:
    if v is None:
        return ""
    f = float(v)
    return str(int(f)) if f.is_integer() else repr(f)


def parse_float(s: str) -> Optional[float]:
    """Lenient: "$1,200.50" -> 1200.5, blank, garbage or non-finite -> None."""
    if s is None:
        return None
    cleaned = str(s).strip().replace("$", "").replace(",", "")
    if not cleaned:
        return None
    try:
        v = float(cleaned)
    except ValueError:
        return None
    return v if math.isfinite(v) else None


def parse_bool(s: str) -> bool:
    return str(s or "").strip().upper() in {"Y", "YES", "TRUE", "1"}
