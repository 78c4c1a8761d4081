# orderflow/services/tabular/control_surface.py
"""
Control surface table: one row per routed line, fixed column set.

The review_* / final_* columns belong to the human workflow and are always
exported blank.
"""

from __future__ import annotations

import math
from typing import Any, Dict, List

from orderflow.services.routing.edge_cases import flag_slots
from orderflow.services.routing.models import OrderLine, RoutedOrderLine
from orderflow.services.tabular.headers import (
    cell,
    format_number,
    join_list,
    parse_float,
    read_csv_rows,
    resolve_headers,
    write_csv,
)


CONTROL_SURFACE_HEADERS = [
    "doc_id",
    "doc_type",
    "customer_name",
    "customer_order_no",
    "document_date",
    "ship_to_name",
    "ship_to_address_raw",
    "bill_to_name",
    "bill_to_address_raw",
    "mark_instructions",
    "line_no",
    "customer_item_no",
    "customer_item_desc_raw",
    "qty",
    "uom",
    "unit_price",
    "extended_price",
    "currency",
    "item_no_candidate",
    "manufacturer_abbr",
    "manufacturer_full",
    "finish_us_code",
    "finish_bhma_code",
    "gordon_symbol",
    "category",
    "subcategory",
    "electrified_device_type",
    "wiring_configuration",
    "hardware_set_template",
    "item_class",
    "edge_case_flags",
    "edge_case_flag_1",
    "edge_case_flag_2",
    "edge_case_flag_3",
    "confidence_score",
    "automation_lane",
    "deterministic_rule_exists",
    "phase_target",
    "fields_requiring_review",
    "routing_reason",
    "policy_version_applied",
    "policy_rule_ids_applied",
    "reference_version",
    "review_status",
    "reviewer",
    "review_timestamp",
    "final_item_no",
    "final_qty",
    "final_uom",
    "final_unit_price",
    "final_ship_to",
    "notes",
]

HUMAN_WORKFLOW_HEADERS = CONTROL_SURFACE_HEADERS[CONTROL_SURFACE_HEADERS.index("review_status"):]

# Input columns accepted on read, with the header spellings seen in the wild.
ORDER_LINE_COLUMN_ALIASES: Dict[str, List[str]] = {
    "doc_id": ["doc id", "order number", "order_no", "document id"],
    "doc_type": ["doc type", "document type", "type"],
    "customer_name": ["customer"],
    "customer_order_no": ["customer_po_number", "po#", "po", "po number", "customer po"],
    "document_date": ["doc_date", "date", "order date"],
    "ship_to_name": ["ship to name"],
    "ship_to_address_raw": ["ship_to_address", "ship to", "ship to address"],
    "bill_to_name": ["bill to name"],
    "bill_to_address_raw": ["bill_to_address", "bill to", "bill to address"],
    "mark_instructions": ["mark", "marking", "instructions"],
    "line_no": ["line#", "line", "line number"],
    "customer_item_no": ["item#", "item_no", "item number", "part number", "itemnumber"],
    "customer_item_desc_raw": ["desc", "description", "description_raw"],
    "qty": ["quantity", "quantity_ordered", "qty ordered"],
    "uom": ["uom_raw", "unit", "unit of measure"],
    "unit_price": ["price", "unit price"],
    "extended_price": ["ext price", "extended", "total_amount", "total", "amount"],
    "currency": ["curr"],
}


# =========================================================
# Export
# =========================================================

def to_control_surface_record(r: RoutedOrderLine) -> Dict[str, Any]:
    f1, f2, f3 = flag_slots(r.edge_case_flags)
    record: Dict[str, Any] = {
        "doc_id": r.doc_id,
        "doc_type": r.doc_type,
        "customer_name": r.customer_name,
        "customer_order_no": r.customer_order_no,
        "document_date": r.document_date,
        "ship_to_name": r.ship_to_name,
        "ship_to_address_raw": r.ship_to_address_raw,
        "bill_to_name": r.bill_to_name,
        "bill_to_address_raw": r.bill_to_address_raw,
        "mark_instructions": r.mark_instructions,
        "line_no": "" if r.line_no is None else r.line_no,
        "customer_item_no": r.customer_item_no,
        "customer_item_desc_raw": r.customer_item_desc_raw,
        "qty": format_number(r.qty),
        "uom": r.uom,
        "unit_price": format_number(r.unit_price),
        "extended_price": format_number(r.extended_price),
        "currency": r.currency,
        "item_no_candidate": r.item_no_candidate,
        "manufacturer_abbr": r.manufacturer_abbr,
        "manufacturer_full": r.manufacturer_full,
        "finish_us_code": r.finish_us_code,
        "finish_bhma_code": r.finish_bhma_code,
        "gordon_symbol": r.gordon_symbol,
        "category": r.category,
        "subcategory": r.subcategory,
        "electrified_device_type": r.electrified_device_type,
        "wiring_configuration": r.wiring_configuration,
        "hardware_set_template": r.hardware_set_template,
        "item_class": r.item_class,
        "edge_case_flags": join_list(r.edge_case_flags, ";"),
        "edge_case_flag_1": f1,
        "edge_case_flag_2": f2,
        "edge_case_flag_3": f3,
        # template expects a percent, halves round up
        "confidence_score": int(math.floor(r.confidence_score * 100 + 0.5)),
        "automation_lane": r.automation_lane,
        "deterministic_rule_exists": "Y" if r.automation_lane == "AUTO" else "",
        "phase_target": r.phase_target,
        "fields_requiring_review": join_list(r.fields_requiring_review, ";"),
        "routing_reason": r.routing_reason,
        "policy_version_applied": r.policy_version_applied,
        "policy_rule_ids_applied": join_list(r.policy_rule_ids_applied, ";"),
        "reference_version": r.reference_version,
    }
    for h in HUMAN_WORKFLOW_HEADERS:
        record[h] = ""
    return record


def export_control_surface_csv(rows: List[RoutedOrderLine]) -> str:
    records = (to_control_surface_record(r) for r in rows)
    return write_csv(CONTROL_SURFACE_HEADERS, ([rec[h] for h in CONTROL_SURFACE_HEADERS] for rec in records))


# =========================================================
# Read (lines back in for re-routing)
# =========================================================

def read_control_surface_csv(text: str) -> List[OrderLine]:
    """
    Parse a control surface (or plain extraction) table back into OrderLines.

    Line data is never rejected: unparseable numbers become absent values.
    Rows with neither an item number nor a description are skipped.
    """
    fieldnames, rows = read_csv_rows(text)
    cols = resolve_headers(fieldnames, ORDER_LINE_COLUMN_ALIASES)

    out: List[OrderLine] = []
    for row in rows:
        def c(name: str) -> str:
            return cell(row, cols, name)

        if not c("customer_item_no") and not c("customer_item_desc_raw"):
            continue

        line_no = parse_float(c("line_no"))
        out.append(
            OrderLine(
                doc_id=c("doc_id"),
                doc_type=c("doc_type"),
                customer_name=c("customer_name"),
                customer_order_no=c("customer_order_no"),
                document_date=c("document_date"),
                ship_to_name=c("ship_to_name"),
                ship_to_address_raw=c("ship_to_address_raw"),
                bill_to_name=c("bill_to_name"),
                bill_to_address_raw=c("bill_to_address_raw"),
                mark_instructions=c("mark_instructions"),
                line_no=int(line_no) if line_no is not None else None,
                customer_item_no=c("customer_item_no"),
                customer_item_desc_raw=c("customer_item_desc_raw"),
                qty=parse_float(c("qty")),
                uom=c("uom"),
                unit_price=parse_float(c("unit_price")),
                extended_price=parse_float(c("extended_price")),
                currency=c("currency") or "USD",
            )
        )
    return out
