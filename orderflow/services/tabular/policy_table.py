# orderflow/services/tabular/policy_table.py
"""
Policy rules <-> flat table (one row per rule).

Import replaces the rule list of an existing policy and keeps everything
else (meta, defaults, vocabulary, unknown keys) untouched.
"""

from __future__ import annotations

import logging
import math
from typing import Any, Callable, Dict, List

from orderflow.core.errors import ConfigImportError, ConfigValidationError
from orderflow.services.policy.loader import parse_policy
from orderflow.services.policy.schema import PolicyConfig, PolicyRule
from orderflow.services.tabular.headers import (
    cell,
    format_number,
    join_list,
    parse_bool,
    read_csv_rows,
    resolve_headers,
    split_list,
    write_csv,
)
from orderflow.services.versioning import utc_now_iso

logger = logging.getLogger(__name__)


POLICY_RULE_HEADERS = [
    "rule_id",
    "enabled",
    "priority",
    "scope_doc_type",
    "scope_customer_name",
    "scope_item_class",
    "when_edge_case_any",
    "when_desc_regex",
    "when_itemno_regex",
    "when_mark_regex",
    "when_qty_equals",
    "when_unit_price_equals",
    "when_extended_price_equals",
    "then_lane",
    "then_min_confidence",
    "then_required_fields",
    "then_fields_review",
    "then_reason",
]

POLICY_COLUMN_ALIASES: Dict[str, List[str]] = {
    "rule_id": ["rule", "id", "rule id"],
    "enabled": ["active", "on"],
    "priority": ["prio", "rank"],
    "scope_doc_type": ["doc_type", "document type", "doc types"],
    "scope_customer_name": ["customer_name", "customer", "customers"],
    "scope_item_class": ["item_class", "item class", "class"],
    "when_edge_case_any": ["edge_case_includes_any", "edge cases", "edge_case", "flags"],
    "when_desc_regex": ["customer_item_desc_regex", "description regex", "desc_regex"],
    "when_itemno_regex": ["customer_item_no_regex", "item number regex", "itemno_regex"],
    "when_mark_regex": ["mark_instructions_regex", "mark regex"],
    "when_qty_equals": ["qty_equals", "quantity equals"],
    "when_unit_price_equals": ["unit_price_equals", "unit price equals"],
    "when_extended_price_equals": ["extended_price_equals", "extended price equals"],
    "then_lane": ["lane", "automation_lane"],
    "then_min_confidence": ["min_confidence", "minimum confidence"],
    "then_required_fields": ["required_fields_for_auto", "required fields"],
    "then_fields_review": ["fields_requiring_review", "review fields"],
    "then_reason": ["reason", "routing_reason"],
}


# =========================================================
# Export
# =========================================================

def rule_to_row(r: PolicyRule) -> List[Any]:
    w, t = r.when, r.then
    return [
        r.rule_id,
        "Y" if r.enabled else "N",
        r.priority,
        join_list(r.scope.doc_type),
        join_list(r.scope.customer_name),
        join_list(r.scope.item_class),
        join_list(w.edge_case_includes_any),
        w.customer_item_desc_regex or "",
        w.customer_item_no_regex or "",
        w.mark_instructions_regex or "",
        format_number(w.qty_equals),
        format_number(w.unit_price_equals),
        format_number(w.extended_price_equals),
        t.lane,
        format_number(t.min_confidence),
        join_list(t.required_fields_for_auto),
        join_list(t.fields_requiring_review),
        t.reason,
    ]


def export_policy_rules_csv(policy: PolicyConfig) -> str:
    return write_csv(POLICY_RULE_HEADERS, (rule_to_row(r) for r in policy.rules))


# =========================================================
# Import
# =========================================================

def _number(raw: str, label: str, problems: List[str]):
    if raw == "":
        return None
    try:
        v = float(raw)
    except ValueError:
        problems.append(f"{label}: not a number: {raw!r}")
        return None
    if not math.isfinite(v):
        problems.append(f"{label}: not a finite number: {raw!r}")
        return None
    return v


def _row_to_rule_dict(row: Dict[str, Any], cols: Dict[str, str], line_no: int, problems: List[str]) -> Dict[str, Any]:
    def c(name: str) -> str:
        return cell(row, cols, name)

    label = f"row {line_no}"

    priority_raw = c("priority")
    try:
        priority = int(float(priority_raw)) if priority_raw else 0
    except (ValueError, OverflowError):
        problems.append(f"{label}.priority: not a number: {priority_raw!r}")
        priority = 0

    return {
        "rule_id": c("rule_id"),
        "enabled": parse_bool(c("enabled")) if c("enabled") else True,
        "priority": priority,
        "scope": {
            "doc_type": split_list(c("scope_doc_type")),
            "customer_name": split_list(c("scope_customer_name")),
            "item_class": split_list(c("scope_item_class")),
        },
        "when": {
            "edge_case_includes_any": split_list(c("when_edge_case_any")),
            "customer_item_desc_regex": c("when_desc_regex") or None,
            "customer_item_no_regex": c("when_itemno_regex") or None,
            "mark_instructions_regex": c("when_mark_regex") or None,
            "qty_equals": _number(c("when_qty_equals"), f"{label}.when_qty_equals", problems),
            "unit_price_equals": _number(c("when_unit_price_equals"), f"{label}.when_unit_price_equals", problems),
            "extended_price_equals": _number(
                c("when_extended_price_equals"), f"{label}.when_extended_price_equals", problems
            ),
        },
        "then": {
            "lane": c("then_lane") or "ASSIST",
            "min_confidence": _number(c("then_min_confidence"), f"{label}.then_min_confidence", problems),
            "required_fields_for_auto": split_list(c("then_required_fields")),
            "fields_requiring_review": split_list(c("then_fields_review")),
            "reason": c("then_reason"),
        },
    }


def import_policy_rules_csv(
    text: str,
    existing: PolicyConfig,
    *,
    clock: Callable[[], str] = utc_now_iso,
) -> PolicyConfig:
    """
    Raises ConfigImportError when the table is unreadable or has no rule_id
    column, ConfigValidationError when cells do not form valid rules.
    """
    fieldnames, rows = read_csv_rows(text)
    cols = resolve_headers(fieldnames, POLICY_COLUMN_ALIASES)
    if "rule_id" not in cols:
        raise ConfigImportError("policy table has no rule_id column")

    problems: List[str] = []
    rules: List[Dict[str, Any]] = []
    # header is line 1
    for i, row in enumerate(rows, start=2):
        rule = _row_to_rule_dict(row, cols, i, problems)
        if rule["rule_id"]:
            rules.append(rule)

    if problems:
        raise ConfigValidationError("policy table", problems)

    now = clock()
    data = existing.model_dump(mode="json")
    data["rules"] = rules
    data["meta"]["updated_at"] = now
    data["meta"]["sha256"] = None
    data["meta"]["changelog"] = list(data["meta"].get("changelog") or []) + [
        f"Imported rules from table ({now})"
    ]

    policy = parse_policy(data)
    logger.info("imported policy rules count=%s policy=%s", len(rules), policy.meta.policy_id)
    return policy
