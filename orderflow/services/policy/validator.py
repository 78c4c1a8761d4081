from __future__ import annotations

from dataclasses import dataclass
from typing import List, Set

from orderflow.schemas.routing_types import DOC_TYPES, EDGE_CASE_CODES, ITEM_CLASSES, PHASES
from orderflow.services.policy.schema import PolicyConfig
from orderflow.services.routing.policy_engine import compile_pattern


@dataclass
class ValidationResult:
    ok: bool
    errors: List[str]


def lint_policy(policy: PolicyConfig) -> ValidationResult:
    """
    Advisory checks on a structurally valid policy.

    Fail-soft: nothing here blocks routing. An invalid regex, for example,
    simply never matches at routing time; this just surfaces it to the admin.
    """
    errors: List[str] = []

    for phase in PHASES:
        if phase not in policy.defaults.phase_min_confidence_auto:
            errors.append(f"defaults.phase_min_confidence_auto missing {phase}")

    for dt in policy.defaults.lane_for_doc_type:
        if dt not in DOC_TYPES:
            errors.append(f"defaults.lane_for_doc_type.{dt} is not a known doc_type")
    for ic in policy.defaults.lane_for_item_class:
        if ic not in ITEM_CLASSES:
            errors.append(f"defaults.lane_for_item_class.{ic} is not a known item_class")

    vocabulary: Set[str] = set(policy.edge_case_codes) | set(EDGE_CASE_CODES)
    seen: Set[str] = set()

    for r in policy.rules:
        prefix = f"rules.{r.rule_id or '<blank>'}"

        if not r.rule_id:
            errors.append("rule with blank rule_id")
        elif r.rule_id in seen:
            errors.append(f"{prefix} duplicate rule_id")
        seen.add(r.rule_id)

        for code in r.when.edge_case_includes_any:
            if code not in vocabulary:
                errors.append(f"{prefix}.when.edge_case_includes_any unknown code: {code}")

        for name in ("customer_item_desc_regex", "customer_item_no_regex", "mark_instructions_regex"):
            pattern = getattr(r.when, name)
            if pattern and compile_pattern(pattern) is None:
                errors.append(f"{prefix}.when.{name} invalid regex: {pattern}")

        for dt in r.scope.doc_type:
            if dt not in DOC_TYPES:
                errors.append(f"{prefix}.scope.doc_type unknown value: {dt}")
        for ic in r.scope.item_class:
            if ic not in ITEM_CLASSES:
                errors.append(f"{prefix}.scope.item_class unknown value: {ic}")

        if not r.then.reason:
            errors.append(f"{prefix}.then.reason is empty")

    return ValidationResult(ok=len(errors) == 0, errors=errors)
