"""
Policy routing
--------------
Contract:
- Seed lane from policy defaults (fallback, then doc_type, then item_class)
- Enabled rules are processed from highest to lowest priority (stable on ties)
- EVERY matching rule overwrites lane / reason / review fields, so the
  lowest-priority match is the one left standing
- AUTO is then gated on required fields and the phase confidence minimum
- Never raises: invalid regexes and unmatchable rules are non-matches
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from functools import lru_cache
from typing import Any, List, Optional, Pattern

from orderflow.services.policy.schema import PolicyConfig, PolicyContext, PolicyRule


@dataclass
class RoutingDecision:
    lane: str
    reason: str
    fields_requiring_review: List[str] = field(default_factory=list)
    applied_rule_ids: List[str] = field(default_factory=list)
    policy_version: str = ""


@lru_cache(maxsize=512)
def compile_pattern(pattern: str) -> Optional[Pattern[str]]:
    try:
        return re.compile(pattern, re.IGNORECASE)
    except (re.error, TypeError, ValueError):
        return None


def safe_regex_search(pattern: Optional[str], value: Optional[str]) -> bool:
    if not pattern or not value:
        return False
    compiled = compile_pattern(pattern)
    if compiled is None:
        return False
    try:
        return compiled.search(value) is not None
    except (TypeError, RecursionError):
        return False


def _is_blank(v: Any) -> bool:
    return v is None or v == "" or v == [] or v == ()


class PolicyEngine:
    def __init__(self, policy: PolicyConfig):
        self.policy = policy
        # sorted() is stable: equal priorities keep declaration order
        self._ordered_rules = sorted(
            (r for r in policy.rules if r.enabled),
            key=lambda r: -r.priority,
        )

    # =====================================================
    # Public API
    # =====================================================
    def route(self, line: Any, ctx: PolicyContext) -> RoutingDecision:
        """
        `line` is any object exposing the RoutedOrderLine attributes
        (doc_type, item_class, edge_case_flags, confidence_score, ...).
        """
        defaults = self.policy.defaults

        lane = defaults.default_lane
        reason = f"Default lane {lane}"
        review_fields: List[str] = []
        applied: List[str] = []

        doc_type = getattr(line, "doc_type", "") or ""
        item_class = getattr(line, "item_class", "") or ""

        lane_for_doc = defaults.lane_for_doc_type.get(doc_type)
        if lane_for_doc:
            lane = lane_for_doc
            reason = f"Default lane for doc_type={doc_type}"
            applied.append("DEFAULT:DOC_TYPE")

        lane_for_class = defaults.lane_for_item_class.get(item_class)
        if lane_for_class:
            lane = lane_for_class
            reason = f"Default lane for item_class={item_class}"
            applied.append("DEFAULT:ITEM_CLASS")

        matched: List[PolicyRule] = []
        for rule in self._ordered_rules:
            if not self.matches(line, rule, ctx):
                continue
            lane = rule.then.lane
            reason = rule.then.reason
            review_fields = list(rule.then.fields_requiring_review)
            applied.append(rule.rule_id)
            matched.append(rule)

        if lane == "AUTO":
            lane, reason = self._gate_auto(line, ctx, matched, lane, reason)

        return RoutingDecision(
            lane=lane,
            reason=reason,
            fields_requiring_review=review_fields,
            applied_rule_ids=applied,
            policy_version=self.policy.meta.version,
        )

    # =====================================================
    # Matching
    # =====================================================
    def matches(self, line: Any, rule: PolicyRule, ctx: Optional[PolicyContext] = None) -> bool:
        if not rule.enabled:
            return False

        s = rule.scope
        if s.doc_type and getattr(line, "doc_type", "") not in s.doc_type:
            return False

        customer = getattr(line, "customer_name", "") or (ctx.customer_name if ctx else "") or ""
        # lines without a customer are not excluded by a customer scope
        if s.customer_name and customer and customer not in s.customer_name:
            return False

        if s.item_class and getattr(line, "item_class", "") not in s.item_class:
            return False

        w = rule.when

        if w.edge_case_includes_any:
            flags = getattr(line, "edge_case_flags", None) or []
            if not any(code in flags for code in w.edge_case_includes_any):
                return False

        if w.customer_item_desc_regex and not safe_regex_search(
            w.customer_item_desc_regex, getattr(line, "customer_item_desc_raw", "")
        ):
            return False
        if w.customer_item_no_regex and not safe_regex_search(
            w.customer_item_no_regex, getattr(line, "customer_item_no", "")
        ):
            return False
        if w.mark_instructions_regex and not safe_regex_search(
            w.mark_instructions_regex, getattr(line, "mark_instructions", "")
        ):
            return False

        for expected, attr in (
            (w.qty_equals, "qty"),
            (w.unit_price_equals, "unit_price"),
            (w.extended_price_equals, "extended_price"),
        ):
            if expected is None:
                continue
            actual = getattr(line, attr, None)
            if actual is None or actual != expected:
                return False

        return True

    # =====================================================
    # Confidence gate
    # =====================================================
    def _gate_auto(
        self,
        line: Any,
        ctx: PolicyContext,
        matched: List[PolicyRule],
        lane: str,
        reason: str,
    ):
        required: List[str] = []
        for rule in matched:
            for f in rule.then.required_fields_for_auto:
                if f not in required:
                    required.append(f)

        missing = [f for f in required if _is_blank(getattr(line, f, None))]
        if missing:
            return "REVIEW", f"missing required fields for AUTO: {', '.join(missing)}"

        threshold = self.policy.min_confidence_for(ctx.phase)
        for rule in matched:
            if rule.then.min_confidence is not None:
                threshold = rule.then.min_confidence

        conf = float(getattr(line, "confidence_score", 0.0) or 0.0)
        if conf < threshold:
            return (
                "REVIEW",
                f"Confidence {conf:.2f} < minAuto {threshold:.2f} for {ctx.phase}",
            )

        return lane, reason
