"""
Tests for policy routing: default seeding, rule overwrite order, scope and
condition matching, and the AUTO confidence gate.
"""

from orderflow.services.policy.schema import PolicyContext
from orderflow.services.routing.policy_engine import PolicyEngine, compile_pattern, safe_regex_search


P1 = PolicyContext(phase="PHASE_1")


def _rule(rule_id, priority, lane, when=None, scope=None, **then):
    return {
        "rule_id": rule_id,
        "enabled": then.pop("enabled", True),
        "priority": priority,
        "scope": scope or {},
        "when": when or {},
        "then": {"lane": lane, "reason": then.pop("reason", f"{rule_id} matched"), **then},
    }


class TestPrioritySemantics:
    def test_every_match_overwrites_so_lowest_priority_survives(self, make_policy, make_routed):
        policy = make_policy(
            [_rule("R1", 90, "REVIEW"), _rule("R2", 50, "AUTO")],
            phase_min_confidence_auto={"PHASE_1": 0.0, "PHASE_2": 0.0, "PHASE_3": 0.0},
        )
        d = PolicyEngine(policy).route(make_routed(), P1)
        assert d.applied_rule_ids == ["R1", "R2"]
        assert d.lane == "AUTO"
        assert d.reason == "R2 matched"

    def test_declaration_order_is_kept_on_equal_priority(self, make_policy, make_routed):
        policy = make_policy(
            [_rule("A", 10, "REVIEW"), _rule("B", 10, "BLOCK"), _rule("C", 20, "ASSIST")]
        )
        d = PolicyEngine(policy).route(make_routed(), P1)
        assert d.applied_rule_ids == ["C", "A", "B"]
        assert d.lane == "BLOCK"

    def test_disabled_rules_are_skipped(self, make_policy, make_routed):
        policy = make_policy([_rule("OFF", 10, "BLOCK", enabled=False)])
        d = PolicyEngine(policy).route(make_routed(), P1)
        assert d.applied_rule_ids == []
        assert d.lane == "ASSIST"

    def test_review_fields_follow_the_surviving_rule(self, make_policy, make_routed):
        policy = make_policy(
            [
                _rule("HI", 90, "REVIEW", fields_requiring_review=["qty"]),
                _rule("LO", 10, "BLOCK", fields_requiring_review=["unit_price"]),
            ]
        )
        d = PolicyEngine(policy).route(make_routed(), P1)
        assert d.fields_requiring_review == ["unit_price"]


class TestDefaultSeeding:
    def test_fallback_lane_when_nothing_matches(self, make_policy, make_routed):
        d = PolicyEngine(make_policy(default_lane="REVIEW")).route(make_routed(), P1)
        assert d.lane == "REVIEW"
        assert d.applied_rule_ids == []

    def test_item_class_default_overwrites_doc_type_default(self, make_policy, make_routed):
        policy = make_policy(
            lane_for_doc_type={"CREDIT_MEMO": "REVIEW"},
            lane_for_item_class={"CUSTOM": "BLOCK"},
        )
        d = PolicyEngine(policy).route(make_routed(doc_type="CREDIT_MEMO", item_class="CUSTOM"), P1)
        assert d.lane == "BLOCK"
        assert d.applied_rule_ids == ["DEFAULT:DOC_TYPE", "DEFAULT:ITEM_CLASS"]
        assert d.reason == "Default lane for item_class=CUSTOM"

    def test_policy_version_is_stamped(self, make_policy, make_routed):
        d = PolicyEngine(make_policy()).route(make_routed(), P1)
        assert d.policy_version == "1.0.0"


class TestMatching:
    def test_edge_case_membership_is_or(self, make_policy, make_routed):
        policy = make_policy([_rule("Z", 10, "REVIEW", when={"edge_case_includes_any": ["RGA", "ZERO_DOLLAR"]})])
        engine = PolicyEngine(policy)
        assert engine.route(make_routed(edge_case_flags=["ZERO_DOLLAR"]), P1).lane == "REVIEW"
        assert engine.route(make_routed(edge_case_flags=["CUSTOM_LENGTH"]), P1).lane == "ASSIST"

    def test_regex_is_case_insensitive(self, make_policy, make_routed):
        policy = make_policy([_rule("RX", 10, "BLOCK", when={"customer_item_desc_regex": "closer\\s+ARM"})])
        assert PolicyEngine(policy).route(make_routed(customer_item_desc_raw="CLOSER arm"), P1).lane == "BLOCK"

    def test_invalid_regex_is_a_non_match(self, make_policy, make_routed):
        policy = make_policy([_rule("BAD", 10, "BLOCK", when={"customer_item_no_regex": "(["})])
        d = PolicyEngine(policy).route(make_routed(), P1)
        assert d.lane == "ASSIST"
        assert d.applied_rule_ids == []

    def test_regex_against_blank_field_is_a_non_match(self, make_policy, make_routed):
        policy = make_policy([_rule("MK", 10, "BLOCK", when={"mark_instructions_regex": ".*"})])
        assert PolicyEngine(policy).route(make_routed(mark_instructions=""), P1).lane == "ASSIST"

    def test_equality_requires_field_present(self, make_policy, make_routed):
        policy = make_policy([_rule("Q", 10, "REVIEW", when={"qty_equals": 5})])
        engine = PolicyEngine(policy)
        assert engine.route(make_routed(qty=5), P1).lane == "REVIEW"
        assert engine.route(make_routed(qty=None), P1).lane == "ASSIST"
        assert engine.route(make_routed(qty=4), P1).lane == "ASSIST"

    def test_all_conditions_must_hold(self, make_policy, make_routed):
        policy = make_policy(
            [_rule("AND", 10, "BLOCK", when={"unit_price_equals": 0, "extended_price_equals": 0})]
        )
        engine = PolicyEngine(policy)
        assert engine.route(make_routed(unit_price=0, extended_price=0), P1).lane == "BLOCK"
        assert engine.route(make_routed(unit_price=0, extended_price=3), P1).lane == "ASSIST"


class TestScope:
    def test_doc_type_scope(self, make_policy, make_routed):
        policy = make_policy([_rule("S", 10, "REVIEW", scope={"doc_type": ["INVOICE"]})])
        engine = PolicyEngine(policy)
        assert engine.route(make_routed(doc_type="INVOICE"), P1).lane == "REVIEW"
        assert engine.route(make_routed(doc_type="SALES_ORDER"), P1).lane == "ASSIST"

    def test_customer_scope_excludes_other_customers(self, make_policy, make_routed):
        policy = make_policy([_rule("C", 10, "REVIEW", scope={"customer_name": ["Globex"]})])
        engine = PolicyEngine(policy)
        assert engine.route(make_routed(customer_name="Acme Doors"), P1).lane == "ASSIST"
        assert engine.route(make_routed(customer_name="Globex"), P1).lane == "REVIEW"

    def test_customer_scope_falls_back_to_context(self, make_policy, make_routed):
        policy = make_policy([_rule("C", 10, "REVIEW", scope={"customer_name": ["Globex"]})])
        ctx = PolicyContext(phase="PHASE_1", customer_name="Initech")
        assert PolicyEngine(policy).route(make_routed(customer_name=""), ctx).lane == "ASSIST"

    def test_line_without_customer_is_not_excluded(self, make_policy, make_routed):
        policy = make_policy([_rule("C", 10, "REVIEW", scope={"customer_name": ["Globex"]})])
        assert PolicyEngine(policy).route(make_routed(customer_name=""), P1).lane == "REVIEW"

    def test_empty_allow_list_is_no_filter(self, make_policy, make_routed):
        policy = make_policy([_rule("E", 10, "REVIEW", scope={"doc_type": [], "item_class": []})])
        assert PolicyEngine(policy).route(make_routed(), P1).lane == "REVIEW"


class TestConfidenceGate:
    def test_below_phase_minimum_downgrades(self, make_policy, make_routed):
        policy = make_policy(lane_for_item_class={"CATALOG": "AUTO"})
        d = PolicyEngine(policy).route(make_routed(confidence_score=0.85), P1)
        assert d.lane == "REVIEW"
        assert "0.85" in d.reason
        assert "0.90" in d.reason
        assert "PHASE_1" in d.reason

    def test_phase_selects_minimum(self, make_policy, make_routed):
        policy = make_policy(lane_for_item_class={"CATALOG": "AUTO"})
        engine = PolicyEngine(policy)
        line = make_routed(confidence_score=0.92)
        assert engine.route(line, P1).lane == "AUTO"
        assert engine.route(line, PolicyContext(phase="PHASE_2")).lane == "REVIEW"

    def test_missing_required_field_downgrades(self, make_policy, make_routed):
        policy = make_policy(
            [_rule("AUTO-ABH", 10, "AUTO", required_fields_for_auto=["manufacturer_abbr", "qty"])]
        )
        d = PolicyEngine(policy).route(make_routed(manufacturer_abbr=""), P1)
        assert d.lane == "REVIEW"
        assert d.reason == "missing required fields for AUTO: manufacturer_abbr"

    def test_required_fields_union_across_applied_rules(self, make_policy, make_routed):
        policy = make_policy(
            [
                _rule("A", 20, "REVIEW", required_fields_for_auto=["finish_us_code"]),
                _rule("B", 10, "AUTO", required_fields_for_auto=["manufacturer_abbr"]),
            ]
        )
        d = PolicyEngine(policy).route(make_routed(manufacturer_abbr="SCH"), P1)
        assert d.lane == "REVIEW"
        assert "finish_us_code" in d.reason

    def test_zero_quantity_counts_as_present(self, make_policy, make_routed):
        policy = make_policy(
            [_rule("A", 10, "AUTO", required_fields_for_auto=["qty"])],
            phase_min_confidence_auto={"PHASE_1": 0.0, "PHASE_2": 0.0, "PHASE_3": 0.0},
        )
        assert PolicyEngine(policy).route(make_routed(qty=0), P1).lane == "AUTO"

    def test_rule_min_confidence_replaces_phase_minimum(self, make_policy, make_routed):
        policy = make_policy([_rule("LOOSE", 10, "AUTO", min_confidence=0.5)])
        d = PolicyEngine(policy).route(make_routed(confidence_score=0.6), P1)
        assert d.lane == "AUTO"

    def test_gate_ignores_non_auto_lanes(self, make_policy, make_routed):
        policy = make_policy([_rule("R", 10, "ASSIST")])
        d = PolicyEngine(policy).route(make_routed(confidence_score=0.1), P1)
        assert d.lane == "ASSIST"
        assert d.reason == "R matched"


class TestRegexHelpers:
    def test_compile_cache_returns_none_for_invalid(self):
        assert compile_pattern("(unclosed") is None
        assert compile_pattern("ok") is compile_pattern("ok")

    def test_safe_search(self):
        assert safe_regex_search("abc", "xxABCxx") is True
        assert safe_regex_search("", "abc") is False
        assert safe_regex_search("abc", None) is False
