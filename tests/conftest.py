"""
Shared fixtures for the routing test-suite.
"""

from typing import Any, Dict, List, Optional

import pytest

from orderflow.services.config_service import default_policy, default_reference_pack
from orderflow.services.policy.schema import PolicyConfig
from orderflow.services.reference.schema import ReferencePack
from orderflow.services.routing.models import OrderLine, RoutedOrderLine


FIXED_NOW = "2026-01-15T09:30:00+00:00"


def _policy_dict(rules: List[Dict[str, Any]], **defaults_overrides) -> Dict[str, Any]:
    defaults = {
        "phase_min_confidence_auto": {"PHASE_1": 0.90, "PHASE_2": 0.95, "PHASE_3": 0.98},
        "default_lane": "ASSIST",
        "lane_for_doc_type": {},
        "lane_for_item_class": {},
    }
    defaults.update(defaults_overrides)
    return {
        "meta": {
            "policy_id": "test-policy",
            "version": "1.0.0",
            "created_at": "2026-01-01T00:00:00+00:00",
            "updated_at": "2026-01-01T00:00:00+00:00",
        },
        "defaults": defaults,
        "edge_case_codes": ["CREDIT_MEMO", "ZERO_DOLLAR", "CUSTOM_LENGTH"],
        "rules": rules,
    }


@pytest.fixture
def policy() -> PolicyConfig:
    return default_policy()


@pytest.fixture
def reference_pack() -> ReferencePack:
    return default_reference_pack()


@pytest.fixture
def make_policy():
    def _make(rules: Optional[List[Dict[str, Any]]] = None, **defaults_overrides) -> PolicyConfig:
        return PolicyConfig.model_validate(_policy_dict(rules or [], **defaults_overrides))

    return _make


@pytest.fixture
def make_line():
    def _make(**overrides) -> OrderLine:
        data = dict(
            doc_id="SO-1001",
            doc_type="SALES_ORDER",
            customer_name="Acme Doors",
            customer_order_no="PO-77",
            document_date="2026-01-10",
            line_no=1,
            customer_item_no="ND80PD-RHO",
            customer_item_desc_raw="Schlage storeroom lever US26D HNG",
            qty=2,
            uom="EA",
            unit_price=180.0,
            extended_price=360.0,
        )
        data.update(overrides)
        return OrderLine(**data)

    return _make


@pytest.fixture
def make_routed():
    """Annotated line as the engine sees it (before routing)."""

    def _make(**overrides) -> RoutedOrderLine:
        data = dict(
            doc_id="SO-1001",
            doc_type="SALES_ORDER",
            customer_name="Acme Doors",
            customer_item_no="ABC-123",
            customer_item_desc_raw="Closer arm",
            qty=1,
            unit_price=10.0,
            extended_price=10.0,
            item_class="CATALOG",
            edge_case_flags=[],
            confidence_score=1.0,
            automation_lane="ASSIST",
        )
        data.update(overrides)
        return RoutedOrderLine(**data)

    return _make
