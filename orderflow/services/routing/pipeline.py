"""
Line routing pipeline

raw OrderLine
  -> edge-case detection + reference grounding (independent, read-only)
  -> scoring & validation
  -> policy routing
  -> RoutedOrderLine

Deterministic: same (policy version, reference version, line) gives the
same RoutedOrderLine. No clocks, no I/O, no shared mutable state.
"""

from __future__ import annotations

import logging
from collections import Counter
from typing import Dict, Iterable, List, Optional

from orderflow.core.config import settings
from orderflow.schemas.routing_types import LANES, phase_number
from orderflow.services.policy.schema import PolicyConfig, PolicyContext
from orderflow.services.reference.resolver import GroundingHints, GroundingResult, ReferenceResolver
from orderflow.services.reference.schema import ReferencePack
from orderflow.services.routing.edge_cases import EdgeCaseDetector, derive_item_class
from orderflow.services.routing.models import OrderLine, RoutedOrderLine, RoutingBatchResult
from orderflow.services.routing.policy_engine import PolicyEngine
from orderflow.services.routing.scoring import ScoringWeights, is_import_ready, score_grounding

logger = logging.getLogger(__name__)


class RoutingPipeline:
    def __init__(
        self,
        *,
        policy: PolicyConfig,
        reference_pack: ReferencePack,
        weights: Optional[ScoringWeights] = None,
        ready_threshold: Optional[float] = None,
        detector: Optional[EdgeCaseDetector] = None,
    ):
        self.policy = policy
        self.reference_pack = reference_pack
        self.weights = weights or ScoringWeights()
        self.ready_threshold = (
            settings.SCORING_READY_THRESHOLD if ready_threshold is None else ready_threshold
        )
        self.detector = detector or EdgeCaseDetector()
        self.resolver = ReferenceResolver(reference_pack)
        self.engine = PolicyEngine(policy)

    # =====================================================
    # Public API
    # =====================================================
    def route_batch(self, lines: Iterable[OrderLine], ctx: PolicyContext) -> RoutingBatchResult:
        routed = [self.route_line(line, ctx) for line in lines]
        summary = lane_summary(routed)

        logger.info(
            "routed batch lines=%s policy=%s reference=%s phase=%s summary=%s",
            len(routed),
            self.policy.meta.version,
            self.reference_pack.version,
            ctx.phase,
            summary,
        )

        return RoutingBatchResult(
            lines=routed,
            lane_summary=summary,
            policy_version=self.policy.meta.version,
            reference_version=self.reference_pack.version,
        )

    def route_line(self, line: OrderLine, ctx: PolicyContext) -> RoutedOrderLine:
        flags = self.detector.detect(
            description=line.customer_item_desc_raw,
            doc_type=line.doc_type,
            doc_id=line.doc_id,
            unit_price=line.unit_price,
            extended_price=line.extended_price,
        )
        item_class = derive_item_class(flags, line.customer_item_no)

        grounding = self.resolver.ground(
            line.grounding_text,
            GroundingHints(
                manufacturer=line.manufacturer_hint,
                finish=line.finish_hint,
                category=line.category_hint,
                voltage=line.voltage_hint,
                fail_mode=line.fail_mode_hint,
            ),
        )
        scored = score_grounding(grounding, line.customer_item_no, self.weights)
        ready = is_import_ready(scored.score, scored.violations, self.ready_threshold)

        annotated = RoutedOrderLine(
            **line.model_dump(),
            **self._grounding_fields(grounding, line, item_class),
            item_class=item_class,
            edge_case_flags=flags,
            confidence_score=scored.score,
            match_method=scored.method,
            rule_violations=scored.violations,
            import_ready=ready,
            automation_lane=self.policy.defaults.default_lane,
            phase_target=phase_number(ctx.phase),
            reference_version=self.reference_pack.version,
        )

        decision = self.engine.route(annotated, ctx)

        return annotated.model_copy(
            update={
                "automation_lane": decision.lane,
                "routing_reason": decision.reason,
                "fields_requiring_review": decision.fields_requiring_review,
                "policy_version_applied": decision.policy_version,
                "policy_rule_ids_applied": decision.applied_rule_ids,
            }
        )

    # =====================================================
    # Helpers
    # =====================================================
    def _grounding_fields(self, g: GroundingResult, line: OrderLine, item_class: str) -> Dict[str, str]:
        m, f, c = g.manufacturer, g.finish, g.category
        return {
            "manufacturer_abbr": m.abbr if m else "",
            "manufacturer_full": m.name if m else line.manufacturer_hint,
            "finish_us_code": f.us_code if f else line.finish_hint,
            "finish_bhma_code": (f.bhma_code or "") if f else "",
            "category": c.category if c else line.category_hint,
            "subcategory": (c.subcategory or "") if c else "",
            "gordon_symbol": c.gordon_symbol if c else "",
            "electrified_device_type": g.electrified_device.device_type if g.electrified_device else "",
            "voltage": g.voltage,
            "fail_mode": g.fail_mode,
            "wiring_configuration": g.wiring.name if g.wiring else "",
            "hardware_set_template": g.hardware_set.template_id if g.hardware_set else "",
            "item_no_candidate": candidate_item_no(line.customer_item_no) if item_class == "CATALOG" else "",
        }


def candidate_item_no(customer_item_no: str) -> str:
    """Canonical form of a catalog item number: uppercased, inner whitespace removed."""
    return "".join((customer_item_no or "").split()).upper()


def lane_summary(lines: List[RoutedOrderLine]) -> Dict[str, int]:
    counts = Counter(l.automation_lane for l in lines)
    return {lane: counts.get(lane, 0) for lane in LANES}
