"""
Tests for grounding score + critical-signal violations.
"""

import pytest

from orderflow.services.reference.resolver import GroundingResult
from orderflow.services.reference.schema import (
    CategoryRef,
    ElectrifiedDeviceRef,
    FinishRef,
    HardwareSetTemplate,
    ManufacturerRef,
    WiringConfigRef,
)
from orderflow.services.routing.scoring import (
    VIOLATION_BAD_ITEM_NO,
    VIOLATION_NO_FINISH,
    VIOLATION_NO_MANUFACTURER,
    ScoringWeights,
    is_import_ready,
    score_grounding,
)


MFR = ManufacturerRef(abbr="SCH", name="Schlage")
FIN = FinishRef(us_code="US26D", bhma_code="626", name="Satin Chrome")
CAT = CategoryRef(gordon_symbol="HNG", category="Hinges")
DEV = ElectrifiedDeviceRef(device_type="MAGLOCK", keywords=["maglock"])
WIRE = WiringConfigRef(name="4-WIRE", device_types=["MAGLOCK"])
HWS = HardwareSetTemplate(template_id="HS-1", keywords=["storeroom"])


class TestScore:
    def test_nothing_grounded(self):
        r = score_grounding(GroundingResult(), "")
        assert r.score == 0.0
        assert r.violations == [VIOLATION_NO_MANUFACTURER, VIOLATION_BAD_ITEM_NO, VIOLATION_NO_FINISH]

    def test_critical_signals_only(self):
        r = score_grounding(GroundingResult(manufacturer=MFR, finish=FIN), "ND80PD")
        assert r.score == pytest.approx(0.65)
        assert r.violations == []

    def test_everything_is_clamped_to_one(self):
        g = GroundingResult(
            manufacturer=MFR, finish=FIN, category=CAT,
            electrified_device=DEV, wiring=WIRE, hardware_set=HWS,
        )
        assert score_grounding(g, "ND80PD").score == 1.0

    def test_wiring_without_device_adds_nothing(self):
        base = score_grounding(GroundingResult(manufacturer=MFR), "ND80PD").score
        with_wiring = score_grounding(GroundingResult(manufacturer=MFR, wiring=WIRE), "ND80PD").score
        assert base == with_wiring

    def test_short_item_number_is_a_violation(self):
        r = score_grounding(GroundingResult(manufacturer=MFR, finish=FIN), "AB")
        assert r.violations == [VIOLATION_BAD_ITEM_NO]

    def test_category_miss_is_not_a_violation(self):
        r = score_grounding(GroundingResult(manufacturer=MFR, finish=FIN), "ND80PD")
        assert VIOLATION_NO_FINISH not in r.violations
        assert len(r.violations) == 0

    def test_weights_are_configurable(self):
        w = ScoringWeights(manufacturer=0.4, item_number=0.2, finish=0.2)
        r = score_grounding(GroundingResult(manufacturer=MFR, finish=FIN), "ND80PD", w)
        assert r.score == pytest.approx(0.8)

    def test_sum_is_stable_for_threshold_comparisons(self):
        g = GroundingResult(manufacturer=MFR, finish=FIN, category=CAT, hardware_set=HWS)
        assert score_grounding(g, "ND80PD").score == 0.9


class TestImportReady:
    def test_threshold_is_a_parameter(self):
        assert is_import_ready(0.7, [], threshold=0.6) is True
        assert is_import_ready(0.7, [], threshold=0.8) is False

    def test_any_violation_blocks(self):
        assert is_import_ready(1.0, [VIOLATION_NO_FINISH]) is False

    def test_boundary_is_inclusive(self):
        assert is_import_ready(0.6, [], threshold=0.6) is True
