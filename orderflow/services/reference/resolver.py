from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable, Optional

from orderflow.services.reference.schema import (
    CategoryRef,
    ElectrifiedDeviceRef,
    FinishRef,
    HardwareSetTemplate,
    ManufacturerRef,
    ReferencePack,
    WiringConfigRef,
)


def _contains_any(text: str, needles: Iterable[str]) -> bool:
    return any(n and n.lower() in text for n in needles)


@dataclass(frozen=True)
class GroundingHints:
    """Optional values the extraction step read directly off the document."""
    manufacturer: str = ""
    finish: str = ""
    category: str = ""
    voltage: str = ""
    fail_mode: str = ""


@dataclass(frozen=True)
class GroundingResult:
    manufacturer: Optional[ManufacturerRef] = None
    finish: Optional[FinishRef] = None
    category: Optional[CategoryRef] = None
    electrified_device: Optional[ElectrifiedDeviceRef] = None
    wiring: Optional[WiringConfigRef] = None
    hardware_set: Optional[HardwareSetTemplate] = None
    voltage: str = ""
    fail_mode: str = ""


class ReferenceResolver:
    """
    Deterministic grounding of free text against a ReferencePack.

    Every lookup is FIRST match in declaration order, not best match.
    All lookups are pure and return None for empty input.
    """

    def __init__(self, pack: ReferencePack):
        self.pack = pack

    # =====================================================
    # Dictionary lookups
    # =====================================================
    def resolve_manufacturer(self, text: Optional[str]) -> Optional[ManufacturerRef]:
        if not text:
            return None
        t = text.lower()
        for m in self.pack.manufacturers:
            if _contains_any(t, [m.abbr, m.name, *m.aliases]):
                return m
        return None

    def resolve_finish(self, text: Optional[str]) -> Optional[FinishRef]:
        if not text:
            return None
        t = text.upper()
        for f in self.pack.finishes:
            if (f.us_code and f.us_code.upper() in t) or (
                f.bhma_code and f.bhma_code.upper() in t
            ):
                return f
        return None

    def resolve_category(self, text: Optional[str]) -> Optional[CategoryRef]:
        if not text:
            return None
        t = text.lower()
        for c in self.pack.categories:
            if c.gordon_symbol and c.gordon_symbol.lower() in t:
                return c
        return None

    def resolve_electrified_device(self, text: Optional[str]) -> Optional[ElectrifiedDeviceRef]:
        if not text:
            return None
        t = text.lower()
        for d in self.pack.electrified_devices:
            if _contains_any(t, d.keywords):
                return d
        return None

    def resolve_wiring(self, device_type: Optional[str]) -> Optional[WiringConfigRef]:
        if not device_type:
            return None
        for w in self.pack.wiring_configs:
            if device_type in w.device_types:
                return w
        return None

    def resolve_hardware_set(self, text: Optional[str]) -> Optional[HardwareSetTemplate]:
        if not text:
            return None
        t = text.lower()
        for s in self.pack.hardware_sets:
            if _contains_any(t, s.keywords):
                return s
        return None

    # =====================================================
    # Bundle
    # =====================================================
    def ground(self, text: str, hints: Optional[GroundingHints] = None) -> GroundingResult:
        """
        Resolve every dictionary against the combined line text.

        Manufacturer, finish and category fall back to the extraction hint
        when the line text has no match.
        """
        hints = hints or GroundingHints()

        manufacturer = self.resolve_manufacturer(text) or self.resolve_manufacturer(hints.manufacturer)
        finish = self.resolve_finish(text) or self.resolve_finish(hints.finish)
        category = self.resolve_category(text) or self.resolve_category(hints.category)

        device = self.resolve_electrified_device(text)
        wiring = self.resolve_wiring(device.device_type) if device else None
        hardware_set = self.resolve_hardware_set(text)

        voltage = hints.voltage or (device.voltage[0] if device and device.voltage else "")
        fail_mode = hints.fail_mode or (device.fail_modes[0] if device and device.fail_modes else "")

        return GroundingResult(
            manufacturer=manufacturer,
            finish=finish,
            category=category,
            electrified_device=device,
            wiring=wiring,
            hardware_set=hardware_set,
            voltage=voltage,
            fail_mode=fail_mode,
        )
