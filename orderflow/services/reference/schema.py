# orderflow/services/reference/schema.py

from typing import Dict, List, Optional
from pydantic import BaseModel, ConfigDict, Field


class ManufacturerRef(BaseModel):
    model_config = ConfigDict(frozen=True)

    abbr: str
    name: str
    aliases: List[str] = Field(default_factory=list)


class FinishRef(BaseModel):
    model_config = ConfigDict(frozen=True)

    us_code: str
    bhma_code: Optional[str] = None
    name: str = ""


class CategoryRef(BaseModel):
    """gordon_symbol is the short symbol searched for in line text."""
    model_config = ConfigDict(frozen=True)

    gordon_symbol: str
    category: str
    subcategory: Optional[str] = None


class ElectrifiedDeviceRef(BaseModel):
    model_config = ConfigDict(frozen=True)

    device_type: str
    voltage: List[str] = Field(default_factory=list)
    fail_modes: List[str] = Field(default_factory=list)
    keywords: List[str] = Field(default_factory=list)


class WiringConfigRef(BaseModel):
    model_config = ConfigDict(frozen=True)

    name: str
    device_types: List[str] = Field(default_factory=list)
    wire_count: Optional[int] = None


class HardwareSetTemplate(BaseModel):
    model_config = ConfigDict(frozen=True)

    template_id: str
    keywords: List[str] = Field(default_factory=list)
    defaults: Dict[str, str] = Field(default_factory=dict)


class ReferencePack(BaseModel):
    """
    Versioned normalization dictionaries.

    Declaration order inside every list is significant: grounding is
    first-match, so an earlier entry shadows a later one.
    """
    model_config = ConfigDict(frozen=True, extra="allow")

    version: str
    updated_at: Optional[str] = None
    changelog: List[str] = Field(default_factory=list)
    sha256: Optional[str] = None

    manufacturers: List[ManufacturerRef]
    finishes: List[FinishRef]
    categories: List[CategoryRef]
    electrified_devices: List[ElectrifiedDeviceRef]
    wiring_configs: List[WiringConfigRef]
    hardware_sets: List[HardwareSetTemplate]
