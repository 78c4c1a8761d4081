# orderflow/services/routing/models.py

from typing import Dict, List, Optional
from pydantic import BaseModel, ConfigDict, Field, field_validator

from orderflow.schemas.routing_types import DocType, ItemClass, Lane, normalize_doc_type


class OrderLine(BaseModel):
    """
    One extracted line item. Document-level fields are repeated per line.
    Produced by the extraction step; never modified by routing.
    """
    model_config = ConfigDict(frozen=True)

    # -------- document --------
    doc_id: str = ""
    doc_type: DocType = "UNKNOWN"
    source_file: Optional[str] = None
    customer_name: str = ""
    customer_order_no: str = ""
    document_date: str = ""
    ship_to_name: str = ""
    ship_to_address_raw: str = ""
    bill_to_name: str = ""
    bill_to_address_raw: str = ""
    mark_instructions: str = ""

    # -------- line --------
    line_no: Optional[int] = None
    customer_item_no: str = ""
    customer_item_desc_raw: str = ""
    qty: Optional[float] = None
    uom: str = ""
    unit_price: Optional[float] = None
    extended_price: Optional[float] = None
    currency: str = "USD"

    # -------- extraction hints (optional) --------
    manufacturer_hint: str = ""
    finish_hint: str = ""
    category_hint: str = ""
    voltage_hint: str = ""
    fail_mode_hint: str = ""

    @field_validator("doc_type", mode="before")
    @classmethod
    def _normalize_doc_type(cls, v):
        return normalize_doc_type(v)

    @field_validator(
        "doc_id",
        "customer_name",
        "customer_order_no",
        "document_date",
        "ship_to_name",
        "ship_to_address_raw",
        "bill_to_name",
        "bill_to_address_raw",
        "mark_instructions",
        "customer_item_no",
        "customer_item_desc_raw",
        "uom",
        "manufacturer_hint",
        "finish_hint",
        "category_hint",
        "voltage_hint",
        "fail_mode_hint",
        mode="before",
    )
    @classmethod
    def _none_as_blank(cls, v):
        return "" if v is None else v

    @property
    def grounding_text(self) -> str:
        return f"{self.customer_item_no} {self.customer_item_desc_raw}".strip()


class RoutedOrderLine(OrderLine):
    # -------- grounding --------
    manufacturer_abbr: str = ""
    manufacturer_full: str = ""
    finish_us_code: str = ""
    finish_bhma_code: str = ""
    category: str = ""
    subcategory: str = ""
    gordon_symbol: str = ""
    electrified_device_type: str = ""
    voltage: str = ""
    fail_mode: str = ""
    wiring_configuration: str = ""
    hardware_set_template: str = ""
    item_no_candidate: str = ""

    # -------- classification --------
    item_class: ItemClass = "UNKNOWN"
    edge_case_flags: List[str] = Field(default_factory=list)

    # -------- scoring --------
    confidence_score: float = Field(default=0.0, ge=0.0, le=1.0)
    match_method: str = ""
    rule_violations: List[str] = Field(default_factory=list)
    import_ready: bool = False

    # -------- routing --------
    automation_lane: Lane
    phase_target: int = 1
    routing_reason: str = ""
    fields_requiring_review: List[str] = Field(default_factory=list)

    # -------- audit --------
    policy_version_applied: str = ""
    policy_rule_ids_applied: List[str] = Field(default_factory=list)
    reference_version: str = ""


class RoutingBatchResult(BaseModel):
    lines: List[RoutedOrderLine]
    lane_summary: Dict[str, int]
    policy_version: str
    reference_version: str
