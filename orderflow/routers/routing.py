from typing import List

from fastapi import APIRouter, Request
from fastapi.responses import PlainTextResponse
from pydantic import BaseModel, Field

from orderflow.core.config import settings
from orderflow.routers.deps import get_config_service
from orderflow.services.policy.schema import PolicyContext
from orderflow.services.routing.models import OrderLine, RoutingBatchResult
from orderflow.services.routing.pipeline import RoutingPipeline
from orderflow.services.tabular.control_surface import export_control_surface_csv

router = APIRouter()


class RouteRequest(BaseModel):
    lines: List[OrderLine] = Field(default_factory=list)
    context: PolicyContext = Field(default_factory=lambda: PolicyContext(phase=settings.DEFAULT_PHASE))


def _run(request: Request, body: RouteRequest) -> RoutingBatchResult:
    svc = get_config_service(request)
    # snapshots are read once per batch
    pipeline = RoutingPipeline(
        policy=svc.load_policy(),
        reference_pack=svc.load_reference_pack(),
    )
    return pipeline.route_batch(body.lines, body.context)


@router.post("/route", response_model=RoutingBatchResult)
def route_lines(request: Request, body: RouteRequest):
    return _run(request, body)


@router.post("/export", response_class=PlainTextResponse)
def route_and_export(request: Request, body: RouteRequest):
    result = _run(request, body)
    return PlainTextResponse(export_control_surface_csv(result.lines), media_type="text/csv")
