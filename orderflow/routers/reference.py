from typing import Any, Dict, Literal, Optional

from fastapi import APIRouter, Body, Query, Request

from orderflow.core.errors import ConfigImportError, ConfigValidationError
from orderflow.routers.deps import config_error_to_http, get_config_service
from orderflow.services.tabular.reference_table import export_reference_pack_tables

router = APIRouter()


@router.get("")
def get_reference_pack(request: Request):
    return get_config_service(request).load_reference_pack().model_dump(mode="json")


@router.post("/finalize")
def finalize_reference_pack(
    request: Request,
    body: Dict[str, Any] = Body(...),
    bump: Optional[Literal["major", "minor", "patch"]] = Query(None),
    note: Optional[str] = Query(None),
):
    svc = get_config_service(request)
    try:
        pack = svc.import_reference_pack_document(body)
    except ConfigValidationError as e:
        raise config_error_to_http(e)

    return svc.finalize_reference_pack(pack, bump=bump, note=note).model_dump(mode="json")


@router.get("/export")
def export_reference_pack(request: Request):
    """Sheet name -> CSV text."""
    return export_reference_pack_tables(get_config_service(request).load_reference_pack())


@router.post("/import")
def import_reference_pack(request: Request, body: Dict[str, str] = Body(...)):
    try:
        pack = get_config_service(request).import_reference_tables(body)
    except (ConfigValidationError, ConfigImportError) as e:
        raise config_error_to_http(e)
    return pack.model_dump(mode="json")


@router.delete("")
def reset_reference_pack(request: Request):
    return get_config_service(request).reset_reference_pack().model_dump(mode="json")
