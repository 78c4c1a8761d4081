from typing import Any, Dict, Literal, Optional

from fastapi import APIRouter, Body, HTTPException, Query, Request
from fastapi.responses import PlainTextResponse

from orderflow.core.errors import ConfigImportError, ConfigValidationError
from orderflow.routers.deps import config_error_to_http, get_config_service
from orderflow.services.policy.validator import lint_policy
from orderflow.services.tabular.policy_table import export_policy_rules_csv

router = APIRouter()


@router.get("")
def get_policy(request: Request):
    return get_config_service(request).load_policy().model_dump(mode="json")


@router.get("/meta")
def get_policy_meta(request: Request):
    return get_config_service(request).load_policy().meta.model_dump(mode="json")


@router.get("/lint")
def get_policy_lint(request: Request):
    result = lint_policy(get_config_service(request).load_policy())
    return {"ok": result.ok, "errors": result.errors}


@router.post("/finalize")
def finalize_policy(
    request: Request,
    body: Dict[str, Any] = Body(...),
    bump: Optional[Literal["major", "minor", "patch"]] = Query(None),
    author: Optional[str] = Query(None),
    note: Optional[str] = Query(None),
):
    """Validate an edited policy, bump + hash it, and persist the snapshot."""
    svc = get_config_service(request)
    try:
        policy = svc.import_policy_document(body)
    except ConfigValidationError as e:
        raise config_error_to_http(e)

    finalized = svc.finalize_policy(policy, bump=bump, author=author, note=note)
    return finalized.model_dump(mode="json")


@router.get("/export", response_class=PlainTextResponse)
def export_policy_rules(request: Request):
    policy = get_config_service(request).load_policy()
    return PlainTextResponse(export_policy_rules_csv(policy), media_type="text/csv")


@router.post("/import")
async def import_policy_rules(request: Request):
    """
    Merge a rule table (CSV body) into the current policy.
    Returns the merged draft; it is not persisted until finalized.
    """
    raw = await request.body()
    try:
        text = raw.decode("utf-8-sig")
    except UnicodeDecodeError:
        raise HTTPException(status_code=400, detail="body must be UTF-8 CSV")

    try:
        policy = get_config_service(request).import_policy_rules(text)
    except (ConfigValidationError, ConfigImportError) as e:
        raise config_error_to_http(e)

    return policy.model_dump(mode="json")


@router.delete("")
def reset_policy(request: Request):
    return get_config_service(request).reset_policy().model_dump(mode="json")
