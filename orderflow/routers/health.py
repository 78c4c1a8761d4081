from fastapi import APIRouter, Request

from orderflow.routers.deps import get_config_service

router = APIRouter()


@router.get("")
def health(request: Request):
    svc = get_config_service(request)
    policy = svc.load_policy()
    pack = svc.load_reference_pack()
    return {
        "status": "ok",
        "policy_version": policy.meta.version,
        "reference_version": pack.version,
    }
