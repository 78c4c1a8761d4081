from fastapi import HTTPException, Request

from orderflow.core.errors import ConfigImportError, ConfigValidationError
from orderflow.services.config_service import ConfigService


def get_config_service(request: Request) -> ConfigService:
    svc = getattr(request.app.state, "configs", None)
    if svc is None:
        raise RuntimeError("ConfigService (app.state.configs) is not initialized")
    return svc


def config_error_to_http(e: Exception) -> HTTPException:
    if isinstance(e, ConfigValidationError):
        return HTTPException(status_code=400, detail={"error": str(e), "problems": e.problems})
    if isinstance(e, ConfigImportError):
        return HTTPException(status_code=400, detail={"error": str(e), "problems": []})
    return HTTPException(status_code=500, detail=str(e))
