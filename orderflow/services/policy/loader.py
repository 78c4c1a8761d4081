import yaml
from pathlib import Path
from typing import Any, List

from pydantic import ValidationError

from orderflow.core.errors import ConfigValidationError
from orderflow.services.policy.schema import PolicyConfig
from orderflow.services.reference.schema import ReferencePack


def _problems(e: ValidationError) -> List[str]:
    out: List[str] = []
    for err in e.errors():
        loc = ".".join(str(x) for x in err.get("loc", ())) or "<root>"
        out.append(f"{loc}: {err.get('msg')}")
    return out


def parse_policy(raw: Any) -> PolicyConfig:
    if not isinstance(raw, dict):
        raise ConfigValidationError("policy", ["document must be an object"])
    try:
        return PolicyConfig.model_validate(raw)
    except ValidationError as e:
        raise ConfigValidationError("policy", _problems(e)) from e


def parse_reference_pack(raw: Any) -> ReferencePack:
    if not isinstance(raw, dict):
        raise ConfigValidationError("reference pack", ["document must be an object"])
    try:
        return ReferencePack.model_validate(raw)
    except ValidationError as e:
        raise ConfigValidationError("reference pack", _problems(e)) from e


def _read_yaml(path: str) -> Any:
    p = Path(path)

    if not p.exists():
        raise RuntimeError(f"Config file not found: {path}")

    with open(p, "r", encoding="utf-8") as f:
        return yaml.safe_load(f)


def load_policy_from_file(path: str) -> PolicyConfig:
    return parse_policy(_read_yaml(path))


def load_reference_pack_from_file(path: str) -> ReferencePack:
    return parse_reference_pack(_read_yaml(path))
