from abc import ABC, abstractmethod
from typing import Any, Dict, Optional

from fastapi.encoders import jsonable_encoder


POLICY_KEY = "control_surface_policy_v1"
REFERENCE_PACK_KEY = "orderflow.referencePack"


class BaseConfigStore(ABC):
    """
    Storage port for config snapshots.

    load() returns the raw decoded document (or None when absent). It does
    not validate; validation happens in the loader at the service boundary.
    """

    @abstractmethod
    def load(self, key: str) -> Optional[Any]:
        ...

    @abstractmethod
    def save(self, key: str, payload: Dict[str, Any]) -> None:
        ...

    @abstractmethod
    def clear(self, key: str) -> None:
        ...

    def _encode(self, payload: Any) -> Dict[str, Any]:
        """
        Ensure the store never receives pydantic models, datetimes or
        Decimals, only plain JSON values.
        """
        return jsonable_encoder(payload)
