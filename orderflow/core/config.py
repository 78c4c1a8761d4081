from pydantic import BaseModel
from dotenv import load_dotenv
from pathlib import Path
import os

load_dotenv()

_PACKAGE_DIR = Path(__file__).resolve().parent.parent


class Settings(BaseModel):
    # Config snapshot store
    ORDERFLOW_STORE_DIR: str = os.getenv("ORDERFLOW_STORE_DIR", ".orderflow")

    # Compiled-in defaults (used when the store is empty or corrupt)
    ORDERFLOW_DEFAULT_POLICY_PATH: str = os.getenv(
        "ORDERFLOW_DEFAULT_POLICY_PATH",
        str(_PACKAGE_DIR / "policies" / "control_surface_policy_v1.yaml"),
    )
    ORDERFLOW_DEFAULT_REFERENCE_PATH: str = os.getenv(
        "ORDERFLOW_DEFAULT_REFERENCE_PATH",
        str(_PACKAGE_DIR / "policies" / "reference_pack_v1.yaml"),
    )

    # Scoring
    SCORING_READY_THRESHOLD: float = float(os.getenv("SCORING_READY_THRESHOLD", "0.6"))

    # Routing
    DEFAULT_PHASE: str = os.getenv("DEFAULT_PHASE", "PHASE_1")

    LOG_LEVEL: str = os.getenv("LOG_LEVEL", "INFO")

settings = Settings()
