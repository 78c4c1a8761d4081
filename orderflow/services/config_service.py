"""
Config snapshot service
-----------------------
- Batch start: load policy + reference pack from the store; an absent or
  unreadable snapshot falls back to the packaged default (never raises)
- Admin finalize: bump version, stamp, hash, save (store serializes writers)
- Explicit import: raises ConfigValidationError / ConfigImportError
"""

from __future__ import annotations

import logging
from functools import lru_cache
from typing import Any, Dict, Optional

from orderflow.core.config import settings
from orderflow.core.errors import ConfigValidationError
from orderflow.repositories.base import POLICY_KEY, REFERENCE_PACK_KEY, BaseConfigStore
from orderflow.services.policy.loader import (
    load_policy_from_file,
    load_reference_pack_from_file,
    parse_policy,
    parse_reference_pack,
)
from orderflow.services.policy.schema import PolicyConfig
from orderflow.services.reference.schema import ReferencePack
from orderflow.services.tabular.policy_table import import_policy_rules_csv
from orderflow.services.tabular.reference_table import import_reference_pack_tables
from orderflow.services.versioning import BumpKind, finalize_policy, finalize_reference_pack

logger = logging.getLogger(__name__)


@lru_cache(maxsize=4)
def default_policy(path: Optional[str] = None) -> PolicyConfig:
    return load_policy_from_file(path or settings.ORDERFLOW_DEFAULT_POLICY_PATH)


@lru_cache(maxsize=4)
def default_reference_pack(path: Optional[str] = None) -> ReferencePack:
    return load_reference_pack_from_file(path or settings.ORDERFLOW_DEFAULT_REFERENCE_PATH)


class ConfigService:
    def __init__(self, store: BaseConfigStore):
        self.store = store

    # =====================================================
    # Load (fallback to defaults)
    # =====================================================
    def load_policy(self) -> PolicyConfig:
        raw = self.store.load(POLICY_KEY)
        if raw is None:
            return default_policy()
        try:
            return parse_policy(raw)
        except ConfigValidationError as e:
            logger.warning("stored policy invalid, using default: %s", e)
            return default_policy()

    def load_reference_pack(self) -> ReferencePack:
        raw = self.store.load(REFERENCE_PACK_KEY)
        if raw is None:
            return default_reference_pack()
        try:
            return parse_reference_pack(raw)
        except ConfigValidationError as e:
            logger.warning("stored reference pack invalid, using default: %s", e)
            return default_reference_pack()

    # =====================================================
    # Finalize + persist
    # =====================================================
    def finalize_policy(
        self,
        policy: PolicyConfig,
        *,
        bump: Optional[BumpKind] = None,
        author: Optional[str] = None,
        note: Optional[str] = None,
    ) -> PolicyConfig:
        finalized = finalize_policy(policy, bump=bump, author=author, note=note)
        self.store.save(POLICY_KEY, finalized.model_dump(mode="json"))
        logger.info(
            "policy finalized policy_id=%s version=%s sha256=%s",
            finalized.meta.policy_id,
            finalized.meta.version,
            finalized.meta.sha256,
        )
        return finalized

    def finalize_reference_pack(
        self,
        pack: ReferencePack,
        *,
        bump: Optional[BumpKind] = None,
        note: Optional[str] = None,
    ) -> ReferencePack:
        finalized = finalize_reference_pack(pack, bump=bump, note=note)
        self.store.save(REFERENCE_PACK_KEY, finalized.model_dump(mode="json"))
        logger.info("reference pack finalized version=%s sha256=%s", finalized.version, finalized.sha256)
        return finalized

    # =====================================================
    # Explicit import (raises)
    # =====================================================
    def import_policy_document(self, raw: Any) -> PolicyConfig:
        return parse_policy(raw)

    def import_reference_pack_document(self, raw: Any) -> ReferencePack:
        return parse_reference_pack(raw)

    def import_policy_rules(self, csv_text: str) -> PolicyConfig:
        """Merge a rule table into the current policy. Not persisted until finalized."""
        return import_policy_rules_csv(csv_text, self.load_policy())

    def import_reference_tables(self, tables: Dict[str, str]) -> ReferencePack:
        return import_reference_pack_tables(tables, self.load_reference_pack())

    # =====================================================
    # Reset
    # =====================================================
    def reset_policy(self) -> PolicyConfig:
        self.store.clear(POLICY_KEY)
        return default_policy()

    def reset_reference_pack(self) -> ReferencePack:
        self.store.clear(REFERENCE_PACK_KEY)
        return default_reference_pack()
