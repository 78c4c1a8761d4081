# orderflow/services/versioning.py
"""
Content-addressed versioning for the two config artifacts.

finalize_* never mutates its input: it returns a new frozen snapshot with
updated_at stamped and sha256 computed over the canonical JSON form
(sha256 itself excluded).
"""

from __future__ import annotations

import hashlib
import json
import re
from datetime import datetime, timezone
from typing import Any, Callable, Dict, Literal, Optional

from orderflow.services.policy.schema import PolicyConfig
from orderflow.services.reference.schema import ReferencePack


BumpKind = Literal["major", "minor", "patch"]

POLICY_BASELINE_VERSION = "0.1.0"
REFERENCE_BASELINE_VERSION = "1.0.0"

_SEMVER_RE = re.compile(r"^\s*(\d+)\.(\d+)\.(\d+)\s*$")


def utc_now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


def canonical_json(payload: Dict[str, Any]) -> str:
    return json.dumps(payload, sort_keys=True, ensure_ascii=False, separators=(",", ":"), default=str)


def content_hash(payload: Dict[str, Any]) -> str:
    return hashlib.sha256(canonical_json(payload).encode("utf-8")).hexdigest()


def bump_version(current: Optional[str], kind: BumpKind, baseline: str = POLICY_BASELINE_VERSION) -> str:
    m = _SEMVER_RE.match(current or "")
    if not m:
        return baseline
    major, minor, patch = (int(x) for x in m.groups())
    if kind == "major":
        return f"{major + 1}.0.0"
    if kind == "minor":
        return f"{major}.{minor + 1}.0"
    return f"{major}.{minor}.{patch + 1}"


# =========================================================
# Hash helpers
# =========================================================

def policy_hash(policy: PolicyConfig) -> str:
    data = policy.model_dump(mode="json")
    data["meta"].pop("sha256", None)
    return content_hash(data)


def reference_pack_hash(pack: ReferencePack) -> str:
    data = pack.model_dump(mode="json")
    data.pop("sha256", None)
    return content_hash(data)


# =========================================================
# Finalize
# =========================================================

def finalize_policy(
    policy: PolicyConfig,
    *,
    bump: Optional[BumpKind] = None,
    author: Optional[str] = None,
    note: Optional[str] = None,
    clock: Callable[[], str] = utc_now_iso,
) -> PolicyConfig:
    meta = policy.meta
    version = bump_version(meta.version, bump, POLICY_BASELINE_VERSION) if bump else meta.version

    changelog = list(meta.changelog)
    if note:
        changelog.append(note)

    new_meta = meta.model_copy(
        update={
            "version": version,
            "updated_at": clock(),
            "author": author if author is not None else meta.author,
            "changelog": changelog,
            "sha256": None,
        }
    )
    draft = policy.model_copy(update={"meta": new_meta})
    digest = policy_hash(draft)

    return draft.model_copy(update={"meta": new_meta.model_copy(update={"sha256": digest})})


def finalize_reference_pack(
    pack: ReferencePack,
    *,
    bump: Optional[BumpKind] = None,
    note: Optional[str] = None,
    clock: Callable[[], str] = utc_now_iso,
) -> ReferencePack:
    version = bump_version(pack.version, bump, REFERENCE_BASELINE_VERSION) if bump else pack.version

    changelog = list(pack.changelog)
    if note:
        changelog.append(note)

    draft = pack.model_copy(
        update={
            "version": version,
            "updated_at": clock(),
            "changelog": changelog,
            "sha256": None,
        }
    )
    return draft.model_copy(update={"sha256": reference_pack_hash(draft)})


def verify_policy_hash(policy: PolicyConfig) -> bool:
    return bool(policy.meta.sha256) and policy.meta.sha256 == policy_hash(policy)


def verify_reference_pack_hash(pack: ReferencePack) -> bool:
    return bool(pack.sha256) and pack.sha256 == reference_pack_hash(pack)
