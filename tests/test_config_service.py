"""
Tests for config snapshot loading, finalize/persist and reset.
"""

import json

import pytest

from orderflow.core.errors import ConfigValidationError
from orderflow.repositories.base import POLICY_KEY, REFERENCE_PACK_KEY
from orderflow.repositories.config_store_repo import FileConfigStore, InMemoryConfigStore
from orderflow.services.config_service import ConfigService, default_policy, default_reference_pack
from orderflow.services.versioning import verify_policy_hash, verify_reference_pack_hash


@pytest.fixture(params=["memory", "file"])
def service(request, tmp_path):
    if request.param == "memory":
        return ConfigService(InMemoryConfigStore())
    return ConfigService(FileConfigStore(str(tmp_path / "store")))


class TestLoad:
    def test_absent_snapshot_uses_packaged_default(self, service):
        assert service.load_policy() is default_policy()
        assert service.load_reference_pack() is default_reference_pack()

    def test_invalid_snapshot_falls_back(self):
        store = InMemoryConfigStore({POLICY_KEY: {"meta": "nope"}, REFERENCE_PACK_KEY: ["not", "a", "pack"]})
        svc = ConfigService(store)
        assert svc.load_policy().meta.policy_id == "abh-po-control-surface"
        assert svc.load_reference_pack().version == "1.0.0"

    def test_corrupt_file_falls_back(self, tmp_path):
        root = tmp_path / "store"
        root.mkdir()
        (root / f"{POLICY_KEY}.json").write_text("{truncated", encoding="utf-8")
        svc = ConfigService(FileConfigStore(str(root)))
        assert svc.load_policy() is default_policy()


class TestFinalize:
    def test_finalized_policy_is_what_loads_next(self, service, policy):
        saved = service.finalize_policy(policy, bump="minor", author="ops", note="first edit")
        loaded = service.load_policy()
        assert loaded.meta.version == "0.2.0"
        assert loaded.meta.sha256 == saved.meta.sha256
        assert verify_policy_hash(loaded)

    def test_finalized_reference_pack_is_what_loads_next(self, service, reference_pack):
        saved = service.finalize_reference_pack(reference_pack, bump="patch", note="typo")
        loaded = service.load_reference_pack()
        assert loaded.version == "1.0.1"
        assert loaded.sha256 == saved.sha256
        assert verify_reference_pack_hash(loaded)

    def test_file_store_writes_json(self, tmp_path, policy):
        root = tmp_path / "store"
        ConfigService(FileConfigStore(str(root))).finalize_policy(policy, bump="patch")
        data = json.loads((root / f"{POLICY_KEY}.json").read_text(encoding="utf-8"))
        assert data["meta"]["version"] == "0.1.1"
        assert not list(root.glob("*.tmp"))


class TestImportAndReset:
    def test_rule_import_is_a_draft(self, service):
        draft = service.import_policy_rules("rule_id,then_lane,then_reason\nONLY,REVIEW,x\n")
        assert [r.rule_id for r in draft.rules] == ["ONLY"]
        assert service.load_policy() is default_policy()

    def test_document_import_raises(self, service):
        with pytest.raises(ConfigValidationError):
            service.import_policy_document({"meta": {}})
        with pytest.raises(ConfigValidationError):
            service.import_reference_pack_document("not a dict")

    def test_reference_table_import_merges_into_current(self, service):
        pack = service.import_reference_tables({"Finishes": "us_code,name\nUS3,Bright Brass\n"})
        assert [f.us_code for f in pack.finishes] == ["US3"]
        assert pack.model_dump()["manufacturers"] == default_reference_pack().model_dump()["manufacturers"]

    def test_reset(self, service, policy, reference_pack):
        service.finalize_policy(policy, bump="major")
        service.finalize_reference_pack(reference_pack, bump="major")
        assert service.reset_policy() is default_policy()
        assert service.reset_reference_pack() is default_reference_pack()
        assert service.load_policy().meta.version == "0.1.0"
        assert service.load_reference_pack().version == "1.0.0"
