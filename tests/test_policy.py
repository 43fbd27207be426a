from pathlib import Path

import pytest

from catalog_sync.workflows.policy import (
    DEFAULT_POLICY,
    SyncPolicy,
    build_identities,
    load_policy_from_env,
    override_policy,
)

_VARS = (
    "CATALOG_SYNC_BASE_URL",
    "CATALOG_SYNC_OUTPUT",
    "CATALOG_SYNC_CONCURRENCY",
    "CATALOG_SYNC_TIMEOUT",
    "CATALOG_SYNC_PROBE_DELAY",
    "CATALOG_SYNC_USER_AGENT",
    "CATALOG_SYNC_SCORING_WEIGHTS_JSON",
    "CATALOG_SYNC_IDENTITIES_JSON",
)


@pytest.fixture(autouse=True)
def _clean_env(monkeypatch):
    for name in _VARS:
        monkeypatch.delenv(name, raising=False)


def test_defaults_without_env():
    policy = load_policy_from_env()
    assert policy == DEFAULT_POLICY
    assert policy.source_host == "khoindvn.io.vn"
    assert [i.key for i in policy.identities] == ["ksign-bmw", "ksign", "esign-vnj", "esign"]


def test_env_overrides(monkeypatch):
    monkeypatch.setenv("CATALOG_SYNC_BASE_URL", "https://mirror.example/")
    monkeypatch.setenv("CATALOG_SYNC_OUTPUT", "out/catalog.json")
    monkeypatch.setenv("CATALOG_SYNC_CONCURRENCY", "7")
    monkeypatch.setenv("CATALOG_SYNC_TIMEOUT", "3.5")
    monkeypatch.setenv("CATALOG_SYNC_PROBE_DELAY", "0")
    monkeypatch.setenv("CATALOG_SYNC_SCORING_WEIGHTS_JSON", '{"direct_file": 50}')
    monkeypatch.setenv("CATALOG_SYNC_IDENTITIES_JSON", '[{"key": "scarlet", "name": "Scarlet", "keywords": ["Scarlet"]}]')

    policy = load_policy_from_env()

    assert policy.base_url == "https://mirror.example/"
    assert policy.output_path == Path("out/catalog.json")
    assert policy.verify.concurrency == 7
    assert policy.verify.timeout == 3.5
    assert policy.fetch.timeout == 3.5
    assert policy.verify.probe_delay == 0.0
    assert policy.weights.direct_file == 50
    assert policy.weights.identity_match == DEFAULT_POLICY.weights.identity_match
    assert [(i.key, i.keywords) for i in policy.identities] == [("scarlet", ("scarlet",))]


def test_invalid_numbers_fall_back(monkeypatch):
    monkeypatch.setenv("CATALOG_SYNC_CONCURRENCY", "lots")
    monkeypatch.setenv("CATALOG_SYNC_TIMEOUT", "-1")
    policy = load_policy_from_env()
    assert policy.verify.concurrency == DEFAULT_POLICY.verify.concurrency
    assert policy.verify.timeout == DEFAULT_POLICY.verify.timeout
    assert policy.fetch.timeout == DEFAULT_POLICY.fetch.timeout


def test_malformed_json_names_the_variable(monkeypatch):
    monkeypatch.setenv("CATALOG_SYNC_SCORING_WEIGHTS_JSON", "{oops")
    with pytest.raises(ValueError, match="CATALOG_SYNC_SCORING_WEIGHTS_JSON"):
        load_policy_from_env()


def test_unknown_weight_rejected(monkeypatch):
    monkeypatch.setenv("CATALOG_SYNC_SCORING_WEIGHTS_JSON", '{"bonus": 5}')
    with pytest.raises(ValueError, match="bonus"):
        load_policy_from_env()


def test_build_identities_requires_keywords():
    with pytest.raises(ValueError):
        build_identities([{"key": "empty", "keywords": []}])


def test_override_policy():
    policy = override_policy(DEFAULT_POLICY, output_path=Path("x.json"), concurrency=2, timeout=4.0)
    assert policy.output_path == Path("x.json")
    assert policy.verify.concurrency == 2
    assert policy.fetch.timeout == 4.0
    assert policy.base_url == DEFAULT_POLICY.base_url
    with pytest.raises(ValueError):
        override_policy(DEFAULT_POLICY, concurrency=0)


def test_env_and_flag_timeouts_agree(monkeypatch):
    monkeypatch.setenv("CATALOG_SYNC_TIMEOUT", "3")
    from_env = load_policy_from_env()
    from_flag = override_policy(DEFAULT_POLICY, timeout=3.0)
    assert (from_env.fetch.timeout, from_env.verify.timeout) == (3.0, 3.0)
    assert (from_flag.fetch.timeout, from_flag.verify.timeout) == (3.0, 3.0)


def test_bare_policy_carries_known_identities():
    policy = SyncPolicy(base_url="https://mirror.example/")
    assert policy.identities == DEFAULT_POLICY.identities
    assert [i.key for i in policy.identities] == ["ksign-bmw", "ksign", "esign-vnj", "esign"]
