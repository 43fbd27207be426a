import asyncio
import json
from dataclasses import replace

import pytest

from catalog_sync.core.errors import FetchError
from catalog_sync.workflows import synchronizer
from catalog_sync.workflows.policy import DEFAULT_POLICY
from catalog_sync.workflows.verify import ReachabilityVerifier

BASE = DEFAULT_POLICY.base_url


def _policy(tmp_path):
    return replace(
        DEFAULT_POLICY,
        output_path=tmp_path / "data" / "statuses.json",
        verify=replace(DEFAULT_POLICY.verify, probe_delay=0.0),
    )


def _serve_page(monkeypatch, html):
    async def fake_fetch_page(url, config=None):
        assert url == BASE
        return html

    monkeypatch.setattr(synchronizer, "fetch_page", fake_fetch_page)


def _statuses(monkeypatch, live):
    checked = []

    async def fake_request_status(self, session, method, url):
        checked.append(url)
        return 200 if url in live else 404

    monkeypatch.setattr(ReachabilityVerifier, "_request_status", fake_request_status)
    return checked


def test_one_tool_and_one_certificate(monkeypatch, tmp_path):
    _serve_page(monkeypatch, '<a href="app.ipa">KSign</a> <a href="cert.pem">Root CA</a>')
    _statuses(monkeypatch, live={f"{BASE}app.ipa"})

    result = synchronizer.run_sync(_policy(tmp_path))

    assert result.document.to_dict() == {
        "tools": [
            {
                "id": "ksign",
                "name": "KSign",
                "status": True,
                "description": "Automatically discovered on khoindvn.io.vn",
                "url": f"{BASE}app.ipa",
            }
        ],
        "certificates": [
            {
                "id": "cert-1",
                "name": "Certificate",
                "description": "Link from khoindvn.io.vn",
                "url": f"{BASE}cert.pem",
            }
        ],
    }
    written = json.loads(result.output_path.read_text(encoding="utf-8"))
    assert written == result.document.to_dict()


def test_direct_file_preferred_over_docs_page(monkeypatch, tmp_path):
    _serve_page(
        monkeypatch,
        """
        <a href="/docs/ksign-guide">How to sideload with KSign</a>
        <a href="/files/x.ipa">KSign</a>
        """,
    )
    checked = _statuses(monkeypatch, live=set())

    document = asyncio.run(synchronizer.synchronize(_policy(tmp_path)))

    assert [(t.id, t.url, t.status) for t in document.tools] == [("ksign", f"{BASE}files/x.ipa", False)]
    # only the selected link is probed (HEAD + GET fallback)
    assert set(checked) == {f"{BASE}files/x.ipa"}


@pytest.mark.parametrize("cert_first", [True, False])
def test_same_href_kept_once_in_first_category(monkeypatch, tmp_path, cert_first):
    cert = '<a href="/get/ksign-root">Certificate for KSign</a>'
    app = '<p>Latest build: <a href="/get/ksign-root">KSign</a></p>'
    _serve_page(monkeypatch, cert + app if cert_first else app + cert)
    _statuses(monkeypatch, live={f"{BASE}get/ksign-root"})

    document = asyncio.run(synchronizer.synchronize(_policy(tmp_path)))

    urls = [e.url for e in document.tools + document.certificates]
    assert urls == [f"{BASE}get/ksign-root"]
    if cert_first:
        assert document.tools == ()
        assert document.certificates[0].id == "cert-1"
    else:
        assert document.certificates == ()
        assert document.tools[0].id == "ksign"


def test_fetch_failure_aborts_without_writing(monkeypatch, tmp_path):
    async def failing_fetch(url, config=None):
        raise FetchError(url, "ClientConnectorError: connection refused")

    async def must_not_verify(self, urls):
        raise AssertionError("verification must not start")

    monkeypatch.setattr(synchronizer, "fetch_page", failing_fetch)
    monkeypatch.setattr(ReachabilityVerifier, "verify_many", must_not_verify)
    policy = _policy(tmp_path)
    policy.output_path.parent.mkdir(parents=True)
    policy.output_path.write_text('{"tools": [], "certificates": []}', encoding="utf-8")

    with pytest.raises(FetchError):
        synchronizer.run_sync(policy)

    assert policy.output_path.read_text(encoding="utf-8") == '{"tools": [], "certificates": []}'


def test_realistic_page_keeps_uniqueness(monkeypatch, tmp_path):
    _serve_page(
        monkeypatch,
        """
        <nav><a href="/">Home</a><a href="#tools">Tools</a></nav>
        <a href="https://raw.githubusercontent.com/o/r/main/KSign.ipa">KSign</a>
        <a href="https://example.com/mirror/KSign.ipa">KSign (mirror)</a>
        <a href="/ksign-bmw.ipa">KSign BMW</a>
        <a href="/esign.ipa">eSign</a>
        <a href="/esign-vnj.ipa">eSign VNJ</a>
        <a href="/scarlet.ipa">Scarlet</a>
        <a href="/feather.ipa">Feather</a>
        <a href="/dns/khoindns.mobileconfig">DNS</a>
        <a href="/certs/2024.p12">Cert 2024</a>
        <a href="/certs/2024.p12">Download certificate</a>
        <a href="/certs/all.zip">All certificates</a>
        <a href="mailto:me@example.com">Contact</a>
        """,
    )
    _statuses(monkeypatch, live={"https://raw.githubusercontent.com/o/r/main/KSign.ipa"})

    document = asyncio.run(synchronizer.synchronize(_policy(tmp_path)))

    tool_ids = [t.id for t in document.tools]
    cert_ids = [c.id for c in document.certificates]
    assert tool_ids == ["ksign", "ksign-bmw", "esign", "esign-vnj", "app-1", "app-2"]
    assert cert_ids == ["dns-1", "cert-1", "cert-2"]
    assert document.tools[0].url == "https://raw.githubusercontent.com/o/r/main/KSign.ipa"
    assert document.tools[0].status is True
    urls = [e.url for e in document.tools + document.certificates]
    assert len(urls) == len(set(urls))
