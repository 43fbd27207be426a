import json
import os
import stat

import pytest

from catalog_sync.workflows.models import CatalogDocument, CatalogEntry
from catalog_sync.workflows.writer import write_document


def _doc(name: str) -> CatalogDocument:
    return CatalogDocument(
        tools=(CatalogEntry(id="ksign", name=name, url="https://h/k.ipa", description="d", status=True),),
        certificates=(CatalogEntry(id="cert-1", name="Certificate", url="https://h/c.pem", description="d"),),
    )


def test_write_document_creates_parents_and_pretty_json(tmp_path):
    target = tmp_path / "data" / "statuses.json"

    write_document(_doc("KSign"), target)

    payload = json.loads(target.read_text(encoding="utf-8"))
    assert payload["tools"][0]["status"] is True
    assert "status" not in payload["certificates"][0]
    assert target.read_text(encoding="utf-8").startswith('{\n  "tools"')


def test_write_document_replaces_previous_version(tmp_path):
    target = tmp_path / "statuses.json"
    target.write_text('{"tools": [], "certificates": [], "stale": true}', encoding="utf-8")

    write_document(_doc("KSign 2"), target)

    payload = json.loads(target.read_text(encoding="utf-8"))
    assert "stale" not in payload
    assert payload["tools"][0]["name"] == "KSign 2"
    assert [p.name for p in tmp_path.iterdir()] == ["statuses.json"]


@pytest.fixture
def umask_022():
    previous = os.umask(0o022)
    try:
        yield
    finally:
        os.umask(previous)


@pytest.mark.skipif(os.name != "posix", reason="POSIX permission bits")
def test_new_document_is_world_readable(tmp_path, umask_022):
    target = tmp_path / "statuses.json"

    write_document(CatalogDocument(), target)

    assert stat.S_IMODE(target.stat().st_mode) == 0o644


@pytest.mark.skipif(os.name != "posix", reason="POSIX permission bits")
def test_replacement_keeps_existing_mode(tmp_path, umask_022):
    target = tmp_path / "statuses.json"
    target.write_text("{}", encoding="utf-8")
    target.chmod(0o640)

    write_document(_doc("KSign"), target)

    assert stat.S_IMODE(target.stat().st_mode) == 0o640
