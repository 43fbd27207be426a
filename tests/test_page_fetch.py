import asyncio

import pytest
from aiohttp import web
from aiohttp.test_utils import TestServer

from catalog_sync.core.errors import FetchError
from catalog_sync.workflows.page_fetch import fetch_page
from catalog_sync.workflows.policy import FetchConfig


def _serve(handler, path="/"):
    app = web.Application()
    app.router.add_get(path, handler)

    async def run():
        async with TestServer(app) as server:
            return await fetch_page(str(server.make_url(path)), FetchConfig(timeout=5.0))

    return asyncio.run(run())


def test_fetch_page_returns_decoded_body():
    async def handler(request):
        return web.Response(text='<a href="k.ipa">KSign café</a>', content_type="text/html")

    assert _serve(handler) == '<a href="k.ipa">KSign café</a>'


def test_fetch_page_non_success_status_is_fatal():
    async def handler(request):
        return web.Response(status=503, text="maintenance")

    with pytest.raises(FetchError) as excinfo:
        _serve(handler)
    assert excinfo.value.status == 503
    assert "HTTP 503" in str(excinfo.value)


def test_fetch_page_invalid_url_is_fatal():
    with pytest.raises(FetchError):
        asyncio.run(fetch_page("not a url"))
