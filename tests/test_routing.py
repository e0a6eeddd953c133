"""
Test cases for request classification and strategy dispatch
"""

import pytest

from portfolio_pwa.cache.routing import RequestKind, StrategySelector, classify
from portfolio_pwa.cache.strategies import CacheFirstStrategy, NetworkFirstStrategy
from portfolio_pwa.net.http import Request, Response

from conftest import ORIGIN, STATIC_ASSETS


class TestClassify:
    """Test cases for the pure classifier"""

    @pytest.mark.parametrize("url,destination,expected", [
        ("https://cdn.example.org/lib.js", "", RequestKind.PASSTHROUGH),
        ("https://fonts.googleapis.com/logo.png", "image", RequestKind.PASSTHROUGH),
        (ORIGIN + "/api/portfolio-data", "", RequestKind.API),
        (ORIGIN + "/api", "", RequestKind.API),
        (ORIGIN + "/api/avatar.png", "image", RequestKind.API),
        (ORIGIN + "/images/me.png", "image", RequestKind.IMAGE),
        (ORIGIN + "/style.css", "style", RequestKind.STATIC),
        (ORIGIN + "/", "document", RequestKind.STATIC),
        (ORIGIN + "/about", "document", RequestKind.OTHER),
        (ORIGIN + "/apidocs", "", RequestKind.OTHER),
    ])
    def test_priority_order(self, url, destination, expected):
        request = Request(url, destination=destination)
        assert classify(request, ORIGIN, STATIC_ASSETS) == expected

    def test_origin_comparison_ignores_case(self):
        request = Request("https://EXAMPLE.com/style.css")
        assert classify(request, ORIGIN, STATIC_ASSETS) == RequestKind.STATIC

    def test_custom_api_prefix(self):
        request = Request(ORIGIN + "/v2/items")
        assert classify(request, ORIGIN, STATIC_ASSETS, api_prefix='/v2/') == RequestKind.API


class TestStrategySelector:
    """Test cases for the dispatch table"""

    @pytest.fixture
    def selector(self, storage, network, names_v1):
        return StrategySelector(storage, network, ORIGIN, names_v1, STATIC_ASSETS)

    def test_dispatch_table(self, selector):
        api = selector.select(Request(ORIGIN + '/api/chat'))
        other = selector.select(Request(ORIGIN + '/about'))
        image = selector.select(Request(ORIGIN + '/me.png', destination='image'))
        static = selector.select(Request(ORIGIN + '/style.css'))

        assert isinstance(api, NetworkFirstStrategy)
        assert api is other
        assert api.store_name == 'v1-runtime'
        assert isinstance(image, CacheFirstStrategy)
        assert image.store_name == 'v1-image'
        assert isinstance(static, CacheFirstStrategy)
        assert static.store_name == 'v1-static'

    def test_cross_origin_has_no_strategy(self, selector):
        assert selector.select(Request('https://other.org/x.js')) is None

    @pytest.mark.asyncio
    async def test_cross_origin_not_intercepted(self, selector, network):
        response = await selector.handle(Request('https://other.org/x.js'))

        assert response is None
        assert network.calls == []

    @pytest.mark.asyncio
    async def test_image_served_from_image_store(self, selector, storage, network):
        image_store = await storage.open('v1-image')
        await image_store.put(ORIGIN + '/me.png', Response(body=b'png'))
        network.offline = True

        response = await selector.handle(Request(ORIGIN + '/me.png', destination='image'))
        await selector.drain()

        assert response.body == b'png'

    @pytest.mark.asyncio
    async def test_write_to_cached_static_url_goes_to_network(self, selector, storage, network):
        static_store = await storage.open('v1-static')
        await static_store.put(ORIGIN + '/', Response(body=b'<html>cached home</html>'))
        network.serve('/', b'{"received": true}')

        response = await selector.handle(Request.post_json(ORIGIN + '/', {'name': 'Ada'}))
        await selector.drain()

        assert response.body == b'{"received": true}'
        assert [r.method for r in network.calls_for('/')] == ['POST']
        cached = await static_store.match(ORIGIN + '/')
        assert cached.body == b'<html>cached home</html>'

    @pytest.mark.asyncio
    async def test_write_to_cached_static_url_offline(self, selector, storage, network):
        static_store = await storage.open('v1-static')
        await static_store.put(ORIGIN + '/', Response(body=b'<html>cached home</html>'))
        network.offline = True

        response = await selector.handle(Request.post_json(ORIGIN + '/', {'name': 'Ada'}))

        assert response.status == 503
        assert response.synthesized is True
