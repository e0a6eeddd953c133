"""
Test cases for the install/activate lifecycle and registration hand-off
"""

import pytest

from portfolio_pwa.net.http import Request, Response
from portfolio_pwa.utils.errors import LifecycleError
from portfolio_pwa.worker.lifecycle import LifecycleManager, LifecycleState
from portfolio_pwa.worker.service_worker import Registration, ServiceWorker

from conftest import ORIGIN, STATIC_ASSETS


def asset_urls():
    return sorted(ORIGIN + path for path in STATIC_ASSETS)


class TestInstall:
    """Test cases for pre-population"""

    @pytest.mark.asyncio
    async def test_install_populates_primary_store(self, storage, site, names_v1):
        manager = LifecycleManager(storage, site, ORIGIN, names_v1, STATIC_ASSETS)

        assert await manager.install() is True

        primary = await storage.open('v1-static')
        assert sorted(primary.keys()) == asset_urls()
        assert manager.state is LifecycleState.INSTALLED

    @pytest.mark.asyncio
    async def test_install_twice_is_idempotent(self, storage, site, names_v1):
        for _ in range(2):
            manager = LifecycleManager(storage, site, ORIGIN, names_v1, STATIC_ASSETS)
            assert await manager.install() is True

        primary = await storage.open('v1-static')
        assert sorted(primary.keys()) == asset_urls()
        assert len(primary) == len(STATIC_ASSETS)

    @pytest.mark.asyncio
    async def test_install_is_all_or_nothing(self, storage, site, names_v1):
        site.fail('/style.css')
        manager = LifecycleManager(storage, site, ORIGIN, names_v1, STATIC_ASSETS)

        assert await manager.install() is False

        assert manager.state is LifecycleState.SUPERSEDED
        assert await storage.has('v1-static') is False

    @pytest.mark.asyncio
    async def test_install_fails_on_error_status(self, storage, site, names_v1):
        site.serve('/style.css', b'gone', status=404)
        manager = LifecycleManager(storage, site, ORIGIN, names_v1, STATIC_ASSETS)

        assert await manager.install() is False
        assert await storage.has('v1-static') is False

    @pytest.mark.asyncio
    async def test_failed_install_keeps_existing_store(self, storage, site, names_v1):
        primary = await storage.open('v1-static')
        await primary.put(ORIGIN + '/index.html', Response(body=b'old'))
        site.fail('/style.css')
        manager = LifecycleManager(storage, site, ORIGIN, names_v1, STATIC_ASSETS)

        assert await manager.install() is False

        assert (await primary.match(ORIGIN + '/index.html')).body == b'old'
        assert len(primary) == 1

    @pytest.mark.asyncio
    async def test_install_not_retried(self, storage, site, names_v1):
        site.fail('/style.css')
        manager = LifecycleManager(storage, site, ORIGIN, names_v1, STATIC_ASSETS)
        await manager.install()

        assert len(site.calls_for('/style.css')) == 1
        with pytest.raises(LifecycleError):
            await manager.install()


class TestActivate:
    """Test cases for stale store eviction"""

    @pytest.mark.asyncio
    async def test_activation_evicts_previous_version(self, storage, site, names_v1, names_v2):
        for name in names_v1:
            store = await storage.open(name)
            await store.put(ORIGIN + '/x', Response(body=b'x'))

        manager = LifecycleManager(storage, site, ORIGIN, names_v2, STATIC_ASSETS)
        await manager.install()
        await (await storage.open('v2-runtime')).put(ORIGIN + '/page', Response(body=b'p'))
        await storage.open('v2-image')

        deleted = await manager.activate()

        assert sorted(deleted) == ['v1-image', 'v1-runtime', 'v1-static']
        assert sorted(await storage.keys()) == ['v2-image', 'v2-runtime', 'v2-static']
        assert (await (await storage.open('v2-runtime')).match(ORIGIN + '/page')).body == b'p'
        assert manager.state is LifecycleState.ACTIVE
        assert manager.controlling is True

    @pytest.mark.asyncio
    async def test_activate_requires_install(self, storage, site, names_v1):
        manager = LifecycleManager(storage, site, ORIGIN, names_v1, STATIC_ASSETS)

        with pytest.raises(LifecycleError):
            await manager.activate()


class TestRegistration:
    """Test cases for control hand-off between versions"""

    def make_worker(self, storage, network, names):
        return ServiceWorker(storage, network, ORIGIN, names, STATIC_ASSETS)

    @pytest.mark.asyncio
    async def test_no_active_worker_passes_through(self):
        registration = Registration()
        assert await registration.handle_fetch(Request(ORIGIN + '/')) is None

    @pytest.mark.asyncio
    async def test_new_version_takes_control(self, storage, site, names_v1, names_v2):
        registration = Registration()
        old = self.make_worker(storage, site, names_v1)
        new = self.make_worker(storage, site, names_v2)

        assert await registration.register(old) is True
        assert await registration.register(new) is True

        assert registration.active is new
        assert old.state is LifecycleState.SUPERSEDED
        assert new.state is LifecycleState.ACTIVE
        assert await storage.has('v1-static') is False

        response = await registration.handle_fetch(Request(ORIGIN + '/style.css'))
        await new.drain()
        assert response.body == b'body{}'

    @pytest.mark.asyncio
    async def test_failed_install_keeps_previous_worker(self, storage, site, names_v1, names_v2):
        registration = Registration()
        old = self.make_worker(storage, site, names_v1)
        await registration.register(old)

        site.fail('/offline.html')
        new = self.make_worker(storage, site, names_v2)

        assert await registration.register(new) is False
        assert registration.active is old
        assert old.state is LifecycleState.ACTIVE
        assert await storage.has('v1-static') is True
        assert await storage.has('v2-static') is False
