"""Tests for the named singleton registry."""

import threading

import pytest

from cosmos_event_store import RegistrationError, ServiceRegistry


class Service:
    pass


class OtherService:
    pass


class TestServiceRegistry:
    def test_factory_runs_lazily_once(self, registry):
        calls = []

        def factory():
            calls.append(1)
            return Service()

        registry.register_singleton(Service, factory, "Orders")
        assert calls == []

        first = registry.resolve(Service, "Orders")
        second = registry.resolve(Service, "Orders")

        assert first is second
        assert calls == [1]

    def test_names_are_independent(self, registry):
        registry.register_singleton(Service, Service, "Orders")
        registry.register_singleton(Service, Service, "Billing")

        assert registry.resolve(Service, "Orders") is not registry.resolve(Service, "Billing")
        assert registry.names(Service) == ["Orders", "Billing"]

    def test_types_are_independent(self, registry):
        registry.register_singleton(Service, Service, "Orders")
        registry.register_singleton(OtherService, OtherService, "Orders")

        assert isinstance(registry.resolve(OtherService, "Orders"), OtherService)
        assert registry.names(OtherService) == ["Orders"]

    def test_duplicate_registration(self, registry):
        registry.register_singleton(Service, Service, "Orders")

        with pytest.raises(RegistrationError) as exc_info:
            registry.register_singleton(Service, Service, "Orders")

        assert exc_info.value.name == "Orders"
        assert exc_info.value.service == "Service"

    @pytest.mark.parametrize("name", ["", "   "])
    def test_empty_name(self, registry, name):
        with pytest.raises(RegistrationError):
            registry.register_singleton(Service, Service, name)

    def test_resolve_unknown(self, registry):
        with pytest.raises(RegistrationError):
            registry.resolve(Service, "Orders")

    def test_is_registered(self, registry):
        assert not registry.is_registered(Service, "Orders")
        registry.register_singleton(Service, Service, "Orders")
        assert registry.is_registered(Service, "Orders")

    def test_concurrent_resolution_builds_one_instance(self):
        registry = ServiceRegistry()
        created = []

        def factory():
            created.append(1)
            return Service()

        registry.register_singleton(Service, factory, "Orders")

        results = []
        threads = [
            threading.Thread(target=lambda: results.append(registry.resolve(Service, "Orders")))
            for _ in range(8)
        ]
        for t in threads:
            t.start()
        for t in threads:
            t.join()

        assert len(created) == 1
        assert all(r is results[0] for r in results)

    def test_factory_can_resolve_a_dependency(self):
        registry = ServiceRegistry()
        registry.register_singleton(Service, Service, "Dep")
        registry.register_singleton(
            OtherService, lambda: registry.resolve(Service, "Dep"), "Orders"
        )

        results = []
        thread = threading.Thread(
            target=lambda: results.append(registry.resolve(OtherService, "Orders"))
        )
        thread.start()
        thread.join(2)

        assert not thread.is_alive()
        assert results == [registry.resolve(Service, "Dep")]

    def test_failed_factory_is_retried_on_next_resolve(self, registry):
        attempts = []

        def factory():
            attempts.append(1)
            if len(attempts) == 1:
                raise RuntimeError("not ready")
            return Service()

        registry.register_singleton(Service, factory, "Orders")

        with pytest.raises(RuntimeError):
            registry.resolve(Service, "Orders")

        assert isinstance(registry.resolve(Service, "Orders"), Service)
        assert len(attempts) == 2
