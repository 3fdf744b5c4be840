"""Tests for wren.middleware.registry and Server route registration."""

import pytest

from wren.app import Server
from wren.config import ServerConfig
from wren.errors import ConfigurationError
from wren.middleware.registry import ChainRegistry, handler_name, to_chain
from wren.routing.route import RouteSpec
from wren.tracing.probes import ProbeProvider


def h1(request, response, next):
    next()


def h2(request, response, next):
    next()


def h3(request, response, next):
    next()


def _server(**config: object) -> Server:
    return Server(ServerConfig(**config), probes=ProbeProvider())


class TestToChain:
    def test_flattens_nested_lists(self) -> None:
        assert to_chain([h1, [h2, (h3,)]]) == [h1, h2, h3]

    def test_rejects_non_callable(self) -> None:
        with pytest.raises(ConfigurationError, match="handler"):
            to_chain([h1, "nope"])

    def test_handler_name(self) -> None:
        assert handler_name(h1, 0) == "h1"
        assert handler_name(lambda r, s, n: None, 4) == "handler-4"


class TestChainRegistry:
    def test_build_snapshots_global_chain(self) -> None:
        registry = ChainRegistry()
        registry.use(h1)
        first = registry.build([h3])
        registry.use(h2)
        second = registry.build([h3])
        assert first == (h1, h3)
        assert second == (h1, h2, h3)

    def test_build_requires_a_handler(self) -> None:
        with pytest.raises(ConfigurationError):
            ChainRegistry().build([])

    def test_store_and_discard(self) -> None:
        registry = ChainRegistry()
        registry.store("getx", (h1,))
        assert registry.get("getx") == (h1,)
        assert registry.discard("getx") is True
        assert registry.discard("getx") is False
        assert registry.get("getx") is None

    def test_pre_chain(self) -> None:
        registry = ChainRegistry()
        registry.pre(h1, [h2])
        assert registry.pre_chain == (h1, h2)

    def test_param_rejects_non_callable(self) -> None:
        with pytest.raises(ConfigurationError):
            ChainRegistry().param("id", "nope")  # type: ignore[arg-type]


class TestMount:
    def test_returns_derived_name(self) -> None:
        server = _server()
        assert server.get("/foo/:id", h1) == "getfooid"

    def test_derived_name_includes_versions(self) -> None:
        server = _server()
        handle = server.get({"path": "/foo", "versions": ("1.0.0", "2.0.0")}, h1)
        assert handle == "getfoo100200"

    def test_default_versions_from_config(self) -> None:
        server = _server(versions=("1.2.3",))
        handle = server.get("/foo", h1)
        assert handle == "getfoo123"
        assert server.router.get(handle).versions == ("1.2.3",)

    def test_single_version_string(self) -> None:
        server = _server()
        handle = server.get({"path": "/foo", "version": "2.0.0"}, h1)
        assert server.router.get(handle).versions == ("2.0.0",)

    def test_explicit_name_is_sanitized(self) -> None:
        server = _server()
        assert server.get({"path": "/foo", "name": "Get Foo!"}, h1) == "getfoo"

    def test_method_aliases(self) -> None:
        server = _server()
        assert server.mount({"path": "/a", "method": "del"}, h1) == "deletea"
        assert server.mount({"path": "/b", "method": "opts"}, h1) == "optionsb"
        assert server.opts("/c", h1) == "optionsc"

    def test_url_alias(self) -> None:
        server = _server()
        assert server.post({"url": "/things"}, h1) == "postthings"

    def test_verb_helpers(self) -> None:
        server = _server()
        assert server.head("/x", h1) == "headx"
        assert server.put("/x", h1) == "putx"
        assert server.patch("/x", h1) == "patchx"
        assert server.delete("/x", h1) == "deletex"
        assert server.options("/x", h1) == "optionsx"
        methods = sorted(spec.method for spec in server.router.routes)
        assert methods == ["DELETE", "HEAD", "OPTIONS", "PATCH", "PUT"]

    def test_route_spec_accepted(self) -> None:
        server = _server()
        assert server.mount(RouteSpec("/spec", "POST"), h1) == "postspec"

    def test_nested_handler_lists(self) -> None:
        server = _server()
        handle = server.get("/x", [h1, [h2]], h3)
        assert server.routes[handle] == (h1, h2, h3)

    def test_stores_global_plus_route_handlers(self) -> None:
        server = _server()
        server.use(h1)
        handle = server.get("/x", h2)
        assert server.routes[handle] == (h1, h2)

    def test_duplicate_rejected_without_partial_state(self) -> None:
        server = _server()
        first = server.get("/x", h1)
        assert server.get("/x", h2) is None
        assert server.routes == {first: (h1,)}
        assert [spec.name for spec in server.router.routes] == [first]

    def test_no_handlers_is_configuration_error(self) -> None:
        server = _server()
        with pytest.raises(ConfigurationError):
            server.get("/x")
        assert server.router.routes == []

    def test_bad_handler_fails_before_router(self) -> None:
        server = _server()
        with pytest.raises(ConfigurationError):
            server.get("/x", h1, 42)
        assert server.router.routes == []
        assert server.routes == {}

    def test_bad_spec(self) -> None:
        server = _server()
        with pytest.raises(ConfigurationError):
            server.get(42, h1)  # type: ignore[arg-type]
        with pytest.raises(ConfigurationError):
            server.get({"path": "/x", "colour": "red"}, h1)

    def test_unknown_method(self) -> None:
        server = _server()
        with pytest.raises(ConfigurationError):
            server.mount({"path": "/x", "method": "BREW"}, h1)


class TestUnmount:
    def test_rm_removes_route_and_chain(self) -> None:
        server = _server()
        handle = server.get("/x", h1)
        assert server.rm(handle) == handle
        assert handle not in server.routes
        assert server.router.routes == []

    def test_rm_unknown(self) -> None:
        server = _server()
        assert server.rm("nothing") is None

    def test_remount_after_rm(self) -> None:
        server = _server()
        handle = server.get("/x", h1)
        server.rm(handle)
        assert server.get("/x", h2) == handle
        assert server.routes[handle] == (h2,)


class TestFluentSetup:
    def test_use_and_pre_return_server(self) -> None:
        server = _server()
        assert server.use(h1) is server
        assert server.pre(h2) is server
        assert server.param("id", lambda *a: None) is server
        assert server.pre_chain == (h2,)
        assert server.global_chain[0] is h1
