"""Tests for the in-memory token registry."""

from __future__ import annotations

import re
import threading
from concurrent.futures import ThreadPoolExecutor

from consolegate.registry import TokenRegistry, generate_token

TOKEN_RE = re.compile(r"^[0-9a-f]{32}$")


class TestGenerateToken:
    def test_format(self) -> None:
        assert TOKEN_RE.match(generate_token())

    def test_no_collisions(self) -> None:
        tokens = {generate_token() for _ in range(10_000)}
        assert len(tokens) == 10_000


class TestRegister:
    def test_returns_hex_token(self, registry: TokenRegistry) -> None:
        token = registry.register("vm1", 443, "/console/1")
        assert TOKEN_RE.match(token)

    def test_lookup_round_trip(self, registry: TokenRegistry) -> None:
        token = registry.register("vm1", 8443, "/console/1")
        descriptor = registry.lookup(token)
        assert descriptor is not None
        assert descriptor.id == token
        assert descriptor.hostname == "vm1"
        assert descriptor.port == 8443
        assert descriptor.console_path == "/console/1"
        assert descriptor.transport is None
        assert descriptor.is_connected is None

    def test_unique_across_many_registrations(self, registry: TokenRegistry) -> None:
        tokens = {registry.register("vm", 443, "/c") for _ in range(10_000)}
        assert len(tokens) == 10_000
        assert len(registry) == 10_000

    def test_same_target_twice_gets_two_tokens(self, registry: TokenRegistry) -> None:
        a = registry.register("vm1", 443, "/console/1")
        b = registry.register("vm1", 443, "/console/1")
        assert a != b
        assert len(registry.list()) == 2


class TestLookup:
    def test_unknown_token(self, registry: TokenRegistry) -> None:
        registry.register("vm1", 443, "/console/1")
        assert registry.lookup("f" * 32) is None

    def test_empty_and_missing_token(self, registry: TokenRegistry) -> None:
        registry.register("vm1", 443, "/console/1")
        assert registry.lookup("") is None
        assert registry.lookup(None) is None

    def test_lookup_is_repeatable(self, registry: TokenRegistry) -> None:
        token = registry.register("vm1", 443, "/console/1")
        assert registry.lookup(token) is registry.lookup(token)

    def test_contains(self, registry: TokenRegistry) -> None:
        token = registry.register("vm1", 443, "/console/1")
        assert token in registry
        assert "nope" not in registry
        assert 42 not in registry


class TestListAndClear:
    def test_list_preserves_insertion_order(self, registry: TokenRegistry) -> None:
        tokens = [registry.register(f"vm{i}", 443, f"/console/{i}") for i in range(5)]
        assert [d.id for d in registry.list()] == tokens

    def test_list_returns_copy(self, registry: TokenRegistry) -> None:
        registry.register("vm1", 443, "/console/1")
        listed = registry.list()
        listed.clear()
        assert len(registry.list()) == 1

    def test_clear_empties(self, registry: TokenRegistry) -> None:
        for i in range(3):
            registry.register(f"vm{i}", 443, "/c")
        registry.clear()
        assert registry.list() == []
        assert len(registry) == 0

    def test_clear_on_empty_registry(self, registry: TokenRegistry) -> None:
        registry.clear()
        assert registry.list() == []

    def test_clear_keeps_held_descriptor_intact(self, registry: TokenRegistry) -> None:
        token = registry.register("vm1", 443, "/console/1")
        held = registry.lookup(token)
        registry.clear()
        assert registry.lookup(token) is None
        assert held is not None
        assert held.hostname == "vm1"


class TestThreadSafety:
    def test_len_waits_for_writer(self, registry: TokenRegistry) -> None:
        registry.register("vm1", 443, "/console/1")
        result: list[int] = []
        reader = threading.Thread(target=lambda: result.append(len(registry)))

        with registry._lock:
            reader.start()
            reader.join(timeout=0.1)
            assert reader.is_alive()
            registry._consoles.clear()

        reader.join(timeout=1.0)
        assert result == [0]

    def test_concurrent_register(self, registry: TokenRegistry) -> None:
        with ThreadPoolExecutor(max_workers=8) as pool:
            tokens = list(pool.map(lambda i: registry.register(f"vm{i}", 443, "/c"), range(500)))
        assert len(set(tokens)) == 500
        assert len(registry) == 500
        assert all(token in registry for token in tokens)
