"""Tests for suggestion persistence."""

import json
from decimal import Decimal

import pytest

from arb_monitor.cache import (
    SUGGESTIONS_KEY,
    JsonFileStore,
    KeyValueStore,
    MemoryStore,
    ResultCache,
    deserialize_suggestions,
    serialize_suggestions,
)
from arb_monitor.exceptions import ValidationError
from arb_monitor.searcher import CycleSearcher
from arb_monitor.types import ETHEREUM, Network, TriangleResult, Triple


@pytest.fixture
def boosted_oracle(make_oracle, prices):
    return make_oracle(prices=prices, rates={("WETH", "USDC"): Decimal("2020")})


@pytest.fixture
def suggestion(weth_usdc_dai):
    return TriangleResult.from_amounts(weth_usdc_dai, Decimal("1"), Decimal("1.0021"))


class TestSerialization:
    def test_wire_format(self, suggestion):
        records = json.loads(serialize_suggestions([suggestion]))

        assert len(records) == 1
        record = records[0]
        assert set(record["tokens"]) == {"token1", "token2", "token3"}
        assert record["tokens"]["token1"]["symbol"] == "WETH"
        assert record["tokens"]["token2"]["decimals"] == 6
        assert record["profit"] == pytest.approx(0.0021)
        assert record["initialAmount"] == "1"
        assert record["finalAmount"] == "1.0021"

    def test_round_trip_keeps_tokens_and_amounts(self, suggestion):
        restored = deserialize_suggestions(serialize_suggestions([suggestion]))

        assert restored[0].triple == suggestion.triple
        assert restored[0].final_amount == Decimal("1.0021")
        assert restored[0].profit == Decimal("0.0021")

    def test_entries_without_amounts(self, suggestion):
        """Records carrying only tokens and profit still load."""
        record = json.loads(serialize_suggestions([suggestion]))[0]
        del record["initialAmount"], record["finalAmount"]

        restored = deserialize_suggestions(json.dumps([record]))

        assert restored[0].initial_amount is None
        assert restored[0].final_amount is None
        assert restored[0].profit == Decimal("0.0021")

    @pytest.mark.parametrize(
        "payload",
        [
            "not json",
            '{"tokens": {}}',
            '[{"profit": 1}]',
            '[{"tokens": {"token1": {}, "token2": {}, "token3": {}}, "profit": 1}]',
        ],
    )
    def test_invalid_payload(self, payload):
        with pytest.raises(ValidationError):
            deserialize_suggestions(payload)

    def test_repeated_tokens_rejected(self, suggestion):
        record = json.loads(serialize_suggestions([suggestion]))[0]
        record["tokens"]["token3"] = record["tokens"]["token1"]

        with pytest.raises(ValidationError):
            deserialize_suggestions(json.dumps([record]))


class TestJsonFileStore:
    def test_get_missing(self, tmp_path):
        store = JsonFileStore(tmp_path / "store.json")
        assert store.get("anything") is None

    def test_set_get_delete(self, tmp_path):
        store = JsonFileStore(tmp_path / "store.json")

        store.set("a", "1")
        store.set("b", "2")
        assert store.get("a") == "1"

        store.delete("a")
        assert store.get("a") is None
        assert store.get("b") == "2"

    def test_persists_across_instances(self, tmp_path):
        path = tmp_path / "nested" / "store.json"
        JsonFileStore(path).set(SUGGESTIONS_KEY, "[]")

        assert JsonFileStore(path).get(SUGGESTIONS_KEY) == "[]"
        assert json.loads(path.read_text()) == {SUGGESTIONS_KEY: "[]"}

    def test_no_temp_files_left(self, tmp_path):
        store = JsonFileStore(tmp_path / "store.json")
        store.set("a", "1")
        store.set("a", "2")

        assert [p.name for p in tmp_path.iterdir()] == ["store.json"]

    def test_corrupt_file_reads_empty(self, tmp_path):
        path = tmp_path / "store.json"
        path.write_text("{ not json")

        store = JsonFileStore(path)
        assert store.get(SUGGESTIONS_KEY) is None

        store.set("a", "1")
        assert store.get("a") == "1"

    def test_for_network(self, tmp_path):
        polygon = Network("polygon", "Polygon", 137, "https://polygon-rpc.com", ETHEREUM.quoter_address)

        assert JsonFileStore.for_network(tmp_path, ETHEREUM).path == tmp_path / "ethereum.json"
        assert JsonFileStore.for_network(tmp_path, polygon).path == tmp_path / "polygon.json"

    def test_stores_satisfy_protocol(self, tmp_path):
        assert isinstance(MemoryStore(), KeyValueStore)
        assert isinstance(JsonFileStore(tmp_path / "s.json"), KeyValueStore)


class TestResultCache:
    @pytest.mark.asyncio
    async def test_cached_list_skips_scan(self, boosted_oracle, catalog, suggestion):
        """A stored list is returned without a single oracle call."""
        store = MemoryStore({SUGGESTIONS_KEY: serialize_suggestions([suggestion])})
        cache = ResultCache(store, CycleSearcher(boosted_oracle))

        results = await cache.get_or_compute(catalog)

        assert [r.triple for r in results] == [suggestion.triple]
        assert boosted_oracle.calls == []

    @pytest.mark.asyncio
    async def test_empty_store_scans_once(self, boosted_oracle, catalog):
        store = MemoryStore()
        cache = ResultCache(store, CycleSearcher(boosted_oracle))

        first = await cache.get_or_compute(catalog)
        calls_after_scan = len(boosted_oracle.calls)
        second = await cache.get_or_compute(catalog)

        assert calls_after_scan == 60
        assert len(boosted_oracle.calls) == 60
        assert [r.triple for r in second] == [r.triple for r in first]
        assert store.get(SUGGESTIONS_KEY) is not None

    @pytest.mark.asyncio
    async def test_stored_empty_list_is_reused(self, boosted_oracle, catalog):
        """An empty list is a valid cached result, not a miss."""
        cache = ResultCache(MemoryStore({SUGGESTIONS_KEY: "[]"}), CycleSearcher(boosted_oracle))

        assert await cache.get_or_compute(catalog) == []
        assert boosted_oracle.calls == []

    @pytest.mark.asyncio
    async def test_corrupt_entry_triggers_scan(self, boosted_oracle, catalog):
        store = MemoryStore({SUGGESTIONS_KEY: "garbage"})
        cache = ResultCache(store, CycleSearcher(boosted_oracle))

        results = await cache.get_or_compute(catalog)

        assert len(results) == 5
        assert len(boosted_oracle.calls) == 60
        assert len(deserialize_suggestions(store.get(SUGGESTIONS_KEY))) == 5

    @pytest.mark.asyncio
    async def test_clear_then_rescan(self, boosted_oracle, catalog, suggestion):
        store = MemoryStore({SUGGESTIONS_KEY: serialize_suggestions([suggestion])})
        cache = ResultCache(store, CycleSearcher(boosted_oracle))

        cache.clear()
        assert cache.load() is None

        results = await cache.get_or_compute(catalog)
        assert results[0].triple.label == "WETH → USDC → DAI"
        assert results[0].profit == Decimal("0.01")

    @pytest.mark.asyncio
    async def test_refresh_overwrites(self, boosted_oracle, catalog, tokens):
        stale = TriangleResult(Triple(tokens["DAI"], tokens["USDT"], tokens["WBTC"]), Decimal("5"))
        store = MemoryStore({SUGGESTIONS_KEY: serialize_suggestions([stale])})
        cache = ResultCache(store, CycleSearcher(boosted_oracle))

        await cache.refresh(catalog)

        labels = [r.triple.label for r in cache.load()]
        assert "DAI → USDT → WBTC" not in labels
        assert labels[0] == "WETH → USDC → DAI"

    @pytest.mark.asyncio
    async def test_file_store_shared_between_runs(self, tmp_path, boosted_oracle, catalog):
        """A second process with the same cache file does not rescan."""
        store_path = tmp_path / "ethereum.json"
        await ResultCache(JsonFileStore(store_path), CycleSearcher(boosted_oracle)).get_or_compute(catalog)
        assert len(boosted_oracle.calls) == 60

        results = await ResultCache(
            JsonFileStore(store_path), CycleSearcher(boosted_oracle)
        ).get_or_compute(catalog)

        assert len(boosted_oracle.calls) == 60
        assert len(results) == 5

    def test_other_entries_untouched(self, tmp_path, suggestion):
        """Saving and clearing suggestions leaves unrelated keys alone."""
        store = JsonFileStore(tmp_path / "ethereum.json")
        store.set("theme", "dark")
        cache = ResultCache(store, searcher=None)

        cache.save([suggestion])
        cache.clear()

        assert store.get("theme") == "dark"
        assert cache.load() is None

    def test_custom_key(self, suggestion):
        store = MemoryStore()
        cache = ResultCache(store, searcher=None, key="ethereum:profitableTrios")

        cache.save([suggestion])

        assert store.get(SUGGESTIONS_KEY) is None
        assert store.get("ethereum:profitableTrios") is not None
