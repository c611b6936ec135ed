import asyncio
import pytest
from unittest.mock import patch

from graph.enrichment import run_enrichment, build_enrichment_workflow, NOT_FOUND_MESSAGE
from tools.providers import EnrichmentProvider, ProviderResult


class StaticProvider(EnrichmentProvider):
    """Provider returning a fixed raw payload (or nothing)."""

    def __init__(self, name, fields=None, count=None):
        super().__init__()
        self.name = name
        self._fields = fields
        self._count = count

    async def fetch(self, address):
        return self._fields

    def normalize(self, raw):
        return ProviderResult(self.name, dict(raw), self._count if self._count is not None else len(raw))


class RendezvousProvider(StaticProvider):
    """Only succeeds if its partner provider is running at the same time."""

    def __init__(self, name, fields, mine: asyncio.Event, partner: asyncio.Event):
        super().__init__(name, fields)
        self.mine = mine
        self.partner = partner

    async def fetch(self, address):
        self.mine.set()
        await asyncio.wait_for(self.partner.wait(), timeout=1.0)
        return self._fields


class ExplodingProvider(StaticProvider):
    async def fetch(self, address):
        raise RuntimeError("provider crashed")


class TestEnrichmentAggregator:
    """Parallel lookup, merge and counting."""

    @pytest.mark.asyncio
    async def test_both_absent_reports_not_found(self):
        result = await run_enrichment("1 Nowhere Rd", providers=[StaticProvider("a"), StaticProvider("b")])

        assert result == {
            "success": False,
            "message": NOT_FOUND_MESSAGE,
            "fieldsCount": 0,
            "data": None,
            "address": "1 Nowhere Rd",
        }

    @pytest.mark.asyncio
    async def test_unconfigured_default_providers_are_absent(self):
        result = await run_enrichment("123 Main St")
        assert result["success"] is False
        assert result["fieldsCount"] == 0

    @pytest.mark.asyncio
    async def test_merges_disjoint_partials(self):
        providers = [
            StaticProvider("property", {"yearBuilt": "1998", "latitude": 1.0, "longitude": 2.0}, count=2),
            StaticProvider("places", {"dba": "Main Street Mart", "businessName": "Main Street Mart"}, count=1),
        ]
        result = await run_enrichment("123 Main St", providers=providers)

        assert result["success"] is True
        assert result["fieldsCount"] == 3
        assert result["message"] == "Found property data and pre-filled 3 fields"
        assert result["data"] == {
            "yearBuilt": "1998",
            "latitude": 1.0,
            "longitude": 2.0,
            "dba": "Main Street Mart",
            "businessName": "Main Street Mart",
        }

    @pytest.mark.asyncio
    async def test_one_provider_absent(self):
        providers = [StaticProvider("property"), StaticProvider("places", {"dba": "Mart"})]
        result = await run_enrichment("123 Main St", providers=providers)
        assert result["fieldsCount"] == 1
        assert result["data"] == {"dba": "Mart"}

    @pytest.mark.asyncio
    async def test_provider_failure_does_not_stop_the_other(self):
        providers = [ExplodingProvider("property"), StaticProvider("places", {"dba": "Mart"})]
        result = await run_enrichment("123 Main St", providers=providers)
        assert result["success"] is True
        assert result["data"] == {"dba": "Mart"}

    @pytest.mark.asyncio
    async def test_providers_run_concurrently(self):
        property_started, places_started = asyncio.Event(), asyncio.Event()
        providers = [
            RendezvousProvider("property", {"yearBuilt": "1998"}, property_started, places_started),
            RendezvousProvider("places", {"dba": "Mart"}, places_started, property_started),
        ]
        result = await run_enrichment("123 Main St", providers=providers)

        # Sequential execution would time out the first provider
        assert result["fieldsCount"] == 2

    @pytest.mark.asyncio
    async def test_workflow_exposes_sources(self):
        graph = build_enrichment_workflow([StaticProvider("property", {"acres": "1"}), StaticProvider("places")])
        state = await graph.ainvoke({"address": "123 Main St"})
        assert state["sources"] == ["property"]
        assert state["candidate"] == {"acres": "1"}

    @pytest.mark.asyncio
    async def test_default_providers_used_when_none_given(self):
        with patch("graph.enrichment.default_providers") as mock_defaults:
            mock_defaults.return_value = [StaticProvider("places", {"dba": "Mart"})]
            result = await run_enrichment("123 Main St")
        assert result["data"] == {"dba": "Mart"}
