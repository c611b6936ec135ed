from graph.state import EnrichmentState
from tools.providers import EnrichmentProvider
from loguru import logger


def make_lookup_node(provider: EnrichmentProvider):
    """Build a workflow node that queries one enrichment provider."""

    async def lookup(state: EnrichmentState) -> EnrichmentState:
        address = state.get("address", "")
        logger.info(f"Starting {provider.name} lookup for: {address}")

        result = await provider.lookup(address)
        if result is None or not result.fields:
            return {"partials": []}

        return {"partials": [result]}

    lookup.__name__ = f"lookup_{provider.name}"
    return lookup
