from typing import Dict, Any, List, Optional
from langgraph.graph import StateGraph, START, END
from loguru import logger
from graph.state import EnrichmentState
from graph.nodes.lookup import make_lookup_node
from graph.nodes.merge import merge
from tools.providers import EnrichmentProvider
from tools.smarty import SmartyPropertyProvider
from tools.google_maps import GoogleMapsProvider

FOUND_MESSAGE = "Found property data and pre-filled {count} fields"
NOT_FOUND_MESSAGE = "No property data found. You can continue filling the form manually."


def default_providers() -> List[EnrichmentProvider]:
    """Providers configured from the current environment."""
    return [SmartyPropertyProvider(), GoogleMapsProvider()]


def build_enrichment_workflow(providers: List[EnrichmentProvider]):
    """
    Build the address enrichment workflow.

    Every provider node hangs off START so they all run in the same step
    (concurrently under ainvoke); "merge" waits for all of them.
    """
    workflow = StateGraph(EnrichmentState)

    node_names = []
    for provider in providers:
        node_name = f"lookup_{provider.name}"
        workflow.add_node(node_name, make_lookup_node(provider))
        workflow.add_edge(START, node_name)
        node_names.append(node_name)

    workflow.add_node("merge", merge)
    if node_names:
        workflow.add_edge(node_names, "merge")
    else:
        workflow.add_edge(START, "merge")
    workflow.add_edge("merge", END)

    return workflow.compile()


def enrichment_response(address: str, candidate: Dict[str, Any], fields_count: int) -> Dict[str, Any]:
    found = fields_count > 0
    return {
        "success": found,
        "message": FOUND_MESSAGE.format(count=fields_count) if found else NOT_FOUND_MESSAGE,
        "fieldsCount": fields_count,
        "data": candidate if found else None,
        "address": address,
    }


async def run_enrichment(address: str, providers: Optional[List[EnrichmentProvider]] = None) -> Dict[str, Any]:
    """
    Enrich one address from every provider and merge the results.

    Args:
        address: Free-form street address
        providers: Providers to query (defaults to Smarty + Google Maps)

    Returns:
        Enrichment response: success, message, fieldsCount, data, address
    """
    providers = default_providers() if providers is None else providers
    graph = build_enrichment_workflow(providers)

    result = await graph.ainvoke({"address": address})
    fields_count = result.get("fields_count", 0)
    logger.info(f"Enrichment for '{address}' finished with {fields_count} fields from {result.get('sources', [])}")

    return enrichment_response(address, result.get("candidate", {}), fields_count)
