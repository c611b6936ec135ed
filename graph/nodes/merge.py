from graph.state import EnrichmentState
from loguru import logger


def merge(state: EnrichmentState) -> EnrichmentState:
    """Merge provider partials into one candidate record and count its fields."""
    partials = state.get("partials", [])

    candidate = {}
    fields_count = 0
    for partial in partials:
        overlap = candidate.keys() & partial.fields.keys()
        if overlap:
            logger.warning(f"{partial.source} overrides candidate fields: {sorted(overlap)}")
        candidate.update(partial.fields)
        fields_count += partial.fields_count

    sources = [p.source for p in partials]
    logger.info(f"Merged {fields_count} fields from {sources or 'no sources'}")

    return {"candidate": candidate, "fields_count": fields_count, "sources": sources}
