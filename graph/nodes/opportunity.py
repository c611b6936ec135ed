from graph.state import SyncState
from tools.gohighlevel import GoHighLevelClient
from wizard.draft import estimate_deal_value, total_coverage
from loguru import logger


def opportunity_name(draft) -> str:
    return f"{draft.get('dba') or draft.get('contactName')} - C-Store Insurance"


def make_opportunity_node(client: GoHighLevelClient):
    """Build the second CRM stage: open a pipeline opportunity for the contact."""

    async def create_opportunity(state: SyncState) -> SyncState:
        draft = state.get("draft", {})
        estimated_value = estimate_deal_value(draft)
        logger.info(f"Coverage total {total_coverage(draft):,.0f} -> estimated value {estimated_value}")

        try:
            opportunity_id = await client.create_opportunity(
                state["contact_id"], opportunity_name(draft), estimated_value
            )
        except Exception as e:
            logger.error(f"Opportunity creation failed: {e}")
            opportunity_id = None

        return {"opportunity_id": opportunity_id, "estimated_value": estimated_value}

    return create_opportunity
