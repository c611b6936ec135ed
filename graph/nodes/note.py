from graph.state import SyncState
from tools.gohighlevel import GoHighLevelClient
from wizard.draft import build_note_body
from loguru import logger


def make_note_node(client: GoHighLevelClient):
    """Build the last CRM stage: attach the full application snapshot as a note."""

    async def attach_note(state: SyncState) -> SyncState:
        try:
            body = build_note_body(state.get("draft", {}))
            attached = await client.add_note(state["opportunity_id"], body)
        except Exception as e:
            logger.error(f"Error adding note: {e}")
            attached = False

        return {"note_attached": attached}

    return attach_note
