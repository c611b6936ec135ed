from graph.state import SyncState
from tools.gohighlevel import GoHighLevelClient
from loguru import logger


def make_contact_node(client: GoHighLevelClient):
    """Build the first CRM stage: create the applicant's contact."""

    async def create_contact(state: SyncState) -> SyncState:
        draft = state.get("draft", {})
        logger.info(f"Starting contact sync for: {draft.get('contactEmail') or draft.get('contactName') or 'unknown'}")

        response = await client.create_contact(draft)
        contact_id = (response.data.get("contact") or {}).get("id") if response.ok else None

        if response.ok:
            if contact_id:
                logger.info(f"Contact created in GoHighLevel: {contact_id}")
            else:
                logger.warning("GoHighLevel accepted the contact but returned no id")
            return {"contact_id": contact_id, "status_code": response.status_code}

        return {
            "contact_id": None,
            "error": response.error,
            "status_code": response.status_code,
            "reauthorize": response.invalid_token,
        }

    return create_contact
