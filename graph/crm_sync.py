from dataclasses import dataclass
from enum import Enum
from typing import Dict, Any, Optional
from langgraph.graph import StateGraph, START, END
from loguru import logger
from graph.state import SyncState
from graph.nodes.contact import make_contact_node
from graph.nodes.opportunity import make_opportunity_node
from graph.nodes.note import make_note_node
from tools.gohighlevel import GoHighLevelClient
from wizard.draft import STATUS_SUBMITTED

SAVED_MESSAGE = "Lead saved to GoHighLevel CRM"


class SyncOutcome(str, Enum):
    FAILED = "Failed"
    CONTACT_ONLY = "ContactOnly"
    CONTACT_AND_OPPORTUNITY = "ContactAndOpportunity"
    FULL = "Full"


@dataclass
class SyncResult:
    """
    Result of pushing one application draft to the CRM.

    success is True as soon as the contact exists; opportunity and note
    failures only show up in outcome (and the logs).
    """

    success: bool
    contact_id: Optional[str] = None
    opportunity_id: Optional[str] = None
    note_attached: bool = False
    estimated_value: Optional[int] = None
    error: Optional[str] = None
    status_code: int = 200
    reauthorize: bool = False

    @property
    def outcome(self) -> SyncOutcome:
        if not self.success:
            return SyncOutcome.FAILED
        if not self.opportunity_id:
            return SyncOutcome.CONTACT_ONLY
        if not self.note_attached:
            return SyncOutcome.CONTACT_AND_OPPORTUNITY
        return SyncOutcome.FULL

    def to_response(self) -> Dict[str, Any]:
        if self.success:
            return {"success": True, "message": SAVED_MESSAGE, "contactId": self.contact_id}
        body = {"success": False, "error": self.error}
        if self.reauthorize:
            body["reauthorize"] = True
        return body


def build_sync_workflow(client: GoHighLevelClient):
    """Build the contact -> opportunity -> note workflow."""
    workflow = StateGraph(SyncState)

    workflow.add_node("create_contact", make_contact_node(client))
    workflow.add_node("create_opportunity", make_opportunity_node(client))
    workflow.add_node("attach_note", make_note_node(client))

    workflow.add_edge(START, "create_contact")

    def after_contact(state: SyncState) -> str:
        if state.get("contact_id"):
            return "create_opportunity"
        logger.info("No contact id, stopping CRM sync after contact stage")
        return "end"

    def after_opportunity(state: SyncState) -> str:
        if state.get("opportunity_id"):
            return "attach_note"
        logger.info("No opportunity created, skipping note")
        return "end"

    workflow.add_conditional_edges(
        "create_contact",
        after_contact,
        {"create_opportunity": "create_opportunity", "end": END},
    )
    workflow.add_conditional_edges(
        "create_opportunity",
        after_opportunity,
        {"attach_note": "attach_note", "end": END},
    )
    workflow.add_edge("attach_note", END)

    return workflow.compile()


async def run_sync(
    draft: Dict[str, Any],
    status: Optional[str] = None,
    client: Optional[GoHighLevelClient] = None,
) -> SyncResult:
    """
    Push an application draft to GoHighLevel.

    Args:
        draft: Flat application draft (not modified)
        status: "Submitted" or "In Progress"; defaults to the draft's
                applicationStatus, else "Submitted"
        client: CRM client (defaults to one configured from the environment)

    Returns:
        SyncResult
    """
    snapshot = dict(draft)
    snapshot["applicationStatus"] = status or snapshot.get("applicationStatus") or STATUS_SUBMITTED
    client = client or GoHighLevelClient()

    graph = build_sync_workflow(client)
    state = await graph.ainvoke({"draft": snapshot})

    contact_failed = bool(state.get("error")) or state.get("status_code", 200) >= 400
    result = SyncResult(
        success=not contact_failed,
        contact_id=state.get("contact_id"),
        opportunity_id=state.get("opportunity_id"),
        note_attached=bool(state.get("note_attached")),
        estimated_value=state.get("estimated_value"),
        error=state.get("error"),
        status_code=state.get("status_code", 200),
        reauthorize=bool(state.get("reauthorize")),
    )
    logger.info(
        f"CRM sync ({snapshot['applicationStatus']}) finished: {result.outcome.value}, "
        f"contact={result.contact_id}, opportunity={result.opportunity_id}"
    )
    return result
