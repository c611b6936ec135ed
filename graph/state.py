import operator
from typing import TypedDict, Annotated, Optional, List, Dict, Any
from tools.providers import ProviderResult


class EnrichmentState(TypedDict, total=False):
    """State shape for the address enrichment workflow."""
    address: str
    partials: Annotated[List[ProviderResult], operator.add]   # one per provider that found data
    candidate: Dict[str, Any]        # merged candidate record
    sources: List[str]
    fields_count: int


class SyncState(TypedDict, total=False):
    """State shape for the CRM sync workflow."""
    draft: Dict[str, Any]            # flat application draft (copy)
    contact_id: Optional[str]
    opportunity_id: Optional[str]
    note_attached: bool
    estimated_value: int
    error: Optional[str]
    status_code: int
    reauthorize: bool
