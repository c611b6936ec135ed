import os
from dataclasses import dataclass, field
from typing import Dict, Any, Optional
import httpx
from loguru import logger

CRM_TIMEOUT = 10.0
API_VERSION = "2021-07-28"
CONTACT_SOURCE = "Insurance Application Form"
CONTACT_TAGS = ["insurance-lead", "c-store"]
INVALID_TOKEN_MESSAGE = "Invalid JWT"


@dataclass
class CRMResponse:
    """Outcome of a single GoHighLevel write."""

    ok: bool
    status_code: int
    data: Dict[str, Any] = field(default_factory=dict)
    error: Optional[str] = None

    @property
    def invalid_token(self) -> bool:
        return self.status_code == 401 and self.data.get("message") == INVALID_TOKEN_MESSAGE


class GoHighLevelClient:
    """GoHighLevel (LeadConnector) CRM integration client."""

    def __init__(self, transport: Optional[httpx.AsyncBaseTransport] = None):
        self.api_key = os.getenv("GHL_API_KEY")
        self.location_id = os.getenv("GHL_LOCATION_ID")
        self.pipeline_id = os.getenv("GHL_PIPELINE_ID")
        self.pipeline_stage_id = os.getenv("GHL_PIPELINE_STAGE_ID")
        self.base_url = "https://services.leadconnectorhq.com"
        self.transport = transport

        if not self.api_key:
            logger.debug("No GoHighLevel API key provided, CRM sync disabled")

    @property
    def pipeline_configured(self) -> bool:
        return bool(self.pipeline_id and self.pipeline_stage_id)

    def _get_headers(self) -> Dict[str, str]:
        """Get headers for GoHighLevel API requests."""
        auth = self.api_key or ""
        if not auth.startswith("Bearer "):
            auth = f"Bearer {auth}"
        return {
            "Authorization": auth,
            "Content-Type": "application/json",
            "Accept": "application/json",
            "Version": API_VERSION,
        }

    async def _post(self, path: str, payload: Dict[str, Any]) -> CRMResponse:
        async with httpx.AsyncClient(timeout=CRM_TIMEOUT, transport=self.transport) as client:
            response = await client.post(f"{self.base_url}{path}", headers=self._get_headers(), json=payload)

        try:
            data = response.json()
        except ValueError:
            data = {}
        if not isinstance(data, dict):
            data = {}

        if response.is_success:
            return CRMResponse(ok=True, status_code=response.status_code, data=data)

        error = data.get("message") or f"{response.status_code} {response.reason_phrase}"
        if isinstance(error, list):
            error = "; ".join(str(e) for e in error)
        return CRMResponse(ok=False, status_code=response.status_code, data=data, error=str(error))

    def build_contact(self, draft: Dict[str, Any]) -> Dict[str, Any]:
        """
        Build contact properties from an application draft.

        Args:
            draft: Flat application draft

        Returns:
            Contact payload (without locationId)
        """
        full_name = (draft.get("contactName") or "").strip()
        parts = full_name.split()
        return {
            "firstName": parts[0] if parts else "",
            "lastName": " ".join(parts[1:]),
            "name": full_name,
            "email": draft.get("contactEmail") or "",
            "phone": draft.get("contactNumber") or "",
            "address1": draft.get("address") or "",
            "companyName": draft.get("corporationName") or draft.get("dba") or "",
            "source": CONTACT_SOURCE,
            "tags": list(CONTACT_TAGS),
        }

    async def create_contact(self, draft: Dict[str, Any]) -> CRMResponse:
        """
        Create a contact for the applicant.

        Missing credentials fail fast with a 400 and no network call. Transport
        failures (timeout, connection errors) are reported as 502.
        """
        if not self.api_key:
            logger.error("GoHighLevel API key not configured")
            return CRMResponse(ok=False, status_code=400, error="GoHighLevel not configured - GHL_API_KEY missing")
        if not self.location_id:
            logger.error("GoHighLevel location ID is required but not configured")
            return CRMResponse(ok=False, status_code=400, error="Location ID not configured")

        contact = self.build_contact(draft)
        contact["locationId"] = self.location_id
        logger.info(f"Creating GoHighLevel contact for {contact['email'] or contact['name'] or 'unknown'}")

        try:
            response = await self._post("/contacts/", contact)
        except httpx.HTTPError as e:
            logger.error(f"GoHighLevel contact request failed: {e}")
            return CRMResponse(ok=False, status_code=502, error=f"GoHighLevel unavailable: {e}")

        if response.invalid_token:
            logger.error(
                "GoHighLevel rejected the API key (Invalid JWT): the token may be expired or revoked, "
                "may be an OAuth token instead of a private integration key, or may not match "
                f"location {self.location_id}. Generate a new key under Settings -> API Keys."
            )
        if not response.ok:
            if not response.data.get("message"):
                response.error = f"Failed to create contact: {response.error}"
            logger.error(f"GoHighLevel contact creation failed ({response.status_code}): {response.error}")

        return response

    async def create_opportunity(self, contact_id: str, name: str, monetary_value: int) -> Optional[str]:
        """
        Create a pipeline opportunity linked to a contact.

        Returns:
            Opportunity id, or None when skipped or failed
        """
        if not self.pipeline_configured:
            logger.warning("Pipeline IDs not configured - skipping opportunity creation")
            return None

        payload = {
            "contactId": contact_id,
            "name": name,
            "pipelineId": self.pipeline_id,
            "pipelineStageId": self.pipeline_stage_id,
            "status": "open",
            "monetaryValue": max(monetary_value, 0),
        }
        if self.location_id:
            payload["locationId"] = self.location_id

        try:
            response = await self._post("/opportunities/", payload)
        except httpx.HTTPError as e:
            logger.error(f"Error creating opportunity: {e}")
            return None

        if not response.ok:
            logger.error(f"Failed to create opportunity ({response.status_code}): {response.error}")
            return None

        opportunity_id = (response.data.get("opportunity") or {}).get("id")
        logger.info(f"Opportunity created: {opportunity_id}")
        return opportunity_id

    async def add_note(self, opportunity_id: str, body: str) -> bool:
        """Attach a note to an opportunity. Failures are logged, never raised."""
        try:
            response = await self._post(
                f"/opportunities/{opportunity_id}/notes",
                {"body": body, "opportunityId": opportunity_id},
            )
        except httpx.HTTPError as e:
            logger.error(f"Error adding note: {e}")
            return False

        if not response.ok:
            logger.warning(f"Note creation failed ({response.status_code}): {response.error}")
            return False

        logger.info(f"Application snapshot added as note to opportunity {opportunity_id}")
        return True
