import os
from typing import Dict, Any, Optional
import httpx
from loguru import logger
from tools.providers import EnrichmentProvider, ProviderResult

CONSTRUCTION_KEYWORDS = [
    (("masonry", "brick"), "Masonry"),
    (("frame", "wood"), "Frame"),
    (("fire", "resistive"), "Fire Resistive"),
    (("steel", "concrete"), "Non-Combustible"),
]
DEFAULT_CONSTRUCTION_TYPE = "Frame"


def map_construction_type(raw_type: str) -> str:
    """Map a free-text construction description onto the form's options."""
    value = (raw_type or "").lower()
    for keywords, label in CONSTRUCTION_KEYWORDS:
        if any(keyword in value for keyword in keywords):
            return label
    return DEFAULT_CONSTRUCTION_TYPE


class SmartyPropertyProvider(EnrichmentProvider):
    """Property records provider using the Smarty US enrichment API."""

    name = "smarty"

    def __init__(self, transport: Optional[httpx.AsyncBaseTransport] = None):
        super().__init__(transport)
        self.auth_id = os.getenv("SMARTY_AUTH_ID")
        self.auth_token = os.getenv("SMARTY_AUTH_TOKEN")
        self.base_url = "https://us-enrichment.api.smarty.com"

    @property
    def configured(self) -> bool:
        return bool(self.auth_id and self.auth_token)

    async def fetch(self, address: str) -> Optional[Dict[str, Any]]:
        """
        Look up property principal data for one address.

        Args:
            address: Free-form street address

        Returns:
            First matched record (attributes + matched_address) or None
        """
        if not self.configured:
            logger.warning("Smarty credentials not configured, skipping property lookup")
            return None

        try:
            async with self._client() as client:
                response = await client.get(
                    f"{self.base_url}/lookup/search/property/principal",
                    params={
                        "freeform": address,
                        "auth-id": self.auth_id,
                        "auth-token": self.auth_token,
                    },
                    headers={"Accept": "application/json"},
                )
                response.raise_for_status()
                data = response.json()
        except Exception as e:
            logger.warning(f"Smarty API unavailable: {e}")
            return None

        if not isinstance(data, list) or not data:
            logger.info(f"Smarty found no property match for '{address}'")
            return None

        logger.info(f"Smarty property data fetched for '{address}'")
        return data[0]

    def normalize(self, raw: Dict[str, Any]) -> ProviderResult:
        attributes = raw.get("attributes") or {}
        matched = raw.get("matched_address") or {}
        result = ProviderResult(source=self.name)

        if attributes.get("building_sqft"):
            result.add({"buildingSquareFootage": str(attributes["building_sqft"])})
        if attributes.get("year_built"):
            result.add({"yearBuilt": str(attributes["year_built"])})
        if attributes.get("construction_type"):
            result.add({"constructionType": map_construction_type(attributes["construction_type"])})
        if attributes.get("stories"):
            result.add({"stories": attributes["stories"]})
        if attributes.get("acres"):
            result.add({"acres": str(attributes["acres"])})

        owner_name = attributes.get("deed_owner_full_name") or attributes.get("owner_full_name")
        if owner_name:
            result.add({"ownerName": owner_name})

        if attributes.get("corporation_name"):
            result.add({"corporationName": attributes["corporation_name"]})
        elif owner_name and (
            attributes.get("company_flag") == "owner_is_company"
            or attributes.get("ownership_type") == "company"
        ):
            # Owner flagged as a company: the deed owner is the corporation
            result.add({"corporationName": owner_name})

        if attributes.get("ownership_type"):
            result.add({"ownershipType": attributes["ownership_type"]})

        if attributes.get("lender_name"):
            result.add({"lenderName": attributes["lender_name"]})
        if attributes.get("mortgage_amount"):
            result.add({"mortgageAmount": str(attributes["mortgage_amount"])})
        if attributes.get("assessed_value"):
            result.add({"assessedValue": str(attributes["assessed_value"])})

        if attributes.get("land_use_standard"):
            result.add({"landUse": attributes["land_use_standard"]})
        if attributes.get("land_use_group"):
            result.add({"landUseGroup": attributes["land_use_group"]})

        if attributes.get("legal_description"):
            result.add({"protectionClass": attributes["legal_description"]})

        if matched.get("latitude") and matched.get("longitude"):
            result.add({"latitude": matched["latitude"], "longitude": matched["longitude"]})

        return result
