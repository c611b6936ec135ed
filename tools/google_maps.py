import os
from typing import Dict, Any, List, Optional
import httpx
from loguru import logger
from tools.providers import EnrichmentProvider, ProviderResult
from tools.hours import calculate_daily_hours, parse_hours_from_text, format_opening_hours

NEARBY_RADIUS = 50
PREFERRED_PLACE_TYPES = ("convenience_store", "gas_station", "store")
C_STORE_TYPES = ("gas_station", "convenience_store")
GENERIC_PLACE_TYPES = ("point_of_interest", "establishment")
DETAIL_FIELDS = [
    "name",
    "formatted_phone_number",
    "opening_hours",
    "types",
    "business_status",
    "rating",
    "website",
    "editorial_summary",
    "user_ratings_total",
]


def select_business(results: List[Dict[str, Any]]) -> Optional[Dict[str, Any]]:
    """Pick the most relevant nearby place: a store-like result, else the first."""
    if not results:
        return None
    for place in results:
        if any(t in (place.get("types") or []) for t in PREFERRED_PLACE_TYPES):
            return place
    return results[0]


def describe_operation(business: Dict[str, Any], is_24_hours: bool = False) -> str:
    """Build a human-readable operation description from place types and summary."""
    description = ""
    types = business.get("types") or []

    if types:
        if any(t in C_STORE_TYPES for t in types):
            description = "C-Store with 24 hours operation" if is_24_hours else "C-Store with operations"
        else:
            readable = [t.replace("_", " ") for t in types if t not in GENERIC_PLACE_TYPES][:3]
            if readable:
                description = f"Business Type: {', '.join(readable)}"

    overview = (business.get("editorial_summary") or {}).get("overview")
    if overview:
        description = f"{description}. {overview}" if description else overview

    return description


class GoogleMapsProvider(EnrichmentProvider):
    """Business lookup via Google Geocoding + Places (nearby search, details)."""

    name = "google_maps"

    def __init__(self, transport: Optional[httpx.AsyncBaseTransport] = None):
        super().__init__(transport)
        self.api_key = os.getenv("GOOGLE_MAPS_API_KEY")
        self.base_url = "https://maps.googleapis.com/maps/api"

    @property
    def configured(self) -> bool:
        return bool(self.api_key)

    async def fetch(self, address: str) -> Optional[Dict[str, Any]]:
        """
        Geocode an address and fetch details for the business located there.

        Args:
            address: Free-form street address

        Returns:
            {"business": place details, "location": {"lat", "lng"}} or None
        """
        if not self.configured:
            logger.warning("Google Maps API key not configured, skipping business lookup")
            return None

        try:
            async with self._client() as client:
                geocode = await self._get(client, "/geocode/json", {"address": address})
                if geocode.get("status") != "OK" or not geocode.get("results"):
                    logger.info(f"Google geocoding failed: {geocode.get('status')}")
                    return None

                first = geocode["results"][0]
                location = first["geometry"]["location"]
                place_id = first.get("place_id")
                logger.info(f"Geocoded '{address}' to {location.get('lat')},{location.get('lng')}")

                place_id = await self._find_business_place(client, location, place_id)

                details = await self._get(
                    client,
                    "/place/details/json",
                    {"place_id": place_id, "fields": ",".join(DETAIL_FIELDS)},
                )
        except Exception as e:
            logger.warning(f"Google Maps API unavailable: {e}")
            return None

        if details.get("status") == "OK" and details.get("result"):
            logger.info(f"Google place details fetched: {details['result'].get('name')}")
            return {"business": details["result"], "location": location}

        logger.warning(f"Google place details returned status: {details.get('status')}")
        return None

    async def _get(self, client: httpx.AsyncClient, path: str, params: Dict[str, Any]) -> Dict[str, Any]:
        response = await client.get(f"{self.base_url}{path}", params={**params, "key": self.api_key})
        response.raise_for_status()
        return response.json()

    async def _find_business_place(
        self, client: httpx.AsyncClient, location: Dict[str, Any], fallback_place_id: Optional[str]
    ) -> Optional[str]:
        """Return the place id of the best nearby business, else the geocoded place."""
        try:
            nearby = await self._get(
                client,
                "/place/nearbysearch/json",
                {"location": f"{location['lat']},{location['lng']}", "radius": NEARBY_RADIUS},
            )
        except (httpx.HTTPError, ValueError) as e:
            logger.warning(f"Nearby search failed, using geocoded place: {e}")
            return fallback_place_id

        results = nearby.get("results") or []
        logger.info(f"Nearby search found {len(results)} places")
        if nearby.get("status") != "OK":
            return fallback_place_id

        business = select_business(results)
        if business and business.get("place_id"):
            logger.info(f"Selected business: {business.get('name')} - types: {business.get('types')}")
            return business["place_id"]
        return fallback_place_id

    def normalize(self, raw: Dict[str, Any]) -> ProviderResult:
        business = raw.get("business") or {}
        result = ProviderResult(source=self.name)

        if business.get("name"):
            result.add({"dba": business["name"], "businessName": business["name"]})

        phone = business.get("formatted_phone_number")
        if phone:
            result.add({"phoneNumber": phone, "contactNumber": phone})

        hours = self._normalize_hours(business.get("opening_hours") or {})
        if hours:
            result.add(hours)

        description = describe_operation(business, is_24_hours=bool(hours.get("is24Hours")))
        if description:
            result.add({"operationDescription": description})

        if business.get("website"):
            result.add({"website": business["website"]})

        if business.get("rating"):
            result.add({
                "googleRating": business["rating"],
                "totalReviews": business.get("user_ratings_total") or 0,
            })

        if business.get("business_status"):
            result.add({
                "businessStatus": business["business_status"],
                "currentlyOpen": business["business_status"] == "OPERATIONAL",
            })

        return result

    def _normalize_hours(self, opening_hours: Dict[str, Any]) -> Dict[str, Any]:
        periods = opening_hours.get("periods") or []

        if len(periods) == 1 and not periods[0].get("close"):
            return {"hoursOfOperation": "24", "hoursText": "24 Hours (Open 24/7)", "is24Hours": True}

        if periods:
            daily = calculate_daily_hours(periods)
            if daily:
                return {
                    "hoursOfOperation": str(daily),
                    "hoursText": format_opening_hours(opening_hours),
                    "is24Hours": daily == 24,
                }

        weekday_text = opening_hours.get("weekday_text") or []
        if weekday_text:
            parsed = parse_hours_from_text(weekday_text[0])
            text = format_opening_hours(opening_hours)
            if parsed is None:
                # Unparseable text still fills the field with what Google shows
                return {"hoursOfOperation": text, "hoursText": text}
            return {"hoursOfOperation": str(parsed), "hoursText": text, "is24Hours": parsed == 24}

        return {}
