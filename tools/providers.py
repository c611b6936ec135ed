from dataclasses import dataclass, field
from typing import Dict, Any, Optional
import httpx
from loguru import logger

# Every provider call is bounded by this timeout; a timeout is reported as "absent".
REQUEST_TIMEOUT = 5.0


@dataclass
class ProviderResult:
    """
    Normalized partial candidate record produced by one provider.

    Fields:
      source:       Provider name (e.g. "smarty").
      fields:       Candidate field name -> value, present fields only.
      fields_count: Number of populated logical fields. Companion keys such as
                    latitude/longitude count once.
    """

    source: str
    fields: Dict[str, Any] = field(default_factory=dict)
    fields_count: int = 0

    def add(self, values: Dict[str, Any]) -> None:
        """Record one logical field, possibly spread over several keys."""
        self.fields.update(values)
        self.fields_count += 1


class EnrichmentProvider:
    """
    Base interface for address enrichment providers.

    Subclasses implement fetch() (raw provider payload or None) and
    normalize() (raw payload -> ProviderResult). lookup() ties both together
    and is the only method the enrichment workflow calls.
    """

    name: str = "base"

    def __init__(self, transport: Optional[httpx.AsyncBaseTransport] = None):
        self.transport = transport

    @property
    def configured(self) -> bool:
        return False

    def _client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(timeout=REQUEST_TIMEOUT, transport=self.transport)

    async def fetch(self, address: str) -> Optional[Dict[str, Any]]:
        raise NotImplementedError("EnrichmentProvider.fetch() must be implemented by subclasses")

    def normalize(self, raw: Dict[str, Any]) -> ProviderResult:
        raise NotImplementedError("EnrichmentProvider.normalize() must be implemented by subclasses")

    async def lookup(self, address: str) -> Optional[ProviderResult]:
        """
        Fetch and normalize data for one address.

        Args:
            address: Free-form street address

        Returns:
            ProviderResult, or None when the provider has nothing (missing
            credentials, no match, timeout, HTTP or parsing failure)
        """
        try:
            raw = await self.fetch(address)
        except Exception as e:
            logger.warning(f"{self.name} lookup failed for '{address}': {e}")
            return None

        if not raw:
            logger.info(f"{self.name} returned no data for '{address}'")
            return None

        try:
            result = self.normalize(raw)
        except Exception as e:
            logger.error(f"{self.name} normalization failed: {e}")
            return None

        logger.info(f"{self.name} produced {result.fields_count} fields for '{address}'")
        return result
