"""
Reference Sources & Cascade Execution

Two kinds of external data feed the consensus path:
- ReferenceSource: trusted catalog lookup (NHTSA, Pokemon TCG, UPCitemdb, ...)
  returning AuthorityData or raising ReferenceSourceMiss
- MarketplaceSearchSource: listing search returning a price analysis
  {median, low, high, sampleSize}

The category router only supplies source ordering. run_cascade walks
that order, skipping sources that are not configured, until one yields
a usable result.

Usage:
    from services.reference_sources import build_reference_sources, run_cascade

    sources = build_reference_sources(http_client)
    authority = await run_cascade("vehicles", sources, {"name": title, "vin": vin})
"""

import asyncio
import logging
import os
import re
from abc import ABC, abstractmethod
from statistics import median
from typing import Dict, Any, List, Optional

import httpx

from categories.router import get_sources_for_category
from config.settings import ROUTER, RouterConfig
from consensus.models import AuthorityData
from services.exceptions import ReferenceSourceMiss, ExternalServiceError

logger = logging.getLogger(__name__)

VIN_PATTERN = re.compile(r'\b[A-HJ-NPR-Z0-9]{17}\b', re.IGNORECASE)
UPC_PATTERN = re.compile(r'\b\d{8,13}\b')


def extract_identifiers(item_name: str, description: str = "") -> Dict[str, str]:
    """Pull lookup keys out of free text: name always, vin/upc when present"""
    text = f"{item_name} {description}"
    identifiers = {"name": item_name}
    vin = VIN_PATTERN.search(text)
    if vin and any(c.isdigit() for c in vin.group(0)) and any(c.isalpha() for c in vin.group(0)):
        identifiers["vin"] = vin.group(0).upper()
    upc = UPC_PATTERN.search(text)
    if upc:
        identifiers["upc"] = upc.group(0)
    return identifiers


# ============================================================
# SOURCE INTERFACES
# ============================================================

class ReferenceSource(ABC):
    """Catalog lookup. Raises ReferenceSourceMiss when nothing matches."""

    source_id: str = "base"

    @property
    def configured(self) -> bool:
        return True

    @abstractmethod
    async def lookup(self, identifiers: Dict[str, str], category: str) -> AuthorityData:
        pass


class MarketplaceSearchSource(ABC):
    """Listing search used for market context and sold-price ground truth"""

    source_id: str = "marketplace"

    @abstractmethod
    async def search(self, item_name: str) -> Dict[str, Any]:
        """Return {"listings": [...], "priceAnalysis": summarize_prices(...)}"""
        pass


def summarize_prices(prices: List[float]) -> Dict[str, Any]:
    """Median/low/high over positive prices. Empty input -> all None, sampleSize 0."""
    valid = [float(p) for p in prices if p is not None and float(p) > 0]
    if not valid:
        return {"median": None, "low": None, "high": None, "sampleSize": 0}
    return {
        "median": round(median(valid), 2),
        "low": round(min(valid), 2),
        "high": round(max(valid), 2),
        "sampleSize": len(valid),
    }


# ============================================================
# HTTP SOURCES
# ============================================================

class HttpReferenceSource(ReferenceSource):
    """
    Base for JSON-over-HTTP catalog sources.

    Uses the shared httpx.AsyncClient when one is given (connection
    pooling), else a short-lived client per call.
    """

    base_url: str = ""
    api_key_env: Optional[str] = None

    def __init__(self, http_client: Optional[httpx.AsyncClient] = None, timeout: float = None):
        self.http_client = http_client
        self.timeout = timeout or ROUTER.lookup_timeout

    @property
    def api_key(self) -> Optional[str]:
        if not self.api_key_env:
            return None
        return os.getenv(self.api_key_env) or None

    @property
    def configured(self) -> bool:
        return self.api_key_env is None or self.api_key is not None

    def headers(self) -> Dict[str, str]:
        return {"Accept": "application/json"}

    async def get_json(self, path: str, params: Dict[str, Any] = None) -> Any:
        url = f"{self.base_url}{path}"
        try:
            if self.http_client:
                response = await self.http_client.get(
                    url, params=params, headers=self.headers(), timeout=self.timeout
                )
            else:
                async with httpx.AsyncClient(timeout=self.timeout) as client:
                    response = await client.get(url, params=params, headers=self.headers())
        except httpx.TimeoutException as e:
            raise ExternalServiceError(self.source_id, f"{self.source_id} timed out", cause=e)
        except httpx.HTTPError as e:
            raise ExternalServiceError(self.source_id, f"{self.source_id} request failed", cause=e)

        if response.status_code == 404:
            return None
        if response.status_code != 200:
            raise ExternalServiceError(
                self.source_id,
                f"{self.source_id} returned {response.status_code}",
                status_code=response.status_code,
            )
        try:
            return response.json()
        except ValueError as e:
            raise ExternalServiceError(self.source_id, f"{self.source_id} returned a non-JSON body", cause=e)


class NhtsaSource(HttpReferenceSource):
    """NHTSA vPIC VIN decoder (no key required). Identity only, no prices."""

    source_id = "nhtsa"
    base_url = "https://vpic.nhtsa.dot.gov/api"

    async def lookup(self, identifiers: Dict[str, str], category: str) -> AuthorityData:
        vin = identifiers.get("vin")
        if not vin:
            raise ReferenceSourceMiss(self.source_id, category, "no VIN in identifiers")

        data = await self.get_json(f"/vehicles/DecodeVinValues/{vin}", {"format": "json"})
        results = (data or {}).get("Results") or []
        if not results or not results[0].get("Make"):
            raise ReferenceSourceMiss(self.source_id, category, "VIN did not decode")

        row = results[0]
        details = {
            "vin": vin,
            "make": row.get("Make", ""),
            "model": row.get("Model", ""),
            "year": row.get("ModelYear", ""),
            "trim": row.get("Trim", ""),
            "bodyClass": row.get("BodyClass", ""),
        }
        # ErrorCode "0" means a clean decode
        verified = str(row.get("ErrorCode", "0")).split(",")[0].strip() == "0"
        return AuthorityData(source=self.source_id, verified=verified, item_details=details)


class PokemonTcgSource(HttpReferenceSource):
    """pokemontcg.io card search with TCGplayer market prices"""

    source_id = "pokemon_tcg"
    base_url = "https://api.pokemontcg.io/v2"
    api_key_env = None  # key optional, raises rate limit only

    def headers(self) -> Dict[str, str]:
        headers = super().headers()
        key = os.getenv("POKEMON_TCG_API_KEY")
        if key:
            headers["X-Api-Key"] = key
        return headers

    async def lookup(self, identifiers: Dict[str, str], category: str) -> AuthorityData:
        name = re.sub(r'[^\w\s-]', ' ', identifiers.get("name", "")).strip()
        words = [w for w in name.split() if w.lower() not in ("pokemon", "card", "tcg", "holo")]
        if not words:
            raise ReferenceSourceMiss(self.source_id, category, "empty card name")

        query = " ".join(f"name:{w}" for w in words[:2])
        data = await self.get_json("/cards", {"q": query, "pageSize": 5})
        cards = (data or {}).get("data") or []
        if not cards:
            raise ReferenceSourceMiss(self.source_id, category)

        card = cards[0]
        prices = (card.get("tcgplayer") or {}).get("prices") or {}
        price_data = None
        for variant in ("holofoil", "normal", "reverseHolofoil", "1stEditionHolofoil"):
            if variant in prices:
                p = prices[variant]
                price_data = {"market": p.get("market"), "low": p.get("low"), "high": p.get("high")}
                break

        return AuthorityData(
            source=self.source_id,
            verified=True,
            item_details={
                "name": card.get("name"),
                "set": (card.get("set") or {}).get("name"),
                "number": card.get("number"),
                "rarity": card.get("rarity"),
            },
            price_data=price_data,
        )


class UpcItemDbSource(HttpReferenceSource):
    """UPCitemdb barcode lookup (trial endpoint)"""

    source_id = "upcitemdb"
    base_url = "https://api.upcitemdb.com/prod/trial"

    async def lookup(self, identifiers: Dict[str, str], category: str) -> AuthorityData:
        upc = identifiers.get("upc")
        if not upc:
            raise ReferenceSourceMiss(self.source_id, category, "no barcode in identifiers")

        data = await self.get_json("/lookup", {"upc": upc})
        items = (data or {}).get("items") or []
        if not items:
            raise ReferenceSourceMiss(self.source_id, category, "unknown barcode")

        item = items[0]
        low = item.get("lowest_recorded_price")
        high = item.get("highest_recorded_price")
        price_data = None
        if low or high:
            price_data = {"low": low, "high": high}
            if low and high:
                price_data["mid"] = round((float(low) + float(high)) / 2, 2)

        return AuthorityData(
            source=self.source_id,
            verified=True,
            item_details={
                "title": item.get("title"),
                "brand": item.get("brand"),
                "upc": upc,
                "category": item.get("category"),
            },
            price_data=price_data,
        )


def build_reference_sources(http_client: Optional[httpx.AsyncClient] = None) -> Dict[str, ReferenceSource]:
    """Registry of implemented sources keyed by router source id"""
    sources = [
        NhtsaSource(http_client),
        PokemonTcgSource(http_client),
        UpcItemDbSource(http_client),
    ]
    return {s.source_id: s for s in sources}


# ============================================================
# CASCADE
# ============================================================

def _usable(authority: Optional[AuthorityData]) -> bool:
    if authority is None:
        return False
    return authority.verified or authority.reference_price() is not None


async def run_cascade(
    category: str,
    sources: Dict[str, ReferenceSource],
    identifiers: Dict[str, str],
    config: RouterConfig = None,
) -> Optional[AuthorityData]:
    """
    Try the category's sources in order; first usable result wins.

    Misses, upstream errors and timeouts fall through to the next source.
    Returns None when the whole cascade comes up empty.
    """
    config = config or ROUTER
    order = get_sources_for_category(category, config)[:config.max_cascade_length]

    for source_id in order:
        source = sources.get(source_id)
        if source is None or not source.configured:
            logger.debug(f"[CASCADE] {source_id} not configured - skipping")
            continue

        try:
            authority = await asyncio.wait_for(
                source.lookup(identifiers, category), timeout=config.lookup_timeout
            )
        except ReferenceSourceMiss as e:
            logger.info(f"[CASCADE] {e.message}")
            continue
        except ExternalServiceError as e:
            logger.warning(f"[CASCADE] {e}")
            continue
        except asyncio.TimeoutError:
            logger.warning(f"[CASCADE] {source_id} timed out after {config.lookup_timeout}s")
            continue
        except Exception as e:
            logger.error(f"[CASCADE] {source_id} raised {type(e).__name__}: {e}")
            continue

        if _usable(authority):
            logger.info(f"[CASCADE] {category}: authority from {source_id} (verified={authority.verified})")
            return authority
        logger.info(f"[CASCADE] {source_id} returned nothing usable")

    logger.info(f"[CASCADE] {category}: no authority data from {order}")
    return None
