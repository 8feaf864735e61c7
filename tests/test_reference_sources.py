import asyncio
import json

import httpx
import pytest

from config.settings import RouterConfig
from consensus.models import AuthorityData
from services.exceptions import ExternalServiceError, ReferenceSourceMiss
from services.reference_sources import (
    NhtsaSource,
    PokemonTcgSource,
    UpcItemDbSource,
    build_reference_sources,
    extract_identifiers,
    run_cascade,
    summarize_prices,
)

PRICED = AuthorityData(source="psa", verified=False, price_data={"market": 120.0})
VERIFIED = AuthorityData(source="pokemon_tcg", verified=True)
EMPTY = AuthorityData(source="pokemon_tcg", verified=False)


def mock_client(handler) -> httpx.AsyncClient:
    return httpx.AsyncClient(transport=httpx.MockTransport(handler))


def json_response(payload, status_code: int = 200) -> httpx.Response:
    return httpx.Response(status_code, content=json.dumps(payload), headers={"Content-Type": "application/json"})


# ============================================================
# IDENTIFIERS & PRICE SUMMARY
# ============================================================

def test_extract_identifiers_finds_vin() -> None:
    identifiers = extract_identifiers("2003 Honda Accord", "VIN 1hgcm82633a004352 clean title")
    assert identifiers["name"] == "2003 Honda Accord"
    assert identifiers["vin"] == "1HGCM82633A004352"
    assert "upc" not in identifiers


def test_extract_identifiers_finds_barcode() -> None:
    identifiers = extract_identifiers("Keurig K-Mini 611247373064")
    assert identifiers["upc"] == "611247373064"
    assert "vin" not in identifiers


def test_summarize_prices_ignores_junk() -> None:
    assert summarize_prices([10, 30, 20, None, 0]) == {"median": 20.0, "low": 10.0, "high": 30.0, "sampleSize": 3}


def test_summarize_no_prices() -> None:
    assert summarize_prices([]) == {"median": None, "low": None, "high": None, "sampleSize": 0}


# ============================================================
# CASCADE
# ============================================================

def test_cascade_falls_through_miss_to_next_source(make_source) -> None:
    sources = {
        "pokemon_tcg": make_source("pokemon_tcg", error=ReferenceSourceMiss("pokemon_tcg", "pokemon_cards")),
        "psa": make_source("psa", authority=PRICED),
        "ebay": make_source("ebay", authority=VERIFIED),
    }
    authority = asyncio.run(run_cascade("pokemon_cards", sources, {"name": "Charizard"}))

    assert authority is PRICED
    assert len(sources["pokemon_tcg"].calls) == 1
    assert sources["ebay"].calls == []


def test_cascade_falls_through_errors_and_timeouts(make_source) -> None:
    sources = {
        "pokemon_tcg": make_source("pokemon_tcg", error=ExternalServiceError("pokemon_tcg", "503", 503)),
        "psa": make_source("psa", authority=PRICED, delay=1.0),
        "ebay": make_source("ebay", authority=VERIFIED),
    }
    config = RouterConfig(max_cascade_length=3, lookup_timeout=0.05)
    authority = asyncio.run(run_cascade("pokemon_cards", sources, {"name": "Charizard"}, config))
    assert authority is VERIFIED


def test_cascade_survives_unexpected_source_error(make_source) -> None:
    sources = {
        "pokemon_tcg": make_source("pokemon_tcg", error=KeyError("Results")),
        "psa": make_source("psa", authority=PRICED),
    }
    assert asyncio.run(run_cascade("pokemon_cards", sources, {"name": "Charizard"})) is PRICED


def test_cascade_skips_unconfigured_and_unusable(make_source) -> None:
    sources = {
        "pokemon_tcg": make_source("pokemon_tcg", authority=VERIFIED, configured=False),
        "psa": make_source("psa", authority=EMPTY),
    }
    authority = asyncio.run(run_cascade("pokemon_cards", sources, {"name": "Charizard"}))

    assert authority is None
    assert sources["pokemon_tcg"].calls == []
    assert len(sources["psa"].calls) == 1


def test_cascade_respects_length_cap(make_source) -> None:
    sources = {
        "pokemon_tcg": make_source("pokemon_tcg", error=ReferenceSourceMiss("pokemon_tcg", "pokemon_cards")),
        "psa": make_source("psa", authority=PRICED),
    }
    config = RouterConfig(max_cascade_length=1)
    assert asyncio.run(run_cascade("pokemon_cards", sources, {"name": "x"}, config)) is None
    assert sources["psa"].calls == []


def test_cascade_with_no_sources_returns_none() -> None:
    assert asyncio.run(run_cascade("general", {}, {"name": "x"})) is None


# ============================================================
# HTTP SOURCES
# ============================================================

def test_nhtsa_decodes_vin() -> None:
    seen = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(request)
        return json_response({"Results": [{
            "Make": "HONDA", "Model": "Accord", "ModelYear": "2003", "ErrorCode": "0",
        }]})

    async def run():
        async with mock_client(handler) as client:
            return await NhtsaSource(client).lookup({"name": "Accord", "vin": "1HGCM82633A004352"}, "vehicles")

    authority = asyncio.run(run())
    assert authority.verified
    assert authority.item_details["make"] == "HONDA"
    assert authority.reference_price() is None
    assert seen[0].url.path.endswith("/DecodeVinValues/1HGCM82633A004352")
    assert seen[0].url.params["format"] == "json"


def test_nhtsa_partial_decode_is_unverified() -> None:
    def handler(request):
        return json_response({"Results": [{"Make": "HONDA", "ErrorCode": "1,11"}]})

    async def run():
        async with mock_client(handler) as client:
            return await NhtsaSource(client).lookup({"name": "x", "vin": "1HGCM82633A004352"}, "vehicles")

    assert not asyncio.run(run()).verified


def test_nhtsa_without_vin_misses() -> None:
    with pytest.raises(ReferenceSourceMiss):
        asyncio.run(NhtsaSource().lookup({"name": "Honda Accord"}, "vehicles"))


def test_upstream_error_status_raises() -> None:
    def handler(request):
        return httpx.Response(500, text="boom")

    async def run():
        async with mock_client(handler) as client:
            await NhtsaSource(client).lookup({"name": "x", "vin": "1HGCM82633A004352"}, "vehicles")

    with pytest.raises(ExternalServiceError) as exc_info:
        asyncio.run(run())
    assert exc_info.value.details["status_code"] == 500


def test_non_json_body_raises_upstream_error() -> None:
    def handler(request):
        return httpx.Response(200, text="<html>rate limited</html>", headers={"Content-Type": "text/html"})

    async def run():
        async with mock_client(handler) as client:
            await NhtsaSource(client).lookup({"name": "x", "vin": "1HGCM82633A004352"}, "vehicles")

    with pytest.raises(ExternalServiceError) as exc_info:
        asyncio.run(run())
    assert "non-JSON" in exc_info.value.message


def test_cascade_moves_past_non_json_source() -> None:
    def handler(request):
        return httpx.Response(200, text="<html>rate limited</html>")

    async def run():
        async with mock_client(handler) as client:
            sources = {"nhtsa": NhtsaSource(client)}
            return await run_cascade("vehicles", sources, {"name": "Accord", "vin": "1HGCM82633A004352"})

    assert asyncio.run(run()) is None


def test_pokemon_tcg_reads_market_price() -> None:
    seen = []

    def handler(request):
        seen.append(request)
        return json_response({"data": [{
            "name": "Charizard",
            "number": "4",
            "rarity": "Rare Holo",
            "set": {"name": "Base"},
            "tcgplayer": {"prices": {"holofoil": {"market": 350.0, "low": 250.0, "high": 900.0}}},
        }]})

    async def run():
        async with mock_client(handler) as client:
            return await PokemonTcgSource(client).lookup({"name": "Charizard Base Set Holo Pokemon Card"}, "pokemon_cards")

    authority = asyncio.run(run())
    assert authority.reference_price() == 350.0
    assert authority.item_details["set"] == "Base"
    assert seen[0].url.params["q"] == "name:Charizard name:Base"


def test_pokemon_tcg_not_found_misses() -> None:
    def handler(request):
        return httpx.Response(404)

    async def run():
        async with mock_client(handler) as client:
            await PokemonTcgSource(client).lookup({"name": "Missingno"}, "pokemon_cards")

    with pytest.raises(ReferenceSourceMiss):
        asyncio.run(run())


def test_upcitemdb_price_midpoint() -> None:
    def handler(request):
        return json_response({"items": [{
            "title": "Keurig K-Mini", "brand": "Keurig",
            "lowest_recorded_price": 20, "highest_recorded_price": 40,
        }]})

    async def run():
        async with mock_client(handler) as client:
            return await UpcItemDbSource(client).lookup({"name": "Keurig", "upc": "611247373064"}, "household")

    authority = asyncio.run(run())
    assert authority.price_data["mid"] == 30.0
    assert authority.reference_price() == 30.0


def test_registry_keys_match_router_ids() -> None:
    assert set(build_reference_sources()) == {"nhtsa", "pokemon_tcg", "upcitemdb"}
