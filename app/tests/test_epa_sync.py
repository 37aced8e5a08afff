from unittest.mock import AsyncMock, patch

import httpx
import pytest

from services.catalog_builder import DedupePolicy
from services.epa_sync import EpaSyncService, parse_vehicle_csv
from services.exceptions import EpaSyncError

CSV_URL = "https://example.test/vehicles.csv"


def test_parse_matches_catalog_projection(sample_csv_text, sample_catalog):
    vehicles = parse_vehicle_csv(sample_csv_text)

    expected = [
        vehicle
        for makes in sample_catalog["vehicles"].values()
        for models in makes.values()
        for vehicle in models.values()
    ]
    key = lambda v: (v["year"], v["make"], v["model"])
    assert sorted(vehicles, key=key) == sorted(expected, key=key)


def test_parse_honours_dedupe_policy(sample_csv_text):
    vehicles = parse_vehicle_csv(sample_csv_text, DedupePolicy.HIGHEST_MPG)
    camry = next(v for v in vehicles if v["model"] == "Camry")
    assert camry["mpg_combined"] == 34


def test_settings_come_from_environment(async_db_session, monkeypatch):
    monkeypatch.setenv("EPA_CSV_URL", CSV_URL)
    monkeypatch.setenv("EPA_SYNC_BATCH_SIZE", "250")

    service = EpaSyncService(async_db_session)

    assert service.csv_url == CSV_URL
    assert service.batch_size == 250


@pytest.mark.parametrize("value", ["0", "-5"])
def test_batch_size_below_one_is_rejected(async_db_session, monkeypatch, value):
    monkeypatch.setenv("EPA_SYNC_BATCH_SIZE", value)

    with pytest.raises(ValueError):
        EpaSyncService(async_db_session)


async def test_download_returns_body(async_db_session, sample_csv_text):
    response = httpx.Response(200, text=sample_csv_text, request=httpx.Request("GET", CSV_URL))

    with patch.object(httpx.AsyncClient, "get", AsyncMock(return_value=response)) as get:
        text = await EpaSyncService(async_db_session, csv_url=CSV_URL).download_csv()

    get.assert_awaited_once_with(CSV_URL)
    assert text == sample_csv_text


async def test_download_http_status_error(async_db_session):
    response = httpx.Response(404, text="missing", request=httpx.Request("GET", CSV_URL))

    with patch.object(httpx.AsyncClient, "get", AsyncMock(return_value=response)):
        with pytest.raises(EpaSyncError):
            await EpaSyncService(async_db_session, csv_url=CSV_URL).download_csv()


async def test_download_transport_error(async_db_session):
    with patch.object(httpx.AsyncClient, "get", AsyncMock(side_effect=httpx.ConnectError("refused"))):
        with pytest.raises(EpaSyncError):
            await EpaSyncService(async_db_session, csv_url=CSV_URL).sync()


async def test_sync_upserts_and_reports_total(async_db_session, sample_csv_text):
    service = EpaSyncService(async_db_session, csv_url=CSV_URL, batch_size=2)

    with patch.object(EpaSyncService, "download_csv", AsyncMock(return_value=sample_csv_text)):
        first = await service.sync()
        second = await service.sync()

    assert first == {"total": 4}
    assert second == {"total": 4}
    assert await service.repository.list_years() == [2024, 2023, 2022]


async def test_malformed_csv_becomes_sync_error(async_db_session):
    with pytest.raises(EpaSyncError) as exc_info:
        await EpaSyncService(async_db_session).import_text("make,model\nToyota,Camry\n")

    assert "year" in str(exc_info.value)


async def test_import_parses_off_the_event_loop(async_db_session, sample_csv_text):
    service = EpaSyncService(async_db_session, batch_size=10)
    offload = AsyncMock(return_value=[])

    with patch("services.epa_sync.run_in_threadpool", offload):
        result = await service.import_text(sample_csv_text)

    assert result == {"total": 0}
    offload.assert_awaited_once_with(parse_vehicle_csv, sample_csv_text, DedupePolicy.LOWEST_MPG)


async def test_unclosed_quote_becomes_sync_error(async_db_session):
    with pytest.raises(EpaSyncError) as exc_info:
        await EpaSyncService(async_db_session).import_text('year,make,model,comb08\n2024,"Honda,Civic,30\n')

    assert "could not be parsed" in str(exc_info.value)
