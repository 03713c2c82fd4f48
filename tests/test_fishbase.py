import pandas as pd
import pytest
import requests

from marine_species_integration.data_collection import api, fishbase
from marine_species_integration.exceptions import ExternalServiceError


@pytest.fixture(autouse=True)
def no_sleep(monkeypatch):
    monkeypatch.setattr(api.time, "sleep", lambda seconds: None)


def test_fetch_table_queries_each_name_once(fake_session, fake_response):
    session = fake_session(
        [
            fake_response({"data": [{"Species": "Gadus morhua", "SpecCode": 69, "TempMin": "2.5", "TempMax": "x"}]}),
            fake_response({"data": [{"Species": "Mola mola", "SpecCode": 1734, "TempMin": 12}]}),
        ]
    )
    out = fishbase.stocks(
        ["Gadus morhua", " Gadus  morhua ", None, "Mola mola"],
        fields=["Species", "SpecCode", "TempMin", "TempMax"],
        base_url="https://fishbase.test/",
        session=session,
    )
    assert [c[1]["Species"] for c in session.calls] == ["Gadus morhua", "Mola mola"]
    assert session.calls[0][0] == "https://fishbase.test/stocks"
    assert session.calls[0][1]["fields"] == "Species,SpecCode,TempMin,TempMax"
    assert list(out.columns) == ["Species", "SpecCode", "TempMin", "TempMax"]
    assert out["TempMin"].tolist() == [2.5, 12.0]
    assert out["TempMax"].isna().all()


def test_requested_fields_always_present(fake_session, fake_response):
    session = fake_session([fake_response({"data": [{"Species": "Mola mola"}]})])
    out = fishbase.species(["Mola mola"], base_url="https://fishbase.test", session=session)
    assert list(out.columns) == fishbase.SPECIES_FIELDS
    assert out["DepthRangeDeep"].isna().all()


def test_empty_lookup_is_fatal(fake_session, fake_response):
    session = fake_session([fake_response({"data": []})])
    with pytest.raises(ExternalServiceError):
        fishbase.lookup(["Nemo fictus"], ["Species", "TempMin"], base_url="https://fishbase.test", session=session)


def test_error_payload_is_fatal(fake_session, fake_response):
    session = fake_session([fake_response({"error": "table not found", "data": None})])
    with pytest.raises(ExternalServiceError):
        fishbase.stocks(["Mola mola"], base_url="https://fishbase.test", session=session)


def test_validate_names_prefers_accepted_names(fake_session, fake_response):
    session = fake_session(
        [
            fake_response(
                {
                    "data": [
                        {"synonym": "Morone saxatilis", "Species": "Other name", "Status": "misapplied name"},
                        {"synonym": "Morone saxatilis", "Species": "Morone saxatilis", "Status": "accepted name"},
                    ]
                }
            ),
            fake_response({"data": []}),
            fake_response({"data": [{"synonym": "Serranus marginatus", "Species": "Epinephelus marginatus", "Status": "synonym"}]}),
        ]
    )
    names = fishbase.validate_names(
        ["Morone saxatilis", "Nemo fictus", "Serranus marginatus"],
        base_url="https://fishbase.test",
        session=session,
    )
    assert names == ["Morone saxatilis", "Epinephelus marginatus"]
    assert session.calls[0][0] == "https://fishbase.test/synonyms"


def test_validate_names_with_no_match(fake_session, fake_response):
    session = fake_session([fake_response({"data": []})])
    with pytest.raises(ExternalServiceError):
        fishbase.validate_names(["Nemo fictus"], base_url="https://fishbase.test", session=session)


def test_rate_limited_requests_back_off_then_succeed(fake_session, fake_response):
    session = fake_session([fake_response(status_code=429, text="slow down"), fake_response({"ok": True})])
    assert api.make_request("https://fishbase.test/x", session=session) == {"ok": True}
    assert len(session.calls) == 2


def test_persistent_server_errors_are_fatal(fake_session, fake_response):
    session = fake_session([fake_response(status_code=503, text="down") for _ in range(3)])
    with pytest.raises(ExternalServiceError):
        api.make_request("https://fishbase.test/x", session=session, max_attempts=3)
    assert len(session.calls) == 3


def test_client_errors_are_not_retried(fake_session, fake_response):
    session = fake_session([fake_response(status_code=404, text="missing")])
    with pytest.raises(ExternalServiceError):
        api.make_request("https://fishbase.test/x", session=session)
    assert len(session.calls) == 1


def test_connection_errors_are_fatal():
    class Broken:
        def get(self, url, params=None, timeout=None):
            raise requests.ConnectionError("unreachable")

    with pytest.raises(ExternalServiceError):
        api.make_request("https://fishbase.test/x", session=Broken())


def test_non_json_body(fake_session, fake_response):
    session = fake_session([fake_response(None, text="<html>")])
    with pytest.raises(ExternalServiceError):
        api.make_request("https://fishbase.test/x", session=session)


def test_coerce_numeric_leaves_text_columns():
    df = pd.DataFrame({"Species": ["Gadus morhua"], "Weight": ["96000"], "Length": ["n/a"]})
    out = fishbase.coerce_numeric(df)
    assert out["Weight"].tolist() == [96000]
    assert out["Length"].isna().all()
    assert out["Species"].tolist() == ["Gadus morhua"]
