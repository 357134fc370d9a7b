import pytest
import requests

from omnilsp.errors import NetworkError, ParseError
from omnilsp.provisioning.releases import fetch_releases, latest_available
from tests.helpers import CATALOG_URL, FakeResponse, FakeSession, catalog


def test_fetch_releases_preserves_order_and_trims_names() -> None:
    session = FakeSession({CATALOG_URL: FakeResponse(json_data=[{"name": " v1.1.0\n"}, {"name": "v1.0.0"}])})

    entries = fetch_releases(CATALOG_URL, session=session)

    assert [entry.name for entry in entries] == ["v1.1.0", "v1.0.0"]
    assert session.calls == [CATALOG_URL]


def test_fetch_releases_ignores_extra_fields() -> None:
    session = FakeSession({CATALOG_URL: catalog("v1.0.0")})

    assert fetch_releases(CATALOG_URL, session=session)[0].name == "v1.0.0"


@pytest.mark.parametrize(
    "route",
    [
        FakeResponse(status_code=500, json_data=[]),
        FakeResponse(status_code=404),
        requests.ConnectionError("unreachable"),
        requests.Timeout("timed out"),
    ],
)
def test_transport_failures_raise_network_error(route) -> None:
    session = FakeSession({CATALOG_URL: route})

    with pytest.raises(NetworkError):
        fetch_releases(CATALOG_URL, session=session)


@pytest.mark.parametrize(
    "response",
    [
        FakeResponse(content=b"<html>rate limited</html>"),
        FakeResponse(json_data={"message": "Not Found"}),
        FakeResponse(json_data=[{"tag": "v1.0.0"}]),
        FakeResponse(json_data=["v1.0.0"]),
    ],
)
def test_malformed_catalog_raises_parse_error(response: FakeResponse) -> None:
    session = FakeSession({CATALOG_URL: response})

    with pytest.raises(ParseError):
        fetch_releases(CATALOG_URL, session=session)


def test_latest_available_filters_out_untagged_names() -> None:
    session = FakeSession({CATALOG_URL: catalog("nightly", "v1.9.0", "2.0.0", "v1.10.0")})

    assert latest_available(fetch_releases(CATALOG_URL, session=session)) == "v1.10.0"


def test_latest_available_of_empty_catalog() -> None:
    assert latest_available([]) is None
