import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient
from starlette.requests import Request

from actionflow.actions.protocol import Format
from actionflow.api.request import ActionRequest, negotiate_format, split_format_extension
from actionflow.errors import ParameterError

TURBO_ACCEPT = "text/vnd.turbo-stream.html, text/html"


@pytest.mark.parametrize(
    "params, accept, path, expected",
    [
        ({"format": "JSON"}, "text/html", "/reports", Format.JSON),
        ({"format": "pdf"}, "text/html", "/reports", "pdf"),
        ({}, "text/html", "/reports/1.csv", Format.CSV),
        ({}, "text/html", "/reports/v1.2/list", Format.HTML),
        ({}, "", "/reports", Format.HTML),
        ({}, "application/xml;q=0.9", "/reports", Format.XML),
        ({}, "image/*", "/reports", Format.HTML),
        ({}, "application/pdf", "/reports", "pdf"),
        ({}, TURBO_ACCEPT, "/reports", Format.TURBO_STREAM),
    ],
)
def test_negotiate_format(params, accept, path, expected) -> None:
    assert negotiate_format(params, {"accept": accept}, path) == expected


def test_turbo_stream_ignored_when_disabled() -> None:
    assert negotiate_format({}, {"accept": TURBO_ACCEPT}, "/", turbo_enabled=False) == Format.HTML


def test_requested_format_overrides_negotiation() -> None:
    request = ActionRequest(headers={"Accept": "application/json"}, requested_format="csv")
    assert request.format == Format.CSV


def test_turbo_helpers_and_headers() -> None:
    request = ActionRequest(
        headers={"Turbo-Frame": "modal", "Accept": TURBO_ACCEPT, "User-Agent": "Turbo Native iOS"},
    )
    assert request.header("turbo-frame") == "modal"
    assert request.turbo_frame_request and request.current_turbo_frame == "modal"
    assert request.turbo_stream_request
    assert request.turbo_native_app

    plain = ActionRequest()
    assert not plain.turbo_frame_request and plain.current_turbo_frame is None
    assert not plain.turbo_native_app
    with pytest.raises(LookupError):
        plain.url_for("reports.show", id=1)


def _echo_app() -> FastAPI:
    app = FastAPI()

    @app.post("/things/{id}")
    async def echo(request: Request):
        req = await ActionRequest.from_starlette(request)
        return {"method": req.method, "params": req.params, "path_params": req.path_params, "format": req.format}

    return app


def test_from_starlette_merges_json_body() -> None:
    client = TestClient(_echo_app())
    response = client.post(
        "/things/7?page=2",
        json={"thing": {"name": "a"}, "id": "ignored"},
        headers={"Accept": "application/json"},
    )
    assert response.json() == {
        "method": "POST",
        "params": {"page": "2", "thing": {"name": "a"}, "id": "7"},
        "path_params": {"id": "7"},
        "format": "json",
    }


def test_from_starlette_parses_nested_form() -> None:
    client = TestClient(_echo_app())
    response = client.post(
        "/things/3",
        data={"thing[name]": "b", "thing[tags][]": ["x", "y"]},
        headers={"Accept": "text/html"},
    )
    body = response.json()
    assert body["params"] == {"thing": {"name": "b", "tags": ["x", "y"]}, "id": "3"}
    assert body["format"] == "html"


def test_split_format_extension() -> None:
    assert split_format_extension({"id": "1.json"}) == ({"id": "1"}, "json")
    assert split_format_extension({"slug": "v1.2"}) == ({"slug": "v1.2"}, None)
    assert split_format_extension({"id": ".csv"}) == ({"id": ".csv"}, None)
    assert split_format_extension({"id": 4}) == ({"id": 4}, None)
    assert split_format_extension({}) == ({}, None)


def test_from_starlette_strips_path_extension() -> None:
    client = TestClient(_echo_app())
    body = client.post("/things/7.csv", headers={"Accept": "application/json"}).json()
    assert body["params"] == {"id": "7"}
    assert body["path_params"] == {"id": "7"}
    assert body["format"] == "csv"

    explicit = client.post("/things/7.csv?format=xml").json()
    assert explicit["params"]["id"] == "7"
    assert explicit["format"] == "xml"


def test_from_starlette_rejects_undecodable_body() -> None:
    client = TestClient(_echo_app())
    with pytest.raises(ParameterError):
        client.post("/things/1", content=b"[1,", headers={"Content-Type": "application/json"})
