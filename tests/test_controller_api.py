import pytest
from fastapi.testclient import TestClient

from actionflow.actions.result import Result
from actionflow.api.app import create_app
from actionflow.api.controller import ActionController, action
from actionflow.errors import ActionNotRegisteredError, ServiceError
from helpers import make_request

NOTES = {1: "first", 2: "second"}


class Note:
    def __init__(self, id, body):
        self.id = id
        self.body = body

    def to_dict(self):
        return {"id": self.id, "body": self.body}


class CreateNote:
    @staticmethod
    def call(params):
        if not params.get("body"):
            return {"success": False, "errors": {"body": ["can't be blank"]}}
        return {"success": True, "resource": Note(3, params["body"])}


def find_note(params):
    return {"resource": Note(int(params["id"]), NOTES[int(params["id"])])}


def raise_in_callback(ctx):
    raise RuntimeError("exploded")


class NotesController(ActionController):
    @action()
    def index(a):
        a.service(lambda params: {"collection": [Note(k, v) for k, v in NOTES.items()]})

    @action()
    def show(a):
        a.service(find_note)

    @action()
    def create(a):
        a.service(CreateNote)
        a.permit("body")
        a.on_success(lambda r: r.redirect_to("show", notice="Note saved"))
        a.on_error("validation", lambda r: r.render_page(status=422))

    @action(method="POST", member=True)
    def archive(a):
        a.service(find_note)
        a.on_success(lambda r: r.redirect_to(lambda ctx: f"/notes?archived={ctx.resource.id}"))

    @action()
    def explode(a):
        a.before(raise_in_callback)

    def index_view(self, ctx):
        carried = ctx.flash_now.get("notice")
        notice = f"<p>{carried}</p>" if carried else ""
        return notice + "".join(f"<li>{n.body}</li>" for n in ctx.collection)


@pytest.fixture
def controller(settings, flash_store) -> NotesController:
    return NotesController(settings=settings, flash_store=flash_store)


@pytest.fixture
def client(controller) -> TestClient:
    app = create_app([controller], configure_logging=False)
    return TestClient(app, follow_redirects=False)


def test_health_lists_controllers(client) -> None:
    response = client.get("/health")
    assert response.status_code == 200
    assert response.json() == {"ok": True, "controllers": ["notes"]}


def test_json_show_uses_path_id(client) -> None:
    response = client.get("/notes/2", headers={"Accept": "application/json"})
    assert response.status_code == 200
    assert response.json() == {"resource": {"id": 2, "body": "second"}}


def test_extension_free_format_param(client) -> None:
    response = client.get("/notes", params={"format": "json"})
    assert response.json()["collection"][0] == {"id": 1, "body": "first"}


def test_path_extension_selects_format_and_is_stripped_from_id(client) -> None:
    response = client.get("/notes/2.json")
    assert response.status_code == 200
    assert response.headers["content-type"] == "application/json"
    assert response.json() == {"resource": {"id": 2, "body": "second"}}


def test_malformed_body_is_a_validation_error(client) -> None:
    response = client.post(
        "/notes",
        content=b"{not json",
        headers={"Content-Type": "application/json", "Accept": "application/json"},
    )
    assert response.status_code == 422
    error = response.json()["data"]["error"]
    assert error["type"] == "ParameterError"
    assert list(error["errors"]) == ["body"]

    latin = client.post(
        "/notes",
        content="note[body]=caf\u00e9".encode("latin-1"),
        headers={"Content-Type": "application/x-www-form-urlencoded"},
    )
    assert latin.status_code == 422


def test_create_redirects_to_named_route_and_flash_survives_one_request(client) -> None:
    created = client.post("/notes", data={"note[body]": "hello"})
    assert created.status_code == 302
    assert created.headers["location"] == "http://testserver/notes/3"
    assert "actionflow_flash" in created.cookies

    page = client.get("/notes")
    assert page.status_code == 200
    assert page.text.startswith("<p>Note saved</p>")

    again = client.get("/notes")
    assert "Note saved" not in again.text


def test_create_validation_failure(client) -> None:
    html = client.post("/notes", data={"note[body]": ""})
    assert html.status_code == 422

    api = client.post("/notes", json={"note": {"body": ""}}, headers={"Accept": "application/json"})
    assert api.status_code == 422
    assert api.json()["errors"] == {"body": ["can't be blank"]}
    assert api.json()["type"] == "validation"


def test_member_action_route(client) -> None:
    response = client.post("/notes/1/archive")
    assert response.status_code == 302
    assert response.headers["location"] == "/notes?archived=1"


def test_turbo_stream_request(client) -> None:
    response = client.get("/notes/1", headers={"Accept": "text/vnd.turbo-stream.html, text/html"})
    assert response.headers["content-type"].startswith("text/vnd.turbo-stream.html")
    assert response.text.startswith('<turbo-stream action="update" target="flash">')


def test_unknown_accept_is_406(client) -> None:
    assert client.get("/notes", headers={"Accept": "application/pdf"}).status_code == 406


def test_unhandled_exception_becomes_error_envelope(client) -> None:
    response = client.get("/notes/explode", headers={"Accept": "application/json"})
    assert response.status_code == 500
    assert response.json()["data"]["error"] == {"type": "RuntimeError", "message": "exploded"}
    assert response.json()["meta"] == {"version": "v1"}


def test_unregistered_action(controller) -> None:
    with pytest.raises(ActionNotRegisteredError):
        controller.dispatch("missing", make_request())


def test_register_action_at_runtime(settings, flash_store) -> None:
    class ArchivedNotesController(ActionController):
        pass

    ArchivedNotesController.register_action("ping", lambda a: a.service(lambda params: {"pong": True}))
    controller = ArchivedNotesController(settings=settings, flash_store=flash_store)

    assert ArchivedNotesController.controller_name() == "archived_notes"
    assert "ping" in ArchivedNotesController.registered_actions()
    assert "ping" not in NotesController.registered_actions()
    assert controller.ping(make_request("json")).body == b'{"pong":true}'


def test_subclass_inherits_and_extends_actions(settings, flash_store) -> None:
    class PinnedNotesController(NotesController):
        resource_name = "pinned"

        @action()
        def pin(a):
            a.service(lambda params: {"pinned": True})

    names = set(PinnedNotesController.registered_actions().as_dict())
    assert {"index", "show", "create", "pin"} <= names
    assert "pin" not in NotesController.registered_actions()


def test_execute_action_and_unwrap(controller) -> None:
    ok = controller.execute_action(lambda: controller.unwrap(Result({"id": 1})), status=201, meta={"x": 1})
    assert ok.status_code == 201
    assert ok.body == b'{"data":{"id":1},"meta":{"version":"v1","x":1}}'

    failed = controller.execute_action(
        lambda: controller.unwrap(Result.failure(None, "Nope", status=409, errors={"a": ["b"]}))
    )
    assert failed.status_code == 409
    assert b'"errors":{"a":["b"]}' in failed.body


def test_service_error_defaults_to_422(controller) -> None:
    response = controller.handle_exception(ServiceError(None, {"message": "x"}))
    assert response.status_code == 422


def test_service_error_lists_errors_once(controller) -> None:
    error = ServiceError(None, {"message": "x", "errors": {"a": ["b"]}, "status": 409})
    response = controller.handle_exception(error)
    assert response.status_code == 409
    assert response.body == (
        b'{"data":{"error":{"type":"ServiceError","message":"x","errors":{"a":["b"]}}},"meta":{"version":"v1"}}'
    )


def test_turbo_redirect_is_303(controller) -> None:
    response = controller.turbo_redirect_to("/notes")
    assert response.status_code == 303
    assert response.headers["location"] == "/notes"
