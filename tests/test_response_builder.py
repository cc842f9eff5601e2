from actionflow.actions.protocol import (
    Redirect,
    RenderComponent,
    RenderPage,
    RenderPartial,
    StreamAction,
    TurboFrameConfig,
)
from actionflow.dsl.response_builder import ResponseBuilder
from actionflow.dsl.stream_builder import StreamBuilder


class Card:
    def __init__(self, **locals):
        self.locals = locals

    def render(self):
        return "<div>card</div>"


def test_stream_ops_keep_call_order() -> None:
    stream = StreamBuilder()
    stream.append("list", partial="items/item", locals={"id": 1})
    stream.remove("old")
    stream.update("counter", html="3")

    ops = stream.build()

    assert [op.action for op in ops] == [StreamAction.APPEND, StreamAction.REMOVE, StreamAction.UPDATE]
    assert [op.target for op in ops] == ["list", "old", "counter"]
    assert ops[0].partial == "items/item"
    assert dict(ops[0].locals) == {"id": 1}
    assert ops[2].html == "3"


def test_flash_helper_expands_to_one_update() -> None:
    ops = StreamBuilder().flash(type="alert", message="X").build()

    assert len(ops) == 1
    op = ops[0]
    assert op.action is StreamAction.UPDATE
    assert op.target == "flash"
    assert op.partial == "shared/flash"
    assert dict(op.locals) == {"type": "alert", "message": "X"}


def test_form_errors_and_refresh_and_insertions() -> None:
    ops = (
        StreamBuilder(form_errors_partial="forms/errors")
        .form_errors(errors={"name": ["is blank"]})
        .before("row_2", component=Card)
        .after("row_2", html="<hr>")
        .refresh()
        .build()
    )
    assert ops[0].target == "form_errors"
    assert ops[0].partial == "forms/errors"
    assert dict(ops[0].locals) == {"errors": {"name": ["is blank"]}}
    assert ops[1].action is StreamAction.BEFORE and ops[1].component is Card
    assert ops[2].action is StreamAction.AFTER
    assert ops[3].action is StreamAction.REFRESH and ops[3].target is None


def test_html_slot_last_directive_wins() -> None:
    r = ResponseBuilder()
    r.render_page(status=201)
    r.redirect_to("/home", notice="hi")
    handlers = r.build()
    assert handlers.html == Redirect(path="/home", options={"notice": "hi"})

    r.render_partial("widgets/form", {"a": 1}, status=422)
    assert isinstance(r.build().html, RenderPartial)
    assert r.build().html.status == 422

    r.render_component(Card, {"b": 2})
    assert r.build().html == RenderComponent(component=Card, locals={"b": 2})


def test_generic_callbacks_fill_their_slots() -> None:
    r = ResponseBuilder()

    @r.json
    def as_json(ctx):
        return {"ok": True}

    r.csv(lambda ctx: [])
    r.xml(lambda ctx: {})
    r.html(lambda ctx: "<p>hi</p>")
    handlers = r.build()
    assert handlers.json is as_json
    assert callable(handlers.csv) and callable(handlers.xml) and callable(handlers.html)
    assert handlers.turbo_stream is None


def test_turbo_stream_and_frame_blocks() -> None:
    r = ResponseBuilder()
    r.turbo_stream(lambda s: s.prepend("list", partial="items/item").flash(message="Saved"))
    r.turbo_frame(lambda f: f.component(Card, {"x": 1}))
    handlers = r.build()

    assert [op.action for op in handlers.turbo_stream] == [StreamAction.PREPEND, StreamAction.UPDATE]
    assert handlers.turbo_frame == TurboFrameConfig(kind="component", target=Card, locals={"x": 1})
    assert handlers.turbo_frame.layout is False


def test_frame_render_page_and_layout() -> None:
    r = ResponseBuilder()
    r.turbo_frame(lambda f: f.render_page(status=422).layout(True))
    frame = r.build().turbo_frame
    assert frame.kind == "page"
    assert frame.status == 422
    assert frame.layout is True


def test_render_page_default_status_is_unset() -> None:
    assert ResponseBuilder().render_page().build().html == RenderPage(status=None)
