"""Tests for the Alpine.js + htmx adapter."""

from __future__ import annotations

import json
import re
from typing import Any

import pytest

from formweave import StateStore, TreeBuilder, build
from formweave.adapters import AlpineHtmxAdapter, RenderContext, RenderMode
from formweave.adapters.alpine_htmx import _RENDERERS, STATE_SCRIPT_ID, state_json
from formweave.runtime.builder import Definition
from formweave.specs.nodes import NodeKind


def render(view: Definition, store: StateStore | None = None, **context: Any) -> str:
    store = store if store is not None else StateStore()
    tree = build(view, store)
    ctx = RenderContext(title="Test", **context)
    return AlpineHtmxAdapter().render(tree, store, RenderMode.PARTIAL, ctx)


class TestDispatch:
    def test_every_kind_has_a_renderer(self) -> None:
        assert set(_RENDERERS) == set(NodeKind)


class TestInputs:
    def test_text_field_posts_without_swap(self) -> None:
        html = render(lambda ui: ui.text_field("name", placeholder="Name"))
        assert 'hx-post="/update"' in html
        assert 'hx-swap="none"' in html
        assert 'x-model="name"' in html
        assert 'placeholder="Name"' in html

    def test_text_field_without_sync(self) -> None:
        html = render(lambda ui: ui.text_field("draft", submit=False))
        assert "hx-post" not in html

    def test_checkbox_rerenders(self) -> None:
        html = render(lambda ui: ui.checkbox("agree", "Agree"), StateStore({"agree": True}))
        assert 'hx-post="/update?render=1"' in html
        assert 'hx-target="#app-container"' in html
        assert " checked" in html

    def test_select_marks_current(self) -> None:
        html = render(lambda ui: ui.select("color", ["red", "green"], default="green"))
        assert re.search(r'<option value="green" selected>green</option>', html)
        assert '<option value="red">red</option>' in html

    def test_radio_group(self) -> None:
        html = render(lambda ui: ui.radio_group("size", ["S", "M"], default="M"))
        assert html.count('type="radio"') == 2
        assert 'value="M" checked' in html

    def test_checkbox_group_has_sentinel(self) -> None:
        def view(ui: TreeBuilder) -> None:
            ui.checkbox_group("tags", ["a", "b"], select_all="All", select_none="None")

        html = render(view)
        assert 'type="hidden" name="tags" value="" data-fw-sentinel' in html
        assert "tags = []" in html
        assert "All" in html

    def test_route_prefix(self) -> None:
        html = render(lambda ui: ui.button("Go"), route_prefix="/apps/abc")
        assert 'hx-post="/apps/abc/action/go_1"' in html


class TestEscaping:
    def test_values_are_escaped(self) -> None:
        store = StateStore({"name": '"><script>x</script>'})
        html = render(lambda ui: ui.text_field("name"), store)
        assert "<script>x" not in html.split(f'id="{STATE_SCRIPT_ID}"')[0]

    def test_text_is_escaped(self) -> None:
        html = render(lambda ui: ui.text("<b>bold</b>"))
        assert "<p>&lt;b&gt;bold&lt;/b&gt;</p>" in html

    def test_html_is_raw(self) -> None:
        html = render(lambda ui: ui.html("<b>bold</b>"))
        assert "<b>bold</b>" in html

    def test_state_script_cannot_close_early(self) -> None:
        assert "</script>" not in state_json({"x": "</script>"})
        assert json.loads(state_json({"x": "</script>"})) == {"x": "</script>"}


class TestContainersAndForms:
    def test_nested_containers(self) -> None:
        def view(ui: TreeBuilder) -> None:
            with ui.card(css_class="wide"):
                with ui.collapsible("More", expanded=True):
                    ui.text("inside")

        html = render(view)
        assert 'class="card wide"' in html
        assert "{ open: true }" in html
        assert html.index("card wide") < html.index("inside")

    def test_form_scope(self) -> None:
        def view(ui: TreeBuilder) -> None:
            with ui.form("profile", cancel="Reset"):
                ui.text_field("city")

        html = render(view)
        assert 'data-form="profile"' in html
        assert 'name="profile[city]"' in html
        assert 'hx-post="/form/profile"' in html
        assert "Reset" in html
        # Scoped fields only post with the form
        assert 'hx-post="/update"' not in html


class TestPageFurniture:
    def test_notices(self) -> None:
        html = render(lambda ui: ui.text("x"), notices=("Handler failed <oops>",))
        assert 'role="alert"' in html
        assert "&lt;oops&gt;" in html

    def test_one_shot_submit(self) -> None:
        assert "fw-submit" in render(lambda ui: ui.text("x"), one_shot=True)
        assert "fw-submit" not in render(lambda ui: ui.text("x"))

    def test_full_document(self) -> None:
        store = StateStore()
        tree = build(lambda ui: ui.text_field("name"), store)
        html = AlpineHtmxAdapter().render(
            tree, store, RenderMode.FULL, RenderContext(title="Full <page>", layout="wide")
        )
        assert html.startswith("<!DOCTYPE html>")
        assert "Full &lt;page&gt;" in html
        assert "htmx" in html

    @pytest.mark.parametrize("level", [1, 3, 6])
    def test_header_levels(self, level: int) -> None:
        html = render(lambda ui: ui.header("T", level=level))
        assert f"<h{level}>T</h{level}>" in html


class TestLayoutAndFeedback:
    def test_tag_buttons_select_one(self) -> None:
        html = render(
            lambda ui: ui.tag_buttons("priority", ["High Priority", "Low"]),
            StateStore({"priority": "low"}),
        )
        assert html.count('class="tag-btn"') == 1
        assert html.count('class="tag-btn tag-btn-selected"') == 1
        assert 'hx-vals="{&#34;priority&#34;: &#34;high_priority&#34;}"' in html
        assert 'hx-post="/update?render=1"' in html
        assert 'type="hidden" id="input-priority" name="priority" x-model="priority"' in html
        assert "tag-buttons-default" in html

    def test_tag_buttons_in_form_stay_local(self) -> None:
        def view(ui: TreeBuilder) -> None:
            with ui.form("review"):
                ui.tag_buttons("verdict", ["Keep", "Drop"], style="destructive")

        html = render(view)
        assert 'name="review[verdict]"' in html
        assert "_form.verdict = &#34;keep&#34;" in html
        assert "hx-vals" not in html
        assert "tag-buttons-destructive" in html

    def test_columns_apply_widths_in_order(self) -> None:
        def view(ui: TreeBuilder) -> None:
            with ui.columns(widths=["30%"]):
                with ui.column():
                    ui.text("Left")
                with ui.column(css_class="main"):
                    ui.text("Right")

        html = render(view)
        assert 'style="display: flex; gap: 1rem;"' in html
        assert 'class="fw-column" style="flex: 1 1 30%; min-width: 0;"' in html
        assert 'class="fw-column main" style="flex: 1 1 0; min-width: 0;"' in html
        assert html.index("Left") < html.index("Right")

    def test_alert(self) -> None:
        def view(ui: TreeBuilder) -> None:
            with ui.alert("error", title="<Failed>"):
                ui.text("Retry later")

        html = render(view)
        assert 'class="fw-alert fw-alert-error"' in html
        assert "&lt;Failed&gt;" in html
        assert "Retry later" in html
        assert "dismissed" not in html

    def test_dismissible_alert(self) -> None:
        def view(ui: TreeBuilder) -> None:
            with ui.alert("info", dismissible=True):
                ui.text("FYI")

        html = render(view)
        assert 'x-show="!dismissed"' in html
        assert 'aria-label="Dismiss"' in html

    @pytest.mark.parametrize(
        ("status", "label"),
        [("strong", "Strong"), ("maybe", "Maybe"), ("skip", "Skip"), ("other", "Unknown")],
    )
    def test_status_badge(self, status: str, label: str) -> None:
        html = render(lambda ui: ui.status_badge(status, "Because <reasons>"))
        assert f">{label}</span>" in html
        assert "&lt;reasons&gt;" in html

    def test_progress_bar_is_clamped(self) -> None:
        html = render(lambda ui: ui.progress_bar(150, max_value=100, variant="success"))
        assert 'style="width: 100%;"' in html
        assert 'class="fw-progress fw-progress-success"' in html
        assert 'aria-valuenow="150"' in html

    def test_progress_bar_zero_max(self) -> None:
        html = render(lambda ui: ui.progress_bar(3, max_value=0, show_label=False))
        assert 'style="width: 0%;"' in html
        assert "fw-progress-label" not in html

    def test_external_link(self) -> None:
        html = render(lambda ui: ui.external_link_button("Docs", "https://example.org/?a=1&b=2"))
        assert 'href="https://example.org/?a=1&amp;b=2"' in html
        assert 'target="_blank"' in html
        assert "hx-post" not in html

    def test_external_link_submits_in_one_shot(self) -> None:
        def view(ui: TreeBuilder) -> None:
            ui.external_link_button("Open", "https://example.org", submit=True)

        assert "<a " in render(view)
        html = render(view, one_shot=True)
        assert html.count('hx-post="/submit"') == 2
        assert "window.open(&#34;https://example.org&#34;" in html
