"""
Alpine.js + htmx adapter.

Alpine keeps a client-side mirror of the State Store (``x-data`` on the
anchor, ``x-model`` on every bound control). htmx posts the bound controls
back to the server and swaps the anchor contents with the re-rendered tree.

Scoped forms get their own Alpine scope (``_form`` and ``_original``); their
fields post as ``form[field]`` and only on the form's submit button.
"""

from __future__ import annotations

import json
from collections.abc import Callable, Iterable
from typing import Any

from markupsafe import Markup

from formweave.adapters.base import Adapter, RenderContext, RenderMode, render_template
from formweave.adapters.markdown import markdown_to_html
from formweave.runtime.builder import tag_value
from formweave.runtime.coercion import LIST_SENTINEL
from formweave.runtime.state import StateStore
from formweave.specs.nodes import ComponentTree, Node, NodeKind

ANCHOR_ID = "app-container"
STATE_SCRIPT_ID = "fw-state-data"
SENTINEL_ATTR = "data-fw-sentinel"

# Every control bound to the mirror, plus the empty-list sentinels
INPUT_SELECTOR = f"[x-model], [{SENTINEL_ATTR}]"

TEXT_TRIGGER = "keyup changed delay:500ms"

_STATUS_BADGES = {
    "strong": ("🟢", "Strong"),
    "maybe": ("🟡", "Maybe"),
    "skip": ("🔴", "Skip"),
    "unknown": ("⚪", "Unknown"),
}

_ALERT_ICONS = {"info": "ℹ", "success": "✓", "warning": "⚠", "error": "✕"}


def _attrs(attrs: dict[str, Any]) -> Markup:
    """Serialize attributes; ``True`` emits a bare attribute, ``None``/``False`` drop it."""
    parts: list[Markup] = []
    for name, value in attrs.items():
        if value is None or value is False:
            continue
        if value is True:
            parts.append(Markup(" {}").format(name))
        else:
            parts.append(Markup(' {}="{}"').format(name, value))
    return Markup("").join(parts)


def _tag(name: str, attrs: dict[str, Any], content: Any = "") -> Markup:
    return Markup("<{0}{1}>{2}</{0}>").format(Markup(name), _attrs(attrs), content)


def _void(name: str, attrs: dict[str, Any]) -> Markup:
    return Markup("<{0}{1}>").format(Markup(name), _attrs(attrs))


def state_json(data: Any) -> str:
    """JSON for embedding inside a ``<script>`` element."""
    return json.dumps(data, default=str).replace("</", "<\\/")


class _RenderPass:
    """Renders one tree against one store."""

    def __init__(self, store: StateStore, context: RenderContext) -> None:
        self.store = store
        self.context = context

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    def nodes(self, nodes: Iterable[Node]) -> Markup:
        return Markup("").join(self.node(node) for node in nodes)

    def node(self, node: Node) -> Markup:
        return _RENDERERS[node.kind](self, node)

    def value(self, node: Node) -> Any:
        if node.scope is None:
            return self.store.get(node.key or "")
        buffer = self.store.get(node.scope) or {}
        return buffer.get(node.key)

    def binding(self, node: Node) -> dict[str, Any]:
        if node.scope is not None:
            return {
                "id": f"input-{node.scope}-{node.key}",
                "name": f"{node.scope}[{node.key}]",
                "x-model": f"_form.{node.key}",
            }
        return {"id": f"input-{node.key}", "name": node.key, "x-model": node.key}

    def sync(self, node: Node, *, rerender: bool) -> dict[str, Any]:
        """htmx attributes for top-level controls; scoped controls never sync."""
        if node.scope is not None or not node.options.get("submit", True):
            return {}
        if rerender:
            return {
                "hx-post": self.context.url("/update?render=1"),
                "hx-include": INPUT_SELECTOR,
                "hx-target": f"#{ANCHOR_ID}",
                "hx-swap": "innerHTML scroll:false",
                "hx-trigger": "change",
            }
        return {
            "hx-post": self.context.url("/update"),
            "hx-include": INPUT_SELECTOR,
            "hx-swap": "none",
            "hx-trigger": TEXT_TRIGGER,
        }

    # ------------------------------------------------------------------
    # Inputs
    # ------------------------------------------------------------------

    def text_field(self, node: Node) -> Markup:
        attrs = {
            "type": "text",
            **self.binding(node),
            "value": self.value(node) or "",
            "placeholder": node.options.get("placeholder") or None,
            **self.sync(node, rerender=False),
        }
        return _void("input", attrs)

    def text_area(self, node: Node) -> Markup:
        attrs = {
            **self.binding(node),
            "rows": node.options.get("rows", 3),
            "placeholder": node.options.get("placeholder") or None,
            **self.sync(node, rerender=False),
        }
        return _tag("textarea", attrs, self.value(node) or "")

    def checkbox(self, node: Node) -> Markup:
        box = _void(
            "input",
            {
                "type": "checkbox",
                **self.binding(node),
                "value": "true",
                "checked": bool(self.value(node)),
                **self.sync(node, rerender=True),
            },
        )
        return _tag("label", {"class": "checkbox"}, Markup("{} {}").format(box, node.label or ""))

    def select(self, node: Node) -> Markup:
        current = self.value(node)
        options = Markup("").join(
            _tag("option", {"value": choice, "selected": current == choice}, choice)
            for choice in node.options.get("choices", [])
        )
        return _tag("select", {**self.binding(node), **self.sync(node, rerender=True)}, options)

    def radio_group(self, node: Node) -> Markup:
        current = self.value(node)
        binding = self.binding(node)
        binding.pop("id")
        items = []
        for choice in node.options.get("choices", []):
            radio = _void(
                "input",
                {
                    "type": "radio",
                    **binding,
                    "value": choice,
                    "checked": current == choice,
                    **self.sync(node, rerender=True),
                },
            )
            items.append(
                _tag("label", {"class": "radio-option"}, radio + _tag("span", {}, choice))
            )
        return _tag("div", {"class": "radio-group"}, Markup("").join(items))

    def checkbox_group(self, node: Node) -> Markup:
        current = self.value(node) or []
        choices = list(node.options.get("choices", []))
        binding = self.binding(node)
        binding.pop("id")
        model = binding["x-model"]

        parts: list[Markup] = [
            _void(
                "input",
                {
                    "type": "hidden",
                    "name": binding["name"],
                    "value": LIST_SENTINEL,
                    SENTINEL_ATTR: True,
                },
            )
        ]

        actions: list[Markup] = []
        if node.options.get("select_all"):
            actions.append(
                _tag(
                    "button",
                    {
                        "type": "button",
                        "class": "btn btn-sm",
                        "@click": f"{model} = {json.dumps(choices)}",
                    },
                    node.options["select_all"],
                )
            )
        if node.options.get("select_none"):
            actions.append(
                _tag(
                    "button",
                    {"type": "button", "class": "btn btn-sm", "@click": f"{model} = []"},
                    node.options["select_none"],
                )
            )
        if actions:
            parts.append(_tag("div", {"class": "checkbox-group-actions"}, Markup("").join(actions)))

        for choice in choices:
            box = _void(
                "input",
                {
                    "type": "checkbox",
                    **binding,
                    "value": choice,
                    "checked": choice in current,
                    **self.sync(node, rerender=True),
                },
            )
            parts.append(_tag("label", {"class": "checkbox-item"}, box + _tag("span", {}, choice)))

        return _tag("div", {"class": "checkbox-group"}, Markup("").join(parts))

    def tag_buttons(self, node: Node) -> Markup:
        current = self.value(node)
        binding = self.binding(node)
        model = binding["x-model"]
        parts: list[Markup] = [_void("input", {"type": "hidden", **binding, "value": current})]
        for tag in node.options.get("choices", []):
            value = tag_value(tag)
            attrs: dict[str, Any] = {
                "type": "button",
                "class": "tag-btn tag-btn-selected" if current == value else "tag-btn",
                "@click": f"{model} = {json.dumps(value)}",
            }
            if node.scope is None:
                attrs.update(
                    {
                        "hx-post": self.context.url("/update?render=1"),
                        "hx-vals": json.dumps({node.key: value}),
                        "hx-include": INPUT_SELECTOR,
                        "hx-target": f"#{ANCHOR_ID}",
                        "hx-swap": "innerHTML scroll:false",
                    }
                )
            parts.append(_tag("button", attrs, tag))
        style = "destructive" if node.options.get("style") == "destructive" else "default"
        return _tag("div", {"class": f"tag-buttons tag-buttons-{style}"}, Markup("").join(parts))

    # ------------------------------------------------------------------
    # Actions
    # ------------------------------------------------------------------

    def button(self, node: Node) -> Markup:
        attrs: dict[str, Any] = {
            "type": "button",
            "class": f"btn btn-{node.options.get('style', 'primary')}",
        }
        if node.options.get("submit", True):
            attrs.update(
                {
                    "hx-post": self.context.url(f"/action/{node.node_id}"),
                    "hx-include": INPUT_SELECTOR,
                    "hx-target": f"#{ANCHOR_ID}",
                    "hx-swap": "innerHTML scroll:false",
                }
            )
        return _tag("button", attrs, node.label or "")

    def external_link_button(self, node: Node) -> Markup:
        url = node.options.get("url", "")
        css_class = "btn btn-primary external-link-btn"
        if node.options.get("submit") and self.context.one_shot:
            attrs = {
                "type": "button",
                "class": css_class,
                "hx-post": self.context.url("/submit"),
                "hx-include": INPUT_SELECTOR,
                "hx-target": "body",
                "hx-swap": "innerHTML",
                "@click": f"setTimeout(() => window.open({json.dumps(url)}, '_blank'), 100)",
            }
            return _tag("button", attrs, node.label or "")
        attrs = {"href": url, "target": "_blank", "rel": "noopener", "class": css_class}
        return _tag("a", attrs, node.label or "")

    # ------------------------------------------------------------------
    # Display
    # ------------------------------------------------------------------

    def text(self, node: Node) -> Markup:
        return _tag("p", {}, node.label or "")

    def header(self, node: Node) -> Markup:
        return _tag(f"h{node.options.get('level', 2)}", {}, node.label or "")

    def markdown(self, node: Node) -> Markup:
        return _tag("div", {"class": "markdown-content"}, markdown_to_html(node.label or ""))

    def html(self, node: Node) -> Markup:
        return Markup(node.label or "")

    def status_badge(self, node: Node) -> Markup:
        status = node.options.get("status", "")
        if status not in _STATUS_BADGES:
            status = "unknown"
        icon, label = _STATUS_BADGES[status]
        content = _tag("span", {"class": "status-badge-icon"}, icon) + _tag(
            "span", {"class": "status-badge-label"}, label
        )
        if node.label:
            content += _tag("span", {"class": "status-badge-reasoning"}, f" · {node.label}")
        return _tag("span", {"class": f"status-badge status-badge-{status}"}, content)

    def progress_bar(self, node: Node) -> Markup:
        value = float(node.options.get("value", 0))
        maximum = float(node.options.get("max", 100))
        percentage = round(value / maximum * 100) if maximum > 0 else 0
        percentage = max(0, min(100, percentage))
        css_class = f"fw-progress fw-progress-{node.options.get('variant', 'primary')}"
        if node.options.get("animated"):
            css_class += " fw-progress-animated"
        bar = _tag("div", {"class": "fw-progress-bar", "style": f"width: {percentage}%;"})
        if node.options.get("show_label", True):
            bar += _tag("span", {"class": "fw-progress-label"}, f"{percentage}%")
        attrs = {
            "class": css_class,
            "role": "progressbar",
            "aria-valuenow": f"{value:g}",
            "aria-valuemin": "0",
            "aria-valuemax": f"{maximum:g}",
        }
        return _tag("div", attrs, bar)

    # ------------------------------------------------------------------
    # Containers
    # ------------------------------------------------------------------

    def div(self, node: Node) -> Markup:
        attrs = {"class": node.options.get("css_class"), "style": node.options.get("style")}
        return _tag("div", attrs, self.nodes(node.children))

    def card(self, node: Node) -> Markup:
        css_class = " ".join(filter(None, ["card", node.options.get("css_class")]))
        return _tag("div", {"class": css_class}, self.nodes(node.children))

    def collapsible(self, node: Node) -> Markup:
        expanded = "true" if node.options.get("expanded") else "false"
        header = _tag(
            "div",
            {"class": "collapsible-header", "@click": "open = !open"},
            _tag("span", {"class": "collapsible-icon", "x-text": "open ? '▼' : '▶'"})
            + _tag("span", {"class": "collapsible-label"}, node.label or ""),
        )
        body = _tag(
            "div",
            {"class": "collapsible-content", "x-show": "open", "x-cloak": True},
            self.nodes(node.children),
        )
        attrs = {"class": "collapsible", "x-data": f"{{ open: {expanded} }}"}
        return _tag("div", attrs, header + body)

    def columns(self, node: Node) -> Markup:
        widths = node.options.get("widths") or []
        gap = node.options.get("gap") or "1rem"
        rendered = Markup("").join(
            self.column(child, widths[index] if index < len(widths) else None)
            if child.kind is NodeKind.COLUMN
            else self.node(child)
            for index, child in enumerate(node.children)
        )
        attrs = {"class": "fw-columns", "style": f"display: flex; gap: {gap};"}
        return _tag("div", attrs, rendered)

    def column(self, node: Node, width: str | None = None) -> Markup:
        css_class = " ".join(filter(None, ["fw-column", node.options.get("css_class")]))
        basis = width or "0"
        return _tag(
            "div",
            {"class": css_class, "style": f"flex: 1 1 {basis}; min-width: 0;"},
            self.nodes(node.children),
        )

    def alert(self, node: Node) -> Markup:
        variant = node.options.get("variant", "info")
        content = self.nodes(node.children)
        if node.label:
            content = _tag("strong", {"class": "fw-alert-title"}, node.label) + content
        inner = _tag("span", {"class": "fw-alert-icon"}, _ALERT_ICONS.get(variant, "ℹ")) + _tag(
            "div", {"class": "fw-alert-content"}, content
        )
        attrs: dict[str, Any] = {"class": f"fw-alert fw-alert-{variant}"}
        if node.options.get("dismissible"):
            attrs.update({"x-data": "{ dismissed: false }", "x-show": "!dismissed"})
            inner += _tag(
                "button",
                {
                    "type": "button",
                    "class": "fw-alert-dismiss",
                    "@click": "dismissed = true",
                    "aria-label": "Dismiss",
                },
                "×",
            )
        return _tag("div", attrs, inner)

    def form(self, node: Node) -> Markup:
        name = node.key or ""
        buffer = json.dumps(self.store.get(name) or {}, default=str)
        buttons: list[Markup] = []
        if node.options.get("submit"):
            buttons.append(
                _tag(
                    "button",
                    {
                        "type": "button",
                        "class": "btn btn-primary",
                        "hx-post": self.context.url(f"/form/{name}"),
                        "hx-include": f"[name^='{name}[']",
                        "hx-target": f"#{ANCHOR_ID}",
                        "hx-swap": "innerHTML scroll:false",
                    },
                    node.options["submit"],
                )
            )
        if node.options.get("cancel"):
            buttons.append(
                _tag(
                    "button",
                    {
                        "type": "button",
                        "class": "btn btn-secondary",
                        "@click": "_form = JSON.parse(JSON.stringify(_original))",
                    },
                    node.options["cancel"],
                )
            )
        return _tag(
            "div",
            {
                "class": "fw-form",
                "data-form": name,
                "x-data": f"{{ _form: {buffer}, _original: {buffer} }}",
            },
            self.nodes(node.children)
            + _tag("div", {"class": "fw-form-actions"}, Markup("").join(buttons)),
        )

    # ------------------------------------------------------------------
    # Page furniture
    # ------------------------------------------------------------------

    def notices(self) -> Markup:
        return Markup("").join(
            _tag("div", {"class": "fw-notice fw-notice-error", "role": "alert"}, message)
            for message in self.context.notices
        )

    def one_shot_submit(self) -> Markup:
        if not self.context.one_shot:
            return Markup("")
        button = _tag(
            "button",
            {
                "type": "button",
                "class": "btn btn-primary fw-submit",
                "hx-post": self.context.url("/submit"),
                "hx-include": INPUT_SELECTOR,
                "hx-target": "body",
                "hx-swap": "innerHTML",
            },
            "Submit",
        )
        hint = _tag("p", {"class": "fw-hint"}, "Submit this form to return its data:")
        return _tag("div", {"class": "fw-oneshot"}, hint + button)

    def state_script(self) -> Markup:
        return Markup('<script type="application/json" id="{}">{}</script>').format(
            STATE_SCRIPT_ID, Markup(state_json(self.store.snapshot()))
        )


_RENDERERS: dict[NodeKind, Callable[[_RenderPass, Node], Markup]] = {
    NodeKind.TEXT_FIELD: _RenderPass.text_field,
    NodeKind.TEXT_AREA: _RenderPass.text_area,
    NodeKind.CHECKBOX: _RenderPass.checkbox,
    NodeKind.SELECT: _RenderPass.select,
    NodeKind.RADIO_GROUP: _RenderPass.radio_group,
    NodeKind.CHECKBOX_GROUP: _RenderPass.checkbox_group,
    NodeKind.TAG_BUTTONS: _RenderPass.tag_buttons,
    NodeKind.BUTTON: _RenderPass.button,
    NodeKind.DIV: _RenderPass.div,
    NodeKind.CARD: _RenderPass.card,
    NodeKind.COLLAPSIBLE: _RenderPass.collapsible,
    NodeKind.COLUMNS: _RenderPass.columns,
    NodeKind.COLUMN: _RenderPass.column,
    NodeKind.ALERT: _RenderPass.alert,
    NodeKind.TEXT: _RenderPass.text,
    NodeKind.HEADER: _RenderPass.header,
    NodeKind.MARKDOWN: _RenderPass.markdown,
    NodeKind.HTML: _RenderPass.html,
    NodeKind.STATUS_BADGE: _RenderPass.status_badge,
    NodeKind.PROGRESS_BAR: _RenderPass.progress_bar,
    NodeKind.EXTERNAL_LINK_BUTTON: _RenderPass.external_link_button,
    NodeKind.FORM: _RenderPass.form,
}

_missing = set(NodeKind) - set(_RENDERERS)
if _missing:
    raise RuntimeError(f"No renderer for node kinds: {sorted(_missing)}")


class AlpineHtmxAdapter(Adapter):
    """Default adapter: Alpine.js client mirror, htmx transport."""

    name = "alpine_htmx"

    def render(
        self,
        tree: ComponentTree,
        store: StateStore,
        mode: RenderMode,
        context: RenderContext,
    ) -> str:
        rendering = _RenderPass(store, context)
        contents = (
            rendering.notices()
            + rendering.nodes(tree.nodes)
            + rendering.one_shot_submit()
            + rendering.state_script()
        )
        if mode is RenderMode.PARTIAL:
            return str(contents)
        return render_template(
            "page.html",
            title=context.title,
            layout=context.layout,
            anchor_id=ANCHOR_ID,
            state_script_id=STATE_SCRIPT_ID,
            state_data=json.dumps(store.snapshot(), default=str),
            content=contents,
        )

    def render_confirmation(self, context: RenderContext) -> str:
        return render_template("submitted.html", title=context.title)


__all__ = [
    "ANCHOR_ID",
    "INPUT_SELECTOR",
    "STATE_SCRIPT_ID",
    "AlpineHtmxAdapter",
    "state_json",
]
