"""Primitive HTML tag rendering for form controls."""

from __future__ import annotations

import enum
from collections.abc import Iterable, Mapping
from typing import Any, Protocol

from markupsafe import Markup, escape

SPOOFED_METHODS = ("PUT", "PATCH", "DELETE")
METHOD_FIELD_NAME = "_method"


class TagRenderer(Protocol):
    """Emits raw markup for individual form tags. FormBuilder only decorates its output."""

    def open(self, action: str, method: str = "POST", attributes: dict | None = None) -> Markup: ...

    def close(self) -> Markup: ...

    def label(self, name: str, text: Any = None, attributes: dict | None = None) -> Markup: ...

    def input(self, type: str, name: str, value: Any = None, attributes: dict | None = None) -> Markup: ...

    def text(self, name: str, value: Any = None, attributes: dict | None = None) -> Markup: ...

    def hidden(self, name: str, value: Any = None, attributes: dict | None = None) -> Markup: ...

    def password(self, name: str, attributes: dict | None = None) -> Markup: ...

    def file(self, name: str, attributes: dict | None = None) -> Markup: ...

    def checkbox(
        self, name: str, value: Any = "1", checked: bool = False, attributes: dict | None = None
    ) -> Markup: ...

    def radio(
        self, name: str, value: Any = "1", checked: bool = False, attributes: dict | None = None
    ) -> Markup: ...

    def select(
        self, name: str, options: Any = None, selected: Any = None, attributes: dict | None = None
    ) -> Markup: ...

    def textarea(self, name: str, value: Any = None, attributes: dict | None = None) -> Markup: ...

    def button(self, value: Any = None, attributes: dict | None = None) -> Markup: ...


class HtmlRenderer:
    """Default TagRenderer producing plain HTML5.

    Forms opened with PUT/PATCH/DELETE are posted with a hidden ``_method``
    field. When a CSRF token is supplied, every non-GET form carries it in a
    hidden field named *csrf_field*.
    """

    def __init__(self, csrf_token: str | None = None, csrf_field: str = "_csrf"):
        self.csrf_token = csrf_token
        self.csrf_field = csrf_field

    # -- Form envelope --

    def open(self, action: str, method: str = "POST", attributes: dict | None = None) -> Markup:
        method = method.upper()
        attrs: dict[str, Any] = {
            "method": "GET" if method == "GET" else "POST",
            "action": action,
            "accept-charset": "UTF-8",
        }
        for key, value in (attributes or {}).items():
            if key not in ("method", "action"):
                attrs[key] = value

        html = f"<form{render_attrs(attrs)}>"
        if method in SPOOFED_METHODS:
            html += str(self.hidden(METHOD_FIELD_NAME, method))
        if method != "GET" and self.csrf_token:
            html += str(self.hidden(self.csrf_field, self.csrf_token))
        return Markup(html)

    def close(self) -> Markup:
        return Markup("</form>")

    # -- Labels & inputs --

    def label(self, name: str, text: Any = None, attributes: dict | None = None) -> Markup:
        if text is None:
            text = name.replace("_", " ").title()
        attrs = {"for": name, **(attributes or {})}
        return Markup(f"<label{render_attrs(attrs)}>{escape(text)}</label>")

    def input(self, type: str, name: str, value: Any = None, attributes: dict | None = None) -> Markup:
        attrs = {"type": type, "name": name, "value": _value_string(value), **(attributes or {})}
        return Markup(f"<input{render_attrs(attrs)}>")

    def text(self, name: str, value: Any = None, attributes: dict | None = None) -> Markup:
        return self.input("text", name, value, attributes)

    def email(self, name: str, value: Any = None, attributes: dict | None = None) -> Markup:
        return self.input("email", name, value, attributes)

    def number(self, name: str, value: Any = None, attributes: dict | None = None) -> Markup:
        return self.input("number", name, value, attributes)

    def url(self, name: str, value: Any = None, attributes: dict | None = None) -> Markup:
        return self.input("url", name, value, attributes)

    def date(self, name: str, value: Any = None, attributes: dict | None = None) -> Markup:
        return self.input("date", name, value, attributes)

    def hidden(self, name: str, value: Any = None, attributes: dict | None = None) -> Markup:
        return self.input("hidden", name, value, attributes)

    def password(self, name: str, attributes: dict | None = None) -> Markup:
        return self.input("password", name, "", attributes)

    def file(self, name: str, attributes: dict | None = None) -> Markup:
        return self.input("file", name, None, attributes)

    def checkbox(
        self, name: str, value: Any = "1", checked: bool = False, attributes: dict | None = None
    ) -> Markup:
        return self.input("checkbox", name, value, {**(attributes or {}), "checked": bool(checked)})

    def radio(
        self, name: str, value: Any = "1", checked: bool = False, attributes: dict | None = None
    ) -> Markup:
        return self.input("radio", name, value, {**(attributes or {}), "checked": bool(checked)})

    # -- Compound controls --

    def select(
        self, name: str, options: Any = None, selected: Any = None, attributes: dict | None = None
    ) -> Markup:
        """Render a <select>. Options map value -> label; a nested mapping becomes an <optgroup>."""
        attrs = {"name": name, **(attributes or {})}
        chosen = _selected_values(selected)

        html = f"<select{render_attrs(attrs)}>"
        for value, display in _option_pairs(options):
            if isinstance(display, Mapping):
                html += f'<optgroup label="{escape(str(value))}">'
                for sub_value, sub_display in _option_pairs(display):
                    html += _render_option(sub_value, sub_display, chosen)
                html += "</optgroup>"
            else:
                html += _render_option(value, display, chosen)
        html += "</select>"
        return Markup(html)

    def textarea(self, name: str, value: Any = None, attributes: dict | None = None) -> Markup:
        attrs = {"name": name, **(attributes or {})}
        content = "" if value is None else value
        return Markup(f"<textarea{render_attrs(attrs)}>{escape(content)}</textarea>")

    def button(self, value: Any = None, attributes: dict | None = None) -> Markup:
        attrs = {"type": "button", **(attributes or {})}
        content = "" if value is None else value
        return Markup(f"<button{render_attrs(attrs)}>{escape(content)}</button>")

    def __repr__(self) -> str:
        return f"HtmlRenderer(csrf_field={self.csrf_field!r})"


# -- Utilities --


def render_attrs(attrs: Mapping[str, Any]) -> str:
    """Render a dict as HTML attributes string. Returns '' or ' key="val" key2="val2"'.

    True renders a bare attribute, False and None drop it.
    """
    parts = []
    for k, v in attrs.items():
        if v is None or v is False:
            continue
        # Convert Python naming to HTML: class_ -> class, data_id -> data-id
        attr_name = k.rstrip("_").replace("_", "-")
        if v is True:
            parts.append(attr_name)
        else:
            parts.append(f'{attr_name}="{escape(str(v))}"')
    if not parts:
        return ""
    return " " + " ".join(parts)


def _option_pairs(options: Any) -> Iterable[tuple[Any, Any]]:
    if not options:
        return []
    if isinstance(options, Mapping):
        return list(options.items())
    pairs = []
    for option in options:
        if isinstance(option, (list, tuple)) and len(option) == 2:
            pairs.append((option[0], option[1]))
        else:
            pairs.append((option, option))
    return pairs


def _selected_values(selected: Any) -> set[str]:
    if selected is None or selected is False or selected == "":
        return set()
    if isinstance(selected, (list, tuple, set, frozenset)):
        return {_value_string(v) for v in selected}
    return {_value_string(selected)}


def _render_option(value: Any, display: Any, chosen: set[str]) -> str:
    selected = " selected" if str(value) in chosen else ""
    return f'<option value="{escape(str(value))}"{selected}>{escape(str(display))}</option>'


def _value_string(value: Any) -> str | None:
    """Stringify a field value for its value attribute; booleans post as "1" or ""."""
    if value is None:
        return None
    if isinstance(value, enum.Enum):
        value = value.value
    if isinstance(value, bool):
        return "1" if value else ""
    return str(value)
