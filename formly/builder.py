"""FormBuilder - Bootstrap form markup with automatic value population."""

from __future__ import annotations

import enum
import logging
from collections.abc import Callable, Iterable, Mapping
from typing import Any, Protocol

from markupsafe import Markup, escape

from formly.config import RECOGNIZED_OPTIONS, FormlySettings, camel_to_snake, get_settings, snake_to_camel
from formly.html import HtmlRenderer, TagRenderer
from formly.input import MISSING, MessageBag, OldInput, dotted_name, lookup_path, normalize_defaults
from formly.layouts import Layout, get_layout

logger = logging.getLogger(__name__)


class ConfigProvider(Protocol):
    def get(self, key: str) -> Any: ...


class FormBuilder:
    """Builds one HTML form, populating every field from old input, explicit values or defaults.

    Usage:
        form = FormBuilder.create({"user": {"name": "Bob"}}, old_input=..., errors=...)

        form.open("/users")
        form.text("user[name]", "Name")        # value="Bob" unless old input says otherwise
        form.checkbox("active", "Active")
        form.actions([form.submit_primary("Save"), form.reset("Clear")])
        form.close()

    A builder captures the request's old input and errors when it is created,
    so create a fresh one per render.
    """

    def __init__(
        self,
        defaults: Any = None,
        *,
        config: ConfigProvider | Mapping[str, Any] | None = None,
        old_input: OldInput | Mapping[str, Any] | None = None,
        errors: Any = None,
        current_url: Callable[[], str] | None = None,
        renderer: TagRenderer | None = None,
    ):
        self.renderer = renderer if renderer is not None else HtmlRenderer()
        self.old_input = old_input if isinstance(old_input, OldInput) else OldInput(old_input)
        self.errors: MessageBag | None = MessageBag.coerce(errors) if errors is not None else None
        self.current_url = current_url

        self.options: dict[str, Any] = {}
        self.comments: dict[str, str] = {}

        self._load_config(config if config is not None else get_settings())

        normalized = normalize_defaults(defaults)
        self.defaults: dict[str, Any] = normalized if isinstance(normalized, dict) else {}

    @classmethod
    def create(cls, defaults: Any = None, **collaborators: Any) -> FormBuilder:
        return cls(defaults, **collaborators)

    def _load_config(self, config) -> None:
        if isinstance(config, FormlySettings):
            config = config.as_options()
        elif isinstance(config, Mapping):
            config = {camel_to_snake(k): v for k, v in config.items()}
        for option in RECOGNIZED_OPTIONS:
            value = config.get(option)
            if value is None:
                value = config.get(snake_to_camel(option))
            if value is not None:
                self.options[option] = value

    # -- Options & comments --

    def set_option(self, key: str | Mapping[str, Any], value: Any = "") -> FormBuilder:
        """Set one option, or merge a mapping of options. camelCase names are accepted."""
        if isinstance(key, Mapping):
            self.options.update({camel_to_snake(k): v for k, v in key.items()})
        else:
            self.options[camel_to_snake(key)] = value
        return self

    def get_option(self, key: str) -> Any:
        value = self.options.get(camel_to_snake(key))
        return "" if value is None else value

    def set_comments(self, name: str | Mapping[str, str], comment: str = "") -> FormBuilder:
        """Set the comment for one field, or merge a mapping of field name -> comment."""
        if isinstance(name, Mapping):
            self.comments.update(name)
        else:
            self.comments[name] = comment
        return self

    @property
    def layout(self) -> Layout:
        return get_layout(self.get_option("layout"))

    # -- Form envelope --

    def open(self, action: str | None = None, method: str = "POST", attributes: dict | None = None) -> Markup:
        """Open a form, defaulting the action to the current URL."""
        if not action:
            action = self.current_url() if self.current_url is not None else ""

        attributes = _copy_attributes(attributes)

        form_class = self.get_option("form_class")
        css = _class_string(attributes.get("class"))
        if not css:
            if form_class:
                attributes["class"] = form_class
        elif form_class and not any(token.startswith("form-") for token in css.split()):
            attributes["class"] = f"{css} {form_class}"

        if not attributes.get("autocomplete") and self.get_option("autocomplete"):
            attributes["autocomplete"] = self.get_option("autocomplete")

        return self.renderer.open(action, method, attributes)

    def open_post(self, action: str | None = None, attributes: dict | None = None) -> Markup:
        return self.open(action, "POST", attributes)

    def open_put(self, action: str | None = None, attributes: dict | None = None) -> Markup:
        return self.open(action, "PUT", attributes)

    def open_delete(self, action: str | None = None, attributes: dict | None = None) -> Markup:
        return self.open(action, "DELETE", attributes)

    def open_files(
        self, action: str | None = None, method: str = "POST", attributes: dict | None = None
    ) -> Markup:
        attributes = _copy_attributes(attributes)
        attributes["enctype"] = "multipart/form-data"
        return self.open(action, method, attributes)

    def close(self) -> Markup:
        return self.renderer.close()

    # -- Fields --

    def hidden(self, name: str, value: Any = None, attributes: dict | None = None) -> Markup:
        value = self.calculate_value(name, value)
        return self.renderer.hidden(name, value, _copy_attributes(attributes))

    def text(self, name: str, label: str | None = "", value: Any = None, attributes: dict | None = None) -> Markup:
        value = self.calculate_value(name, value)
        attributes = self.set_attributes(name, attributes)
        field = self.renderer.text(name, value, attributes)
        return self.build_wrapper(field, name, label)

    def email(self, name: str, label: str | None = "", value: Any = None, attributes: dict | None = None) -> Markup:
        return self._typed_input("email", name, label, value, attributes)

    def number(self, name: str, label: str | None = "", value: Any = None, attributes: dict | None = None) -> Markup:
        return self._typed_input("number", name, label, value, attributes)

    def url(self, name: str, label: str | None = "", value: Any = None, attributes: dict | None = None) -> Markup:
        return self._typed_input("url", name, label, value, attributes)

    def date(self, name: str, label: str | None = "", value: Any = None, attributes: dict | None = None) -> Markup:
        return self._typed_input("date", name, label, value, attributes)

    def _typed_input(self, input_type, name, label, value, attributes) -> Markup:
        value = self.calculate_value(name, value)
        attributes = self.set_attributes(name, attributes)
        field = self.renderer.input(input_type, name, value, attributes)
        return self.build_wrapper(field, name, label)

    def textarea(
        self, name: str, label: str | None = "", value: Any = None, attributes: dict | None = None
    ) -> Markup:
        value = self.calculate_value(name, value)
        attributes = self.set_attributes(name, attributes)
        attributes.setdefault("rows", 4)
        field = self.renderer.textarea(name, value, attributes)
        return self.build_wrapper(field, name, label)

    def password(self, name: str, label: str | None = "", attributes: dict | None = None) -> Markup:
        attributes = self.set_attributes(name, attributes)
        field = self.renderer.password(name, attributes)
        return self.build_wrapper(field, name, label)

    def select(
        self,
        name: str,
        label: str | None = "",
        options: Any = None,
        selected: Any = None,
        attributes: dict | None = None,
    ) -> Markup:
        selected = self.calculate_value(name, selected)
        attributes = self.set_attributes(name, attributes)
        field = self.renderer.select(name, options, selected, attributes)
        return self.build_wrapper(field, name, label)

    def checkbox(
        self,
        name: str,
        label: str | None = "",
        value: Any = "1",
        checked: bool = False,
        attributes: dict | None = None,
    ) -> Markup:
        checked = self.calculate_value(name, checked, value)
        attributes = self.set_attributes(name, attributes, checkbox=True)
        field = self.renderer.checkbox(name, value, bool(checked), attributes)
        return self.build_wrapper(field, name, label, checkbox=True)

    def radio(self, name: str, value: Any = "1", checked: bool = False, attributes: dict | None = None) -> Markup:
        """Radios are returned bare; group them inside your own wrapper."""
        checked = self.calculate_value(name, checked, value)
        attributes = self.set_attributes(name, attributes)
        return self.renderer.radio(name, value, bool(checked), attributes)

    def file(self, name: str, label: str | None = "", attributes: dict | None = None) -> Markup:
        attributes = self.set_attributes(name, attributes)
        field = self.renderer.file(name, attributes)
        return self.build_wrapper(field, name, label)

    # -- Wrapper & label --

    def build_wrapper(self, field: str, name: str, label: str | None = "", checkbox: bool = False) -> Markup:
        """Wrap a field in its group container with label, inline error and comment.

        ``label=None`` drops the label and widens the control column; an empty
        label still reserves the label column.
        """
        layout = self.layout
        error = self.errors.first(name) if self.errors else None

        comment = self.comments.get(name) or ""
        if comment and not checkbox:
            comment = f'<div class="{escape(self.get_option("comment_class"))}">{comment}</div>'

        css = layout.group_class
        if error and self.get_option("control_group_error"):
            css += f" {self.get_option('control_group_error')}"

        group_id = f' id="{escape(layout.group_id(name))}"' if self.get_option("name_as_id") else ""
        html = f'<div class="{escape(css)}"{group_id}>'

        if label is None:
            html += layout.open_controls(has_label=False)
        else:
            html += str(self.build_label(name, label))
            html += layout.open_controls(has_label=True)

        if checkbox:
            html += layout.checkbox(str(field), str(comment))
        else:
            html += str(field)

        if error and self.get_option("display_inline_errors"):
            html += layout.inline_error(error)

        if not checkbox:
            html += str(comment)

        html += "</div></div>\n"
        return Markup(html)

    def build_label(self, name: str, label: Any = "") -> Markup:
        layout = self.layout
        label_for = f"{self.get_option('id_prefix')}{name}"

        if not label:
            return Markup(layout.blank_label(self.renderer, label_for))
        if not isinstance(label, str):
            label = str(label)

        css = layout.label_class
        marker = self.get_option("required_label")
        if marker and label.endswith(marker):
            text = label[: -len(marker)]
            label = Markup(self.get_option("required_prefix")) + text + Markup(self.get_option("required_suffix"))
            if self.get_option("required_class"):
                css += f" {self.get_option('required_class')}"

        return self.renderer.label(label_for, label, {"class": css})

    # -- Value resolution --

    def calculate_value(self, name: str, value: Any = None, compare: Any = None) -> Any:
        """Resolve a field's value: old input, then the explicit value, then form defaults.

        With *compare* (radio and checkbox values) the result is the checked
        state instead of a value.

        Note: a checkbox that was checked by default and then unchecked by the
        user comes back checked after a failed validation, because unchecked
        boxes are not posted.
        """
        old = self.old_input.get(name)
        if old is not MISSING:
            if compare is not None:
                return _loosely_equal(old, compare)
            if old is not None:
                return old
            return "" if value is None else value

        # The explicit value is returned as given, even for radios and checkboxes
        if not _is_empty(value):
            return value

        default = lookup_path(self.defaults, dotted_name(name), MISSING)
        if default is not MISSING and default is not None:
            return _loosely_equal(default, compare) if compare is not None else default

        return False if compare is not None else ""

    # -- Attributes --

    def set_attributes(self, name: str, attributes: dict | None = None, checkbox: bool = False) -> dict:
        """Normalize field attributes: comment extraction, control class, id, disabled."""
        attributes = _copy_attributes(attributes)

        comment = attributes.pop("comment", None)
        if comment:
            self.comments[name] = comment

        if not checkbox:
            css = _class_string(attributes.get("class"))
            if "form-control" not in css.split():
                attributes["class"] = f"form-control {css}".strip()

        if self.get_option("name_as_id") and "id" not in attributes:
            attributes["id"] = f"{self.get_option('id_prefix')}{name}"

        # A falsy disabled attribute would still disable the field in browsers
        if "disabled" in attributes and not attributes["disabled"]:
            del attributes["disabled"]

        return attributes

    # -- Buttons --

    def actions(self, buttons: str | Iterable[str]) -> Markup:
        """Group buttons in a form-actions container."""
        if isinstance(buttons, str):
            content = str(buttons)
        else:
            content = "".join(str(button) for button in buttons)
        return Markup(f'<div class="form-actions">{content}</div>')

    def submit(self, value: Any = "Submit", attributes: dict | None = None, btn_class: str = "btn") -> Markup:
        attributes = _copy_attributes(attributes)
        attributes["type"] = "submit"
        if btn_class != "btn":
            btn_class = f"btn btn-{btn_class}"

        css = _class_string(attributes.get("class"))
        if not css:
            attributes["class"] = btn_class
        elif not set(btn_class.split()) <= set(css.split()):
            attributes["class"] = f"{css} {btn_class}"

        return self.renderer.button(value, attributes)

    def submit_default(self, value: Any = "Submit", attributes: dict | None = None) -> Markup:
        return self.submit(value, attributes)

    def submit_primary(self, value: Any = "Submit", attributes: dict | None = None) -> Markup:
        return self.submit(value, attributes, "primary")

    def submit_info(self, value: Any = "Submit", attributes: dict | None = None) -> Markup:
        return self.submit(value, attributes, "info")

    def submit_success(self, value: Any = "Submit", attributes: dict | None = None) -> Markup:
        return self.submit(value, attributes, "success")

    def submit_warning(self, value: Any = "Submit", attributes: dict | None = None) -> Markup:
        return self.submit(value, attributes, "warning")

    def submit_danger(self, value: Any = "Submit", attributes: dict | None = None) -> Markup:
        return self.submit(value, attributes, "danger")

    def submit_inverse(self, value: Any = "Submit", attributes: dict | None = None) -> Markup:
        return self.submit(value, attributes, "inverse")

    def reset(self, value: Any = "Submit", attributes: dict | None = None) -> Markup:
        attributes = _copy_attributes(attributes)
        attributes["type"] = "reset"
        attributes["class"] = f"{_class_string(attributes.get('class'))} btn".lstrip()
        return self.renderer.button(value, attributes)

    def __repr__(self) -> str:
        return f"FormBuilder(layout={self.get_option('layout')!r}, errors={self.errors!r})"


# -- Utilities --


def _copy_attributes(attributes: Any) -> dict:
    """Copy an attribute mapping, folding the Python-style ``class_`` key into ``class``."""
    if not attributes:
        return {}
    if not isinstance(attributes, Mapping):
        logger.warning("Ignoring attributes that are not a mapping: %r", attributes)
        return {}

    copied = dict(attributes)
    if "class_" in copied:
        extra = _class_string(copied.pop("class_"))
        css = _class_string(copied.get("class"))
        copied["class"] = f"{css} {extra}".strip()
    return copied


def _class_string(value: Any) -> str:
    if value is None or value is False:
        return ""
    if isinstance(value, str):
        return value.strip()
    if isinstance(value, (set, frozenset)):
        return " ".join(sorted(str(v) for v in value if v))
    if isinstance(value, (list, tuple)):
        return " ".join(str(v) for v in value if v)
    logger.warning("Coercing non-string class attribute %r", value)
    return str(value)


def _is_empty(value: Any) -> bool:
    if value is None or value is False:
        return True
    if isinstance(value, (str, list, tuple, dict, set)):
        return len(value) == 0
    return False


def _loosely_equal(stored: Any, target: Any) -> bool:
    """Compare a stored value with a radio/checkbox value the way form posts do."""
    if isinstance(stored, enum.Enum):
        stored = stored.value
    if isinstance(target, enum.Enum):
        target = target.value
    if isinstance(stored, (list, tuple, set)):
        return any(_loosely_equal(item, target) for item in stored)
    if isinstance(stored, bool) or isinstance(target, bool):
        return bool(stored) == bool(target)
    if stored is None:
        stored = ""
    return str(stored) == str(target)
