"""Formly - Bootstrap form generation with old-input, defaults, errors and comments."""

from formly.builder import FormBuilder
from formly.config import FormlySettings, get_settings
from formly.html import HtmlRenderer, TagRenderer
from formly.input import MessageBag, OldInput
from formly.layouts import ControlGroupLayout, Layout

__all__ = [
    "FormBuilder",
    "FormlySettings",
    "get_settings",
    "HtmlRenderer",
    "TagRenderer",
    "MessageBag",
    "OldInput",
    "Layout",
    "ControlGroupLayout",
]
