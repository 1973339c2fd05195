"""Wrapper layouts: the markup that surrounds each field's label, control, error and comment."""

from __future__ import annotations

import logging

from markupsafe import Markup, escape

logger = logging.getLogger(__name__)


class Layout:
    """Bootstrap 3 horizontal form layout (``form-group`` + grid columns).

    Produces:
        <div class="form-group"><label class="col-sm-2 control-label" ...>
        <div class="col-sm-10">
        ...field, error, comment...</div></div>
    """

    name = "form-group"
    group_class = "form-group"
    label_class = "col-sm-2 control-label"
    error_class = "help-block"

    def group_id(self, field_name: str) -> str:
        return f"{self.group_class}-{field_name}"

    def blank_label(self, renderer, label_for: str) -> str:
        """Empty labels keep a non-breaking space so the grid stays aligned."""
        return str(renderer.label(label_for, Markup("&nbsp;"), {"class": self.label_class}))

    def open_controls(self, has_label: bool) -> str:
        column = "col-sm-10" if has_label else "col-sm-12"
        return f'<div class="{column}">\n'

    def checkbox(self, field: str, comment: str) -> str:
        return f'<div class="checkbox"><label>{field}{comment}</label></div>'

    def inline_error(self, message: str) -> str:
        return f'<span class="{self.error_class}">{escape(message)}</span>'

    def __repr__(self) -> str:
        return f"{type(self).__name__}()"


class ControlGroupLayout(Layout):
    """Bootstrap 2 layout (``control-group`` / ``controls``)."""

    name = "control-group"
    group_class = "control-group"
    label_class = "control-label"
    error_class = "help-inline"

    def blank_label(self, renderer, label_for: str) -> str:
        return ""

    def open_controls(self, has_label: bool) -> str:
        return '<div class="controls">\n'

    def checkbox(self, field: str, comment: str) -> str:
        return f'<label class="checkbox">{field}{comment}</label>'


LAYOUTS: dict[str, type[Layout]] = {
    Layout.name: Layout,
    ControlGroupLayout.name: ControlGroupLayout,
}


def get_layout(name: str | None) -> Layout:
    """Return the layout registered under *name*, falling back to ``form-group``."""
    if not name:
        return Layout()
    try:
        return LAYOUTS[name]()
    except KeyError:
        logger.warning("Unknown form layout %r, using %r", name, Layout.name)
        return Layout()
