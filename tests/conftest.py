"""Shared pytest fixtures."""

from unittest.mock import MagicMock

import pytest

from formly.builder import FormBuilder
from formly.config import get_settings


@pytest.fixture(autouse=True)
def clean_settings_cache():
    """Ensure cached settings never leak between tests."""
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()


@pytest.fixture
def options():
    """Builder options used across tests (ids off, inline errors on)."""
    return {
        "form_class": "form-horizontal",
        "autocomplete": "off",
        "name_as_id": False,
        "id_prefix": "",
        "required_label": "*",
        "required_prefix": "",
        "required_suffix": " *",
        "required_class": "required",
        "control_group_error": "has-error",
        "display_inline_errors": True,
        "comment_class": "help-block",
        "layout": "form-group",
    }


@pytest.fixture
def make_builder(options):
    """Factory fixture returning a FormBuilder with test options plus overrides."""
    def _make(defaults=None, config=None, **collaborators):
        return FormBuilder.create(defaults, config={**options, **(config or {})}, **collaborators)
    return _make


@pytest.fixture
def mock_request_factory():
    """Factory fixture that returns mock requests with a session dict."""
    def _make(session=None, form_data=None, url="http://testserver/profile", headers=None):
        request = MagicMock()
        request.session = session if session is not None else {}
        request.url = url
        request.headers = headers or {}

        async def _form():
            return form_data or {}

        request.form = _form
        return request
    return _make
