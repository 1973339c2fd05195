"""Litestar integration: session-flashed old input and errors, CSRF, and builder wiring.

Typical POST handler:

    @post("/profile")
    async def save(request: Request) -> Redirect:
        data = await request.form()
        try:
            profile = ProfileForm(**data)
        except ValidationError as e:
            return await redirect_back(request, e)
        ...

and the GET handler renders with ``form_builder(request, defaults=profile)``.
"""

from __future__ import annotations

import hmac
import logging
import secrets
from collections.abc import Mapping
from typing import Any

from litestar import Request
from litestar.response import Redirect

from formly.builder import FormBuilder
from formly.config import FormlySettings, get_settings
from formly.html import METHOD_FIELD_NAME, HtmlRenderer
from formly.input import MessageBag, OldInput

logger = logging.getLogger(__name__)

CSRF_SESSION_KEY = "_csrf_token"
CSRF_FIELD_NAME = "_csrf"
OLD_INPUT_SESSION_KEY = "_old_input"
ERRORS_SESSION_KEY = "_errors"

_EXCLUDED_INPUT = (CSRF_FIELD_NAME, METHOD_FIELD_NAME)


# -- CSRF --


def csrf_token(request: Request) -> str:
    """Return the session CSRF token, creating one if needed."""
    if CSRF_SESSION_KEY not in request.session:
        request.session[CSRF_SESSION_KEY] = secrets.token_urlsafe(32)
    return request.session[CSRF_SESSION_KEY]


async def verify_csrf(request: Request) -> bool:
    """Verify the CSRF token from form data against the session token.

    Returns True if the token is valid. Rotates the token on success.
    """
    form_data = await request.form()
    submitted_token = form_data.get(CSRF_FIELD_NAME, "")
    stored_token = request.session.get(CSRF_SESSION_KEY, "")

    if not stored_token or not hmac.compare_digest(str(submitted_token), str(stored_token)):
        return False

    # Rotate token after successful check (single-use)
    request.session[CSRF_SESSION_KEY] = secrets.token_urlsafe(32)
    return True


# -- Flashing --


def flash_input(request: Request, data: Mapping[str, Any]) -> None:
    """Store submitted values in the session for the next request.

    The CSRF and method-override fields are dropped, as are non-string values
    such as file uploads. Multi-valued fields may be passed as lists.
    """
    if hasattr(data, "multi_items"):
        values: dict[str, Any] = {}
        for key, value in data.multi_items():
            values.setdefault(key, []).append(value)
        items = ((k, v[0] if len(v) == 1 else v) for k, v in values.items())
    else:
        items = data.items()

    request.session[OLD_INPUT_SESSION_KEY] = {
        k: v
        for k, v in items
        if k not in _EXCLUDED_INPUT and _is_flashable(v)
    }


def flash_errors(request: Request, errors: Any) -> None:
    """Store validation errors (MessageBag, mapping or ValidationError) in the session."""
    request.session[ERRORS_SESSION_KEY] = MessageBag.coerce(errors).to_dict()


async def flash_submission(request: Request, errors: Any = None) -> None:
    """Flash the current request's form data, and *errors* if given."""
    flash_input(request, await request.form())
    if errors is not None:
        flash_errors(request, errors)


def pull_old_input(request: Request) -> OldInput:
    """Get and clear the flashed submission."""
    return OldInput(request.session.pop(OLD_INPUT_SESSION_KEY, None))


def pull_errors(request: Request) -> MessageBag | None:
    """Get and clear flashed validation errors (None when nothing was flashed)."""
    errors = request.session.pop(ERRORS_SESSION_KEY, None)
    if errors is None:
        return None
    return MessageBag(errors)


async def redirect_back(request: Request, errors: Any = None, *, path: str | None = None) -> Redirect:
    """Flash the submission and errors, then redirect to *path* or the referring page."""
    await flash_submission(request, errors)
    target = path or request.headers.get("referer") or str(request.url)
    logger.debug("Redirecting back to %s with %d flashed error(s)", target, len(MessageBag.coerce(errors)))
    return Redirect(path=target)


# -- Builder wiring --


def form_builder(
    request: Request,
    defaults: Any = None,
    *,
    settings: FormlySettings | None = None,
) -> FormBuilder:
    """Create a FormBuilder bound to this request's flashed state, URL and CSRF token."""
    return FormBuilder.create(
        defaults,
        config=settings if settings is not None else get_settings(),
        old_input=pull_old_input(request),
        errors=pull_errors(request),
        current_url=lambda: str(request.url),
        renderer=HtmlRenderer(csrf_token=csrf_token(request), csrf_field=CSRF_FIELD_NAME),
    )


def provide_form_builder(request: Request) -> FormBuilder:
    """Dependency provider: ``dependencies={"form": Provide(provide_form_builder, sync_to_thread=False)}``."""
    return form_builder(request)


def _is_flashable(value: Any) -> bool:
    if isinstance(value, list):
        return all(isinstance(item, str) for item in value)
    return isinstance(value, str)
