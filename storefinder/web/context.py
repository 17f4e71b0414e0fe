"""
Page Context

Everything a server-rendered handler needs about the current request:
the logged-in user, flash messages, and helpers to render a template
or redirect. Handlers receive it explicitly instead of reaching into
request-scoped globals.
"""

from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, List, Optional, Type, TypeVar
from urllib.parse import urlsplit

from fastapi import Request
from fastapi.responses import HTMLResponse, RedirectResponse
from fastapi.templating import Jinja2Templates
from pydantic import BaseModel, ValidationError
from starlette.datastructures import FormData

from storefinder.core.config import settings
from storefinder.core.security import create_access_token
from storefinder.models import User

SESSION_TOKEN_KEY = "access_token"
SESSION_FLASH_KEY = "flashes"

TEMPLATE_DIR = Path(__file__).resolve().parent.parent / "templates"

templates = Jinja2Templates(directory=str(TEMPLATE_DIR))
templates.env.globals.update(
    project_name=settings.PROJECT_NAME,
    map_key=settings.MAP_KEY,
    menu=[
        ("/stores", "Stores"),
        ("/tags", "Tags"),
        ("/top", "Top"),
        ("/add", "Add"),
        ("/map", "Map"),
    ],
)

SchemaType = TypeVar("SchemaType", bound=BaseModel)


# ============================================================
# Exceptions
# ============================================================

class LoginRequired(Exception):
    """Raised by handlers that need a logged-in user."""
    pass


class FormValidationError(Exception):
    """Raised when a submitted form fails validation."""

    def __init__(self, messages: List[str]):
        self.messages = messages
        super().__init__("; ".join(messages))


# ============================================================
# Flash messages
# ============================================================

def flash(request: Request, category: str, message: str) -> None:
    """Queue a one-shot notice for the next rendered page."""
    flashes = request.session.get(SESSION_FLASH_KEY, [])
    flashes.append([category, message])
    request.session[SESSION_FLASH_KEY] = flashes


def consume_flashes(request: Request) -> Dict[str, List[str]]:
    """Pop all queued notices, grouped by category."""
    grouped: Dict[str, List[str]] = {}
    # Error pages rendered outside the session middleware have no session
    if "session" not in request.scope:
        return grouped
    for category, message in request.session.pop(SESSION_FLASH_KEY, []):
        grouped.setdefault(category, []).append(message)
    return grouped


def redirect_back(request: Request, fallback: str = "/") -> RedirectResponse:
    """
    Redirect to the referring page.

    Only same-host referers are followed; anything else goes to `fallback`.
    """
    target = fallback
    referer = request.headers.get("referer")
    if referer:
        parts = urlsplit(referer)
        if parts.netloc == request.url.netloc and parts.path:
            target = parts.path + (f"?{parts.query}" if parts.query else "")
    return RedirectResponse(target, status_code=303)


# ============================================================
# Form parsing
# ============================================================

def form_to_dict(form: FormData, list_fields: tuple = ()) -> Dict[str, Any]:
    """
    Plain dict of the text fields of a submitted form.

    Fields named in `list_fields` (checkbox groups) always become lists.
    File fields are left out.
    """
    data: Dict[str, Any] = {}
    for key in form.keys():
        if key in list_fields:
            data[key] = [value for value in form.getlist(key) if isinstance(value, str)]
        else:
            value = form.get(key)
            if isinstance(value, str):
                data[key] = value
    for key in list_fields:
        data.setdefault(key, [])
    return data


def _error_message(schema: Type[BaseModel], error: Dict[str, Any]) -> str:
    if error["type"] == "value_error":
        return error["msg"].removeprefix("Value error, ")

    field_name = str(error["loc"][0]) if error["loc"] else ""
    for name, field in schema.model_fields.items():
        if field_name in (name, field.alias) and field.description:
            if field.description.endswith("!"):
                return field.description
    return f"{field_name}: {error['msg']}" if field_name else error["msg"]


def validate_form(schema: Type[SchemaType], data: Dict[str, Any]) -> SchemaType:
    """
    Validate form data into `schema`.

    Raises:
        FormValidationError: With one readable message per failing field
    """
    try:
        return schema.model_validate(data)
    except ValidationError as e:
        messages = []
        for error in e.errors():
            message = _error_message(schema, error)
            if message not in messages:
                messages.append(message)
        raise FormValidationError(messages) from e


# ============================================================
# Context
# ============================================================

@dataclass
class PageContext:
    """Request, user and response helpers for one page request."""

    request: Request
    user: Optional[User] = None

    def flash(self, category: str, message: str) -> None:
        flash(self.request, category, message)

    def login(self, user: User) -> None:
        """Remember `user` in the session cookie."""
        self.request.session[SESSION_TOKEN_KEY] = create_access_token(user.id)
        self.user = user

    def logout(self) -> None:
        self.request.session.pop(SESSION_TOKEN_KEY, None)
        self.user = None

    def render(self, template: str, status_code: int = 200, **data: Any) -> HTMLResponse:
        context = {
            "user": self.user,
            "flashes": consume_flashes(self.request),
            "current_path": self.request.url.path,
            **data,
        }
        return templates.TemplateResponse(
            self.request, template, context, status_code=status_code
        )

    def redirect(self, url: str) -> RedirectResponse:
        return RedirectResponse(url, status_code=303)

    def back(self, fallback: str = "/") -> RedirectResponse:
        return redirect_back(self.request, fallback)
