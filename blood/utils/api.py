"""Helpers shared by the JSON views: body parsing, form validation, auth and error rendering."""

from __future__ import annotations

import json
import logging
from functools import wraps
from typing import Iterable, Optional

from django.http import JsonResponse

from blood.exceptions import Forbidden, Unauthorized, ValidationFailed, WorkflowError
from blood.services import accounts


logger = logging.getLogger(__name__)


def json_response(data, status: int = 200) -> JsonResponse:
    return JsonResponse(data, status=status, safe=False)


def parse_json(request) -> dict:
    """Decode a JSON object body. Empty or non-JSON content types read as no fields."""

    if request.content_type != "application/json" or not request.body:
        return {}
    try:
        payload = json.loads(request.body)
    except (ValueError, UnicodeDecodeError):
        raise ValidationFailed("Request body must be valid JSON.") from None
    if not isinstance(payload, dict):
        raise ValidationFailed("Request body must be a JSON object.")
    return payload


def form_errors(form) -> dict:
    return {field: [str(message) for message in messages] for field, messages in form.errors.items()}


def validate(form_class, data, **kwargs) -> dict:
    """Bind ``data`` to a Django form and return cleaned data or raise ValidationFailed."""

    form = form_class(data=data, **kwargs)
    if not form.is_valid():
        raise ValidationFailed(errors=form_errors(form))
    return form.cleaned_data


def api_view(methods: Iterable[str] = ("GET",), roles: Optional[Iterable[str]] = None, public: bool = False):
    """Wrap a view so it answers in JSON.

    Unauthenticated callers get 401 and callers outside ``roles`` get 403,
    both as JSON bodies; no redirects. Domain errors raised by the view are
    rendered with their own status codes.
    """

    allowed_methods = tuple(method.upper() for method in methods)
    allowed_roles = tuple(roles) if roles is not None else None

    def decorator(view):
        @wraps(view)
        def wrapper(request, *args, **kwargs):
            if request.method not in allowed_methods:
                response = json_response(
                    {"detail": f"Method {request.method} not allowed.", "code": "method_not_allowed"},
                    status=405,
                )
                response["Allow"] = ", ".join(allowed_methods)
                return response

            try:
                request.role = accounts.role_for(request.user)
                if not public:
                    if not request.user.is_authenticated:
                        raise Unauthorized()
                    if allowed_roles is not None and request.role not in allowed_roles:
                        raise Forbidden()
                return view(request, *args, **kwargs)
            except WorkflowError as exc:
                level = logging.WARNING if exc.http_status >= 500 else logging.INFO
                logger.log(level, "%s %s -> %s: %s", request.method, request.path, exc.http_status, exc)
                return json_response(exc.to_dict(), status=exc.http_status)

        return wrapper

    return decorator
