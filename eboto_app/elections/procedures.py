"""JSON procedure plumbing shared by every ``/api/<name>`` view.

A procedure is a function ``(request, payload) -> data``. The ``procedure``
decorator reads the input, runs it, and renders either
``{"ok": true, "data": ...}`` or ``{"ok": false, "code": ..., "error": ...}``.
"""

import json
import logging
from collections.abc import Callable
from functools import wraps

from django import forms
from django.http import HttpRequest, JsonResponse
from django.views.decorators.http import require_http_methods

from elections.errors import BadRequestError, ProcedureError
from elections.forms_elections import ProcedureForm

logger = logging.getLogger(__name__)

type ProcedureFunc = Callable[[HttpRequest, dict[str, object]], object]


def error_response(exc: ProcedureError) -> JsonResponse:
    return JsonResponse(
        {"ok": False, "code": exc.code, "error": exc.message},
        status=exc.status_code,
    )


def read_input(request: HttpRequest) -> dict[str, object]:
    """Queries take the query string; mutations take a JSON object body."""
    if request.method == "GET":
        return dict(request.GET.items())

    if not request.body:
        return {}
    try:
        data = json.loads(request.body.decode("utf-8"))
    except (UnicodeDecodeError, json.JSONDecodeError) as exc:
        raise BadRequestError("Request body must be JSON.") from exc
    if not isinstance(data, dict):
        raise BadRequestError("Request body must be a JSON object.")
    return data


def clean_input[F: ProcedureForm](form_class: type[F], payload: dict[str, object]) -> dict[str, object]:
    form = form_class(data=payload)
    if not form.is_valid():
        raise BadRequestError(form.first_error())
    return form.cleaned_data


def procedure(*, query: bool = False) -> Callable[[ProcedureFunc], Callable[[HttpRequest], JsonResponse]]:
    methods = ["GET", "POST"] if query else ["POST"]

    def decorator(func: ProcedureFunc) -> Callable[[HttpRequest], JsonResponse]:
        @require_http_methods(methods)
        @wraps(func)
        def view(request: HttpRequest) -> JsonResponse:
            try:
                payload = read_input(request)
                data = func(request, payload)
            except ProcedureError as exc:
                return error_response(exc)
            except forms.ValidationError as exc:
                return error_response(BadRequestError("; ".join(exc.messages)))
            except Exception:
                logger.exception("Unhandled error in procedure %s", func.__name__)
                return error_response(ProcedureError())
            return JsonResponse({"ok": True, "data": data})

        return view

    return decorator
