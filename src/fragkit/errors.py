from __future__ import annotations

from html import escape


class FragkitError(Exception):
    pass


class RegistryError(FragkitError):
    """Component table misconfiguration, detected before serving starts."""


def status_to_code(status_code: int) -> str:
    if status_code == 401:
        return "unauthorized"
    if status_code == 403:
        return "forbidden"
    if status_code == 404:
        return "not_found"
    if status_code == 405:
        return "method_not_allowed"
    if status_code == 422:
        return "validation_error"
    if 400 <= status_code < 500:
        return "client_error"
    return "server_error"


def error_html(status_code: int, message: str) -> str:
    code = status_to_code(status_code)
    return (
        f'<div class="fragkit-error" data-code="{code}" role="alert">'
        f"<strong>{status_code}</strong> {escape(message)}</div>"
    )
