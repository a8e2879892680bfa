from __future__ import annotations

from collections.abc import Collection, Mapping

from starlette.responses import Response

from fragkit.config import CookieConfig
from fragkit.schema import Scalar, format_scalar

CookiePlan = dict[str, "str | None"]


def plan_cookie_writes(
    raw: Mapping[str, Scalar], existing: Collection[str] | None = None
) -> CookiePlan:
    """Map each field to its cookie value, or None for a cookie to delete.

    Empty values delete the cookie. If ``existing`` (the cookie names the client
    sent) is given, deletions are limited to cookies the client holds.
    """

    plan: CookiePlan = {}
    for name, value in raw.items():
        text = format_scalar(value)
        if text:
            plan[name] = text
        elif existing is None or name in existing:
            plan[name] = None
    return plan


def apply_cookie_writes(
    response: Response, plan: Mapping[str, str | None], settings: CookieConfig
) -> None:
    for name, value in plan.items():
        if value is None:
            response.delete_cookie(
                name,
                path=settings.path,
                secure=settings.secure,
                httponly=settings.httponly,
                samesite=settings.samesite,
            )
            continue
        response.set_cookie(
            name,
            value,
            max_age=settings.max_age,
            path=settings.path,
            secure=settings.secure,
            httponly=settings.httponly,
            samesite=settings.samesite,
        )


def persist_state(
    response: Response,
    raw: Mapping[str, Scalar],
    settings: CookieConfig | None = None,
    existing: Collection[str] | None = None,
) -> CookiePlan:
    plan = plan_cookie_writes(raw, existing)
    apply_cookie_writes(response, plan, settings or CookieConfig())
    return plan
