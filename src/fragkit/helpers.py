from __future__ import annotations

from collections.abc import Collection, Mapping

from markupsafe import Markup, escape

_COOKIE_CLEANER_JS = """
document.addEventListener('DOMContentLoaded', function() {
    document.body.addEventListener('htmx:configRequest', function(evt) {
        for (const [key, value] of Object.entries(evt.detail.parameters)) {
            if (value === '') {
                document.cookie = key + '=; path=/; max-age=0';
            }
        }
    });
});
"""


def preserve_params(params: Mapping[str, str], exclude: Collection[str] = ()) -> Markup:
    """Hidden inputs carrying sibling components' parameters through a form."""

    inputs = [
        Markup('<input type="hidden" name="{}" value="{}">').format(key, value)
        for key, value in params.items()
        if key and value and key not in exclude
    ]
    return Markup("").join(inputs)


def cookie_cleaner_script() -> Markup:
    """Expire cookies client-side for parameters sent as empty strings.

    Browsers drop empty form values from some requests, which would otherwise
    leave stale state cookies behind.
    """

    return Markup(f"<script>{_COOKIE_CLEANER_JS}</script>")


def clear_input_handler(input_id: str, event: str = "keyup") -> str:
    input_id = str(escape(input_id))
    event = str(escape(event))
    return (
        f"document.getElementById('{input_id}').value = ''; "
        f"htmx.trigger('#{input_id}', '{event}');"
    )
