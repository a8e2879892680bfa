__version__ = "0.1.0"

from fragkit.auth import Principal
from fragkit.bookmark import StateUrlsMiddleware, bookmark_redirect_url
from fragkit.config import FragkitConfig, StateUrlsConfig, load_config
from fragkit.errors import FragkitError, RegistryError
from fragkit.helpers import clear_input_handler, cookie_cleaner_script, preserve_params
from fragkit.persistence import persist_state, plan_cookie_writes
from fragkit.pipeline import DEFAULT_STAGES, FormFields, RequestContext, mount_components
from fragkit.registry import ComponentRecord, ComponentRegistry, ComponentTable
from fragkit.resolver import UNSET_SENTINEL, ResolvedState, resolve_state
from fragkit.responses import Fragment, Page
from fragkit.schema import StateSchema, ViewState, schema_for
from fragkit.urls import UrlBuilder

__all__ = [
    "DEFAULT_STAGES",
    "ComponentRecord",
    "ComponentRegistry",
    "ComponentTable",
    "FormFields",
    "Fragment",
    "FragkitConfig",
    "FragkitError",
    "Page",
    "Principal",
    "RegistryError",
    "RequestContext",
    "ResolvedState",
    "StateSchema",
    "StateUrlsConfig",
    "StateUrlsMiddleware",
    "UNSET_SENTINEL",
    "UrlBuilder",
    "ViewState",
    "__version__",
    "bookmark_redirect_url",
    "clear_input_handler",
    "cookie_cleaner_script",
    "load_config",
    "mount_components",
    "persist_state",
    "plan_cookie_writes",
    "preserve_params",
    "resolve_state",
    "schema_for",
]
