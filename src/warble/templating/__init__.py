"""Template compilation, lookup and locking."""

from warble.templating.compiler import TemplateSet, compile_templates, create_environment, match_extension
from warble.templating.helpers import BUILTIN_HELPERS, bind_helpers
from warble.templating.locks import Lock, NoopLock, RWLock, select_lock
from warble.templating.store import TemplateStore

__all__ = [
    "BUILTIN_HELPERS",
    "Lock",
    "NoopLock",
    "RWLock",
    "TemplateSet",
    "TemplateStore",
    "bind_helpers",
    "compile_templates",
    "create_environment",
    "match_extension",
    "select_lock",
]
