"""
Import watcher based on ``builtins.__import__``.

The watcher replaces ``builtins.__import__`` with a wrapper that calls the
function it replaced and then reports, in one batch, every module that the
call loaded. Modules loaded by an import that then fails are reported too.
Wrappers installed before or after it, by other libraries doing the same
thing, keep working since each one only ever calls the function it captured.

Imports that do not go through ``__import__``, such as
``importlib.import_module``, are not observed. ``ImportWatchdog`` in
``llmtrace.internal.module`` observes those too.
"""

import builtins
from importlib.util import resolve_name
import sys
from typing import Any  # noqa:F401
from typing import Callable  # noqa:F401
from typing import List  # noqa:F401
from typing import Optional  # noqa:F401

from llmtrace.internal.logger import get_logger


log = get_logger(__name__)


_original_import = None  # type: Optional[Callable[..., Any]]
_listener = None  # type: Optional[Callable[[List[str]], None]]


def _absolute_name(name, globals_, level):
    # type: (str, Optional[dict], int) -> Optional[str]
    if level == 0:
        return name

    if not globals_:
        return None

    package = globals_.get("__package__")
    if package is None:
        spec = globals_.get("__spec__")
        if spec is not None:
            package = spec.parent
        else:
            package = globals_.get("__name__", "")
            if "__path__" not in globals_:
                package = package.rpartition(".")[0]

    try:
        return resolve_name("." * level + name, package)
    except (ImportError, ValueError):
        return None


def _candidates(fullname, fromlist):
    # type: (str, Any) -> List[str]
    """The module names an import statement can load, parents first."""
    parts = fullname.split(".")
    names = [".".join(parts[: i + 1]) for i in range(len(parts))]
    if fromlist:
        names.extend("%s.%s" % (fullname, item) for item in fromlist if isinstance(item, str) and item != "*")
    return names


def _watched_import(name, globals=None, locals=None, fromlist=(), level=0):
    original_import = _original_import
    listener = _listener

    if listener is None:
        return original_import(name, globals, locals, fromlist, level)

    fullname = _absolute_name(name, globals, level)
    if not fullname:
        return original_import(name, globals, locals, fromlist, level)

    modules = sys.modules
    missing = [n for n in _candidates(fullname, fromlist) if n not in modules]

    try:
        return original_import(name, globals, locals, fromlist, level)
    finally:
        # A failing `import pkg.missing` still leaves `pkg` loaded
        loaded = [n for n in missing if n in modules]
        if loaded:
            try:
                listener(loaded)
            except Exception:
                log.debug("Import listener failed for modules %s", loaded, exc_info=True)


def install(listener):
    # type: (Callable[[List[str]], None]) -> None
    """Wrap ``builtins.__import__`` and report newly loaded modules to ``listener``.

    The listener receives the names loaded by one import call, parents first.

    Installing twice only replaces the listener.
    """
    global _original_import, _listener

    _listener = listener
    if _original_import is None:
        _original_import = builtins.__import__
        builtins.__import__ = _watched_import
        log.debug("Import watcher installed")


def is_installed():
    # type: () -> bool
    return _original_import is not None and _listener is not None


def uninstall():
    # type: () -> None
    """Stop reporting imports.

    The original ``__import__`` is restored only if nothing wrapped ours in
    the meantime. Otherwise the wrapper stays in the chain as a pass-through.
    """
    global _original_import, _listener

    _listener = None
    if _original_import is not None and builtins.__import__ is _watched_import:
        builtins.__import__ = _original_import
        _original_import = None
    log.debug("Import watcher uninstalled")
