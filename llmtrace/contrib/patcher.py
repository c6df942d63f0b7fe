"""
Base patcher class.

A patcher applies one behavioral extension to a library, either to every
instance (``target=None``, class-wide) or to one object only (instance scope).
Each scope moves from inactive to active at most once. The transition is
thread-safe and idempotent, and a failing patch never raises to the caller.
"""

import threading
from typing import Any
from typing import Dict
from typing import Optional
import weakref

from llmtrace.contrib.exceptions import ActivationFailure
from llmtrace.contrib.exceptions import ApplicabilityError
from llmtrace.contrib.exceptions import describe_scope
from llmtrace.internal.logger import get_logger


log = get_logger(__name__)


class Patcher(object):
    """
    Base class for patchers.

    Subclasses implement ``_applicable()`` and ``perform_patch()``:

        >>> class ChatPatcher(Patcher):
        ...     name = "openai.chat"
        ...
        ...     def _applicable(self, target=None):
        ...         return "openai" in sys.modules
        ...
        ...     def perform_patch(self, target=None, **options):
        ...         wrapt.wrap_function_wrapper(...)

    Every patcher instance owns its lock, so independent patchers never
    serialize against each other.
    """

    name = ""

    def __init__(self):
        # RLock so that a patch recursing into itself on the same thread is
        # detected instead of deadlocking.
        self._lock = threading.RLock()
        self._in_progress = False
        self._patched = False
        # id(target) -> weakref to target, or a 1-tuple holding the target
        # when it cannot be weakly referenced.
        self._targets = {}  # type: Dict[int, Any]

    def __repr__(self):
        return "%s(name=%r)" % (type(self).__name__, self.name)

    def _applicable(self, target=None):
        # type: (Optional[Any]) -> bool
        return True

    def applicable(self, target=None):
        # type: (Optional[Any]) -> bool
        """Whether the preconditions of this patch hold for the given scope.

        This has no side effects and takes no lock. Errors count as "not
        applicable".
        """
        try:
            return bool(self._applicable(target))
        except Exception as e:
            log.warning("%s", ApplicabilityError(self.name, target, e), exc_info=True)
            return False

    def patched(self, target=None):
        # type: (Optional[Any]) -> bool
        """Whether this patch is active for the given scope."""
        if target is None:
            return self._patched

        entry = self._targets.get(id(target))
        if entry is None:
            return False
        if isinstance(entry, weakref.ref):
            return entry() is target
        return entry[0] is target

    def _mark_patched(self, target):
        # type: (Optional[Any]) -> None
        if target is None:
            self._patched = True
            return

        key = id(target)
        targets = self._targets
        try:
            targets[key] = weakref.ref(target, lambda _, key=key: targets.pop(key, None))
        except TypeError:
            targets[key] = (target,)

    def patch(self, target=None, **options):
        # type: (Optional[Any], Any) -> bool
        """Apply the patch to the given scope (thread-safe and idempotent).

        :param target: the object to patch, or ``None`` for every instance.
        :param options: passed untouched to ``perform_patch``, e.g.
            ``tracer_provider``.
        :returns: ``True`` if the patch is active for the scope on return.
        """
        if self.patched(target):
            return True

        with self._lock:
            if self._in_progress:
                log.debug("Skipping %s: already patching on this thread", self.name)
                return False

            if not self.applicable(target):
                log.debug("Skipping %s (%s): not applicable", self.name, describe_scope(target))
                return False

            if self.patched(target):
                return True

            self._in_progress = True
            try:
                self.perform_patch(target=target, **options)
            except Exception as e:
                log.error("%s", ActivationFailure(self.name, target, e), exc_info=True)
                return False
            finally:
                self._in_progress = False

            self._mark_patched(target)

        log.debug("Patched %s (%s)", self.name, describe_scope(target))
        return True

    def perform_patch(self, target=None, **options):
        # type: (Optional[Any], Any) -> None
        """Apply the behavioral extension. Called at most once per scope, under lock."""
        raise NotImplementedError("%s must implement perform_patch" % type(self).__name__)

    def reset(self):
        # type: () -> None
        """Forget every active scope. For tests only: applied wrappers stay in place."""
        with self._lock:
            self._patched = False
            self._targets.clear()
