"""
Base integration class.

An integration describes one instrumentable library: the module names whose
import should trigger it, the version range it supports and the patchers
that instrument it. Patchers live in a separate module that is only imported
the first time the integration is patched.
"""

from importlib.metadata import PackageNotFoundError
from importlib.metadata import version as get_pkg_version
import sys
import threading
from typing import Any
from typing import List
from typing import Optional
from typing import Tuple

from packaging.version import InvalidVersion
from packaging.version import Version

from llmtrace.contrib.context import Context
from llmtrace.contrib.patcher import Patcher
from llmtrace.internal.logger import get_logger


log = get_logger(__name__)


class Integration(object):
    """
    Base class for integrations.

    Subclasses set the class attributes and implement ``_load_patchers()``.
    Override ``loaded()`` when several libraries share a module name and
    must be told apart.
    """

    name = ""  # type: str
    module_names = ()  # type: Tuple[str, ...]
    package_names = ()  # type: Tuple[str, ...]
    minimum_version = None  # type: Optional[str]
    maximum_version = None  # type: Optional[str]

    def __init__(self):
        self._patchers = None  # type: Optional[List[Patcher]]
        self._patchers_lock = threading.Lock()

    def __repr__(self):
        return "%s(name=%r)" % (type(self).__name__, self.name)

    def imported_modules(self):
        return [sys.modules[m] for m in self.module_names if sys.modules.get(m) is not None]

    def loaded(self):
        # type: () -> bool
        """Whether the imported module is the library this integration instruments."""
        return True

    def available(self):
        # type: () -> bool
        """Whether the library is imported and is the one this integration instruments."""
        return bool(self.imported_modules()) and self.loaded()

    def get_version(self):
        # type: () -> Optional[str]
        """The installed version of the library, if it can be determined."""
        for package in self.package_names:
            try:
                return get_pkg_version(package)
            except PackageNotFoundError:
                continue
        for module in self.imported_modules():
            version = getattr(module, "__version__", None)
            if isinstance(version, str):
                return version
        return None

    def compatible(self):
        # type: () -> bool
        """Whether the installed version is within the supported range (bounds inclusive)."""
        if not self.available():
            return False

        version = self.get_version()
        if not version:
            return False

        try:
            installed = Version(version)
            if self.minimum_version is not None and installed < Version(self.minimum_version):
                return False
            if self.maximum_version is not None and installed > Version(self.maximum_version):
                return False
        except InvalidVersion:
            log.debug("Cannot compare version %r of %s", version, self.name)
            return False
        return True

    def _load_patchers(self):
        # type: () -> List[Patcher]
        raise NotImplementedError("%s must implement _load_patchers" % type(self).__name__)

    def patchers(self):
        # type: () -> List[Patcher]
        """The patchers of this integration, imported and created on first use."""
        patchers = self._patchers
        if patchers is None:
            with self._patchers_lock:
                if self._patchers is None:
                    self._patchers = list(self._load_patchers())
                patchers = self._patchers
        return patchers

    def patch(self, target=None, **options):
        # type: (Optional[Any], Any) -> bool
        """Apply every applicable patcher to the given scope.

        :returns: ``True`` if at least one patcher is active for the scope.
        """
        if not (self.available() and self.compatible()):
            log.debug("Not patching %s: library unavailable or incompatible", self.name)
            return False

        success = False
        for patcher in self.patchers():
            if not patcher.applicable(target):
                continue
            if patcher.patch(target, **options):
                success = True

        if not success:
            log.debug("No applicable patcher found for %s", self.name)
        return success

    def instrument(self, target=None, **options):
        # type: (Optional[Any], Any) -> bool
        """Instrument every instance of the library, or only ``target``.

        Options for a target, such as ``tracer_provider``, are attached to it
        so that its spans use them.
        """
        if target is not None:
            Context.set(target, **options)
        return self.patch(target, **options)

    def patched(self, target=None):
        # type: (Optional[Any]) -> bool
        if self._patchers is None:
            return False
        return any(p.patched(target) for p in self._patchers)

    def reset(self):
        # type: () -> None
        if self._patchers is None:
            return
        for patcher in self._patchers:
            patcher.reset()
