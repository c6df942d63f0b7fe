import abc
from importlib._bootstrap import _init_module_attrs
from importlib.abc import Loader
from importlib.machinery import ModuleSpec
from importlib.machinery import PathFinder
from importlib.util import find_spec
import sys
from types import ModuleType
from typing import Any
from typing import Callable
from typing import Dict
from typing import List  # noqa:F401
from typing import Optional
from typing import Set  # noqa:F401
from typing import cast

from llmtrace.internal.logger import get_logger


ModuleHookType = Callable[[ModuleType], None]
ImportListenerType = Callable[[str], None]


log = get_logger(__name__)


def is_namespace_spec(spec: ModuleSpec) -> bool:
    return spec.origin is None and spec.submodule_search_locations is not None


def is_submodule_available(name: str) -> bool:
    """Whether ``name`` belongs to an imported package and can be imported.

    Unlike ``importlib.util.find_spec`` no module is imported along the way:
    parent packages that are not loaded yet are located on the search path of
    their own parent.
    """
    parts = name.split(".")
    top = sys.modules.get(parts[0])
    if top is None:
        return False

    search_path = getattr(top, "__path__", None)
    for i in range(1, len(parts)):
        fullname = ".".join(parts[: i + 1])
        module = sys.modules.get(fullname)
        if module is not None:
            search_path = getattr(module, "__path__", None)
            continue

        if search_path is None:
            return False
        spec = PathFinder.find_spec(fullname, search_path)
        if spec is None:
            return False
        search_path = spec.submodule_search_locations

    return True


class _ImportHookChainedLoader:
    """Loader proxy that runs callbacks once the real loader has executed the module."""

    def __init__(self, loader, spec=None):
        # type: (Optional[Loader], Optional[ModuleSpec]) -> None
        self.loader = loader
        self.spec = spec

        self.callbacks = {}  # type: Dict[Any, ModuleHookType]

        # A missing loader is generally an indication of a namespace package.
        if loader is None or hasattr(loader, "create_module"):
            self.create_module = self._create_module
        if loader is None or hasattr(loader, "exec_module"):
            self.exec_module = self._exec_module

    def __getattr__(self, name):
        # Proxy any other attribute access to the underlying loader.
        return getattr(self.loader, name)

    def add_callback(self, key, callback):
        # type: (Any, ModuleHookType) -> None
        self.callbacks[key] = callback

    def _create_module(self, spec):
        if self.loader is not None:
            return self.loader.create_module(spec)

        if is_namespace_spec(spec):
            module = ModuleType(spec.name)
            _init_module_attrs(spec, module)
            return module

        return None

    def _exec_module(self, module: ModuleType) -> None:
        if self.loader is None:
            spec = getattr(module, "__spec__", None)
            if spec is not None and is_namespace_spec(spec):
                sys.modules[spec.name] = module
        else:
            self.loader.exec_module(module)

        for callback in list(self.callbacks.values()):
            try:
                callback(module)
            except Exception:
                log.debug("Import callback failed for module %s", module.__name__, exc_info=True)


class BaseModuleWatchdog(abc.ABC):
    """Base module watchdog.

    Sits at the front of ``sys.meta_path`` and invokes ``after_import`` every
    time a new module has been executed.
    """

    _instance = None  # type: Optional[BaseModuleWatchdog]

    def __init__(self):
        # type: () -> None
        self._finding = set()  # type: Set[str]

    def _add_to_meta_path(self):
        # type: () -> None
        sys.meta_path.insert(0, self)  # type: ignore[arg-type]

    @classmethod
    def _find_in_meta_path(cls):
        # type: () -> Optional[int]
        for i, meta_path in enumerate(sys.meta_path):
            if type(meta_path) is cls:
                return i
        return None

    @classmethod
    def _remove_from_meta_path(cls):
        # type: () -> None
        i = cls._find_in_meta_path()

        if i is None:
            raise RuntimeError("%s is not installed" % cls.__name__)

        sys.meta_path.pop(i)

    @abc.abstractmethod
    def after_import(self, module: ModuleType) -> None:
        pass

    def find_spec(
        self, fullname: str, path: Optional[str] = None, target: Optional[ModuleType] = None
    ) -> Optional[ModuleSpec]:
        if fullname in self._finding:
            return None

        self._finding.add(fullname)

        try:
            try:
                # Best effort
                spec = find_spec(fullname)
            except Exception:
                return None

            if spec is None:
                return None

            loader = getattr(spec, "loader", None)

            if not isinstance(loader, _ImportHookChainedLoader):
                spec.loader = cast(Loader, _ImportHookChainedLoader(loader, spec))

            cast(_ImportHookChainedLoader, spec.loader).add_callback(type(self), self.after_import)

            return spec

        finally:
            self._finding.remove(fullname)

    @classmethod
    def install(cls):
        # type: () -> None
        """Install the module watchdog."""
        if cls.is_installed():
            raise RuntimeError("%s is already installed" % cls.__name__)

        cls._instance = cls()
        cls._instance._add_to_meta_path()
        log.debug("%s installed", cls)

    @classmethod
    def is_installed(cls):
        """Check whether this module watchdog class is installed."""
        return cls._instance is not None and type(cls._instance) is cls

    @classmethod
    def uninstall(cls):
        # type: () -> None
        """Uninstall the module watchdog."""
        if not cls.is_installed():
            raise RuntimeError("%s is not installed" % cls.__name__)

        cls._remove_from_meta_path()
        cls._instance = None

        log.debug("%s uninstalled", cls)


class ImportWatchdog(BaseModuleWatchdog):
    """Module watchdog reporting the name of every module that finishes loading.

    Listeners receive the fully qualified module name after the module body
    has executed. Unlike a wrapper around ``builtins.__import__`` it also
    observes ``importlib.import_module`` and imports triggered from C code.
    """

    def __init__(self):
        # type: () -> None
        super().__init__()
        self._listeners = []  # type: List[ImportListenerType]

    def after_import(self, module: ModuleType) -> None:
        for listener in self._listeners:
            listener(module.__name__)

    @classmethod
    def add_listener(cls, listener):
        # type: (ImportListenerType) -> None
        """Install the watchdog if needed and register ``listener``."""
        if not cls.is_installed():
            cls.install()

        instance = cast(ImportWatchdog, cls._instance)
        if listener not in instance._listeners:
            # copy-on-write, listeners are read concurrently by importing threads
            instance._listeners = instance._listeners + [listener]

    @classmethod
    def remove_listener(cls, listener):
        # type: (ImportListenerType) -> None
        if not cls.is_installed():
            return

        instance = cast(ImportWatchdog, cls._instance)
        instance._listeners = [_ for _ in instance._listeners if _ != listener]
