from enum import Enum
import threading
from typing import TYPE_CHECKING  # noqa:F401
from typing import Any  # noqa:F401
from typing import Callable  # noqa:F401
from typing import Collection  # noqa:F401
from typing import List  # noqa:F401
from typing import Optional  # noqa:F401
from typing import Sequence  # noqa:F401

from llmtrace.contrib import registry
from llmtrace.contrib.django import DjangoFramework
from llmtrace.contrib.exceptions import InterceptionFailure
from llmtrace.contrib.host import Framework  # noqa:F401
from llmtrace.contrib.host import ImportHookLayer
from llmtrace.internal import import_hooks
from llmtrace.internal.logger import get_logger
from llmtrace.internal.module import ImportWatchdog


if TYPE_CHECKING:  # pragma: no cover
    from llmtrace.contrib.integration import Integration  # noqa:F401
    from llmtrace.contrib._registry import Registry  # noqa:F401
    from llmtrace.settings.instrumentation import InstrumentationConfig  # noqa:F401


log = get_logger(__name__)


# Frameworks whose start-up lifecycle takes over from import hooks.
DEFAULT_FRAMEWORKS = (DjangoFramework(),)

# Independent libraries that put their own import hook at the front of
# sys.meta_path. Ours goes in front only once theirs is fully set up.
DEFAULT_IMPORT_HOOK_LAYERS = (ImportHookLayer("ddtrace", "ddtrace.internal.module", "ModuleWatchdog"),)


class InterceptorState(str, Enum):
    UNINSTALLED = "uninstalled"
    WATCHER_INSTALLED = "watcher_installed"
    UPGRADED = "upgraded"
    FRAMEWORK_DELEGATED = "framework_delegated"


def _allowed(name, only=None, except_=None):
    # type: (str, Optional[Collection[str]], Optional[Collection[str]]) -> bool
    if only is not None and name not in only:
        return False
    if except_ and name in except_:
        return False
    return True


def _instrument(integration, module_name=None):
    # type: (Integration, Optional[str]) -> None
    try:
        if not integration.available():
            log.debug("Skipping %s: library not available", integration.name)
            return
        if not integration.compatible():
            log.debug("Skipping %s: version %s not supported", integration.name, integration.get_version())
            return
        integration.patch()
    except Exception as e:
        log.error("%s", InterceptionFailure(integration.name, module_name or "<sweep>", e), exc_info=True)


def auto_instrument(only=None, except_=None, integrations=None):
    # type: (Optional[Collection[str]], Optional[Collection[str]], Optional[Registry]) -> None
    """Instrument every registered integration whose library is imported.

    :param only: when given, only these integration names are considered.
    :param except_: integration names that are skipped.

        >>> auto_instrument(except_=["anthropic"])
    """
    for integration in integrations if integrations is not None else registry:
        if _allowed(integration.name, only, except_):
            _instrument(integration)


class Interceptor(object):
    """Observes module imports and instruments the integrations they trigger.

    The way imports are observed is chosen once, by ``run()``:

    1. a framework is present: instrumentation is deferred to the end of its
       start-up (``FRAMEWORK_DELEGATED``);
    2. an independent import-hook layer is present: ``ImportWatchdog`` is put
       at the front of ``sys.meta_path`` (``UPGRADED``);
    3. otherwise ``builtins.__import__`` is wrapped (``WATCHER_INSTALLED``).
       When a framework or an import-hook layer finishes loading later on,
       the interceptor moves to the corresponding state. The move only happens
       on the import event of that library's own defining module.

    State changes are one-way.
    """

    def __init__(self, integrations, frameworks=DEFAULT_FRAMEWORKS, import_hook_layers=DEFAULT_IMPORT_HOOK_LAYERS):
        # type: (Registry, Sequence[Framework], Sequence[ImportHookLayer]) -> None
        self.registry = integrations
        self.frameworks = tuple(frameworks)
        self.import_hook_layers = tuple(import_hook_layers)
        self.state = InterceptorState.UNINSTALLED
        self.only = None  # type: Optional[Collection[str]]
        self.except_ = None  # type: Optional[Collection[str]]
        self._has_run = False
        self._lock = threading.RLock()
        self._local = threading.local()

    def __repr__(self):
        return "%s(state=%s)" % (type(self).__name__, self.state.value)

    def run(self, enabled=True, only=None, except_=None):
        # type: (bool, Optional[Collection[str]], Optional[Collection[str]]) -> InterceptorState
        """Install the import observation strategy. Only the first call has an effect."""
        with self._lock:
            if self._has_run:
                return self.state
            self._has_run = True

            if not enabled:
                log.debug("Automatic instrumentation disabled, no import hook installed")
                return self.state

            self.only = set(only) if only is not None else None
            self.except_ = set(except_) if except_ else None

            # A strategy that fails to install falls back to the next one.
            framework = next((f for f in self.frameworks if f.present()), None)
            if framework is not None:
                log.debug("%s detected, deferring instrumentation to its start-up", framework.name)
                if self._transition(InterceptorState.FRAMEWORK_DELEGATED, framework):
                    return self.state

            if any(layer.present() for layer in self.import_hook_layers):
                log.debug("Import hook layer detected, installing the import watchdog")
                if self._transition(InterceptorState.UPGRADED):
                    return self.state

            log.debug("Installing the import watcher")
            self._transition(InterceptorState.WATCHER_INSTALLED)

        return self.state

    def _transition(self, state, framework=None):
        # type: (InterceptorState, Optional[Framework]) -> bool
        if state is InterceptorState.FRAMEWORK_DELEGATED and framework is None:
            raise ValueError("A framework is required to delegate instrumentation")

        with self._lock:
            previous = self.state
            if previous in (InterceptorState.UPGRADED, InterceptorState.FRAMEWORK_DELEGATED):
                return False
            if previous is state:
                return False

            # Set first: same-thread imports made while installing must see the new state.
            self.state = state
            try:
                if state is InterceptorState.FRAMEWORK_DELEGATED:
                    framework.install(self._on_framework_ready)
                elif state is InterceptorState.UPGRADED:
                    ImportWatchdog.add_listener(self.on_import)
                elif state is InterceptorState.WATCHER_INSTALLED:
                    import_hooks.install(self._on_watched_import)
            except Exception:
                log.error("Failed to switch import observation to %s", state.value, exc_info=True)
                self.state = previous
                return False

        log.debug("Import observation switched from %s to %s", previous.value, state.value)
        return True

    def _maybe_upgrade(self, module_name):
        # type: (str) -> None
        for framework in self.frameworks:
            if framework.loaded_by(module_name):
                log.debug("%s loaded, deferring instrumentation to its start-up", framework.name)
                self._transition(InterceptorState.FRAMEWORK_DELEGATED, framework)
                return

        for layer in self.import_hook_layers:
            if layer.loaded_by(module_name):
                log.debug("%s loaded, installing the import watchdog", layer.name)
                self._transition(InterceptorState.UPGRADED)
                return

    def with_reentrancy_guard(self, func, *args, **kwargs):
        # type: (Callable[..., Any], Any, Any) -> Any
        """Call ``func`` unless this thread is already inside a guarded call.

        Imports made while instrumenting a library are not processed again.
        Exceptions are logged and never reach the import system.
        """
        local = self._local
        if getattr(local, "active", False):
            return None

        local.active = True
        try:
            return func(*args, **kwargs)
        except Exception:
            log.error("Failed to auto-instrument on import", exc_info=True)
            return None
        finally:
            local.active = False

    def _on_watched_import(self, module_names):
        # type: (List[str]) -> None
        self.with_reentrancy_guard(self._watched_events, module_names)

    def _watched_events(self, module_names):
        # type: (List[str]) -> None
        if self.state is not InterceptorState.WATCHER_INSTALLED:
            # Superseded by a stronger strategy, the wrapper only passes through.
            return

        # Every module of the batch finished loading before the watchdog could
        # have been installed, so an upgrade does not hand them over to it.
        for module_name in module_names:
            if self.state is InterceptorState.FRAMEWORK_DELEGATED:
                # The framework sweeps every imported library once it is ready
                return
            self._maybe_upgrade(module_name)
            self.dispatch(module_name)

    def on_import(self, module_name):
        # type: (str) -> None
        self.with_reentrancy_guard(self.dispatch, module_name)

    def dispatch(self, module_name):
        # type: (str) -> None
        """Instrument the integrations triggered by the import of ``module_name``."""
        for integration in self.registry.lookup(module_name):
            if not _allowed(integration.name, self.only, self.except_):
                log.debug("Skipping %s: excluded by configuration", integration.name)
                continue
            _instrument(integration, module_name)

    def _on_framework_ready(self):
        # type: () -> None
        auto_instrument(self.only, self.except_, self.registry)

    def _uninstall(self):
        # type: () -> None
        """Remove the installed import hooks. For tests only."""
        with self._lock:
            import_hooks.uninstall()
            ImportWatchdog.remove_listener(self.on_import)
            self.state = InterceptorState.UNINSTALLED
            self._has_run = False


_interceptor = Interceptor(registry)


def run(config=None):
    # type: (Optional[InstrumentationConfig]) -> InterceptorState
    """Set up automatic instrumentation of LLM libraries as they get imported.

    Calling this more than once has no further effect.

    :param config: defaults to the configuration read from the environment
        (``LLMTRACE_AUTO_INSTRUMENT``, ``LLMTRACE_INSTRUMENT_ONLY``,
        ``LLMTRACE_INSTRUMENT_EXCEPT``).
    """
    if config is None:
        from llmtrace.settings.instrumentation import config

    for name, source in config.explicit_settings().items():
        log.debug("%s set from %s", name, source.value)

    return _interceptor.run(enabled=config.enabled, only=config.only, except_=config.except_)


def activate(name, target=None, **options):
    # type: (str, Optional[Any], Any) -> bool
    """Instrument a registered integration by name.

        >>> activate("openai")  # every OpenAI client
        >>> client = openai.OpenAI()
        >>> activate("openai", target=client, tracer_provider=provider)  # this client only

    :returns: ``True`` if the integration is instrumented for the given scope.
    """
    integration = registry.get(name)
    if integration is None:
        log.error("No integration for '%s' is defined", name)
        return False
    return integration.instrument(target, **options)


def is_active(name, target=None):
    # type: (str, Optional[Any]) -> bool
    integration = registry.get(name)
    return integration is not None and integration.patched(target)


def reset(name):
    # type: (str) -> None
    """Mark every patcher of the integration as inactive. For tests only."""
    integration = registry.get(name)
    if integration is not None:
        integration.reset()
