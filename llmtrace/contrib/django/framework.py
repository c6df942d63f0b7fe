import sys
import threading
from typing import Callable  # noqa:F401

import wrapt

from llmtrace.contrib.host import Framework
from llmtrace.internal.logger import get_logger


log = get_logger(__name__)


def _populate_wrapper(callback):
    # type: (Callable[[], None]) -> Callable
    lock = threading.Lock()
    done = []

    def traced_populate(func, instance, args, kwargs):
        """django.apps.registry.Apps.populate is the method used to populate all the apps.

        `populate()` works in 3 phases:

            - Phase 1: Initializes the app configs and imports the app modules.
            - Phase 2: Imports models modules for each app.
            - Phase 3: runs ready() of each app config.

        If all 3 phases successfully run then `instance.ready` will be `True`,
        and every module imported at start-up is loaded.
        """
        # populate() can be called multiple times, and other Apps registries
        # (e.g. migration states) populate as well.
        if instance.ready:
            return func(*args, **kwargs)

        ret = func(*args, **kwargs)

        django_apps = sys.modules.get("django.apps")
        if not instance.ready or django_apps is None or instance is not getattr(django_apps, "apps", None):
            return ret

        with lock:
            if done:
                return ret
            done.append(True)

        log.debug("Django app registry ready, instrumenting LLM libraries")
        try:
            callback()
        except Exception:
            log.error("Failed to instrument LLM libraries after Django start-up", exc_info=True)
        return ret

    return traced_populate


class DjangoFramework(Framework):
    """Defers instrumentation until ``django.apps.apps`` is ready."""

    def __init__(self):
        super().__init__("django", "django.apps", "apps")

    def install(self, callback):
        # type: (Callable[[], None]) -> None
        from django.apps import apps

        if apps.ready:
            log.debug("Django app registry already ready, instrumenting LLM libraries now")
            callback()
            return

        wrapt.wrap_function_wrapper("django.apps.registry", "Apps.populate", _populate_wrapper(callback))
        log.debug("Deferred LLM instrumentation to Django start-up")
