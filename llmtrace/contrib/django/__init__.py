"""
When Django is imported before ``llmtrace.run()``, or while the import
watcher is active, instrumentation of LLM libraries is deferred until
``django.apps.apps.populate()`` has completed: every library imported by the
project settings, the app modules, their models and ``AppConfig.ready()``
hooks is then loaded, and each registered integration whose library is
available gets instrumented once.

Libraries first imported after start-up, e.g. lazily from a view, can be
instrumented with ``llmtrace.activate()``.
"""
from .framework import DjangoFramework


__all__ = ["DjangoFramework"]
