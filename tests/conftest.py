import logging

import pytest

from llmtrace._monkey import Interceptor
from llmtrace.contrib._registry import Registry
from llmtrace.internal import import_hooks
from llmtrace.internal.module import ImportWatchdog
from tests.utils import FakeLibs


@pytest.fixture
def fake_libs(tmp_path, monkeypatch):
    monkeypatch.syspath_prepend(str(tmp_path))
    libs = FakeLibs(tmp_path)

    yield libs

    libs.unload()


@pytest.fixture
def registry():
    return Registry()


@pytest.fixture
def make_interceptor():
    created = []

    def _make(integrations, frameworks=(), import_hook_layers=()):
        interceptor = Interceptor(integrations, frameworks=frameworks, import_hook_layers=import_hook_layers)
        created.append(interceptor)
        return interceptor

    yield _make

    for interceptor in created:
        interceptor._uninstall()
    if ImportWatchdog.is_installed():
        ImportWatchdog.uninstall()
    assert not import_hooks.is_installed()


@pytest.fixture
def llmtrace_caplog(caplog):
    # llmtrace loggers are rate limited unless at DEBUG
    caplog.set_level(logging.DEBUG, logger="llmtrace")
    return caplog


@pytest.fixture
def span_exporter():
    pytest.importorskip("opentelemetry.sdk")
    from opentelemetry.sdk.trace.export.in_memory_span_exporter import InMemorySpanExporter

    return InMemorySpanExporter()


@pytest.fixture
def tracer_provider(span_exporter):
    from opentelemetry.sdk.trace import TracerProvider
    from opentelemetry.sdk.trace.export import SimpleSpanProcessor

    provider = TracerProvider()
    provider.add_span_processor(SimpleSpanProcessor(span_exporter))
    yield provider
    provider.shutdown()
