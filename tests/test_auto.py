import importlib
import sys

import mock

import llmtrace


def test_import_auto_runs():
    sys.modules.pop("llmtrace.auto", None)

    with mock.patch.object(llmtrace, "run") as run:
        importlib.import_module("llmtrace.auto")

    run.assert_called_once_with()
    sys.modules.pop("llmtrace.auto", None)


def test_public_api():
    assert set(llmtrace.__all__) == {
        "activate",
        "auto_instrument",
        "is_active",
        "registry",
        "reset",
        "run",
        "set_default_tracer_provider",
    }
    assert llmtrace.registry.get("openai") is not None
