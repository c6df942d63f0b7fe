from importlib.metadata import PackageNotFoundError
import sys
import types

import mock
import pytest

from llmtrace.contrib.context import Context
from llmtrace.contrib.openai import OpenAIIntegration
from llmtrace.contrib.openai_legacy import OpenAILegacyIntegration
from tests.utils import FakeIntegration
from tests.utils import RecordingPatcher
from tests.utils import library_source


class Client(object):
    pass


@pytest.fixture
def fakellm(fake_libs):
    fake_libs.write("fakellm", library_source("1.2.0"))
    import fakellm

    return fakellm


def test_not_available_until_imported(fake_libs):
    fake_libs.write("fakellm", library_source("1.2.0"))
    integration = FakeIntegration("fake", ["fakellm"])

    assert not integration.available()
    assert not integration.compatible()
    assert not integration.patch()
    assert integration.load_count == 0

    import fakellm  # noqa:F401

    assert integration.available()
    assert integration.compatible()


def test_get_version_from_module(fakellm):
    assert FakeIntegration("fake", ["fakellm"]).get_version() == "1.2.0"


def test_get_version_from_distribution(fakellm):
    integration = FakeIntegration("fake", ["fakellm"])
    integration.package_names = ("fakellm-dist",)

    with mock.patch("llmtrace.contrib.integration.get_pkg_version", return_value="3.0.0") as get_pkg_version:
        assert integration.get_version() == "3.0.0"

    get_pkg_version.assert_called_once_with("fakellm-dist")


@pytest.mark.parametrize(
    "minimum,maximum,expected",
    [
        (None, None, True),
        ("1.0.0", None, True),
        ("1.2.0", "1.2.0", True),
        ("1.2.1", None, False),
        (None, "1.1.9", False),
        ("0.1", "2", True),
    ],
)
def test_version_gate(fakellm, minimum, maximum, expected):
    integration = FakeIntegration("fake", ["fakellm"], minimum_version=minimum, maximum_version=maximum)

    assert integration.compatible() is expected
    assert integration.patch() is expected
    assert len(integration.calls) == (1 if expected else 0)


def test_missing_version_is_incompatible(fake_libs):
    fake_libs.write("fakellm", "")
    import fakellm  # noqa:F401

    integration = FakeIntegration("fake", ["fakellm"])

    assert integration.available()
    assert integration.get_version() is None
    assert not integration.compatible()


def test_invalid_version_is_incompatible(fake_libs):
    fake_libs.write("fakellm", library_source("not-a-version"))
    import fakellm  # noqa:F401

    assert not FakeIntegration("fake", ["fakellm"], minimum_version="1.0").compatible()


def test_patchers_are_loaded_once(fakellm):
    integration = FakeIntegration("fake", ["fakellm"])
    assert integration.load_count == 0
    assert not integration.patched()

    assert integration.patchers() is integration.patchers()
    integration.patch()
    integration.patch()

    assert integration.load_count == 1


def test_patch_skips_inapplicable_patchers(fakellm):
    applicable = RecordingPatcher("applicable")
    inapplicable = RecordingPatcher("inapplicable", applicable=False)
    integration = FakeIntegration("fake", ["fakellm"], patchers=[inapplicable, applicable])

    assert integration.patch()
    assert integration.patched()
    assert inapplicable.calls == []
    assert len(applicable.calls) == 1


def test_patch_succeeds_if_any_patcher_does(fakellm):
    failing = RecordingPatcher("failing", error=RuntimeError())
    working = RecordingPatcher("working")
    integration = FakeIntegration("fake", ["fakellm"], patchers=[failing, working])

    assert integration.patch()
    assert not failing.patched()
    assert working.patched()


def test_patch_without_applicable_patcher(fakellm):
    integration = FakeIntegration("fake", ["fakellm"], patchers=[RecordingPatcher(applicable=False)])

    assert not integration.patch()
    assert not integration.patched()


def test_instrument_target_attaches_options(fakellm):
    integration = FakeIntegration("fake", ["fakellm"])
    client = Client()

    assert integration.instrument(client, tracer_provider="provider")

    assert integration.patched(client)
    assert not integration.patched()
    assert Context.get_from(client)["tracer_provider"] == "provider"
    assert integration.calls == [(client, {"tracer_provider": "provider"})]


def test_reset(fakellm):
    integration = FakeIntegration("fake", ["fakellm"])
    integration.reset()

    integration.patch()
    integration.reset()

    assert not integration.patched()
    assert integration.patch()
    assert len(integration.calls) == 2


def _openai_module(version, *names):
    module = types.ModuleType("openai")
    module.__version__ = version
    for name in names:
        setattr(module, name, type(name, (object,), {}))
    return module


@pytest.mark.parametrize(
    "module,current,legacy",
    [
        (_openai_module("1.30.0", "OpenAI", "ChatCompletion"), True, False),
        (_openai_module("0.28.1", "ChatCompletion"), False, True),
        (_openai_module("0.1.0"), False, False),
    ],
)
def test_openai_disambiguation(module, current, legacy):
    with mock.patch.dict(sys.modules, {"openai": module}):
        assert OpenAIIntegration().available() is current
        assert OpenAILegacyIntegration().available() is legacy


def test_openai_legacy_version_range():
    integration = OpenAILegacyIntegration()

    with mock.patch.dict(sys.modules, {"openai": _openai_module("0.26.5", "ChatCompletion")}), mock.patch(
        "llmtrace.contrib.integration.get_pkg_version", side_effect=PackageNotFoundError("openai")
    ):
        assert integration.available()
        assert not integration.compatible()
