import importlib
import sys
from warnings import warn

import mock
import pytest

from llmtrace.internal.module import ImportWatchdog
from llmtrace.internal.module import is_submodule_available


@pytest.fixture(autouse=True, scope="module")
def ensure_no_import_watchdog():
    was_installed = ImportWatchdog.is_installed()
    if was_installed:
        ImportWatchdog.uninstall()

    try:
        yield
    finally:
        if was_installed:
            if ImportWatchdog.is_installed():
                warn("ImportWatchdog still installed after test run")
            else:
                ImportWatchdog.install()


@pytest.fixture
def import_watchdog():
    ImportWatchdog.install()

    assert ImportWatchdog.is_installed()

    yield ImportWatchdog

    ImportWatchdog.uninstall()


def test_watchdog_install_uninstall():
    assert not ImportWatchdog.is_installed()
    assert not any(isinstance(m, ImportWatchdog) for m in sys.meta_path)

    ImportWatchdog.install()

    assert ImportWatchdog.is_installed()
    assert isinstance(sys.meta_path[0], ImportWatchdog)

    ImportWatchdog.uninstall()

    assert not ImportWatchdog.is_installed()
    assert not any(isinstance(m, ImportWatchdog) for m in sys.meta_path)


def test_watchdog_multiple_install(import_watchdog):
    with pytest.raises(RuntimeError):
        ImportWatchdog.install()


def test_uninstall_not_installed():
    with pytest.raises(RuntimeError):
        ImportWatchdog.uninstall()


def test_add_listener_installs():
    listener = mock.Mock()
    ImportWatchdog.add_listener(listener)
    try:
        assert ImportWatchdog.is_installed()
        ImportWatchdog.add_listener(listener)
        assert ImportWatchdog._instance._listeners == [listener]
    finally:
        ImportWatchdog.uninstall()


def test_listener_called_after_module_executed(import_watchdog, fake_libs):
    fake_libs.write("fakellm", "executed = True\n")
    seen = []

    def listener(name):
        if name.startswith("fakellm"):
            seen.append((name, sys.modules[name].executed))

    import_watchdog.add_listener(listener)

    import fakellm  # noqa:F401

    assert seen == [("fakellm", True)]


def test_listener_observes_import_module(import_watchdog, fake_libs):
    fake_libs.write_package("fakellm")
    fake_libs.write("fakellm.chat", "")
    listener = mock.Mock()
    import_watchdog.add_listener(listener)

    importlib.import_module("fakellm.chat")

    names = [c.args[0] for c in listener.call_args_list]
    assert names.index("fakellm") < names.index("fakellm.chat")


def test_remove_listener(import_watchdog, fake_libs):
    fake_libs.write("fakellm", "")
    listener = mock.Mock()
    import_watchdog.add_listener(listener)
    import_watchdog.remove_listener(listener)

    import fakellm  # noqa:F401

    listener.assert_not_called()


def test_listener_errors_do_not_break_imports(import_watchdog, fake_libs):
    fake_libs.write("fakellm", "value = 1\n")
    import_watchdog.add_listener(mock.Mock(side_effect=RuntimeError("boom")))

    import fakellm

    assert fakellm.value == 1


def test_namespace_package(import_watchdog, tmp_path, monkeypatch):
    (tmp_path / "fakens" / "inner").mkdir(parents=True)
    (tmp_path / "fakens" / "inner" / "mod.py").write_text("")
    monkeypatch.syspath_prepend(str(tmp_path))
    listener = mock.Mock()
    import_watchdog.add_listener(listener)

    try:
        import fakens.inner.mod  # noqa:F401

        names = [c.args[0] for c in listener.call_args_list]
        assert "fakens" in names
        assert "fakens.inner.mod" in names
    finally:
        for name in [n for n in sys.modules if n.split(".")[0] == "fakens"]:
            del sys.modules[name]


def test_is_submodule_available_does_not_import(fake_libs):
    fake_libs.write_package("fakepkg")
    fake_libs.write_package("fakepkg.sub")
    fake_libs.write("fakepkg.sub.leaf", "")

    assert not is_submodule_available("fakepkg.sub.leaf")

    import fakepkg  # noqa:F401

    before = set(sys.modules)
    assert is_submodule_available("fakepkg.sub.leaf")
    assert is_submodule_available("fakepkg.sub")
    assert not is_submodule_available("fakepkg.sub.missing")
    assert not is_submodule_available("fakepkg.sub.leaf.deeper")
    assert set(sys.modules) == before
    assert "fakepkg.sub" not in sys.modules
