import importlib
import os
import sys
import textwrap

from llmtrace.contrib.host import Framework
from llmtrace.contrib.integration import Integration
from llmtrace.contrib.patcher import Patcher


class FakeLibs(object):
    """Writes throwaway packages to a directory on ``sys.path``."""

    def __init__(self, root):
        self.root = root
        self.top_level = set()

    def write(self, module_name, source=""):
        parts = module_name.split(".")
        self.top_level.add(parts[0])

        directory = self.root
        for part in parts[:-1]:
            directory = directory / part
            directory.mkdir(exist_ok=True)
            init = directory / "__init__.py"
            if not init.exists():
                init.write_text("")

        package_dir = directory / parts[-1]
        if package_dir.is_dir():
            path = package_dir / "__init__.py"
        else:
            path = directory / (parts[-1] + ".py")
        path.write_text(textwrap.dedent(source))
        importlib.invalidate_caches()
        return path

    def write_package(self, module_name, source=""):
        package_dir = self.root.joinpath(*module_name.split("."))
        package_dir.mkdir(parents=True, exist_ok=True)
        return self.write(module_name, source)

    def unload(self):
        for name in list(sys.modules):
            if name.split(".")[0] in self.top_level:
                del sys.modules[name]


class RecordingPatcher(Patcher):
    """Records every side effect instead of patching anything."""

    def __init__(self, name="recording", applicable=True, error=None, on_patch=None):
        super().__init__()
        self.name = name
        self.is_applicable = applicable
        self.error = error
        self.on_patch = on_patch
        self.calls = []

    def _applicable(self, target=None):
        if isinstance(self.is_applicable, Exception):
            raise self.is_applicable
        return self.is_applicable

    def perform_patch(self, target=None, **options):
        self.calls.append((target, options))
        if self.on_patch is not None:
            self.on_patch(target)
        if self.error is not None:
            raise self.error


class FakeIntegration(Integration):
    def __init__(self, name, module_names, patchers=None, minimum_version=None, maximum_version=None):
        super().__init__()
        self.name = name
        self.module_names = tuple(module_names)
        self.minimum_version = minimum_version
        self.maximum_version = maximum_version
        self._fake_patchers = patchers if patchers is not None else [RecordingPatcher(name + ".patcher")]
        self.load_count = 0

    def _load_patchers(self):
        self.load_count += 1
        return self._fake_patchers

    @property
    def calls(self):
        return [call for p in self._fake_patchers for call in p.calls]


class FakeFramework(Framework):
    def __init__(self, name="fakeweb", module="fakeweb.apps", symbol="apps"):
        super().__init__(name, module, symbol)
        self.callbacks = []

    def install(self, callback):
        self.callbacks.append(callback)

    def start(self):
        for callback in self.callbacks:
            callback()


def library_source(version="1.0.0", body=""):
    return "__version__ = %r\n%s" % (version, textwrap.dedent(body))


def environ_without_llmtrace():
    return {k: v for k, v in os.environ.items() if not k.startswith("LLMTRACE_")}
