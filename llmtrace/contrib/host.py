"""
Other subsystems of the host process that shape how imports are observed.

``ImportHookLayer`` describes an independent library that installs its own
import hook at the front of ``sys.meta_path``. Ours is only put in front once
that library's defining module has completely loaded.

``Framework`` describes a web framework with a start-up lifecycle. When one
is present, instrumentation is deferred until the framework has finished
starting instead of following imports one by one.
"""

import abc
import sys
from typing import Callable


class ImportHookLayer(object):
    def __init__(self, name, module, symbol):
        # type: (str, str, str) -> None
        self.name = name
        self.module = module
        self.symbol = symbol

    def __repr__(self):
        return "%s(name=%r, module=%r)" % (type(self).__name__, self.name, self.module)

    def present(self):
        # type: () -> bool
        """Whether the defining module is imported and defines its symbol."""
        module = sys.modules.get(self.module)
        return module is not None and hasattr(module, self.symbol)

    def loaded_by(self, module_name):
        # type: (str) -> bool
        """Whether the import of ``module_name`` is the one that completed this layer.

        Only the import of the defining module itself qualifies. The symbol
        may already be defined while that module is still initializing.
        """
        return module_name == self.module and self.present()


class Framework(ImportHookLayer, abc.ABC):
    @abc.abstractmethod
    def install(self, callback):
        # type: (Callable[[], None]) -> None
        """Arrange for ``callback`` to be called once, after the framework has started."""
