import threading
from typing import Dict  # noqa:F401
from typing import Iterator  # noqa:F401
from typing import List  # noqa:F401
from typing import Optional  # noqa:F401
from typing import Tuple  # noqa:F401

from llmtrace.contrib.exceptions import DuplicateNameError
from llmtrace.contrib.integration import Integration  # noqa:F401
from llmtrace.internal.logger import get_logger


log = get_logger(__name__)

_EMPTY = ()  # type: Tuple[Integration, ...]


class Registry(object):
    """Index of integrations by name and by the module names that trigger them.

    Registration happens at start-up and takes a lock. Lookups are lock-free:
    every registration publishes a new immutable module map.
    """

    def __init__(self):
        self._lock = threading.Lock()
        self._integrations = {}  # type: Dict[str, Integration]
        self._by_module = {}  # type: Dict[str, Tuple[Integration, ...]]

    def register(self, integration):
        # type: (Integration) -> Integration
        """Register an integration under its name and each of its module names.

        :raises DuplicateNameError: if the name is already registered.
        """
        with self._lock:
            if integration.name in self._integrations:
                raise DuplicateNameError(integration.name)

            by_module = dict(self._by_module)
            for module_name in integration.module_names:
                by_module[module_name] = by_module.get(module_name, _EMPTY) + (integration,)

            self._integrations[integration.name] = integration
            self._by_module = by_module

        log.debug("Registered integration %s for modules %s", integration.name, ",".join(integration.module_names))
        return integration

    def lookup(self, module_name):
        # type: (str) -> Tuple[Integration, ...]
        """The integrations triggered by the import of ``module_name``, in registration order."""
        return self._by_module.get(module_name, _EMPTY)

    def get(self, name):
        # type: (str) -> Optional[Integration]
        return self._integrations.get(name)

    def __getitem__(self, name):
        # type: (str) -> Integration
        return self._integrations[name]

    def __contains__(self, name):
        return name in self._integrations

    def __iter__(self):
        # type: () -> Iterator[Integration]
        return iter(list(self._integrations.values()))

    def __len__(self):
        return len(self._integrations)

    def all(self):
        # type: () -> List[Integration]
        return list(self._integrations.values())

    def available(self):
        # type: () -> List[Integration]
        """The integrations whose library is currently imported."""
        return [i for i in self._integrations.values() if i.available()]
