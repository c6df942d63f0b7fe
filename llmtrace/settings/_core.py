from collections import ChainMap
from enum import Enum
import os
from typing import Any  # noqa:F401
from typing import Dict  # noqa:F401
from typing import Mapping  # noqa:F401
from typing import Optional  # noqa:F401

from envier import Env


class ValueSource(str, Enum):
    ENV_VAR = "env_var"
    CODE = "code"
    DEFAULT = "default"
    UNKNOWN = "unknown"


class LLMConfig(Env):
    """envier configuration that remembers where each of its values came from.

    Environment variables take precedence over the ``source`` mapping given in
    code, which takes precedence over the declared defaults.
    """

    def __init__(
        self,
        source: Optional[Dict[str, str]] = None,
        parent: Optional["Env"] = None,
        dynamic: Optional[Dict[str, str]] = None,
    ) -> None:
        self.env_source = os.environ  # type: Mapping[str, str]
        self.code_source = dict(source or {})

        super().__init__(source=ChainMap(self.env_source, self.code_source), parent=parent, dynamic=dynamic)

        self._value_source = {
            e.full_name: self._resolve_source(name, e) for name, e in type(self).items(recursive=True) if not e.private
        }  # type: Dict[str, ValueSource]

    def _resolve_source(self, name, e):
        # type: (str, Any) -> ValueSource
        if e.full_name in self.env_source:
            return ValueSource.ENV_VAR
        if e.full_name in self.code_source:
            return ValueSource.CODE

        value = self
        for part in name.split("."):
            value = getattr(value, part)
        return ValueSource.DEFAULT if value == e.default else ValueSource.UNKNOWN

    def value_source(self, env_name: str) -> ValueSource:
        return self._value_source.get(env_name, ValueSource.UNKNOWN)

    def explicit_settings(self):
        # type: () -> Dict[str, ValueSource]
        """Variables set through the environment or in code, with their source."""
        return {
            name: source
            for name, source in self._value_source.items()
            if source in (ValueSource.ENV_VAR, ValueSource.CODE)
        }
