from ._logger import configure_llmtrace_logger


# configure llmtrace logger before other modules log
configure_llmtrace_logger()  # noqa: E402

from ._monkey import activate  # noqa: E402
from ._monkey import auto_instrument  # noqa: E402
from ._monkey import is_active  # noqa: E402
from ._monkey import reset  # noqa: E402
from ._monkey import run  # noqa: E402
from .contrib import registry  # noqa: E402
from .contrib.context import set_default_tracer_provider  # noqa: E402


__all__ = [
    "activate",
    "auto_instrument",
    "is_active",
    "registry",
    "reset",
    "run",
    "set_default_tracer_provider",
]
