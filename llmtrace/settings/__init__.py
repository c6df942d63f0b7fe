from .instrumentation import InstrumentationConfig
from .instrumentation import LoggingConfig


__all__ = ["InstrumentationConfig", "LoggingConfig"]
