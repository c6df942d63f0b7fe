import logging

from llmtrace.internal.logger import LLMTraceFormatter
from llmtrace.internal.logger import set_rate_limit
from llmtrace.settings.instrumentation import LoggingConfig


def configure_llmtrace_logger(config=None):
    # type: (LoggingConfig) -> None
    """Configures the llmtrace log level and rate limit.

    Customization is possible with the environment variables:
        ``LLMTRACE_DEBUG`` and ``LLMTRACE_LOGGING_RATE``

    By default llmtrace loggers emit warnings and errors only, through a
    stream handler on the ``llmtrace`` logger. Records still propagate to the
    application's handlers.
    """
    if config is None:
        config = LoggingConfig()

    llmtrace_logger = logging.getLogger("llmtrace")
    if not any(isinstance(h.formatter, LLMTraceFormatter) for h in llmtrace_logger.handlers):
        handler = logging.StreamHandler()
        handler.setFormatter(LLMTraceFormatter("[%(name)s] %(message)s"))
        llmtrace_logger.addHandler(handler)

    llmtrace_logger.setLevel(logging.DEBUG if config.debug else logging.WARNING)
    set_rate_limit(config.rate)
