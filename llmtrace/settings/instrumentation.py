import typing as t

from llmtrace.settings._core import LLMConfig


def parse_integration_names(value: t.Union[str, None]) -> t.Optional[t.List[str]]:
    if not isinstance(value, str):
        return None

    fragments = [s.strip() for s in value.split(",")]
    return [f for f in fragments if f != ""]


class InstrumentationConfig(LLMConfig):
    __prefix__ = "llmtrace"

    enabled = LLMConfig.v(
        bool,
        "auto_instrument",
        default=True,
        help_type="Boolean",
        help="Install the import hooks that instrument LLM client libraries as they are imported",
    )

    only = LLMConfig.v(
        t.Optional[list],
        "instrument_only",
        parser=parse_integration_names,
        default=None,
        help_type="List",
        help="Comma-separated list of integration names. When set, only these integrations are activated",
    )

    except_ = LLMConfig.v(
        t.Optional[list],
        "instrument_except",
        parser=parse_integration_names,
        default=None,
        help_type="List",
        help="Comma-separated list of integration names that are never activated automatically",
    )


class LoggingConfig(LLMConfig):
    __prefix__ = "llmtrace"

    debug = LLMConfig.v(
        bool,
        "debug",
        default=False,
        help_type="Boolean",
        help="Log llmtrace internals at DEBUG level",
    )

    rate = LLMConfig.v(
        int,
        "logging_rate",
        default=60,
        help_type="Integer",
        help="Seconds between two records logged from the same call site. 0 disables rate limiting",
    )


config = InstrumentationConfig()
