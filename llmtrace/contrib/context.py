from typing import Any  # noqa:F401
from typing import Dict  # noqa:F401
from typing import Optional  # noqa:F401

from opentelemetry import trace
import wrapt

from llmtrace.internal.logger import get_logger


log = get_logger(__name__)


# To set attributes on wrapt proxy objects use this prefix:
# http://wrapt.readthedocs.io/en/latest/wrappers.html
_CONTEXT_NAME = "_llmtrace_context"
_CONTEXT_PROXY_NAME = "_self_" + _CONTEXT_NAME

TRACER_NAME = "llmtrace"


class Context(object):
    """Configuration attached to one instrumented object, or to a class.

        >>> client = openai.OpenAI()
        >>> Context.set(client, tracer_provider=provider)
        >>> Context.get_from(client)["tracer_provider"] is provider
        True

    Lookup checks the object first, then its class.
    """

    __slots__ = ["_options", "_target"]

    def __init__(self, **options):
        # type: (Any) -> None
        self._options = options  # type: Dict[str, Any]
        self._target = None  # type: Optional[int]

    def __repr__(self):
        return "Context(%r)" % (self._options,)

    def __getitem__(self, key):
        return self._options[key]

    def __setitem__(self, key, value):
        self._options[key] = value

    def __contains__(self, key):
        return key in self._options

    def get(self, key, default=None):
        return self._options.get(key, default)

    def onto(self, obj):
        # type: (Any) -> None
        """Attach this context to the given object."""
        self._target = id(obj)
        name = _CONTEXT_PROXY_NAME if isinstance(obj, wrapt.ObjectProxy) else _CONTEXT_NAME
        try:
            setattr(obj, name, self)
        except AttributeError:
            log.debug("can't attach context %r to object %r", self, obj, exc_info=True)

    @staticmethod
    def get_from(obj):
        # type: (Any) -> Optional[Context]
        """Return the context attached to ``obj`` or to its class, if any."""
        if obj is None:
            return None
        name = _CONTEXT_PROXY_NAME if isinstance(obj, wrapt.ObjectProxy) else _CONTEXT_NAME
        return getattr(obj, name, None)

    @classmethod
    def set(cls, target, **options):
        # type: (Any, Any) -> Optional[Context]
        """Create or update the context owned by ``target``.

        A context inherited from the class is never mutated: the target gets
        its own copy carrying the new options.

        :returns: the context now attached to ``target``, or ``None`` when
            there is nothing to set.
        """
        if not options:
            return None

        ctx = cls.get_from(target)
        if ctx is not None and ctx._target == id(target):
            ctx._options.update(options)
            return ctx

        inherited = dict(ctx._options) if ctx is not None else {}
        inherited.update(options)
        ctx = cls(**inherited)
        ctx.onto(target)
        return ctx


_default_tracer_provider = None  # type: Optional[trace.TracerProvider]


def set_default_tracer_provider(tracer_provider):
    # type: (Optional[trace.TracerProvider]) -> None
    global _default_tracer_provider

    _default_tracer_provider = tracer_provider


def tracer_provider_for(*objs):
    # type: (Any) -> trace.TracerProvider
    """The tracer provider of the first of ``objs`` with a context that sets one.

    Falls back to the provider given to ``set_default_tracer_provider`` and
    then to the OpenTelemetry global provider.
    """
    for obj in objs:
        ctx = Context.get_from(obj)
        if ctx is not None and ctx.get("tracer_provider") is not None:
            return ctx["tracer_provider"]
    return _default_tracer_provider or trace.get_tracer_provider()


def tracer_for(*objs):
    # type: (Any) -> trace.Tracer
    return tracer_provider_for(*objs).get_tracer(TRACER_NAME)
