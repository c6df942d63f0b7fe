"""
Helpers shared by the vendor patchers.

Every traced call opens one OpenTelemetry client span. The tracer comes from
the nearest ``Context``: the client that owns the resource, then the resource
object the method is called on (or its class), then the default provider.
"""
import importlib
import sys
from typing import Any  # noqa:F401
from typing import Callable  # noqa:F401
from typing import Dict  # noqa:F401
from typing import Optional  # noqa:F401
from typing import Tuple  # noqa:F401

from opentelemetry.trace import SpanKind
import wrapt

from llmtrace.contrib.context import Context
from llmtrace.contrib.context import tracer_for
from llmtrace.contrib.patcher import Patcher
from llmtrace.internal.module import is_submodule_available


# Set on resource objects whose own method is wrapped, so that a class-wide
# wrapper applied later does not open a second span for the same call.
_INSTANCE_TRACED = "_llmtrace_traced"

GEN_AI_SYSTEM = "gen_ai.system"
GEN_AI_OPERATION = "gen_ai.operation.name"
GEN_AI_REQUEST_MODEL = "gen_ai.request.model"
GEN_AI_RESPONSE_MODEL = "gen_ai.response.model"


def request_attributes(system, operation, kwargs):
    # type: (str, str, Dict[str, Any]) -> Dict[str, Any]
    attributes = {
        GEN_AI_SYSTEM: system,
        GEN_AI_OPERATION: operation,
    }
    model = kwargs.get("model")
    if isinstance(model, str):
        attributes[GEN_AI_REQUEST_MODEL] = model
    return attributes


def _tag_response(span, response):
    model = getattr(response, "model", None)
    if isinstance(model, str):
        span.set_attribute(GEN_AI_RESPONSE_MODEL, model)


def traced_call(system, operation, owner=None):
    # type: (str, str, Optional[Any]) -> Callable
    """Return a ``wrapt`` wrapper that traces one LLM API call.

    :param owner: the client of an instance-scoped wrapper. Class-wide
        wrappers leave it unset and skip resources traced on their own.
    """

    def traced(func, instance, args, kwargs):
        if owner is None and getattr(instance, _INSTANCE_TRACED, False):
            return func(*args, **kwargs)

        client = owner if owner is not None else getattr(instance, "_client", None)
        tracer = tracer_for(client, instance)
        with tracer.start_as_current_span(
            "%s.%s" % (system, operation),
            kind=SpanKind.CLIENT,
            attributes=request_attributes(system, operation, kwargs),
        ) as span:
            response = func(*args, **kwargs)
            _tag_response(span, response)
            return response

    return traced


def wrap_instance_method(resource, method, wrapper):
    # type: (Any, str, Callable) -> None
    """Wrap ``method`` on the ``resource`` object only, leaving its class untouched."""
    setattr(resource, method, wrapt.FunctionWrapper(getattr(resource, method), wrapper))
    setattr(resource, _INSTANCE_TRACED, True)


class ResourceMethodPatcher(Patcher):
    """Traces one method of an API resource class.

    Class-wide, the method is wrapped on the resource class. For a client
    target, the method is wrapped on that client's own resource object,
    reached from the client through ``client_path``. A client of a library
    already patched class-wide only gets its options attached.
    """

    system = ""
    operation = ""
    module = ""
    resource = ""
    method = "create"
    client_path = ()  # type: Tuple[str, ...]

    def _applicable(self, target=None):
        if target is None:
            return is_submodule_available(self.module)

        return bool(self.client_path) and hasattr(target, self.client_path[0])

    def resource_class(self):
        module = sys.modules.get(self.module)
        if module is None:
            module = importlib.import_module(self.module)
        return getattr(module, self.resource)

    def perform_patch(self, target=None, **options):
        if target is None:
            wrapt.wrap_function_wrapper(
                self.module, "%s.%s" % (self.resource, self.method), traced_call(self.system, self.operation)
            )
            Context.set(self.resource_class(), **options)
            return

        Context.set(target, **options)
        if self.patched():
            return

        resource = target
        for name in self.client_path:
            resource = getattr(resource, name)
        wrap_instance_method(resource, self.method, traced_call(self.system, self.operation, owner=target))
