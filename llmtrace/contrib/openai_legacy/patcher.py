from llmtrace.contrib.trace_utils import ResourceMethodPatcher


class ChatCompletionPatcher(ResourceMethodPatcher):
    """``ChatCompletion.create`` is a classmethod: there is no instance scope."""

    name = "openai_legacy.chat"
    system = "openai"
    operation = "chat"
    module = "openai"
    resource = "ChatCompletion"
