from llmtrace.contrib.trace_utils import ResourceMethodPatcher


class MessagesPatcher(ResourceMethodPatcher):
    name = "anthropic.messages"
    system = "anthropic"
    operation = "messages"
    module = "anthropic.resources.messages"
    resource = "Messages"
    client_path = ("messages",)


class BetaMessagesPatcher(ResourceMethodPatcher):
    name = "anthropic.beta.messages"
    system = "anthropic"
    operation = "messages"
    module = "anthropic.resources.beta.messages"
    resource = "Messages"
    client_path = ("beta", "messages")
