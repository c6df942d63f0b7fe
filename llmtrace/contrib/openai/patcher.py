from llmtrace.contrib.trace_utils import ResourceMethodPatcher


class ChatPatcher(ResourceMethodPatcher):
    name = "openai.chat"
    system = "openai"
    operation = "chat"
    module = "openai.resources.chat.completions"
    resource = "Completions"
    client_path = ("chat", "completions")


class ResponsesPatcher(ResourceMethodPatcher):
    """Only available from the SDK releases that ship the Responses API."""

    name = "openai.responses"
    system = "openai"
    operation = "responses"
    module = "openai.resources.responses"
    resource = "Responses"
    client_path = ("responses",)
