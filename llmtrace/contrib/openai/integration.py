import sys

from llmtrace.contrib.integration import Integration


class OpenAIIntegration(Integration):
    name = "openai"
    module_names = ("openai",)
    package_names = ("openai",)
    minimum_version = "1.0.0"

    def loaded(self):
        # type: () -> bool
        return hasattr(sys.modules.get("openai"), "OpenAI")

    def _load_patchers(self):
        from .patcher import ChatPatcher
        from .patcher import ResponsesPatcher

        return [ChatPatcher(), ResponsesPatcher()]
