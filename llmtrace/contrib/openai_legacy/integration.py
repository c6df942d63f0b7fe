import sys

from llmtrace.contrib.integration import Integration


class OpenAILegacyIntegration(Integration):
    name = "openai_legacy"
    module_names = ("openai",)
    package_names = ("openai",)
    minimum_version = "0.27.0"

    def loaded(self):
        # type: () -> bool
        # openai>=1.0 still exports a ChatCompletion name that raises on use.
        openai = sys.modules.get("openai")
        return hasattr(openai, "ChatCompletion") and not hasattr(openai, "OpenAI")

    def _load_patchers(self):
        from .patcher import ChatCompletionPatcher

        return [ChatCompletionPatcher()]
