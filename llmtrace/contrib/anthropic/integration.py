from llmtrace.contrib.integration import Integration


class AnthropicIntegration(Integration):
    name = "anthropic"
    module_names = ("anthropic",)
    package_names = ("anthropic",)
    minimum_version = "0.3.0"

    def _load_patchers(self):
        from .patcher import BetaMessagesPatcher
        from .patcher import MessagesPatcher

        return [MessagesPatcher(), BetaMessagesPatcher()]
