"""
Integrations with LLM client libraries.

``registry`` holds every built-in integration, indexed by name and by the
module names whose import triggers it. Importing this package only imports
the integration descriptors: the vendor libraries and the patchers are
imported when an integration is first patched.
"""
from llmtrace.contrib._registry import Registry
from llmtrace.contrib.anthropic import AnthropicIntegration
from llmtrace.contrib.openai import OpenAIIntegration
from llmtrace.contrib.openai_legacy import OpenAILegacyIntegration


registry = Registry()

registry.register(OpenAIIntegration())
registry.register(OpenAILegacyIntegration())
registry.register(AnthropicIntegration())


__all__ = ["registry", "Registry"]
