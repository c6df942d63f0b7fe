"""
The legacy OpenAI integration traces ``openai.ChatCompletion.create`` calls of
the ``openai`` library before 1.0.0. Those releases have no client objects,
so the integration can only be enabled for the whole process::

    llmtrace.activate("openai_legacy")
"""
from .integration import OpenAILegacyIntegration


__all__ = ["OpenAILegacyIntegration"]
