"""
The OpenAI integration traces chat completions and responses made with the
``openai`` Python library, version 1.0.0 and later.

Enabling
~~~~~~~~

The integration is enabled automatically when ``llmtrace.run()`` was called
before ``openai`` is imported. Every client is then traced.

To trace a single client only::

    import llmtrace
    import openai

    client = openai.OpenAI()
    llmtrace.activate("openai", target=client, tracer_provider=provider)

Spans are named ``openai.chat`` and ``openai.responses`` and carry the
``gen_ai.system`` and ``gen_ai.request.model`` attributes.
"""
from .integration import OpenAIIntegration


__all__ = ["OpenAIIntegration"]
