"""
The Anthropic integration traces ``messages.create`` calls made with the
``anthropic`` Python library, including the beta namespace when the installed
release has one.

Enabling
~~~~~~~~

Either call ``llmtrace.run()`` before ``anthropic`` is imported, or::

    client = anthropic.Anthropic()
    llmtrace.activate("anthropic", target=client)
"""
from .integration import AnthropicIntegration


__all__ = ["AnthropicIntegration"]
