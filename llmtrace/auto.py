"""
Importing ``llmtrace.auto`` sets up automatic instrumentation of LLM client
libraries. It should be imported as early as possible, before the libraries
to instrument::

    # myapp.py

    import llmtrace.auto  # noqa: F401
    import openai

    client = openai.OpenAI()

Automatic instrumentation can be turned off with ``LLMTRACE_AUTO_INSTRUMENT=false``
and restricted with ``LLMTRACE_INSTRUMENT_ONLY`` and ``LLMTRACE_INSTRUMENT_EXCEPT``.
"""

from llmtrace import run


run()
