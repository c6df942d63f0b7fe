from setuptools import find_packages
from setuptools import setup


setup(
    name="llmtrace",
    version="0.1.0",
    description="Automatic OpenTelemetry instrumentation of LLM client libraries",
    python_requires=">=3.8",
    packages=find_packages(exclude=["tests*"]),
    package_data={
        "llmtrace": ["py.typed"],
    },
    install_requires=[
        "envier~=0.6",
        "opentelemetry-api>=1",
        "packaging>=17.1",
        "wrapt>=1",
    ],
    extras_require={
        "openai": ["openai>=1.0.0"],
        "anthropic": ["anthropic>=0.3.0,<1"],
        "django": ["django>=3.2"],
        "test": [
            "mock",
            "opentelemetry-sdk>=1",
            "pytest",
            "httpx",
        ],
    },
    zip_safe=False,
)
