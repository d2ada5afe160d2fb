"""Setup file for development installation."""

from setuptools import setup, find_namespace_packages

setup(
    name="exaone-chat",
    version="0.1.0",
    packages=find_namespace_packages(where="src", include=["exaone_chat*"]),
    package_dir={"": "src"},
    python_requires=">=3.9",
    install_requires=[
        "fastapi",
        "httpx",
        "pydantic>=2",
        "structlog",
        "prometheus-client",
        "opentelemetry-instrumentation-fastapi",
        "click",
        "uvicorn",
    ],
    extras_require={
        "test": [
            "pytest",
            "pytest-asyncio",
        ],
    },
    entry_points={
        "console_scripts": [
            "exaone-chat=exaone_chat.cli:cli",
        ],
    },
)
