"""
Application Layer
=================

- sender: publish_once (connect -> publish -> disconnect)
- cli: entry point de línea de comandos
"""
from .sender import PublishResult, build_message, publish_once
from .cli import main, run

__all__ = [
    "PublishResult",
    "build_message",
    "publish_once",
    "main",
    "run",
]
