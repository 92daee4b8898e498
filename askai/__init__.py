"""askai: run text operations through LLM command-line tools with fallback."""

__version__ = "0.1.0"
