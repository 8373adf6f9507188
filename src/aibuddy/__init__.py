"""aibuddy: ask a language model to plan or patch the current git checkout."""

__version__ = "0.3.0"
