"""The Actual Informer: news aggregation with bias-aware rewriting."""

__version__ = "0.1.0"
