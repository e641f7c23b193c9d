"""Core package: configuration, logging, context, protocols and the worker runtime."""
