from .logger_adapter import LoggerAdapter, resolve_event

__all__ = ["LoggerAdapter", "resolve_event"]
