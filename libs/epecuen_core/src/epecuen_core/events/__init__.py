from .envelope import EventEnvelope

__all__ = ["EventEnvelope"]
