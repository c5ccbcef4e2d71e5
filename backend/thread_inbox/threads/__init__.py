from .identity import ThreadKind, ThreadRef, parse, resolve, ref_for

__all__ = ["ThreadKind", "ThreadRef", "parse", "resolve", "ref_for"]
