from sqlalchemy import Enum as SAEnum


class CaseInsensitiveEnum(SAEnum):
    """Enum column stored by value that tolerates mixed case and legacy names.

    Strings are lower-cased and passed through the enum class on the way in,
    so ``"AGENT"`` or a legacy ``"admin"`` both land as ``"agent"`` when the
    enum maps them in ``_missing_``.
    """

    def __init__(self, enum_cls, **kwargs):
        self._enum_cls = enum_cls
        self._enum_kwargs = kwargs.copy()
        kwargs.setdefault("values_callable", lambda enum: [e.value for e in enum])
        super().__init__(enum_cls, **kwargs)

    def adapt(self, impltype, **kw):
        params = {**self._enum_kwargs, **kw}
        return CaseInsensitiveEnum(self._enum_cls, **params)

    def _coerce(self, value):
        if isinstance(value, self._enum_cls):
            return value
        return self._enum_cls(str(value).strip().lower())

    def bind_processor(self, dialect):
        parent = super().bind_processor(dialect)

        def process(value):
            if value is None:
                return None
            value = self._coerce(value).value
            return parent(value) if parent else value

        return process

    def result_processor(self, dialect, coltype):
        parent = super().result_processor(dialect, coltype)

        def process(value):
            if value is None:
                return None
            if isinstance(value, str):
                value = value.lower()
            return parent(value) if parent else value

        return process
