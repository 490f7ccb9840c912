from sqlalchemy import Text
from sqlalchemy.types import TypeDecorator

from gymcoach.schemas.audience import dump_audience, parse_audience


class AudienceType(TypeDecorator):
    """Stores an audience descriptor as JSON text, loads it back as a model."""

    impl = Text
    cache_ok = True

    def process_bind_param(self, value, dialect):
        if value is None:
            return None
        return dump_audience(parse_audience(value))

    def process_result_value(self, value, dialect):
        if value is None:
            return None
        return parse_audience(value)
