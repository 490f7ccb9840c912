from gymcoach.schemas.audience import (
    Audience,
    AllClientsAudience,
    ClientListAudience,
    parse_audience,
    dump_audience,
)

__all__ = [
    "Audience", "AllClientsAudience", "ClientListAudience",
    "parse_audience", "dump_audience",
]
