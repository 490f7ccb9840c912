"""Broadcast audience descriptors.

An audience is either every active client of the owning coach, or an explicit
list of client ids. It is stored as JSON text and parsed once, when a row is
loaded, into one of the models below.
"""
from typing import Annotated, Literal, Union

from pydantic import BaseModel, Field, TypeAdapter, field_validator


class AllClientsAudience(BaseModel):
    type: Literal["all"] = "all"


class ClientListAudience(BaseModel):
    type: Literal["clients"] = "clients"
    ids: list[str] = []

    @field_validator("ids")
    @classmethod
    def dedupe_ids(cls, v: list[str]) -> list[str]:
        # One recipient row per client, first occurrence wins
        seen: dict[str, None] = {}
        for client_id in v:
            client_id = client_id.strip()
            if client_id:
                seen.setdefault(client_id, None)
        return list(seen)


Audience = Annotated[
    Union[AllClientsAudience, ClientListAudience],
    Field(discriminator="type"),
]

audience_adapter: TypeAdapter[Audience] = TypeAdapter(Audience)


def parse_audience(raw: str | dict | AllClientsAudience | ClientListAudience) -> AllClientsAudience | ClientListAudience:
    """Parse JSON text, a plain dict, or an existing model into an audience."""
    if isinstance(raw, (AllClientsAudience, ClientListAudience)):
        return raw
    if isinstance(raw, (str, bytes)):
        return audience_adapter.validate_json(raw)
    return audience_adapter.validate_python(raw)


def dump_audience(audience: AllClientsAudience | ClientListAudience) -> str:
    return audience_adapter.dump_json(audience).decode("utf-8")
