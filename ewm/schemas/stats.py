from pydantic import BaseModel, Field

from ewm.schemas.common import FormattedDateTime


class EndpointHit(BaseModel):
    """Body of the collector's ``POST /hit``."""

    app: str
    uri: str
    ip: str
    timestamp: FormattedDateTime


class ViewStats(BaseModel):
    """One row of the collector's ``GET /stats`` answer."""

    app: str = ""
    uri: str
    hits: int = Field(ge=0)
