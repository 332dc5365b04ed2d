from datetime import datetime
from typing import Annotated, Optional

from pydantic import BeforeValidator, PlainSerializer

from ewm.core.errors import ValidationError

# Date format shared with the statistics collector and API clients
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"


def parse_date(value):
    if isinstance(value, str):
        return datetime.strptime(value, DATE_FORMAT)
    return value


def format_date(value: datetime) -> str:
    return value.strftime(DATE_FORMAT)


FormattedDateTime = Annotated[
    datetime,
    BeforeValidator(parse_date),
    PlainSerializer(format_date, return_type=str),
]


def parse_date_param(value: Optional[str], name: str) -> Optional[datetime]:
    """Parse an optional query parameter, failing with a 400 on bad input."""
    if value is None:
        return None
    try:
        return datetime.strptime(value, DATE_FORMAT)
    except ValueError:
        raise ValidationError(f"{name}={value!r} does not match 'yyyy-MM-dd HH:mm:ss'")
