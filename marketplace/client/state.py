from enum import Enum
from typing import Union

import httpx

from marketplace.client.api import ApiError


class ViewStatus(str, Enum):
    IDLE = "idle"
    LOADING = "loading"
    READY = "ready"
    ERROR = "error"


# failures a view reacts to; anything else is a bug and propagates
REQUEST_ERRORS = (ApiError, httpx.HTTPError)


def describe_error(exc: Union[ApiError, httpx.HTTPError]) -> str:
    if isinstance(exc, ApiError):
        return exc.message
    return str(exc) or exc.__class__.__name__
