"""FastAPI integration for sqla-query-builder."""

from .dependencies import request_parameters, with_settings
from .handlers import invalid_query_handler, register_exception_handlers

__all__: list[str] = [
    "invalid_query_handler",
    "register_exception_handlers",
    "request_parameters",
    "with_settings",
]
