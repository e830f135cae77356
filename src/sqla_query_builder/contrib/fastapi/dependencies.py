"""FastAPI dependencies producing a RequestParameters snapshot."""

from __future__ import annotations

from typing import TYPE_CHECKING

from fastapi import Request

from ...request import RequestParameters

if TYPE_CHECKING:
    from collections.abc import Callable

    from ...settings import QueryBuilderSettings


def request_parameters(request: Request) -> RequestParameters:
    """Snapshot the query string of the current request.

    Example:
        ```python
        @router.get("/users")
        async def list_users(
            params: RequestParameters = Depends(request_parameters),
            session: AsyncSession = Depends(get_session),
        ):
            builder = QueryBuilder(User, params).allowed_filters("name")
            return [u.to_dict() for u in await builder.get(session)]
        ```
    """
    return RequestParameters.from_query_string(request.url.query)


def with_settings(
    settings: QueryBuilderSettings,
) -> Callable[[Request], RequestParameters]:
    """Create a dependency that reads parameters using custom names."""

    def dependency(request: Request) -> RequestParameters:
        return RequestParameters.from_query_string(request.url.query, settings)

    return dependency
