"""
hypercollection REST API definitions

This API delivers collections of resources as flexible collection
envelopes. Every collection endpoint accepts the query parameters
`sort`, `reverse`, `limit`, `offset` and `details` (with case-insensitive
names and values) and answers with an object holding the requested page
in `items` together with the paging metadata `sort`, `reverse`, `limit`,
`offset`, `previous`, `next`, `total` and `details`. Unset optional
fields are always included with the value `null`.

The API tries to always return JSON-encoded data to any kind of request.
All error responses use the schema of the `APIError`. The `400` (Bad
Request) error response is used for any invalid query parameter or body,
e.g. an unknown sort attribute or a negative limit. Invalid parameters
are never corrected silently. The `404` (Not Found) error response is
returned whenever a resource ID can't be found.
"""

import contextlib
import logging.config
from typing import Any, Callable, Dict, Optional, Type

import fastapi
from fastapi.exceptions import RequestValidationError
from starlette.exceptions import HTTPException as StarletteHTTPException

from . import base
from .routers import router
from .. import schemas, __version__
from ..collection import InvalidParameter
from ..persistence import database
from ..settings import Settings


DEFAULT_EXCEPTION_HANDLERS = {
    StarletteHTTPException: base.APIException.handle,
    RequestValidationError: base.handle_request_validation_error,
    InvalidParameter: base.handle_invalid_parameter,
    Exception: base.handle_generic_exception
}


def create_app(
        settings: Optional[Settings] = None,
        configure_logging: bool = True,
        configure_database: bool = True,
        exception_handlers: Optional[Dict[Any, Callable]] = None,
        api_class: Type[fastapi.FastAPI] = base.APIWithoutValidationError
) -> fastapi.FastAPI:
    """
    Build the collection API application from the given settings

    Tests create one application per test case with their own settings
    and database, while the CLI creates one with the loaded settings.

    :param settings: settings of the application (loaded from all sources if omitted)
    :param configure_logging: apply the logging section via ``dictConfig``
    :param configure_database: initialize the database from the database section
    :param exception_handlers: mapping of exception classes to handlers replacing the defaults
    :param api_class: ``FastAPI`` subclass to instantiate
    :return: the configured application
    """

    if settings is None:
        settings = Settings()

    if configure_logging:
        logging.config.dictConfig(settings.logging.model_dump())
    logger = logging.getLogger(__name__)
    logger.debug(f"Creating hypercollection application {__version__}")

    if configure_database:
        database.init(settings.database.connection, settings.database.debug_sql)

    @contextlib.asynccontextmanager
    async def lifespan(_: fastapi.FastAPI):
        logger.info("hypercollection API ready to serve collections")
        yield
        logger.info("hypercollection API stopped")

    app = api_class(
        title="hypercollection REST API",
        version=__version__,
        description=__doc__,
        responses={400: {"model": schemas.APIError}},
        lifespan=lifespan
    )
    app.state.settings = settings

    handlers = exception_handlers or DEFAULT_EXCEPTION_HANDLERS
    for exc in handlers:
        app.add_exception_handler(exc, handlers[exc])

    @app.get("/", include_in_schema=False)
    async def redirect_root():
        return fastapi.responses.RedirectResponse("./docs")

    app.include_router(router)
    return app


class APIWrapper:
    """
    Lazy holder of the application for ASGI servers started by import path

    The module-level instance ``api`` creates the application with the
    settings from all sources on first access of ``app``, e.g.:

    .. code-block::

        uvicorn hypercollection.api:api.app
    """

    def __init__(self):
        self._app: Optional[fastapi.FastAPI] = None

    @property
    def app(self) -> fastapi.FastAPI:
        """
        Return the held application, creating it from the loaded settings on first use
        """

        if self._app is not None:
            return self._app
        self._app = create_app()
        return self._app


api = APIWrapper()
