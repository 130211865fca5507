"""
hypercollection API dependency library
"""

import logging
from typing import Generator

import sqlalchemy.exc
from fastapi import Depends, Request, Response
from starlette.datastructures import URL
from sqlalchemy.orm import Session

from ..collection import InvalidParameter, parse_parameters
from ..persistence import database
from ..schemas.collection import CollectionParameters, PageReference
from ..settings import Settings


def get_session() -> Generator[Session, None, None]:
    """
    Return a generator to handle database sessions gracefully
    """

    logger = logging.getLogger(__name__)
    session = database.get_new_session()

    try:
        yield session
        session.flush()
    except sqlalchemy.exc.SQLAlchemyError as exc:
        logger.exception(f"{type(exc).__name__}: {str(exc)}")
        session.rollback()
        raise
    except Exception:
        session.rollback()
        raise
    finally:
        session.close()


def get_settings(request: Request) -> Settings:
    settings = getattr(request.app.state, "settings", None)
    if settings is None:
        settings = Settings()
        request.app.state.settings = settings
    return settings


class LocalRequestData:
    """
    Collection of core dependencies used by all path operations
    """

    def __init__(
            self,
            request: Request,
            response: Response,
            session: Session = Depends(get_session),
            config: Settings = Depends(get_settings)
    ):
        self.request = request
        self.response = response
        self.headers = request.headers
        self.session = session
        self.config = config


class CollectionQuery:
    """
    Dependency providing the flexible collection parameters of a request

    Parameter names and enumerated values are matched case-insensitively.
    Any unknown, duplicated or malformed query parameter is rejected with
    an ``InvalidParameter`` exception (answered by a `400` response). If
    the client didn't request a limit, the configured default limit is used.
    A requested limit beyond the configured maximum is rejected as well.
    """

    def __init__(self, request: Request, config: Settings = Depends(get_settings)):
        self.request = request
        self.config = config

        params = parse_parameters(request.query_params.multi_items())
        general = config.general
        if params.limit is None and general.default_limit is not None:
            params = params.model_copy(update={"limit": general.default_limit})
        if general.max_limit is not None and params.limit is not None and params.limit > general.max_limit:
            raise InvalidParameter("limit", params.limit, f"must not exceed {general.max_limit}")
        self.params: CollectionParameters = params

    def absolute_url(self, url: URL) -> str:
        """
        Return the absolute form of a URL of this API, preferring the configured public base URL
        """

        base = self.config.server.public_base_url
        if base is None:
            return str(url)
        result = str(base).rstrip("/") + url.path
        if url.query:
            result += "?" + url.query
        return result

    def link(self, page: PageReference) -> str:
        """
        Return the absolute link to another page of the requested collection
        """

        return self.absolute_url(self.request.url.replace_query_params(**page.query()))
