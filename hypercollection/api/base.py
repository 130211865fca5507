"""
hypercollection REST API base library
"""

import time
import logging
from typing import Any, Dict, Optional

from fastapi import FastAPI, HTTPException, Request, Response
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from .. import schemas
from ..collection import InvalidParameter


logger = logging.getLogger(__name__)

startup = time.time()


class APIWithoutValidationError(FastAPI):
    """
    FastAPI application whose OpenAPI schema omits the 422 responses

    Request validation errors are answered with 400 by this API.
    """

    def openapi(self) -> Dict[str, Any]:
        if not self.openapi_schema:
            schema = super().openapi()
            for path, operations in schema["paths"].items():
                for method, metadata in operations.items():
                    metadata.get("responses", {}).pop("422", None)
        return self.openapi_schema


def _error_response(
        request: Request,
        status_code: int,
        message: str,
        details: str,
        repeat: bool = False,
        headers: Optional[Dict[str, Any]] = None
) -> JSONResponse:
    return JSONResponse(jsonable_encoder(schemas.APIError(
        status=status_code,
        method=request.method,
        request=request.url.path,
        repeat=repeat,
        message=message,
        details=details
    )), status_code=status_code, headers=headers)


async def handle_generic_exception(request: Request, _: Exception):
    logger.exception(f"Unhandled error while answering '{request.method} {request.url.path}'")
    msg = "Internal server error. The request could not be completed."
    return _error_response(request, 500, msg, "")


async def handle_request_validation_error(request: Request, exc: RequestValidationError):
    msgs = "\n".join(["\t" + error["msg"] for error in exc.errors()])
    message = f"Failed to process the request:\n{msgs}"
    return _error_response(request, 400, message, str(exc.errors()))


async def handle_invalid_parameter(request: Request, exc: InvalidParameter):
    logger.debug(f"{type(exc).__name__}: {exc} @ '{request.method} {request.url.path}'")
    return _error_response(request, 400, exc.message, str(exc))


class APIException(HTTPException):
    """
    HTTP exception carrying the fields of an APIError response
    """

    def __init__(
            self,
            status_code: int,
            detail: Optional[str],
            repeat: bool = False,
            message: Optional[str] = None,
            headers: Optional[Dict[str, Any]] = None
    ):
        super().__init__(status_code=status_code, detail=detail, headers=headers)
        self.repeat = repeat
        self.message = message

    @classmethod
    async def handle(cls, request: Request, exc: StarletteHTTPException) -> Response:
        """
        Answer any HTTP exception with an APIError body
        """

        status_code = getattr(exc, "status_code", 500)
        repeat = getattr(exc, "repeat", False)
        message = getattr(exc, "message", None) or exc.__class__.__name__

        logger.debug(
            f"{type(exc).__name__}: {message} @ '{request.method} "
            f"{request.url.path}' (details: {exc.detail})"
        )
        return _error_response(
            request,
            status_code,
            message,
            str(exc.detail) if exc.detail is not None else "",
            repeat=repeat,
            headers=getattr(exc, "headers", None)
        )


class NotFound(APIException):
    """
    Exception for a resource ID that doesn't exist
    """

    def __init__(self, resource: str, detail: Optional[str] = None):
        super().__init__(
            status_code=404,
            detail=detail,
            repeat=False,
            message=f"{str(resource)!r} was not found."
        )
