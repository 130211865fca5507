"""
hypercollection router module for /users requests
"""

import logging

import pydantic
from fastapi import Depends

from ._router import router
from ..base import NotFound
from ..dependency import CollectionQuery, LocalRequestData
from ...collection import evaluate_window
from ...persistence import models, queries
from ... import schemas


logger = logging.getLogger(__name__)


@router.get(
    "/users",
    tags=["Users"],
    response_model=schemas.Envelope,
    responses={400: {"model": schemas.APIError}}
)
async def search_for_users(
        query: CollectionQuery = Depends(CollectionQuery),
        local: LocalRequestData = Depends(LocalRequestData)
):
    """
    Return one page of the flexible collection of all users

    The following query parameters are accepted, all of them optional,
    with case-insensitive names and case-insensitive enumerated values:

    * `sort`: attribute name to order the users ascending by
    * `reverse`: `true` to invert the order
    * `limit`: maximum number of users in the page (`0` only returns the metadata)
    * `offset`: number of leading users to skip
    * `details`: `minimal` to only get references, `all` to get full user bodies

    A page with `limit=0` only reports the `total`. Its `next` link points
    at the same offset again, so clients walking the pages must not
    follow `next` links of such pages.

    * `400`: if any query parameter is unknown or can't be applied
    """

    def reference(user: models.User) -> dict:
        href = query.absolute_url(local.request.url_for("get_user", user_id=user.id))
        return schemas.ResourceReference(id=user.id, href=href).model_dump()

    window = queries.fetch_window(
        local.session.query(models.User),
        models.User,
        query.params,
        nulls=local.config.general.null_ordering
    )
    return evaluate_window(
        window.items,
        window.total,
        query.params,
        sort=window.sort,
        links=query.link,
        reference=reference,
        render=lambda user: user.schema.model_dump()
    )


@router.get(
    "/users/{user_id}",
    tags=["Users"],
    response_model=schemas.User,
    responses={404: {"model": schemas.APIError}}
)
async def get_user(user_id: pydantic.NonNegativeInt, local: LocalRequestData = Depends(LocalRequestData)):
    """
    Return the user identified by its ID

    * `404`: if the user ID is unknown
    """

    user = local.session.get(models.User, user_id)
    if user is None:
        raise NotFound(f"User with ID {user_id!r}")
    return user.schema


@router.post(
    "/users",
    tags=["Users"],
    status_code=201,
    response_model=schemas.User,
    responses={400: {"model": schemas.APIError}}
)
async def create_new_user(request: schemas.UserCreation, local: LocalRequestData = Depends(LocalRequestData)):
    """
    Create a new user and return it with all of its attributes
    """

    model = models.User(name=request.name, email=request.email, age=request.age)
    local.session.add(model)
    local.session.commit()
    logger.debug(f"Created new user {model!r}")
    return model.schema
