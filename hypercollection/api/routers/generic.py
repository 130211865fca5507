"""
hypercollection router module generic functionalities
"""

import datetime

from ._router import router
from ..base import startup
from ... import schemas, __version__


@router.get("/health", tags=["Generic"])
async def verify_running_backend():
    """
    Return 200 OK with an empty object as body to only verify that the service and the middlewares work
    """

    return {}


@router.get("/status", tags=["Generic"], response_model=schemas.Status)
async def get_status():
    """
    Return some information about the current status of the server
    """

    now = datetime.datetime.now().astimezone()
    return schemas.Status(
        startup=int(startup),
        version=__version__,
        localtime=now,
        timestamp=int(now.timestamp())
    )
