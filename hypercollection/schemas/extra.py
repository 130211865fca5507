"""
hypercollection extra schemas
"""

import datetime

import pydantic


class Status(pydantic.BaseModel):
    startup: pydantic.NonNegativeInt
    version: str
    localtime: datetime.datetime
    timestamp: pydantic.NonNegativeInt
