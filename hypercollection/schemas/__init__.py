"""
hypercollection schema definitions

Resource schemas have a base name and may have a ``Creation`` variant
holding only the fields a client supplies when creating a new instance.
For example, there are two classes to represent users:
``User`` and ``UserCreation``.

This package also contains the ``config`` module, but it's not
exported by default, since it's currently only used internally.
"""

from .bases import *
from .collection import *
from .errors import *
from .extra import *
