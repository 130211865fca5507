"""
hypercollection REST API package

Use the ``api`` wrapper object to serve the application, e.g.:

.. code-block::

    uvicorn hypercollection.api:api.app
"""

from .api import api, create_app
