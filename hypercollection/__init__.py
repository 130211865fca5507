"""
Flexible collection envelopes for RESTful APIs

The package is split into the pure collection query evaluator
(``hypercollection.collection``), the typed schemas shared with
clients (``hypercollection.schemas``), an optional SQLAlchemy
adapter paging at the source (``hypercollection.persistence``)
and a small FastAPI surface (``hypercollection.api``).
"""

__version__ = "0.1.0"
