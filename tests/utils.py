"""
Helper functions to make writing unit tests for hypercollection easier
"""

import os
import sys
import random
import string
import secrets
import unittest
import urllib.parse
from typing import Any, Dict, List, Optional

import sqlalchemy.orm
from fastapi.testclient import TestClient

from hypercollection import schemas, settings as _settings
from hypercollection.api import create_app
from hypercollection.persistence import database, models

from . import conf


NAMES = [
    "alice", "bob", "carol", "dave", "erin", "frank",
    "grace", "heidi", "ivan", "judy", "mallory", "oscar"
]


def sample_user_data(count: int = conf.SAMPLE_USER_COUNT) -> List[Dict[str, Any]]:
    """
    Return deterministic user data with duplicate names and some missing ages
    """

    return [
        {
            "id": i,
            "name": f"{NAMES[(i * 7) % len(NAMES)]}{i % 5}",
            "email": f"user{i}@example.com",
            "age": None if i % 9 == 0 else 18 + (i * 13) % 50,
            "created": 1600000000 + i
        }
        for i in range(1, count + 1)
    ]


def sample_users(count: int = conf.SAMPLE_USER_COUNT) -> List[schemas.User]:
    return [schemas.User(**data) for data in sample_user_data(count)]


def query_of(link: str) -> Dict[str, str]:
    """
    Return the query parameters of a (relative or absolute) link as dictionary
    """

    return dict(urllib.parse.parse_qsl(urllib.parse.urlsplit(link).query, keep_blank_values=True))


class BaseTest(unittest.TestCase):
    """
    A base class for unit tests which introduces simple setup and teardown of unit tests

    If a subclass needs special setup or teardown functionality, it **MUST**
    call the superclasses setup and teardown methods: the superclass setup
    method at the beginning of the subclass setup method, the superclass
    teardown method at the end of the subclass teardown method.
    """

    config_file: Optional[str] = None
    _config_paths: Optional[List[str]] = None

    def setUp(self) -> None:
        self.config_file = f"config_{os.getpid()}_{secrets.token_hex(8)}.json"
        self._config_paths = _settings.CONFIG_PATHS
        _settings.CONFIG_PATHS = [self.config_file]

    def tearDown(self) -> None:
        _settings.CONFIG_PATHS = self._config_paths
        if self.config_file and os.path.exists(self.config_file):
            os.remove(self.config_file)


class BasePersistenceTests(BaseTest):
    database_url: Optional[str] = None
    session: sqlalchemy.orm.Session
    _database_file: Optional[str] = None

    def setUp(self) -> None:
        super().setUp()

        if conf.DATABASE_URL is not None:
            self.database_url = conf.DATABASE_URL
        else:
            self._database_file = conf.DATABASE_DEFAULT_FILE_FORMAT.format(
                os.getpid(),
                "".join([random.choice(string.ascii_lowercase) for _ in range(6)])
            )
            try:
                open(self._database_file, "wb").close()
                os.remove(self._database_file)
                self.database_url = conf.DATABASE_URL_FORMAT.format(self._database_file)
            except OSError as exc:
                self.database_url = conf.DATABASE_FALLBACK_URL
                self._database_file = None
                print(
                    f"{exc}: Falling back to in-memory database. This is not recommended!",
                    file=sys.stderr
                )

        database.PRINT_SQLITE_WARNING = False
        database.init(self.database_url, echo=conf.SQLALCHEMY_ECHOING)
        self.session = database.get_new_session()

    def tearDown(self) -> None:
        self.session.close()
        database.Base.metadata.drop_all(bind=database.get_engine())
        database.get_engine().dispose()
        if self._database_file and os.path.exists(self._database_file):
            os.remove(self._database_file)
        super().tearDown()

    def add_sample_users(self, count: int = conf.SAMPLE_USER_COUNT) -> List[models.User]:
        users = [
            models.User(id=data["id"], name=data["name"], email=data["email"], age=data["age"])
            for data in sample_user_data(count)
        ]
        self.session.add_all(users)
        self.session.commit()
        return users


class BaseAPITests(BasePersistenceTests):
    client: TestClient

    def setUp(self) -> None:
        super().setUp()
        self.client = TestClient(self.make_app())

    def make_app(self, **general: Any):
        settings = _settings.Settings(
            general=general,
            database={"connection": self.database_url, "debug_sql": conf.SQLALCHEMY_ECHOING}
        )
        return create_app(settings=settings, configure_logging=False, configure_database=False)

    def assertAPIError(self, response, status_code: int = 400) -> Dict[str, Any]:
        self.assertEqual(status_code, response.status_code, response.text)
        body = response.json()
        self.assertTrue(body["error"])
        self.assertEqual(status_code, body["status"])
        self.assertIsInstance(body["message"], str)
        return body
