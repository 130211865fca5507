"""
hypercollection unit tests
"""

import unittest
from .test_api import ConfiguredCollectionTests, GenericAPITests, UserCollectionTests, UserResourceTests
from .test_cli import CommandLineTests
from .test_evaluator import EvaluatorTests, WindowEvaluatorTests
from .test_parameters import ParameterParsingTests
from .test_queries import SourcePagingTests
from .test_settings import LoggingFilterTests, SettingsTests


TEST_CLASSES = [
    CommandLineTests,
    ConfiguredCollectionTests,
    EvaluatorTests,
    GenericAPITests,
    LoggingFilterTests,
    ParameterParsingTests,
    SettingsTests,
    SourcePagingTests,
    UserCollectionTests,
    UserResourceTests,
    WindowEvaluatorTests,
]


def get_suite() -> unittest.TestSuite:
    suite = unittest.TestSuite()
    for cls in TEST_CLASSES:
        for fixture in filter(lambda f: f.startswith("test_"), dir(cls)):
            suite.addTest(cls(fixture))
    return suite
