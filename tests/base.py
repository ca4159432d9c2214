"""Shared test case base classes."""

import logging
import os
import pathlib
import tempfile
import unittest
from unittest import mock

from actions_upgrader import models

ENVIRONMENT_VARIABLES = (
    'GITHUB_ORGNAME',
    'GITHUB_TOKEN',
    'GIT_USEREMAIL',
    'GIT_USERNAME',
)


def configuration(**kwargs: object) -> models.Configuration:
    """Return a configuration with test credentials."""
    data = {
        'git': {'user_name': 'Upgrader', 'user_email': 'upgrader@test.com'},
        'github': {
            'api_key': 'test-token',
            'organization': 'test-org',
            'retry_backoff': 0,
        },
    }
    data.update(kwargs)
    return models.Configuration.model_validate(data)


def write_workflow(
    root: pathlib.Path, repository: str, filename: str, content: str
) -> pathlib.Path:
    """Write a workflow file into ``root/repository/.github/workflows``."""
    workflows = root / repository / '.github' / 'workflows'
    workflows.mkdir(parents=True, exist_ok=True)
    path = workflows / filename
    path.write_bytes(content.encode('utf-8'))
    return path


def _isolate(test_case: unittest.TestCase) -> pathlib.Path:
    """Hide the caller's mandatory environment variables from a test and
    return a temporary working directory.

    """
    logging.getLogger('actions_upgrader').setLevel(logging.DEBUG)
    environ = {
        key: value
        for key, value in os.environ.items()
        if key not in ENVIRONMENT_VARIABLES
    }
    test_case.enterContext(mock.patch.dict(os.environ, environ, clear=True))
    return pathlib.Path(
        test_case.enterContext(tempfile.TemporaryDirectory())
    )


class TestCase(unittest.TestCase):
    """Test case isolated from the caller's environment variables."""

    def setUp(self) -> None:
        super().setUp()
        self.working_directory = _isolate(self)


class AsyncTestCase(unittest.IsolatedAsyncioTestCase):
    """Async test case isolated from the caller's environment variables."""

    def setUp(self) -> None:
        super().setUp()
        self.working_directory = _isolate(self)
