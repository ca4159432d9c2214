"""Tests for the configuration and workflow models."""

import os
import pathlib
import unittest
from unittest import mock

import pydantic

from actions_upgrader import models
from tests import base


class ConfigurationTestCase(base.TestCase):
    def test_values_from_environment(self) -> None:
        os.environ.update(
            {
                'GITHUB_ORGNAME': 'test-org',
                'GITHUB_TOKEN': 'env-token',
                'GIT_USEREMAIL': 'bot@example.com',
                'GIT_USERNAME': 'Bot',
            }
        )

        configuration = models.Configuration.model_validate({})

        self.assertEqual(configuration.github.organization, 'test-org')
        self.assertEqual(
            configuration.github.api_key.get_secret_value(), 'env-token'
        )
        self.assertEqual(configuration.git.user_name, 'Bot')
        self.assertEqual(configuration.git.user_email, 'bot@example.com')
        self.assertFalse(configuration.approve)
        self.assertEqual(configuration.branch_prefix, 'actionsupgrader-')
        self.assertEqual(
            configuration.acquisition.repositories_file,
            pathlib.Path('repos.txt'),
        )

    def test_explicit_values_win(self) -> None:
        os.environ['GITHUB_ORGNAME'] = 'env-org'

        configuration = base.configuration()

        self.assertEqual(configuration.github.organization, 'test-org')

    def test_missing_mandatory_values(self) -> None:
        with self.assertRaises(pydantic.ValidationError) as context:
            models.Configuration.model_validate({})

        fields = {error['loc'] for error in context.exception.errors()}
        self.assertIn(('github', 'api_key'), fields)
        self.assertIn(('github', 'organization'), fields)
        self.assertIn(('git', 'user_name'), fields)
        self.assertIn(('git', 'user_email'), fields)

    def test_blank_environment_ignored(self) -> None:
        with mock.patch.dict(os.environ, {'GITHUB_TOKEN': '  '}):
            with self.assertRaises(pydantic.ValidationError):
                models.GitHubConfiguration.model_validate(
                    {'organization': 'test-org'}
                )

    def test_invalid_organization(self) -> None:
        with self.assertRaises(pydantic.ValidationError):
            models.GitHubConfiguration(api_key='x', organization='a/b')

    def test_entity(self) -> None:
        organization = models.GitHubConfiguration(
            api_key='x', organization='test-org'
        )
        user = models.GitHubConfiguration(
            api_key='x', organization='someone', user=True
        )

        self.assertEqual(organization.entity, 'orgs/test-org')
        self.assertEqual(user.entity, 'users/someone')
        self.assertEqual(organization.base_url, 'https://api.github.com')

    def test_api_key_is_secret(self) -> None:
        configuration = base.configuration()

        self.assertNotIn('test-token', repr(configuration))


class GitHubRepositoryTestCase(unittest.TestCase):
    def test_git_suffix_stripped(self) -> None:
        repository = models.GitHubRepository.model_validate(
            {
                'name': 'app',
                'clone_url': 'https://github.com/test-org/app.git',
                'size': 5,
                'visibility': 'private',
            }
        )

        self.assertEqual(
            repository.clone_url, 'https://github.com/test-org/app'
        )
        self.assertFalse(repository.archived)


class ChangeSetTestCase(unittest.TestCase):
    def _update(
        self, repository: str, filename: str
    ) -> models.ResolvedUpdate:
        return models.ResolvedUpdate(
            reference=models.ActionReference(
                repo_name=repository,
                workflow_file=pathlib.Path(
                    f'/repos/{repository}/.github/workflows/{filename}'
                ),
                workflow_name='CI',
                step_name='actions/checkout@v3',
                owner_repo='actions/checkout',
                old_version='v3',
            ),
            new_version='v4',
        )

    def test_group(self) -> None:
        updates = [
            self._update('zeta', 'ci.yml'),
            self._update('alpha', 'z.yml'),
            self._update('zeta', 'build.yml'),
            self._update('alpha', 'a.yml'),
        ]

        change_sets = models.ChangeSet.group(updates)

        self.assertEqual(
            [(c.repo_name, c.indices) for c in change_sets],
            [('alpha', [1, 3]), ('zeta', [0, 2])],
        )
        self.assertEqual(
            change_sets[0].repository_path, pathlib.Path('/repos/alpha')
        )
        self.assertEqual(
            [path.name for path, _ in change_sets[0].by_workflow_file()],
            ['a.yml', 'z.yml'],
        )
