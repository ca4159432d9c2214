"""Tests for the versions module."""

import pathlib
import unittest

import pydantic

from actions_upgrader import models, versions

SHA1 = 'a81bbbf8298c0fa03ea29cdc473d45769f953675'
SHA256 = 'sha256:' + 'ab' * 32


def _reference(
    step_name: str, workflow_file: str = '/repos/app/.github/workflows/ci.yml'
) -> models.ActionReference:
    coordinate, version = versions.split_reference(step_name)
    return models.ActionReference(
        repo_name='app',
        workflow_file=pathlib.Path(workflow_file),
        workflow_name='CI',
        step_name=step_name,
        owner_repo=coordinate,
        old_version=version,
    )


def _tags(owner_repo: str, *names: str) -> list[models.Tag]:
    return [models.Tag(owner_repo=owner_repo, name=name) for name in names]


class IsDigestTestCase(unittest.TestCase):
    def test_sha1(self) -> None:
        self.assertTrue(versions.is_digest(SHA1))

    def test_sha256(self) -> None:
        self.assertTrue(versions.is_digest(SHA256))

    def test_not_hex(self) -> None:
        self.assertFalse(versions.is_digest('z' * 40))

    def test_wrong_length(self) -> None:
        self.assertFalse(versions.is_digest(SHA1[:39]))
        self.assertFalse(versions.is_digest(SHA256[:-1]))

    def test_tag(self) -> None:
        self.assertFalse(versions.is_digest('v4'))


class IsNumericTagTestCase(unittest.TestCase):
    def test_numeric_tags(self) -> None:
        for value in ('v1', 'V1.2', '1.2.3', '10', 'v'):
            with self.subTest(value=value):
                self.assertTrue(versions.is_numeric_tag(value))

    def test_non_numeric_tags(self) -> None:
        for value in ('', 'main', 'v2.0.0-beta', '1.0v', 'vv1', 'release-1'):
            with self.subTest(value=value):
                self.assertFalse(versions.is_numeric_tag(value))


class ReferenceParsingTestCase(unittest.TestCase):
    def test_owner_repo(self) -> None:
        self.assertEqual(
            versions.owner_repo('actions/checkout@v4'), 'actions/checkout'
        )

    def test_owner_repo_of_sub_path_action(self) -> None:
        self.assertEqual(
            versions.owner_repo('github/codeql-action/init@v3'),
            'github/codeql-action',
        )

    def test_split_reference(self) -> None:
        self.assertEqual(
            versions.split_reference('actions/cache/save@v3.2'),
            ('actions/cache', 'v3.2'),
        )

    def test_split_reference_without_version(self) -> None:
        self.assertIsNone(versions.split_reference('./.github/actions/x'))
        self.assertIsNone(versions.split_reference('actions/checkout@'))


class CompareVersionsTestCase(unittest.TestCase):
    def test_numeric_components(self) -> None:
        self.assertEqual(versions.compare_versions('v1.10.0', 'v1.2.0'), 1)
        self.assertEqual(versions.compare_versions('v1.2.0', 'v1.10.0'), -1)

    def test_prefix_ignored(self) -> None:
        self.assertEqual(versions.compare_versions('v1.0', '1.0'), 0)
        self.assertEqual(versions.compare_versions('V2', 'v2'), 0)

    def test_shorter_version_compares_equal(self) -> None:
        self.assertEqual(versions.compare_versions('1.2', '1.2.3'), 0)
        self.assertEqual(versions.compare_versions('1.2.3', '1.2'), 0)

    def test_prerelease_suffix_dropped(self) -> None:
        self.assertEqual(versions.compare_versions('2.0.0-beta', '2.0.0'), 0)

    def test_text_components_compared_literally(self) -> None:
        self.assertEqual(versions.compare_versions('1.a', '1.b'), -1)
        self.assertEqual(versions.compare_versions('1.b', '1.a'), 1)


class SelectHighestTestCase(unittest.TestCase):
    def test_highest(self) -> None:
        self.assertEqual(
            versions.select_highest(['v1.0.0', 'v1.10.0', 'v1.2.0']),
            'v1.10.0',
        )

    def test_tie_prefers_shorter_spelling(self) -> None:
        self.assertEqual(versions.select_highest(['v1.0', '1.0']), '1.0')
        self.assertEqual(versions.select_highest(['1.0', 'v1.0']), '1.0')

    def test_empty(self) -> None:
        self.assertIsNone(versions.select_highest([]))


class ResolveTestCase(unittest.TestCase):
    def test_numeric_not_lexicographic(self) -> None:
        self.assertEqual(
            versions.resolve(
                'v1.2.0', ['v1.0.0', 'v1.2.0', 'v1.10.0', 'v2.0.0-beta']
            ),
            'v1.10.0',
        )

    def test_equal_emits_nothing(self) -> None:
        self.assertIsNone(versions.resolve('v1.10.0', ['v1.2.0', 'v1.10.0']))

    def test_equal_with_different_spelling_emits_nothing(self) -> None:
        self.assertIsNone(versions.resolve('v1.0', ['1.0']))

    def test_shorter_old_version_compares_equal(self) -> None:
        self.assertIsNone(versions.resolve('1.2', ['1.2.3']))

    def test_major_only(self) -> None:
        self.assertEqual(versions.resolve('v3', ['v3', 'v4']), 'v4')

    def test_digest_never_resolved(self) -> None:
        self.assertIsNone(versions.resolve(SHA1, ['v1', 'v2']))
        self.assertIsNone(versions.resolve(SHA256, ['v1', 'v2']))

    def test_non_numeric_old_version(self) -> None:
        self.assertIsNone(versions.resolve('main', ['v1', 'v2']))

    def test_no_numeric_tags(self) -> None:
        self.assertIsNone(versions.resolve('v1', ['latest', 'v2-rc']))


class ResolveUpdatesTestCase(unittest.TestCase):
    def test_resolves_against_same_coordinate(self) -> None:
        references = [
            _reference('actions/checkout@v3'),
            _reference('actions/setup-go@v3'),
        ]
        tags = _tags('actions/checkout', 'v3', 'v4') + _tags(
            'actions/setup-go', 'v3', 'v5'
        )

        updates = versions.resolve_updates(references, tags)

        self.assertEqual(
            [(u.step_name, u.new_version) for u in updates],
            [('actions/checkout@v3', 'v4'), ('actions/setup-go@v3', 'v5')],
        )

    def test_sub_path_action_uses_repository_tags(self) -> None:
        references = [_reference('github/codeql-action/init@v2')]
        tags = _tags('github/codeql-action', 'v2', 'v3')

        updates = versions.resolve_updates(references, tags)

        self.assertEqual(len(updates), 1)
        self.assertEqual(updates[0].new_version, 'v3')

    def test_digest_references_excluded(self) -> None:
        references = [
            _reference(f'actions/checkout@{SHA1}'),
            _reference(f'actions/checkout@{SHA256}'),
        ]
        tags = _tags('actions/checkout', 'v4', '1' * 40)

        self.assertEqual(versions.resolve_updates(references, tags), [])

    def test_unknown_coordinate(self) -> None:
        references = [_reference('someone/action@v1')]
        tags = _tags('actions/checkout', 'v4')

        self.assertEqual(versions.resolve_updates(references, tags), [])

    def test_output_ordered_by_file_and_step(self) -> None:
        references = [
            _reference(
                'actions/setup-go@v3', '/repos/b/.github/workflows/a.yml'
            ),
            _reference(
                'actions/checkout@v3', '/repos/b/.github/workflows/a.yml'
            ),
            _reference(
                'actions/checkout@v3', '/repos/a/.github/workflows/z.yml'
            ),
        ]
        tags = _tags('actions/checkout', 'v4') + _tags(
            'actions/setup-go', 'v4'
        )

        updates = versions.resolve_updates(references, tags)

        self.assertEqual(
            [(str(u.workflow_file), u.step_name) for u in updates],
            [
                ('/repos/a/.github/workflows/z.yml', 'actions/checkout@v3'),
                ('/repos/b/.github/workflows/a.yml', 'actions/checkout@v3'),
                ('/repos/b/.github/workflows/a.yml', 'actions/setup-go@v3'),
            ],
        )

    def test_updates_are_immutable(self) -> None:
        updates = versions.resolve_updates(
            [_reference('actions/checkout@v3')],
            _tags('actions/checkout', 'v4'),
        )
        with self.assertRaises(pydantic.ValidationError):
            updates[0].new_version = 'v5'
