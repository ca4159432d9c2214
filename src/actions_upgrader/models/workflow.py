"""Models describing action references found in workflow files and the
updates resolved for them.
"""

import collections
import pathlib

import pydantic


class ActionReference(pydantic.BaseModel):
    """One ``uses:`` value of a workflow file.

    ``step_name`` is the full ``owner/repo[/path]@version`` text, trimmed
    and without trailing comment. A reference is identified by the
    ``(workflow_file, step_name)`` pair.
    """

    model_config = pydantic.ConfigDict(frozen=True)

    repo_name: str
    workflow_file: pathlib.Path
    workflow_name: str
    step_name: str
    owner_repo: str
    old_version: str

    @property
    def repository_path(self) -> pathlib.Path:
        """The repository root, three levels above the workflow file."""
        return self.workflow_file.parent.parent.parent


class ResolvedUpdate(pydantic.BaseModel):
    """An action reference with the newer version it should be bumped to.

    Immutable; whether it was pushed is tracked by the reconciler.
    """

    model_config = pydantic.ConfigDict(frozen=True)

    reference: ActionReference
    new_version: str

    @property
    def repo_name(self) -> str:
        return self.reference.repo_name

    @property
    def workflow_file(self) -> pathlib.Path:
        return self.reference.workflow_file

    @property
    def workflow_name(self) -> str:
        return self.reference.workflow_name

    @property
    def step_name(self) -> str:
        return self.reference.step_name

    @property
    def owner_repo(self) -> str:
        return self.reference.owner_repo

    @property
    def old_version(self) -> str:
        return self.reference.old_version


class ChangeSet(pydantic.BaseModel):
    """All resolved updates of one repository.

    ``indices`` holds the position of each update in the run-wide update
    list so that per-update state can be recorded without mutating the
    updates themselves.
    """

    repo_name: str
    updates: list[ResolvedUpdate]
    indices: list[int]

    @property
    def repository_path(self) -> pathlib.Path:
        return self.updates[0].reference.repository_path

    def by_workflow_file(
        self,
    ) -> list[tuple[pathlib.Path, list[ResolvedUpdate]]]:
        """Return the updates partitioned per workflow file, files sorted
        by name.

        """
        files: dict[pathlib.Path, list[ResolvedUpdate]] = (
            collections.defaultdict(list)
        )
        for update in self.updates:
            files[update.workflow_file].append(update)
        return sorted(files.items(), key=lambda item: str(item[0]))

    @classmethod
    def group(cls, updates: list[ResolvedUpdate]) -> list['ChangeSet']:
        """Group updates per repository, sorted by repository name."""
        grouped: dict[str, ChangeSet] = {}
        for index, update in enumerate(updates):
            change_set = grouped.setdefault(
                update.repo_name,
                cls(repo_name=update.repo_name, updates=[], indices=[]),
            )
            change_set.updates.append(update)
            change_set.indices.append(index)
        return [grouped[name] for name in sorted(grouped)]
