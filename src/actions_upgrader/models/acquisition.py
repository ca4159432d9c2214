"""Clone task models used by the acquisition orchestrator."""

import asyncio
import enum
import pathlib

import pydantic


class CloneState(enum.StrEnum):
    """Lifecycle of a clone subprocess."""

    running = 'running'
    exited = 'exited'
    killed = 'killed'


class CloneTask(pydantic.BaseModel):
    """A repository being cloned by a detached ``git clone`` process."""

    model_config = pydantic.ConfigDict(arbitrary_types_allowed=True)

    repo_url: str
    folder: pathlib.Path
    process: asyncio.subprocess.Process
    state: CloneState = CloneState.running
    returncode: int | None = None
    started_tick: int = 0

    @property
    def running(self) -> bool:
        return self.state == CloneState.running
