from pydantic.dataclasses import dataclass
from .commit import CommitRef


@dataclass(frozen=True)
class PushEvent:
    ref: str
    commit: CommitRef
    repository: str | None = None


@dataclass(frozen=True)
class DispatchEvent:
    tag: str
    commit: CommitRef
    repository: str | None = None
