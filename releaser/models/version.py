import re
from dataclasses import replace
from typing import Literal
from pydantic.dataclasses import dataclass
from .commit import CommitRef

BumpKind = Literal["major", "minor", "patch", "none"]

# strength used to pick the strongest bump across several commit messages
BUMP_ORDER: dict[str, int] = {"none": 0, "patch": 1, "minor": 2, "major": 3}

_SEMVER_CORE = r"(0|[1-9]\d*)\.(0|[1-9]\d*)\.(0|[1-9]\d*)"


@dataclass(frozen=True)
class ExistingTag:
    name: str
    sha: str | None = None


@dataclass(frozen=True)
class VersionTag:
    major: int
    minor: int
    patch: int
    prefix: str = "v"
    annotated: bool = True
    commit: CommitRef | None = None
    message: str | None = None

    @property
    def version(self) -> str:
        return f"{self.major}.{self.minor}.{self.patch}"

    @property
    def name(self) -> str:
        return f"{self.prefix}{self.version}"

    @property
    def key(self) -> tuple[int, int, int]:
        return (self.major, self.minor, self.patch)

    def bump(self, kind: BumpKind) -> "VersionTag":
        match kind:
            case "major":
                return replace(self, major=self.major + 1, minor=0, patch=0, commit=None, message=None)
            case "minor":
                return replace(self, minor=self.minor + 1, patch=0, commit=None, message=None)
            case "patch":
                return replace(self, patch=self.patch + 1, commit=None, message=None)
            case _:
                raise ValueError(f"Unsupported bump kind: {kind}")

    def bound_to(self, commit: CommitRef, message: str | None = None) -> "VersionTag":
        return replace(self, commit=commit, message=message)

    @classmethod
    def parse(cls, name: str, prefix: str = "v") -> "VersionTag | None":
        m = re.fullmatch(re.escape(prefix) + _SEMVER_CORE, name.strip())
        if m is None:
            return None
        return cls(major=int(m.group(1)), minor=int(m.group(2)), patch=int(m.group(3)), prefix=prefix)
