from pydantic.dataclasses import dataclass
from .version import VersionTag

@dataclass(frozen=True)
class Release:
    tag: VersionTag
    title: str
    body: str
    draft: bool = False
    prerelease: bool = False
    url: str | None = None
    # False when an existing release for the tag was found and reused
    created: bool = True
