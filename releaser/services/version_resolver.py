import logging
import re
from typing import Iterable, Sequence

from releaser.errors import VersionHistoryCorrupt
from releaser.models import BumpKind, CommitRef, ExistingTag, VersionTag
from releaser.models.version import BUMP_ORDER
from releaser.utils.logging import setup_logger

_HEADER_RE = re.compile(r"^(?P<type>[A-Za-z]+)(?:\([^)]*\))?(?P<breaking>!)?:\s")
_BREAKING_FOOTER_RE = re.compile(r"^BREAKING[ -]CHANGE:", re.MULTILINE)

_TYPE_BUMPS: dict[str, BumpKind] = {
    "feat": "minor",
    "fix": "patch",
    "perf": "patch",
}


def message_bump(message: str) -> BumpKind | None:
    """Return the bump a conventional commit message asks for, if any."""
    if _BREAKING_FOOTER_RE.search(message):
        return "major"
    m = _HEADER_RE.match(message.strip())
    if m is None:
        return None
    if m.group("breaking"):
        return "major"
    return _TYPE_BUMPS.get(m.group("type").lower())


class VersionResolver:
    """Computes the next version tag from the tag history.

    Pure: the same tags, commit and messages always give the same candidate,
    which is why it is safe to call again for a dry run.
    """

    def __init__(self, default_bump: BumpKind = "patch", prefix: str = "v"):
        self.default_bump: BumpKind = default_bump
        self.prefix: str = prefix
        self.logger: logging.Logger = setup_logger("VersionResolver")

    def parse_tags(self, tags: Iterable[ExistingTag]) -> list[VersionTag]:
        parsed: list[VersionTag] = []
        for tag in tags:
            version = VersionTag.parse(tag.name, self.prefix)
            if version is None:
                self.logger.debug(f"Skipping tag {tag.name}: not a {self.prefix}X.Y.Z version")
                continue
            if tag.sha:
                version = version.bound_to(CommitRef(sha=tag.sha))
            parsed.append(version)
        return parsed

    def highest(self, tags: Sequence[ExistingTag]) -> VersionTag | None:
        versions = self.parse_tags(tags)
        if tags and not versions:
            names = ", ".join(t.name for t in tags[:5])
            raise VersionHistoryCorrupt(f"None of the {len(tags)} existing tags is a {self.prefix}X.Y.Z version: {names}")
        if not versions:
            return None
        return max(versions, key=lambda v: v.key)

    def find_existing(self, tags: Sequence[ExistingTag], commit: CommitRef) -> VersionTag | None:
        """Return the highest version tag already pointing at ``commit``."""
        matching = [v for v in self.parse_tags(tags) if v.commit is not None and v.commit.sha == commit.sha]
        if not matching:
            return None
        return max(matching, key=lambda v: v.key)

    def bump_kind(self, messages: Iterable[str]) -> BumpKind:
        strongest: BumpKind | None = None
        for message in messages:
            kind = message_bump(message)
            if kind is not None and (strongest is None or BUMP_ORDER[kind] > BUMP_ORDER[strongest]):
                strongest = kind
        return strongest if strongest is not None else self.default_bump

    def resolve(
        self, tags: Sequence[ExistingTag], commit: CommitRef, messages: Sequence[str] | None = None
    ) -> VersionTag | None:
        base = self.highest(tags) or VersionTag(major=0, minor=0, patch=0, prefix=self.prefix)
        kind = self.bump_kind(messages if messages is not None else [commit.message])
        if kind == "none":
            self.logger.info(f"No release-worthy change since {base.name}, no version to publish")
            return None
        candidate = base.bump(kind).bound_to(commit)
        self.logger.info(f"Resolved {kind} bump {base.name} -> {candidate.name} for commit {commit.short_sha}")
        return candidate
