from dataclasses import field
from pydantic.dataclasses import dataclass

@dataclass(frozen=True)
class CommitRef:
    sha: str
    message: str = ""
    parents: tuple[str, ...] = field(default_factory=tuple)

    @property
    def short_sha(self) -> str:
        return self.sha[:7]

    @property
    def subject(self) -> str:
        lines = self.message.strip().splitlines()
        return lines[0] if lines else ""
