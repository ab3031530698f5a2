from pydantic.dataclasses import dataclass

@dataclass(frozen=True)
class ArtifactLocation:
    bucket: str
    key: str

    def __str__(self) -> str:
        return f"s3://{self.bucket}/{self.key}"


@dataclass(frozen=True)
class Artifact:
    commit_sha: str
    path: str
    size: int
    sha256: str
    location: ArtifactLocation | None = None
    # False when an identical object was already stored for this commit
    uploaded: bool = False
