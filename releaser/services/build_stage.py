import fnmatch
import hashlib
import logging
import os
import stat
import zipfile

from releaser.clients.build_client import BuildClient
from releaser.errors import BuildFailed
from releaser.models import Artifact, BuildConfig, CommitRef
from releaser.utils.logging import setup_logger

# fixed entry timestamp so the same sources always zip to the same bytes
_ZIP_EPOCH = (1980, 1, 1, 0, 0, 0)


def file_sha256(path: str) -> str:
    digest = hashlib.sha256()
    with open(path, "rb") as f:
        for chunk in iter(lambda: f.read(1024 * 1024), b""):
            digest.update(chunk)
    return digest.hexdigest()


def is_excluded(rel_path: str, patterns: list[str]) -> bool:
    parts = rel_path.split("/")
    for pattern in patterns:
        if fnmatch.fnmatch(rel_path, pattern):
            return True
        if any(fnmatch.fnmatch(part, pattern) for part in parts):
            return True
    return False


def write_bundle(workspace: str, output: str, exclude: list[str]) -> int:
    """Zip ``workspace`` into ``output`` deterministically, returning the entry count."""
    output_abs = os.path.abspath(output)
    tmp_output = f"{output_abs}.tmp"
    entries: list[tuple[str, str]] = []
    for root, dirs, files in os.walk(workspace):
        rel_root = os.path.relpath(root, workspace)
        rel_root = "" if rel_root == "." else rel_root.replace(os.sep, "/")
        dirs[:] = sorted(d for d in dirs if not is_excluded(f"{rel_root}/{d}".lstrip("/"), exclude))
        for name in sorted(files):
            rel_path = f"{rel_root}/{name}".lstrip("/")
            full_path = os.path.join(root, name)
            if os.path.abspath(full_path) in (output_abs, tmp_output) or is_excluded(rel_path, exclude):
                continue
            if not os.path.isfile(full_path):
                continue
            entries.append((rel_path, full_path))

    with zipfile.ZipFile(tmp_output, "w", compression=zipfile.ZIP_DEFLATED) as bundle:
        for rel_path, full_path in entries:
            info = zipfile.ZipInfo(rel_path, date_time=_ZIP_EPOCH)
            info.compress_type = zipfile.ZIP_DEFLATED
            info.external_attr = (stat.S_IFREG | (os.stat(full_path).st_mode & 0o777)) << 16
            with open(full_path, "rb") as f:
                bundle.writestr(info, f.read())
    os.replace(tmp_output, output_abs)
    return len(entries)


class BuildStage:
    def __init__(self, config: BuildConfig, client: BuildClient | None = None):
        self.config: BuildConfig = config
        self.client: BuildClient = client or BuildClient()
        self.logger: logging.Logger = setup_logger("BuildStage")

    @property
    def output_path(self) -> str:
        if os.path.isabs(self.config.output):
            return self.config.output
        return os.path.join(self.config.workspace, self.config.output)

    def build(self, commit: CommitRef) -> Artifact:
        self.logger.info(f"Building commit {commit.short_sha} in {self.config.workspace}")
        try:
            for cmd in self.config.commands:
                self.client.run_command(cmd, cwd=self.config.workspace, timeout=self.config.timeout_seconds)
            count = write_bundle(self.config.workspace, self.output_path, list(self.config.exclude))
        except Exception as e:
            raise BuildFailed(f"Failed to build commit {commit.sha}: {e}") from e
        if count == 0:
            raise BuildFailed(f"Failed to build commit {commit.sha}: bundle {self.output_path} is empty")

        artifact = Artifact(
            commit_sha=commit.sha,
            path=self.output_path,
            size=os.path.getsize(self.output_path),
            sha256=file_sha256(self.output_path),
        )
        self.logger.info(f"Packaged {count} files into {artifact.path} ({artifact.size} bytes, sha256 {artifact.sha256[:12]})")
        return artifact
