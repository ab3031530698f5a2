import os
import subprocess
import logging

logger = logging.getLogger(__name__)


class BuildClient:
    def run_command(self, cmd: list[str], cwd: str, timeout: float | None = None) -> None:
        logger.info(f"Running {' '.join(cmd)} in {cwd}")
        try:
            result = subprocess.run(
                cmd, cwd=cwd, check=False, env=os.environ, capture_output=True, text=True, timeout=timeout
            )
        except (OSError, subprocess.TimeoutExpired) as e:
            raise RuntimeError(f"Command {' '.join(cmd)} could not complete: {e}") from e
        if result.stdout:
            logger.debug(result.stdout)
        if result.returncode != 0:
            logger.error(f"Command {' '.join(cmd)} failed with code {result.returncode}: {result.stderr.strip()}")
            raise RuntimeError(f"Command {' '.join(cmd)} exited with code {result.returncode}")
