"""Container engine adapter (docker by default)."""

from __future__ import annotations

import logging
import shlex
from pathlib import Path
from typing import Optional

from bifrost.core.config import EngineConfig
from bifrost.core.errors import ProcessFailureError
from bifrost.core.process import ProcessOutput, run_process

logger = logging.getLogger(__name__)

DOCKERFILE = """\
FROM ubuntu:22.04

# Update default packages
RUN apt-get update

# Get Ubuntu packages
RUN apt-get install -y \\
    build-essential \\
    curl
"""


class ContainerEngine:
    """Builds the bifrost image and runs realm commands inside it."""

    def __init__(self, config: Optional[EngineConfig] = None, program: Optional[str] = None):
        self.config = config or EngineConfig()
        self.program = program or self.config.program

    def is_installed(self) -> bool:
        try:
            return run_process([self.program, "--version"], check=False).ok
        except ProcessFailureError:
            return False

    def build_image(self, context_dir: Path) -> ProcessOutput:
        """Build ``config.image`` from the Dockerfile in ``context_dir``."""
        logger.info(f"Building image {self.config.image} from {context_dir}")
        return run_process(
            [self.program, "build", "-t", self.config.image, str(context_dir)],
            cwd=context_dir,
        )

    def run_argv(self, commands: list[str], container_root: Path, realm_name: str) -> list[str]:
        mount = self.config.mount_point.rstrip("/")
        script = " && ".join(commands)
        return [
            self.program, "run", "--rm",
            "--volume", f"{container_root}:{mount}",
            "--workdir", f"{mount}/{realm_name}",
            self.config.image,
            self.config.shell, "-c", script,
        ]

    def run(self, commands: list[str], container_root: Path, realm_name: str) -> ProcessOutput:
        """Run ``commands`` (chained with ``&&``) in the realm's directory."""
        argv = self.run_argv(commands, container_root, realm_name)
        logger.info(f"Running in container: {shlex.join(argv)}")
        return run_process(argv, timeout=self.config.run_timeout_seconds)
