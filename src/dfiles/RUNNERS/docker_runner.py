# Copyright 2024 Michael Maillet, Damien Davison, Sacha Davison
#
# Licensed under the Apache License, Version 2.0 (the "License");
# you may not use this file except in compliance with the License.
# You may obtain a copy of the License at
#
#     http://www.apache.org/licenses/LICENSE-2.0
#
# Unless required by applicable law or agreed to in writing, software
# distributed under the License is distributed on an "AS IS" BASIS,
# WITHOUT WARRANTIES OR CONDITIONS OF ANY KIND, either express or implied.
# See the License for the specific language governing permissions and
# limitations under the License.

"""
Execution of the docker command line for image builds and container runs.
"""
import logging
import shlex
import subprocess
from typing import IO, List, Optional, Sequence

from ..BUILDERS.context_builder import DOCKERFILE_NAME
from ..errors import EngineError

logger = logging.getLogger(__name__)


class DockerEngine:
    """
    Shells out to the docker CLI. Output goes straight to the operator's
    terminal; every call blocks until docker exits.
    """
    def __init__(self, executable: str = "docker"):
        """
        Initializes the engine.

        Args:
            executable (str): Name or path of the docker binary.
        """
        self.executable = executable

    def build(self, archive_path: str, tags: Sequence[str], dockerfile: str = DOCKERFILE_NAME):
        """
        Builds an image from a build context archive.

        Args:
            archive_path (str): Tar archive holding the build context.
            tags (Sequence[str]): Tags applied to the resulting image.
            dockerfile (str): Name of the Dockerfile inside the archive.
        """
        command = [self.executable, "build", "--file", dockerfile]
        for tag in tags:
            command.extend(["--tag", tag])
        command.append("-")

        with open(archive_path, "rb") as archive:
            self._execute(command, stdin=archive)

    def run(self, args: Sequence[str]):
        """
        Runs a container.

        Args:
            args (Sequence[str]): Arguments following `docker run`.
        """
        self._execute([self.executable, "run", *args])

    def _execute(self, command: List[str], stdin: Optional[IO[bytes]] = None):
        logger.debug("executing: %s", " ".join(shlex.quote(c) for c in command))
        try:
            process = subprocess.Popen(command, stdin=stdin, shell=False)
        except OSError as e:
            raise EngineError(command, reason=f"could not be started: {e}") from e

        try:
            returncode = process.wait()
        except KeyboardInterrupt:
            # docker receives the same SIGINT; let it finish shutting down
            process.wait()
            raise

        if returncode != 0:
            raise EngineError(command, returncode)
