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
Operator supplied scripts run by the container entrypoint.
"""
import os
import posixpath
import shlex
from typing import Any, Iterable, List, Mapping, Optional

import click

from ..errors import InvalidEntrypointScript
from ..MODELS.host_facts import HostFacts
from .base import OPERATOR_SCRIPT_ORDER, ContainerAspect, EntrypointScript

SCRIPTS_DIR = "/dfiles/entrypoint.d"


class LocalEntrypointScript(ContainerAspect):
    """
    An executable on the host, mounted read-only into the container and run
    as root before the container command.
    """
    def __init__(self, host_path: str, index: int = 0):
        self.host_path = host_path
        self.index = index

    @classmethod
    def parse(cls, text: str, index: int = 0) -> "LocalEntrypointScript":
        """
        Validates a host script path.

        :param text: Path given on the command line.
        :param index: Position among the scripts given, used to keep their
            container paths apart.
        :raises InvalidEntrypointScript: If the path is relative, missing,
            not a regular file or not executable.
        """
        if not os.path.isabs(text):
            raise InvalidEntrypointScript(text, "path must be absolute")
        if not os.path.exists(text):
            raise InvalidEntrypointScript(text, "path must exist")
        if not os.path.isfile(text):
            raise InvalidEntrypointScript(text, "path must be a regular file")
        if not os.access(text, os.X_OK):
            raise InvalidEntrypointScript(text, "path must be executable")
        return cls(text, index)

    @classmethod
    def from_matches(cls, matches: Mapping[str, Any]) -> List["LocalEntrypointScript"]:
        paths: Iterable[str] = matches.get("entrypoint_script") or ()
        return [cls.parse(path, index) for index, path in enumerate(paths)]

    @staticmethod
    def cli_option() -> click.Option:
        return click.Option(
            ["--entrypoint-script", "entrypoint_script"],
            multiple=True,
            help="Executable on the host run as root when the container starts (repeatable).",
        )

    def name(self) -> str:
        return f"LocalEntrypointScript({self.host_path})"

    @property
    def container_path(self) -> str:
        return posixpath.join(SCRIPTS_DIR, f"{self.index:02d}-{os.path.basename(self.host_path)}")

    def run_args(self, host: HostFacts, matches: Optional[Mapping[str, Any]] = None) -> List[str]:
        return ["--volume", f"{self.host_path}:{self.container_path}:ro"]

    def entrypoint_scripts(self) -> List[EntrypointScript]:
        return [
            EntrypointScript(
                order=OPERATOR_SCRIPT_ORDER,
                description=f"run {self.host_path}",
                script=shlex.quote(self.container_path),
            )
        ]
