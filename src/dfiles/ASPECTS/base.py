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
The container aspect contract and the fragments aspects contribute.

Dockerfile snippet order keys (0-255):
    0       base image selection
    1-10    base OS bootstrap packages
    70-89   subsystem integration (audio 70/75, dbus 71, locale 79, timezone 80)
    90+     application installation

Entrypoint script order keys (0-65535):
    0-999       accounts (group 100, user 110, supplementary groups 120)
    1000-1999   system settings (locale 1000, timezone 1010)
    2000+       scripts supplied by the operator
"""
from typing import Any, List, Mapping, Optional, Union

import click
from pydantic import BaseModel, ConfigDict, Field

from ..MODELS.host_facts import HostFacts

BASE_IMAGE_ORDER = 0
BOOTSTRAP_ORDER = 1
APPLICATION_ORDER = 90

ACCOUNT_SCRIPT_ORDER = 100
SYSTEM_SCRIPT_ORDER = 1000
OPERATOR_SCRIPT_ORDER = 2000


class DockerfileSnippet(BaseModel):
    """
    One block of Dockerfile instructions.
    """
    model_config = ConfigDict(frozen=True)

    order: int = Field(ge=0, le=255)
    content: str


class ContainerFile(BaseModel):
    """
    A file written verbatim into the build context, relative to its root.
    """
    model_config = ConfigDict(frozen=True)

    container_path: str
    contents: Union[str, bytes]
    mode: int = 0o644

    def data(self) -> bytes:
        if isinstance(self.contents, bytes):
            return self.contents
        return self.contents.encode("utf-8")


class EntrypointScript(BaseModel):
    """
    A block of shell run as root when the container starts, before the
    requested command.
    """
    model_config = ConfigDict(frozen=True)

    order: int = Field(ge=0, le=65535)
    description: str
    script: str


class ContainerAspect:
    """
    A self-contained capability of a container.

    Every contribution defaults to nothing; subclasses override only what
    they provide. Contributions depend on the aspect's own state and, for
    run arguments, on the parsed command line and the host snapshot.
    """
    def name(self) -> str:
        return type(self).__name__

    def run_args(self, host: HostFacts, matches: Optional[Mapping[str, Any]] = None) -> List[str]:
        """
        Tokens added to `docker run`.

        :param host: Host facts captured for this invocation.
        :param matches: Parsed command line parameters, if any.
        :raises MissingHostFact: If a required host fact is absent.
        """
        return []

    def cli_args(self) -> List[click.Option]:
        """Command line options this aspect reads from `matches`."""
        return []

    def dockerfile_snippets(self) -> List[DockerfileSnippet]:
        return []

    def container_files(self) -> List[ContainerFile]:
        return []

    def entrypoint_scripts(self) -> List[EntrypointScript]:
        return []


def apt_install(*packages: str) -> str:
    """
    Renders a RUN instruction installing Debian packages without leaving
    the package lists behind.
    """
    lines = ["RUN apt-get update && apt-get install -y \\", "    --no-install-recommends \\"]
    lines.extend(f"    {package} \\" for package in packages)
    lines.append("  && apt-get purge --autoremove \\")
    lines.append("  && rm -rf /var/lib/apt/lists/*")
    return "\n".join(lines)
