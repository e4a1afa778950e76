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
Discord in a container.
"""
from pathlib import Path
from typing import List

from ..ASPECTS.base import APPLICATION_ORDER, ContainerAspect, DockerfileSnippet, apt_install
from ..ASPECTS.host import DBus, Name, PulseAudio, Shm, SysAdmin, Video, X11, CurrentUser
from ..MANAGERS.container_manager import ContainerManager

VERSION = "0.0.34"


class Discord(ContainerAspect):
    def name(self) -> str:
        return "discord"

    def dockerfile_snippets(self) -> List[DockerfileSnippet]:
        return [
            DockerfileSnippet(
                order=APPLICATION_ORDER + 1,
                content=(
                    "WORKDIR /opt/\n"
                    f"RUN curl -L https://dl.discordapp.net/apps/linux/{VERSION}/discord-{VERSION}.deb > /opt/discord.deb \\\n"
                    "    && dpkg --force-depends -i /opt/discord.deb ; rm /opt/discord.deb\n"
                    "RUN apt-get update && apt-get --fix-broken install -y \\\n"
                    "  && rm -rf /var/lib/apt/lists/*"
                ),
            ),
            DockerfileSnippet(order=APPLICATION_ORDER + 2, content=apt_install("libxshmfence1", "libgbm1")),
        ]


def container_manager() -> ContainerManager:
    return ContainerManager.default_debian(
        "discord",
        [f"dfiles/discord:{VERSION}"],
        [str(Path.home() / ".config" / "discord")],
        [
            Discord(),
            Name("discord"),
            CurrentUser.detect(),
            PulseAudio(),
            X11(),
            Video(),
            DBus(),
            SysAdmin(),
            Shm(),
        ],
        ["discord"],
    )


def main():
    from ..CLI.main import build_cli
    build_cli(container_manager())()


if __name__ == '__main__':
    main()
