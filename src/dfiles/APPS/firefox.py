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
Firefox in a container.
"""
from pathlib import Path
from typing import List

from ..ASPECTS.base import APPLICATION_ORDER, ContainerAspect, DockerfileSnippet, apt_install
from ..ASPECTS.host import DBus, Name, PulseAudio, Shm, Video, X11, CurrentUser
from ..MANAGERS.container_manager import ContainerManager

VERSION = "109.0.1"


class Firefox(ContainerAspect):
    def name(self) -> str:
        return "firefox"

    def dockerfile_snippets(self) -> List[DockerfileSnippet]:
        return [
            DockerfileSnippet(
                order=APPLICATION_ORDER + 1,
                content=(
                    "WORKDIR /opt/\n"
                    f"ADD https://archive.mozilla.org/pub/firefox/releases/{VERSION}/linux-x86_64/en-US/firefox-{VERSION}.tar.bz2 ./\n"
                    f"RUN tar -xjvf /opt/firefox-{VERSION}.tar.bz2\n"
                    "RUN ln -sf /opt/firefox/firefox-bin /usr/local/bin/firefox"
                ),
            ),
            DockerfileSnippet(
                order=APPLICATION_ORDER,
                content=apt_install("bzip2", "firefox-esr", "libasound2", "libxt6"),
            ),
        ]


def container_manager() -> ContainerManager:
    profile_path = str(Path.home() / ".mozilla" / "firefox" / "profile")
    return ContainerManager.default_debian(
        "firefox",
        [f"dfiles/firefox:{VERSION}"],
        [profile_path],
        [
            Firefox(),
            Name("firefox"),
            CurrentUser.detect(),
            PulseAudio(),
            X11(),
            Video(),
            DBus(),
            Shm(),
        ],
        ["/opt/firefox/firefox-bin", "--no-remote", "--profile", profile_path],
    )


def main():
    from ..CLI.main import build_cli
    build_cli(container_manager())()


if __name__ == '__main__':
    main()
