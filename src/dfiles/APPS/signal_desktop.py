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
Signal Desktop in a container.
"""
from pathlib import Path
from typing import List

from .. import __version__
from ..ASPECTS.base import APPLICATION_ORDER, ContainerAspect, DockerfileSnippet
from ..ASPECTS.host import DBus, Name, PulseAudio, SysAdmin, Video, X11, CurrentUser
from ..MANAGERS.container_manager import ContainerManager


class Signal(ContainerAspect):
    def name(self) -> str:
        return "signal"

    def dockerfile_snippets(self) -> List[DockerfileSnippet]:
        return [
            DockerfileSnippet(
                order=APPLICATION_ORDER,
                content="""\
RUN apt-get update && apt-get install -y --no-install-recommends \\
        libgtk-3-0 \\
        libpango1.0-0 \\
        hicolor-icon-theme \\
        libgl1-mesa-dri \\
        libv4l-0 \\
        fonts-symbola \\
    && curl -sSL https://updates.signal.org/desktop/apt/keys.asc | gpg --dearmor > /usr/share/keyrings/signal-desktop-keyring.gpg \\
    && echo "deb [arch=amd64 signed-by=/usr/share/keyrings/signal-desktop-keyring.gpg] https://updates.signal.org/desktop/apt xenial main" > /etc/apt/sources.list.d/signal-xenial.list \\
    && apt-get update && apt-get install -y --no-install-recommends \\
        signal-desktop \\
    && rm -rf /var/lib/apt/lists/*""",
            ),
            DockerfileSnippet(order=APPLICATION_ORDER + 1, content="RUN chmod 4755 /opt/Signal/chrome-sandbox"),
        ]


def container_manager() -> ContainerManager:
    return ContainerManager.default_debian(
        "signal",
        [f"dfiles/signal:{__version__}"],
        [str(Path.home() / ".config" / "Signal")],
        [
            Signal(),
            Name("signal"),
            PulseAudio(),
            CurrentUser.detect(),
            X11(),
            Video(),
            DBus(),
            SysAdmin(),
        ],
        ["/opt/Signal/signal-desktop"],
    )


def main():
    from ..CLI.main import build_cli
    build_cli(container_manager())()


if __name__ == '__main__':
    main()
