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
Aspects wiring host integration points into the container: display,
audio, message bus, devices and the operator's own account.
"""
import grp
import os
import pwd
import shlex
from typing import Any, List, Mapping, Optional, Sequence

import click

from ..MODELS.host_facts import HostFacts
from .base import (
    ACCOUNT_SCRIPT_ORDER,
    ContainerAspect,
    ContainerFile,
    DockerfileSnippet,
    EntrypointScript,
    apt_install,
)

PULSE_CLIENT_CONF = """\
# Connect to the host's server using the mounted UNIX socket
default-server = unix:/run/pulse/native

# Prevent a server running in the container
autospawn = no
daemon-binary = /bin/true

# Prevent the use of shared memory
enable-shm = false
"""


class PulseAudio(ContainerAspect):
    """
    Talks to the host's PulseAudio server through its runtime socket.
    """
    def run_args(self, host: HostFacts, matches: Optional[Mapping[str, Any]] = None) -> List[str]:
        pulse_dir = host.require_runtime_entry(self.name(), "pulse")
        return [
            "--volume", f"{pulse_dir}:/run/pulse",
            "--env", "PULSE_SERVER=unix:/run/pulse/native",
        ]

    def dockerfile_snippets(self) -> List[DockerfileSnippet]:
        return [
            DockerfileSnippet(
                order=75,
                content=(
                    "COPY pulse-client.conf /etc/pulse/client.conf\n"
                    "RUN chmod 755 /etc/pulse\n"
                    "RUN chmod 644 /etc/pulse/client.conf"
                ),
            ),
            DockerfileSnippet(order=70, content=apt_install("libpulse0")),
        ]

    def container_files(self) -> List[ContainerFile]:
        return [ContainerFile(container_path="pulse-client.conf", contents=PULSE_CLIENT_CONF)]


class Alsa(ContainerAspect):
    def run_args(self, host: HostFacts, matches: Optional[Mapping[str, Any]] = None) -> List[str]:
        return ["--device", host.require_device(self.name(), "snd")]


class X11(ContainerAspect):
    """
    Shares the host X server socket. Requires DISPLAY; the DRI devices are
    passed through when the host has them.
    """
    def run_args(self, host: HostFacts, matches: Optional[Mapping[str, Any]] = None) -> List[str]:
        display = host.require_env(self.name(), "DISPLAY")
        args = [
            "--env", f"DISPLAY=unix{display}",
            "--volume", "/tmp/.X11-unix:/tmp/.X11-unix",
        ]
        if "dri" in host.dev_entries:
            args.extend(["--device", "/dev/dri"])
        return args


class Video(ContainerAspect):
    """
    Passes every /dev/video* device through, if there are any.
    """
    def run_args(self, host: HostFacts, matches: Optional[Mapping[str, Any]] = None) -> List[str]:
        args = []
        for device in host.devices("video"):
            args.extend(["--device", device])
        return args


class DBus(ContainerAspect):
    """
    Shares the session and system message buses. Requires HOME and
    XDG_RUNTIME_DIR.
    """
    def run_args(self, host: HostFacts, matches: Optional[Mapping[str, Any]] = None) -> List[str]:
        home = host.require_env(self.name(), "HOME")
        runtime_dir = host.require_env(self.name(), "XDG_RUNTIME_DIR")
        return [
            "--volume", f"{runtime_dir}/bus:{runtime_dir}/bus",
            "--volume", "/var/run/dbus/system_bus_socket:/var/run/dbus/system_bus_socket",
            "--volume", f"{home}/.dbus/session-bus:{home}/.dbus/session-bus",
            "--env", f"DBUS_SESSION_BUS_ADDRESS=unix:path={runtime_dir}/bus",
        ]

    def dockerfile_snippets(self) -> List[DockerfileSnippet]:
        return [DockerfileSnippet(order=71, content=apt_install("dbus-x11"))]


class SysAdmin(ContainerAspect):
    def run_args(self, host: HostFacts, matches: Optional[Mapping[str, Any]] = None) -> List[str]:
        return ["--cap-add", "SYS_ADMIN"]


class TTY(ContainerAspect):
    def run_args(self, host: HostFacts, matches: Optional[Mapping[str, Any]] = None) -> List[str]:
        return ["--interactive", "--tty"]


class Shm(ContainerAspect):
    def run_args(self, host: HostFacts, matches: Optional[Mapping[str, Any]] = None) -> List[str]:
        return ["--volume", "/dev/shm:/dev/shm"]


class Name(ContainerAspect):
    """
    Names the container `<application>-<profile>` unless `--name` is given.
    """
    def __init__(self, application: str):
        self.application = application

    def run_args(self, host: HostFacts, matches: Optional[Mapping[str, Any]] = None) -> List[str]:
        matches = matches or {}
        container_name = matches.get("container_name")
        if not container_name:
            profile = matches.get("profile") or "default"
            container_name = f"{self.application}-{profile}"
        return ["--name", container_name]

    def cli_args(self) -> List[click.Option]:
        return [
            click.Option(
                ["--name", "-n", "container_name"],
                default=None,
                help="Name of the container to run.",
            )
        ]


class CurrentUser(ContainerAspect):
    """
    Recreates the operator's account inside the container so files written
    to mounted paths keep host ownership, and runs the command as that
    account.
    """
    def __init__(self, user: str, uid: int, group: str, gid: int, home: str,
                 groups: Sequence[str] = ("audio", "video")):
        self.user = user
        self.uid = uid
        self.group = group
        self.gid = gid
        self.home = home
        self.groups = tuple(groups)

    @classmethod
    def detect(cls) -> "CurrentUser":
        """Reads the invoking account from the host account database."""
        user_info = pwd.getpwuid(os.getuid())
        group_info = grp.getgrgid(os.getgid())
        return cls(
            user=user_info.pw_name,
            uid=user_info.pw_uid,
            group=group_info.gr_name,
            gid=group_info.gr_gid,
            home=user_info.pw_dir,
        )

    def run_args(self, host: HostFacts, matches: Optional[Mapping[str, Any]] = None) -> List[str]:
        return ["--env", f"HOME={self.home}", "--env", f"USER={self.user}"]

    def entrypoint_scripts(self) -> List[EntrypointScript]:
        user = shlex.quote(self.user)
        group = shlex.quote(self.group)
        home = shlex.quote(self.home)
        scripts = [
            EntrypointScript(
                order=ACCOUNT_SCRIPT_ORDER,
                description=f"create group {self.group} ({self.gid})",
                script=f"getent group {self.gid} >/dev/null || groupadd --gid {self.gid} {group}",
            ),
            EntrypointScript(
                order=ACCOUNT_SCRIPT_ORDER + 10,
                description=f"create user {self.user} ({self.uid}) and run the command as that user",
                script=(
                    f"getent passwd {user} >/dev/null || useradd --uid {self.uid} --gid {self.gid} "
                    f"--home-dir {home} --no-create-home --shell /bin/bash {user}\n"
                    f"mkdir -p {home}\n"
                    f"chown {self.uid}:{self.gid} {home}\n"
                    f"CONTAINER_USER={user}"
                ),
            ),
        ]
        if self.groups:
            scripts.append(
                EntrypointScript(
                    order=ACCOUNT_SCRIPT_ORDER + 20,
                    description=f"add {self.user} to groups {', '.join(self.groups)}",
                    script=f"usermod --append --groups {shlex.quote(','.join(self.groups))} {user}",
                )
            )
        return scripts
