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
Aspects that can be set from the command line and persisted in config
layers: mounts, timezone, memory, cpu shares, network and locale.

Each one parses the flag text it is given (`parse`) and renders it back
(`render`), and is a pydantic model so config layers serialize it.
"""
import re
import shlex
from typing import Any, List, Mapping, Optional

import pytz
from pydantic import BaseModel, ConfigDict, RootModel, field_validator, model_validator

from ..errors import (
    InvalidCPUShares,
    InvalidLocale,
    InvalidMemory,
    InvalidMount,
    InvalidNetwork,
    InvalidTimezone,
)
from ..MODELS.host_facts import HostFacts
from .base import SYSTEM_SCRIPT_ORDER, ContainerAspect, DockerfileSnippet, EntrypointScript, apt_install

MEMORY_PATTERN = re.compile(r"^[0-9]+([bkmg]b?)?$", re.IGNORECASE)
NETWORK_PATTERN = re.compile(r"^[A-Za-z0-9][A-Za-z0-9_.:-]*$")
LOCALE_PATTERN = re.compile(r"^([A-Za-z]+)_([A-Za-z]+)\.([A-Za-z0-9-]+)$")


class Mount(ContainerAspect, BaseModel):
    """
    Bind mount of a host path into the container.
    """
    model_config = ConfigDict(frozen=True)

    host_path: str
    container_path: str

    @classmethod
    def parse(cls, text: str) -> "Mount":
        """
        Parses `HOST:CONTAINER`.

        :raises InvalidMount: If either side is missing.
        """
        host_path, sep, container_path = text.partition(":")
        if not sep:
            raise InvalidMount(text, "expected HOST:CONTAINER")
        if not host_path or not container_path:
            raise InvalidMount(text, "host and container paths must not be empty")
        if ":" in container_path:
            raise InvalidMount(text, "too many separators")
        return cls(host_path=host_path, container_path=container_path)

    @model_validator(mode="after")
    def _validate(self) -> "Mount":
        text = self.render()
        if not self.host_path or not self.container_path:
            raise InvalidMount(text, "host and container paths must not be empty")
        if ":" in self.host_path or ":" in self.container_path:
            raise InvalidMount(text, "too many separators")
        return self

    def render(self) -> str:
        return f"{self.host_path}:{self.container_path}"

    def run_args(self, host: HostFacts, matches: Optional[Mapping[str, Any]] = None) -> List[str]:
        return ["--volume", self.render()]


def check_timezone(value: str) -> str:
    if value not in pytz.all_timezones_set:
        raise InvalidTimezone(value, "not a known IANA timezone")
    return value


class Timezone(ContainerAspect, RootModel[str]):
    """
    Timezone of the container, e.g. `America/Chicago`.
    """
    model_config = ConfigDict(frozen=True)

    @field_validator("root")
    @classmethod
    def _validate(cls, value: str) -> str:
        return check_timezone(value)

    @classmethod
    def parse(cls, text: str) -> "Timezone":
        return cls(check_timezone(text))

    def render(self) -> str:
        return self.root

    def run_args(self, host: HostFacts, matches: Optional[Mapping[str, Any]] = None) -> List[str]:
        return ["--env", f"TZ={self.root}"]

    def dockerfile_snippets(self) -> List[DockerfileSnippet]:
        return [DockerfileSnippet(order=80, content=apt_install("tzdata"))]

    def entrypoint_scripts(self) -> List[EntrypointScript]:
        zone = shlex.quote(self.root)
        return [
            EntrypointScript(
                order=SYSTEM_SCRIPT_ORDER + 10,
                description=f"set the timezone to {self.root}",
                script=(
                    f"ln -snf /usr/share/zoneinfo/{zone} /etc/localtime\n"
                    f"echo {zone} > /etc/timezone"
                ),
            )
        ]


def check_memory(value: str) -> str:
    if not MEMORY_PATTERN.match(value):
        raise InvalidMemory(value, "expected a number with an optional b, k, m or g unit")
    return value


class Memory(ContainerAspect, RootModel[str]):
    """
    Runtime memory limit, e.g. `3072mb`.
    """
    model_config = ConfigDict(frozen=True)

    @field_validator("root")
    @classmethod
    def _validate(cls, value: str) -> str:
        return check_memory(value)

    @classmethod
    def parse(cls, text: str) -> "Memory":
        return cls(check_memory(text))

    def render(self) -> str:
        return self.root

    def run_args(self, host: HostFacts, matches: Optional[Mapping[str, Any]] = None) -> List[str]:
        return ["--memory", self.root]


def check_cpu_shares(value: str) -> str:
    if not value.isdigit() or int(value) < 2:
        raise InvalidCPUShares(value, "expected an integer of at least 2")
    return value


class CPUShares(ContainerAspect, RootModel[str]):
    """
    Relative CPU weight of the container.
    """
    model_config = ConfigDict(frozen=True)

    @field_validator("root")
    @classmethod
    def _validate(cls, value: str) -> str:
        return check_cpu_shares(value)

    @classmethod
    def parse(cls, text: str) -> "CPUShares":
        return cls(check_cpu_shares(text))

    def render(self) -> str:
        return self.root

    def run_args(self, host: HostFacts, matches: Optional[Mapping[str, Any]] = None) -> List[str]:
        return ["--cpu-shares", self.root]


def check_network(value: str) -> str:
    if not NETWORK_PATTERN.match(value):
        raise InvalidNetwork(value, "expected a network mode or network name")
    return value


class Network(ContainerAspect, RootModel[str]):
    """
    Network mode of the container: bridge, host, none or a network name.
    """
    model_config = ConfigDict(frozen=True)

    @field_validator("root")
    @classmethod
    def _validate(cls, value: str) -> str:
        return check_network(value)

    @classmethod
    def parse(cls, text: str) -> "Network":
        return cls(check_network(text))

    def render(self) -> str:
        return self.root

    def run_args(self, host: HostFacts, matches: Optional[Mapping[str, Any]] = None) -> List[str]:
        return ["--network", self.root]


class Locale(ContainerAspect, BaseModel):
    """
    Locale in the form <language>_<territory>.<codeset>.
    """
    model_config = ConfigDict(frozen=True)

    language: str
    territory: str
    codeset: str

    @classmethod
    def parse(cls, text: str) -> "Locale":
        """
        Parses e.g. `en_US.UTF-8`.

        :raises InvalidLocale: If the underscore or dot delimiter is missing.
        """
        match = LOCALE_PATTERN.match(text)
        if not match:
            raise InvalidLocale(text, "expected <language>_<territory>.<codeset>")
        language, territory, codeset = match.groups()
        return cls(language=language, territory=territory, codeset=codeset)

    @model_validator(mode="after")
    def _validate(self) -> "Locale":
        match = LOCALE_PATTERN.match(self.render())
        if not match or match.groups() != (self.language, self.territory, self.codeset):
            raise InvalidLocale(self.render(), "expected <language>_<territory>.<codeset>")
        return self

    def render(self) -> str:
        return f"{self.language}_{self.territory}.{self.codeset}"

    def run_args(self, host: HostFacts, matches: Optional[Mapping[str, Any]] = None) -> List[str]:
        return ["--env", f"LANG={self.render()}"]

    def dockerfile_snippets(self) -> List[DockerfileSnippet]:
        return [DockerfileSnippet(order=79, content=apt_install("locales"))]

    def entrypoint_scripts(self) -> List[EntrypointScript]:
        locale = self.render()
        entry = shlex.quote(f"{locale} {self.codeset}")
        return [
            EntrypointScript(
                order=SYSTEM_SCRIPT_ORDER,
                description=f"generate and select the {locale} locale",
                script=(
                    f"echo {entry} >> /etc/locale.gen\n"
                    f"locale-gen\n"
                    f"update-locale LANG={shlex.quote(locale)}"
                ),
            )
        ]
