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
Layered configuration: global, per-application and per-application-profile
YAML files whose optional fields turn into container aspects.
"""
import logging
from pathlib import Path
from typing import Any, List, Mapping, Optional, TypeVar

import click
import yaml
from pydantic import BaseModel, ConfigDict, ValidationError

from ..ASPECTS.base import ContainerAspect
from ..ASPECTS.resources import CPUShares, Locale, Memory, Mount, Network, Timezone
from ..errors import ConfigError
from ..UTILS.dirs import Dirs

logger = logging.getLogger(__name__)

CONFIG_FILE = "config.yaml"

T = TypeVar("T")


def merge_lists(left: Optional[List[T]], right: Optional[List[T]], overwrite: bool) -> Optional[List[T]]:
    """
    Merges two optional lists.

    :param left: The lower priority list.
    :param right: The higher priority list.
    :param overwrite: Replace left with right when right is present, instead
        of appending.
    :return: The merged list, or None when it is empty.
    """
    merged = list(left or [])
    if right is not None:
        if overwrite:
            merged = list(right)
        else:
            merged.extend(right)
    return merged or None


class Config(BaseModel):
    """
    One configuration layer, or the merge of several. Every field is optional.
    """
    model_config = ConfigDict(frozen=True)

    mounts: Optional[List[Mount]] = None
    timezone: Optional[Timezone] = None
    memory: Optional[Memory] = None
    cpu_shares: Optional[CPUShares] = None
    network: Optional[Network] = None
    locale: Optional[Locale] = None

    @classmethod
    def empty(cls) -> "Config":
        return cls()

    @staticmethod
    def layer_path(dirs: Dirs, application: Optional[str] = None, profile: Optional[str] = None) -> Path:
        return dirs.config_dir(application, profile) / CONFIG_FILE

    @classmethod
    def load_layer(cls, dirs: Dirs, application: Optional[str] = None,
                   profile: Optional[str] = None) -> "Config":
        """
        Loads the single layer for an (application, profile) key; with both
        unset this is the global layer. A missing file is an empty layer.

        :raises ConfigError: If the file cannot be read or holds invalid values.
        """
        path = cls.layer_path(dirs, application, profile)
        if not path.exists():
            return cls.empty()

        logger.debug("loading config layer %s", path)
        try:
            with open(path, "r") as f:
                data = yaml.safe_load(f)
        except (OSError, yaml.YAMLError) as e:
            raise ConfigError(path, f"failed to load: {e}") from e

        if data is None:
            return cls.empty()
        if not isinstance(data, dict):
            raise ConfigError(path, "expected a mapping at the top level")

        try:
            return cls.model_validate(data)
        except ValidationError as e:
            raise ConfigError(path, f"invalid value: {e}") from e

    @classmethod
    def load(cls, dirs: Dirs, application: str, profile: Optional[str] = None) -> "Config":
        """
        Loads and merges the global, application and application profile
        layers, lowest priority first. Mounts accumulate across layers.
        """
        global_config = cls.load_layer(dirs)
        app_config = cls.load_layer(dirs, application)
        merged = global_config.merge(app_config)
        if profile:
            merged = merged.merge(cls.load_layer(dirs, application, profile))
        return merged

    def save(self, dirs: Dirs, application: Optional[str] = None, profile: Optional[str] = None) -> Path:
        """
        Writes this config on top of the existing layer for the key. Lists
        replace the stored ones, so saving the same value twice is a no-op.

        :return: The path of the written file.
        :raises ConfigError: If the layer cannot be written.
        """
        merged = self.load_layer(dirs, application, profile).merge(self, overwrite=True)
        path = self.layer_path(dirs, application, profile)

        try:
            path.parent.mkdir(parents=True, exist_ok=True)
            with open(path, "w") as f:
                yaml.safe_dump(merged.model_dump(mode="json", exclude_none=True), f, sort_keys=False)
        except OSError as e:
            raise ConfigError(path, f"failed to save: {e}") from e

        logger.debug("saved config layer %s", path)
        return path

    def merge(self, other: "Config", overwrite: bool = False) -> "Config":
        """
        Returns a new config with other's present fields on top of this one.

        :param other: The higher priority config.
        :param overwrite: Replace list fields instead of appending to them.
        """
        return Config(
            mounts=merge_lists(self.mounts, other.mounts, overwrite),
            timezone=other.timezone if other.timezone is not None else self.timezone,
            memory=other.memory if other.memory is not None else self.memory,
            cpu_shares=other.cpu_shares if other.cpu_shares is not None else self.cpu_shares,
            network=other.network if other.network is not None else self.network,
            locale=other.locale if other.locale is not None else self.locale,
        )

    @classmethod
    def from_matches(cls, matches: Mapping[str, Any]) -> "Config":
        """
        Builds a config from parsed command line flags only.

        :raises InvalidInput: With the field-specific subclass for malformed values.
        """
        mounts = matches.get("mount") or ()
        return cls(
            mounts=[Mount.parse(m) for m in mounts] or None,
            timezone=_parse_optional(Timezone, matches.get("timezone")),
            memory=_parse_optional(Memory, matches.get("memory")),
            cpu_shares=_parse_optional(CPUShares, matches.get("cpu_shares")),
            network=_parse_optional(Network, matches.get("network")),
            locale=_parse_optional(Locale, matches.get("locale")),
        )

    def to_aspects(self) -> List[ContainerAspect]:
        """
        Expands the present fields into aspects, one per mount, in field order.
        """
        aspects: List[ContainerAspect] = list(self.mounts or [])
        for value in (self.timezone, self.memory, self.cpu_shares, self.network, self.locale):
            if value is not None:
                aspects.append(value)
        return aspects


def _parse_optional(aspect_type, value: Optional[str]):
    if value is None:
        return None
    return aspect_type.parse(value)


def cli_args() -> List[click.Option]:
    """Options shared by every subcommand for ad-hoc and persisted config."""
    return [
        click.Option(
            ["--mount", "-m"],
            multiple=True,
            help="Local path mapped into the container at runtime, as HOST:CONTAINER (repeatable).",
        ),
        click.Option(
            ["--timezone", "-t"],
            help="Timezone of the container, e.g. America/Chicago.",
        ),
        click.Option(
            ["--memory"],
            help="Runtime memory limit of the container, e.g. 3072mb.",
        ),
        click.Option(
            ["--cpu-shares"],
            help="Runtime proportion of CPU cycles for the container.",
        ),
        click.Option(
            ["--network"],
            help="Runtime network mode of the container (default: bridge).",
        ),
        click.Option(
            ["--locale"],
            help="Locale of the container as <language>_<territory>.<codeset>, e.g. en_US.UTF-8.",
        ),
        click.Option(
            ["--profile", "-p"],
            default=None,
            help="Profile whose config layer and data directory to use (default: default).",
        ),
    ]
