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
Composition of an application's aspects into a build context and the
arguments of a container run, and dispatch to the container engine.
"""
import atexit
import logging
import shutil
import tempfile
from enum import Enum
from pathlib import Path
from typing import Any, Dict, List, Mapping, Optional, Sequence, Union

import click

from ..ASPECTS.base import ContainerAspect
from ..ASPECTS.platform import Debian
from ..ASPECTS.scripts import LocalEntrypointScript
from ..BUILDERS.context_builder import BuildContext
from ..BUILDERS.entrypoint_builder import EntrypointBuilder
from ..errors import MissingCommand
from ..MODELS import config as config_model
from ..MODELS.config import Config
from ..MODELS.host_facts import HostFacts
from ..RUNNERS.docker_runner import DockerEngine
from ..UTILS.dirs import Dirs

logger = logging.getLogger(__name__)

DEFAULT_PROFILE = "default"
ARCHIVE_NAME = "context.tar"


class Mode(str, Enum):
    """
    What a single invocation does.
    """
    RUN = "run"
    CMD = "cmd"
    BUILD = "build"
    CONFIG = "config"
    GENERATE_ARCHIVE = "generate-archive"


class ContainerManager:
    """
    Holds one application's aspects, image tags, persistent data paths and
    default command.
    """
    def __init__(self,
                 name: str,
                 tags: Sequence[str],
                 data_paths: Sequence[str],
                 aspects: Sequence[ContainerAspect],
                 command: Sequence[str],
                 context_files: Optional[Mapping[str, Union[str, bytes]]] = None,
                 dirs: Optional[Dirs] = None,
                 engine: Optional[DockerEngine] = None,
                 host: Optional[HostFacts] = None,
                 workdir: Optional[str] = None):
        """
        Initializes the container manager.

        :param name: Application name, also the config and data directory key.
        :param tags: Image tags; the first one is built and run.
        :param data_paths: Container paths persisted in the profile data directory.
        :param aspects: Aspects of the application, in registration order.
        :param command: Default command run in the container.
        :param context_files: Static build context files of the application.
        :param dirs: Config and data roots. Defaults to the XDG locations.
        :param engine: Container engine. Defaults to the docker CLI.
        :param host: Host facts. Captured from the running host when first needed.
        :param workdir: Scratch directory for this invocation. Defaults to a
            temporary directory removed at exit.
        """
        if not tags:
            raise ValueError(f"{name}: at least one image tag is required")
        self.name = name
        self.tags = list(tags)
        self.data_paths = list(data_paths)
        self.aspects = list(aspects)
        self.command = list(command)
        self.context_files = dict(context_files or {})
        self.dirs = dirs or Dirs.from_env()
        self.engine = engine or DockerEngine()
        self.config: Optional[Config] = None
        self._host = host
        self._workdir = Path(workdir) if workdir else None

    @classmethod
    def default_debian(cls,
                       name: str,
                       tags: Sequence[str],
                       data_paths: Sequence[str],
                       aspects: Sequence[ContainerAspect],
                       command: Sequence[str],
                       debian_version: Optional[str] = None,
                       **kwargs) -> "ContainerManager":
        """
        Creates a manager whose image is based on Debian.

        :param debian_version: Debian release name, e.g. bookworm.
        """
        return cls(name, tags, data_paths, [Debian(debian_version), *aspects], command, **kwargs)

    @property
    def image(self) -> str:
        return self.tags[0]

    @property
    def host(self) -> HostFacts:
        if self._host is None:
            self._host = HostFacts.current()
        return self._host

    @property
    def workdir(self) -> Path:
        if self._workdir is None:
            self._workdir = Path(tempfile.mkdtemp(prefix=f"dfiles-{self.name}-"))
            atexit.register(shutil.rmtree, str(self._workdir), ignore_errors=True)
        return self._workdir

    def cli_args(self) -> List[click.Option]:
        """
        Config options, the entrypoint script option and every aspect's
        options, first declaration winning for a repeated parameter name.
        """
        params: Dict[str, click.Option] = {}
        declared = config_model.cli_args() + [LocalEntrypointScript.cli_option()]
        for aspect in self.aspects:
            declared.extend(aspect.cli_args())
        for param in declared:
            params.setdefault(param.name, param)
        return list(params.values())

    def load_config(self, matches: Mapping[str, Any]) -> Config:
        """
        Merges the persisted layers with the config flags of this invocation
        and appends the resulting aspects. Only the first call has an effect.
        """
        if self.config is not None:
            return self.config

        profile = matches.get("profile") or DEFAULT_PROFILE
        persisted = Config.load(self.dirs, self.name, profile)
        self.config = persisted.merge(Config.from_matches(matches))
        config_aspects = self.config.to_aspects()
        logger.debug("config adds aspects: %s", ", ".join(a.name() for a in config_aspects) or "none")
        self.aspects.extend(config_aspects)
        return self.config

    def save_config(self, matches: Mapping[str, Any]) -> Path:
        """
        Saves the config flags of this invocation to the global layer
        (`--global`), the application layer, or the application profile
        layer when `--profile` is given.
        """
        new_config = Config.from_matches(matches)
        if matches.get("global_scope"):
            return new_config.save(self.dirs)
        return new_config.save(self.dirs, self.name, matches.get("profile"))

    def compose_build_context(self) -> BuildContext:
        """
        Collects snippets and files of every aspect into a build context.
        """
        context = BuildContext(self.context_files)
        for aspect in self.aspects:
            context.add_aspect(aspect)
        return context

    def build_archive(self) -> bytes:
        return self.compose_build_context().archive()

    def compose_runtime_args(self, matches: Mapping[str, Any], command: Optional[Sequence[str]] = None) -> List[str]:
        """
        Assembles the arguments of `docker run`.

        :param matches: Parsed command line parameters.
        :param command: Command replacing the default one.
        :raises MissingHostFact: If an aspect cannot find what it needs on the host.
        """
        aspects = self.aspects + LocalEntrypointScript.from_matches(matches)

        args = ["--rm"]
        for aspect in aspects:
            args.extend(aspect.run_args(self.host, matches))

        args.extend(self._data_path_args(matches.get("profile") or DEFAULT_PROFILE))

        entrypoint = EntrypointBuilder()
        for aspect in aspects:
            entrypoint.add_aspect(aspect)
        args.extend(entrypoint.run_args(self.workdir))

        args.append(self.image)
        args.extend(self.command if command is None else command)
        return args

    def _data_path_args(self, profile: str) -> List[str]:
        data_dir = self.dirs.data_dir(self.name, profile)
        args = []
        for container_path in self.data_paths:
            host_path = data_dir / container_path.lstrip("/")
            host_path.mkdir(parents=True, exist_ok=True)
            args.extend(["--volume", f"{host_path}:{container_path}"])
        return args

    def build(self):
        """Builds the image and tags it with every tag."""
        archive_path = self.workdir / ARCHIVE_NAME
        with open(archive_path, "wb") as f:
            f.write(self.build_archive())
        logger.info("building %s", self.image)
        self.engine.build(str(archive_path), self.tags)

    def run(self, matches: Mapping[str, Any]):
        """Runs the default command in the container."""
        self.engine.run(self.compose_runtime_args(matches))

    def run_command(self, matches: Mapping[str, Any], command: Sequence[str]):
        """Runs another command in the container."""
        self.engine.run(self.compose_runtime_args(matches, command))

    def generate_archive(self, path: Union[str, Path]) -> Path:
        """
        Writes the build context archive to a file instead of building it.
        """
        path = Path(path)
        with open(path, "wb") as f:
            f.write(self.build_archive())
        logger.debug("wrote build context for %s to %s", self.image, path)
        return path

    def execute(self, mode: Union[Mode, str], matches: Mapping[str, Any], command: Optional[Sequence[str]] = None):
        """
        Performs one invocation: check operator scripts, load config, then
        do what the mode asks.

        :param mode: The operation to perform.
        :param matches: Parsed command line parameters.
        :param command: Command to run, for Mode.CMD.
        :return: The written file for Mode.CONFIG and Mode.GENERATE_ARCHIVE,
            None otherwise.
        """
        mode = Mode(mode)
        LocalEntrypointScript.from_matches(matches)
        self.load_config(matches)

        if mode is Mode.CONFIG:
            path = self.save_config(matches)
            logger.debug("saved config to %s", path)
            return path
        if mode is Mode.GENERATE_ARCHIVE:
            return self.generate_archive(matches.get("output") or f"{self.name}.tar")

        if mode is Mode.BUILD:
            self.build()
        elif mode is Mode.RUN:
            self.run(matches)
        elif mode is Mode.CMD:
            if not command:
                raise MissingCommand()
            self.run_command(matches, command)
        return None
