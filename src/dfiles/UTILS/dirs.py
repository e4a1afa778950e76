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
On-disk locations for configuration layers and per-profile data.
"""
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Mapping, Optional

PROJECT = "dfiles"


@dataclass(frozen=True)
class Dirs:
    """Root directories for configuration and data."""
    config_root: Path
    data_root: Path

    @classmethod
    def from_env(cls, env: Optional[Mapping[str, str]] = None) -> "Dirs":
        """
        Resolves the roots from the XDG base directory variables.

        Args:
            env: Environment to read. Defaults to os.environ.
        """
        if env is None:
            env = os.environ
        home = Path(env.get("HOME") or Path.home())
        config_home = Path(env.get("XDG_CONFIG_HOME") or home / ".config")
        data_home = Path(env.get("XDG_DATA_HOME") or home / ".local" / "share")
        return cls(config_root=config_home / PROJECT, data_root=data_home / PROJECT)

    def config_dir(self, application: Optional[str] = None, profile: Optional[str] = None) -> Path:
        return self._scoped(self.config_root, application, profile)

    def data_dir(self, application: Optional[str] = None, profile: Optional[str] = None) -> Path:
        return self._scoped(self.data_root, application, profile)

    @staticmethod
    def _scoped(root: Path, application: Optional[str], profile: Optional[str]) -> Path:
        path = root
        if application:
            path = path / "applications" / application
        if profile:
            path = path / "profiles" / profile
        return path
