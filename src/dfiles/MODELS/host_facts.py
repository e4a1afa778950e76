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
Snapshot of the host facts aspects depend on at run time.
"""
import os
from dataclasses import dataclass, field
from typing import Dict, List, Tuple

from ..errors import MissingHostFact


def _list_dir(path: str) -> Tuple[str, ...]:
    if not path or not os.path.isdir(path):
        return ()
    return tuple(sorted(os.listdir(path)))


@dataclass(frozen=True)
class HostFacts:
    """
    Environment variables and device/socket listings, captured once per
    invocation so that composing run arguments never touches the live host.
    """
    env: Dict[str, str] = field(default_factory=dict)
    dev_entries: Tuple[str, ...] = ()
    runtime_dir_entries: Tuple[str, ...] = ()

    @classmethod
    def current(cls) -> "HostFacts":
        """Captures the facts of the running host."""
        env = dict(os.environ)
        return cls(
            env=env,
            dev_entries=_list_dir("/dev"),
            runtime_dir_entries=_list_dir(env.get("XDG_RUNTIME_DIR", "")),
        )

    def require_env(self, aspect: str, name: str) -> str:
        """
        Returns an environment variable or fails on behalf of an aspect.

        :param aspect: Name of the aspect asking.
        :param name: Variable name.
        :raises MissingHostFact: If the variable is unset or empty.
        """
        value = self.env.get(name)
        if not value:
            raise MissingHostFact(aspect, f"environment variable {name}")
        return value

    def require_device(self, aspect: str, name: str) -> str:
        """
        Returns the /dev path of a device node or fails on behalf of an aspect.
        """
        if name not in self.dev_entries:
            raise MissingHostFact(aspect, f"device /dev/{name}")
        return f"/dev/{name}"

    def require_runtime_entry(self, aspect: str, name: str) -> str:
        """
        Returns the path of an entry of $XDG_RUNTIME_DIR or fails on behalf of
        an aspect.
        """
        runtime_dir = self.require_env(aspect, "XDG_RUNTIME_DIR")
        if name not in self.runtime_dir_entries:
            raise MissingHostFact(aspect, f"{runtime_dir}/{name}")
        return os.path.join(runtime_dir, name)

    def devices(self, prefix: str) -> List[str]:
        """Lists /dev paths whose name starts with prefix."""
        return [f"/dev/{entry}" for entry in sorted(self.dev_entries) if entry.startswith(prefix)]
