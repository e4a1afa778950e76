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
Exception types raised while composing and running containers.
"""
from typing import List, Optional


class DfilesError(Exception):
    """
    Base class for every error dfiles reports to the operator.
    """


class MissingHostFact(DfilesError):
    """
    A capability needs something from the host (an environment variable,
    a device node, a socket directory) that is not there.
    """
    def __init__(self, aspect: str, fact: str):
        self.aspect = aspect
        self.fact = fact
        super().__init__(f"{aspect}: missing {fact}")


class InvalidInput(DfilesError, ValueError):
    """
    Malformed operator input, rejected at parse time.
    """
    field = "input"

    def __init__(self, value: str, reason: Optional[str] = None):
        self.value = value
        self.reason = reason
        message = f"invalid {self.field} `{value}`"
        if reason:
            message = f"{message}: {reason}"
        super().__init__(message)


class InvalidMount(InvalidInput):
    field = "mount"


class InvalidLocale(InvalidInput):
    field = "locale"


class InvalidTimezone(InvalidInput):
    field = "timezone"


class InvalidMemory(InvalidInput):
    field = "memory limit"


class InvalidCPUShares(InvalidInput):
    field = "cpu shares"


class InvalidNetwork(InvalidInput):
    field = "network"


class InvalidEntrypointScript(InvalidInput):
    field = "entrypoint script"


class MissingCommand(DfilesError):
    """
    A container command was requested without naming one.
    """
    def __init__(self):
        super().__init__("must specify a container command")


class ConfigError(DfilesError):
    """
    A configuration layer could not be read or written.
    """
    def __init__(self, path, reason: str):
        self.path = path
        self.reason = reason
        super().__init__(f"config {path}: {reason}")


class ContextConflict(DfilesError):
    """
    Two build context members claim the same path, or a path escapes the
    context root.
    """


class EngineError(DfilesError):
    """
    The container engine could not be started or exited with a failure.
    """
    def __init__(self, command: List[str], returncode: Optional[int] = None, reason: Optional[str] = None):
        self.command = command
        self.returncode = returncode
        if reason is None:
            reason = f"exited with status {returncode}"
        super().__init__(f"`{' '.join(command[:2])}` {reason}")
