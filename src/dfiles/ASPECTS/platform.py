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
Base platform aspects: the image every application is installed on.
"""
from typing import List, Optional

from .base import BASE_IMAGE_ORDER, BOOTSTRAP_ORDER, ContainerAspect, DockerfileSnippet, apt_install

DEFAULT_DEBIAN_VERSION = "bookworm"


class Debian(ContainerAspect):
    """
    Debian base image with the packages the entrypoint script relies on.
    """
    def __init__(self, version: Optional[str] = None):
        self.version = version or DEFAULT_DEBIAN_VERSION

    def name(self) -> str:
        return f"Debian({self.version})"

    def dockerfile_snippets(self) -> List[DockerfileSnippet]:
        return [
            DockerfileSnippet(
                order=BASE_IMAGE_ORDER,
                content=f"FROM debian:{self.version}\nARG DEBIAN_FRONTEND=noninteractive",
            ),
            DockerfileSnippet(
                order=BOOTSTRAP_ORDER,
                content=apt_install("ca-certificates", "curl", "gnupg", "sudo", "procps"),
            ),
        ]
