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
Builders for the Dockerfile and the build context archive handed to the
container engine.
"""
import io
import logging
import posixpath
import tarfile
from typing import Dict, Mapping, Optional, Tuple, Union

from ..ASPECTS.base import ContainerAspect
from ..errors import ContextConflict
from ..UTILS.ordering import OrderedFragments

logger = logging.getLogger(__name__)

DOCKERFILE_NAME = "Dockerfile"


def normalize_context_path(path: str) -> str:
    """
    Normalizes a build context path to a relative POSIX path.

    :raises ContextConflict: If the path is empty or escapes the context root.
    """
    normalized = posixpath.normpath(path.lstrip("/"))
    if normalized in ("", ".") or normalized == ".." or normalized.startswith("../"):
        raise ContextConflict(f"build context path `{path}` is outside the context root")
    return normalized


class BuildContext:
    """
    Accumulates Dockerfile snippets and files from aspects and renders them
    as a Dockerfile and a tar archive.

    Snippets sharing an order key are joined by a newline in registration
    order; distinct keys are joined by a blank line in ascending key order.
    """
    def __init__(self, context_files: Optional[Mapping[str, Union[str, bytes]]] = None):
        """
        Initializes the build context.

        :param context_files: Static files of the application, keyed by
            their path in the context.
        """
        self.snippets: OrderedFragments[str] = OrderedFragments()
        self.files: Dict[str, Tuple[bytes, int, str]] = {}
        for path, contents in (context_files or {}).items():
            data = contents if isinstance(contents, bytes) else contents.encode("utf-8")
            self._add_file(path, data, 0o644, "application context")

    def add_aspect(self, aspect: ContainerAspect):
        """
        Adds every snippet and file of an aspect.

        :param aspect: The aspect to add.
        """
        for snippet in aspect.dockerfile_snippets():
            self.snippets.add(snippet.order, snippet.content)
        for container_file in aspect.container_files():
            self._add_file(container_file.container_path, container_file.data(), container_file.mode, aspect.name())

    def _add_file(self, path: str, data: bytes, mode: int, owner: str):
        normalized = normalize_context_path(path)
        if normalized == DOCKERFILE_NAME:
            raise ContextConflict(f"{owner}: `{path}` collides with the generated {DOCKERFILE_NAME}")
        if normalized in self.files:
            raise ContextConflict(
                f"{owner}: `{path}` is already provided by {self.files[normalized][2]}"
            )
        self.files[normalized] = (data, mode, owner)

    def dockerfile(self) -> str:
        """
        Renders the Dockerfile from the collected snippets.
        """
        return "\n\n".join("\n".join(contents) for _, contents in self.snippets.buckets())

    def archive(self) -> bytes:
        """
        Packs the Dockerfile and every file into an uncompressed tar archive.
        Member metadata is fixed so identical inputs give identical bytes.
        """
        buffer = io.BytesIO()
        with tarfile.open(fileobj=buffer, mode="w", format=tarfile.PAX_FORMAT) as tar:
            self._add_member(tar, DOCKERFILE_NAME, self.dockerfile().encode("utf-8"), 0o644)
            for path, (data, mode, _) in self.files.items():
                self._add_member(tar, path, data, mode)
        logger.debug("build context holds %d files", len(self.files) + 1)
        return buffer.getvalue()

    @staticmethod
    def _add_member(tar: tarfile.TarFile, path: str, data: bytes, mode: int):
        info = tarfile.TarInfo(name=path)
        info.size = len(data)
        info.mode = mode
        info.mtime = 0
        info.uid = info.gid = 0
        info.uname = info.gname = ""
        tar.addfile(info, io.BytesIO(data))
