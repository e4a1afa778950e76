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
Composes the script that replaces the image entrypoint: privileged setup
contributed by aspects, then the requested command as the chosen user.
"""
import logging
import os
from pathlib import Path
from typing import List

from jinja2 import Environment

from ..ASPECTS.base import ContainerAspect, EntrypointScript
from ..UTILS.ordering import OrderedFragments

logger = logging.getLogger(__name__)

CONTAINER_PATH = "/dfiles/entrypoint.bash"
SCRIPT_NAME = "entrypoint.bash"

ENTRYPOINT_TEMPLATE = """\
#!/usr/bin/env bash
set -e

CONTAINER_USER=root
{% for script in scripts %}

{% for line in script.description.splitlines() %}
# {{ line }}
{% endfor %}
{{ script.script.rstrip() }}
{% endfor %}

# execute whatever command was specified
if [ "${CONTAINER_USER}" = "root" ]; then
    exec "$@"
fi
exec sudo --preserve-env --set-home --user "${CONTAINER_USER}" -- "$@"
"""

_environment = Environment(trim_blocks=True, lstrip_blocks=True, keep_trailing_newline=True, autoescape=False)


class EntrypointBuilder:
    """
    Collects entrypoint scripts from aspects in order-key order.
    """
    def __init__(self):
        self.scripts: OrderedFragments[EntrypointScript] = OrderedFragments()
        self.template = _environment.from_string(ENTRYPOINT_TEMPLATE)

    def add_aspect(self, aspect: ContainerAspect):
        for script in aspect.entrypoint_scripts():
            self.scripts.add(script.order, script)

    def is_empty(self) -> bool:
        return len(self.scripts) == 0

    def render(self) -> str:
        """
        Renders the entrypoint script. `CONTAINER_USER` starts as root and
        scripts may reassign it; its final value runs the command.
        """
        return self.template.render(scripts=list(self.scripts))

    def write(self, directory: Path) -> Path:
        """
        Writes the rendered script as an executable file.

        :param directory: Directory to write into.
        :return: Path of the script on the host.
        """
        path = Path(directory) / SCRIPT_NAME
        with open(path, "w") as f:
            f.write(self.render())
        os.chmod(path, 0o755)
        logger.debug("wrote entrypoint script %s", path)
        return path

    def run_args(self, directory: Path) -> List[str]:
        """
        Writes the script and returns the arguments mounting it over the
        image entrypoint. Without scripts there is nothing to write and the
        image entrypoint is left alone.
        """
        if self.is_empty():
            return []
        path = self.write(directory)
        return ["--volume", f"{path}:{CONTAINER_PATH}:ro", "--entrypoint", CONTAINER_PATH]
