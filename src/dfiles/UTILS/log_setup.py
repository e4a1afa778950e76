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
Log setup for the command line.
"""
import logging
import sys

ROOT_LOGGER = "dfiles"


def _build_formatter(verbosity: int) -> logging.Formatter:
    if verbosity >= 2:
        return logging.Formatter(
            fmt="%(asctime)s | %(levelname)s | %(name)s | %(message)s",
            datefmt="%Y-%m-%d %H:%M:%S",
        )
    return logging.Formatter(fmt="%(message)s")


def setup_logging(verbosity: int = 0) -> logging.Logger:
    """
    Configures the dfiles logger hierarchy.

    :param verbosity: 0 for INFO, 1 for DEBUG, 2 or more for DEBUG with
        timestamps, levels and logger names.
    :return: The root dfiles logger.
    """
    logger = logging.getLogger(ROOT_LOGGER)
    logger.setLevel(logging.INFO if verbosity == 0 else logging.DEBUG)
    logger.propagate = False

    if logger.hasHandlers():
        logger.handlers.clear()

    handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(_build_formatter(verbosity))
    logger.addHandler(handler)
    return logger
