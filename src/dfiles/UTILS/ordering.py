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
Ordering of fragments contributed by independent aspects.
"""
from itertools import groupby
from typing import Generic, Iterator, List, Tuple, TypeVar

T = TypeVar("T")


class OrderedFragments(Generic[T]):
    """
    Collects (order key, item) pairs and hands them back sorted by key.

    Items sharing a key keep the order in which they were added, so the
    result only depends on the keys and on registration order.
    """
    def __init__(self):
        self._entries: List[Tuple[int, int, T]] = []

    def add(self, order: int, item: T):
        """
        Adds an item under the given order key.

        :param order: The order key.
        :param item: The fragment to store.
        """
        self._entries.append((order, len(self._entries), item))

    def __len__(self) -> int:
        return len(self._entries)

    def __iter__(self) -> Iterator[T]:
        for _, _, item in self._sorted():
            yield item

    def buckets(self) -> List[Tuple[int, List[T]]]:
        """
        Groups the fragments by order key.

        :return: (key, items) pairs in ascending key order.
        """
        return [
            (order, [item for _, _, item in entries])
            for order, entries in groupby(self._sorted(), key=lambda e: e[0])
        ]

    def _sorted(self) -> List[Tuple[int, int, T]]:
        return sorted(self._entries, key=lambda e: (e[0], e[1]))
