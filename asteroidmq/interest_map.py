"""An index from interest patterns to the values that registered them."""

from __future__ import annotations

from collections.abc import Iterable, Iterator
from typing import Generic, Hashable, Optional, TypeVar

from asteroidmq.interest import Interest, InterestSegment, SegmentKind, Subject

T = TypeVar("T", bound=Hashable)


class _Node(Generic[T]):
    __slots__ = ("values", "children", "any_child", "recursive_any_child")

    def __init__(self) -> None:
        self.values: set[T] = set()
        self.children: dict[bytes, _Node[T]] = {}
        self.any_child: Optional[_Node[T]] = None
        self.recursive_any_child: Optional[_Node[T]] = None

    def insert(self, path: Iterator[InterestSegment], value: T) -> None:
        node = self
        for segment in path:
            if segment.kind is SegmentKind.SPECIFIC:
                node = node.children.setdefault(segment.value, _Node())
            elif segment.kind is SegmentKind.ANY:
                if node.any_child is None:
                    node.any_child = _Node()
                node = node.any_child
            else:
                if node.recursive_any_child is None:
                    node.recursive_any_child = _Node()
                node = node.recursive_any_child
        node.values.add(value)

    def delete(self, path: Iterator[InterestSegment], value: T) -> None:
        node: Optional[_Node[T]] = self
        for segment in path:
            if segment.kind is SegmentKind.SPECIFIC:
                node = node.children.get(segment.value)
            elif segment.kind is SegmentKind.ANY:
                node = node.any_child
            else:
                node = node.recursive_any_child
            if node is None:
                return
        node.values.discard(value)

    def find(self, path: tuple[bytes, ...], collector: set[T]) -> None:
        if not path:
            collector.update(self.values)
            return
        segment, rest = path[0], path[1:]
        recursive = self.recursive_any_child
        if recursive is not None:
            collector.update(recursive.values)
            for offset, later in enumerate(rest):
                matched = recursive.children.get(later)
                if matched is not None:
                    matched.find(rest[offset + 1 :], collector)
        if self.any_child is not None:
            self.any_child.find(rest, collector)
        child = self.children.get(segment)
        if child is not None:
            child.find(rest, collector)


class InterestMap(Generic[T]):
    """Maps values to their interests and finds the values a subject reaches."""

    def __init__(self) -> None:
        self._root: _Node[T] = _Node()
        self._raw: dict[T, set[Interest]] = {}

    @classmethod
    def from_raw(cls, raw: dict[T, Iterable[Interest]]) -> InterestMap[T]:
        result: InterestMap[T] = cls()
        for value, interests in raw.items():
            interest_set = set(interests)
            for interest in interest_set:
                result._root.insert(interest.as_segments(), value)
            result._raw[value] = interest_set
        return result

    def insert(self, interest: Interest, value: T) -> None:
        self._root.insert(interest.as_segments(), value)
        self._raw.setdefault(value, set()).add(interest)

    def find(self, subject: Subject) -> set[T]:
        collector: set[T] = set()
        self._root.find(tuple(subject.segments()), collector)
        return collector

    def delete(self, value: T) -> None:
        interests = self._raw.pop(value, None)
        if interests is None:
            return
        for interest in interests:
            self._root.delete(interest.as_segments(), value)

    def interest_of(self, value: T) -> Optional[set[Interest]]:
        return self._raw.get(value)

    def to_raw(self) -> dict[T, set[Interest]]:
        """A copy of the value-to-interests table the map is built from."""
        return {value: set(interests) for value, interests in self._raw.items()}