"""Stack-based tree traversal with replace/skip signals"""

from dataclasses import dataclass, field
from typing import Callable, Iterator, Union

from mdmedia.core.nodes import Node, Parent


class _Signal:
    def __init__(self, name: str):
        self.name = name

    def __repr__(self) -> str:
        return self.name


CONTINUE = _Signal("CONTINUE")
SKIP = _Signal("SKIP")          # keep the node, do not descend into it


class Replace:
    """Swap the visited node for zero or more nodes; replacements are not re-visited."""

    def __init__(self, *nodes: Node):
        self.nodes = list(nodes)


Action = Union[_Signal, Replace, None]
Test = Union[str, tuple[str, ...], Callable[[Node], bool], None]
Visitor = Callable[[Node, Parent], Action]


@dataclass
class _Frame:
    parent: Parent
    source: list[Node]
    index: int = 0
    result: list[Node] = field(default_factory=list)


def _matches(test: Test, node: Node) -> bool:
    if test is None:
        return True
    if isinstance(test, str):
        return node.type == test
    if isinstance(test, tuple):
        return node.type in test
    return test(node)


def visit(tree: Parent, test: Test, visitor: Visitor) -> None:
    """Pre-order walk below `tree`, calling visitor(node, parent) on nodes matching test.

    Children lists are rebuilt rather than spliced, so removals and
    replacements never shift the indices of siblings still to be visited.
    """
    stack = [_Frame(tree, list(tree.children))]
    while stack:
        frame = stack[-1]
        if frame.index >= len(frame.source):
            frame.parent.children = frame.result
            stack.pop()
            continue

        node = frame.source[frame.index]
        frame.index += 1
        action = visitor(node, frame.parent) if _matches(test, node) else CONTINUE

        if isinstance(action, Replace):
            frame.result.extend(action.nodes)
            continue
        frame.result.append(node)
        if action is not SKIP and isinstance(node, Parent):
            stack.append(_Frame(node, list(node.children)))


def iter_nodes(tree: Parent, test: Test = None) -> Iterator[Node]:
    """Yield matching nodes in document order without modifying the tree."""
    stack: list[Node] = list(reversed(tree.children))
    while stack:
        node = stack.pop()
        if _matches(test, node):
            yield node
        if isinstance(node, Parent):
            stack.extend(reversed(node.children))
