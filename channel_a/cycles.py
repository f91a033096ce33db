"""Dependency-cycle detection over a proposal's logic description.

Nodes are the top-level keys of the logic object. Each top-level value is
scanned recursively for references:

  - any string starting with REF_PREFIX ("$ref:"), naming the suffix
  - an object field in REF_LIST_FIELDS ("depends_on") holding strings
  - an object field in REF_SCALAR_FIELDS ("references", "ref") holding a string

References to names that are not top-level keys are dropped. A cycle is a
strongly connected component with more than one node, or one node with a
self-loop.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any

from channel_a.config import REF_LIST_FIELDS, REF_PREFIX, REF_SCALAR_FIELDS
from channel_a.core.json_canon import parse_json_strict


@dataclass(frozen=True)
class DependencyGraph:
    """Index-addressed graph: names[i] is node i, edges[i] lists its targets."""

    names: tuple[str, ...]
    edges: tuple[tuple[int, ...], ...]

    def has_edge(self, src: int, dst: int) -> bool:
        return dst in self.edges[src]


def extract_references(value: Any) -> list[str]:
    """Return every reference found in ``value``, in document order."""

    refs: list[str] = []
    if isinstance(value, str):
        if value.startswith(REF_PREFIX):
            refs.append(value[len(REF_PREFIX):])
    elif isinstance(value, dict):
        for field in REF_LIST_FIELDS:
            items = value.get(field)
            if isinstance(items, list):
                refs.extend(x for x in items if isinstance(x, str))
        for field in REF_SCALAR_FIELDS:
            target = value.get(field)
            if isinstance(target, str):
                refs.append(target)
        for v in value.values():
            refs.extend(extract_references(v))
    elif isinstance(value, list):
        for item in value:
            refs.extend(extract_references(item))
    return refs


def build_graph(logic: Any) -> DependencyGraph:
    if not isinstance(logic, dict) or not logic:
        return DependencyGraph(names=(), edges=())

    names = tuple(sorted(logic, key=lambda k: k.encode("utf-8")))
    index = {name: i for i, name in enumerate(names)}

    edges: list[tuple[int, ...]] = []
    for name in names:
        targets: list[int] = []
        for ref in extract_references(logic[name]):
            j = index.get(ref)
            if j is not None and j not in targets:
                targets.append(j)
        edges.append(tuple(targets))
    return DependencyGraph(names=names, edges=tuple(edges))


def strongly_connected_components(graph: DependencyGraph) -> list[list[int]]:
    """Tarjan's algorithm, iterative; components in reverse topological order."""

    n = len(graph.names)
    index_of = [-1] * n
    lowlink = [0] * n
    on_stack = [False] * n
    stack: list[int] = []
    components: list[list[int]] = []
    counter = 0

    for root in range(n):
        if index_of[root] != -1:
            continue
        work: list[tuple[int, int]] = [(root, 0)]
        while work:
            v, next_edge = work.pop()
            if next_edge == 0:
                index_of[v] = lowlink[v] = counter
                counter += 1
                stack.append(v)
                on_stack[v] = True

            recurse = False
            targets = graph.edges[v]
            for i in range(next_edge, len(targets)):
                w = targets[i]
                if index_of[w] == -1:
                    work.append((v, i + 1))
                    work.append((w, 0))
                    recurse = True
                    break
                if on_stack[w]:
                    lowlink[v] = min(lowlink[v], index_of[w])
            if recurse:
                continue

            if lowlink[v] == index_of[v]:
                component: list[int] = []
                while True:
                    w = stack.pop()
                    on_stack[w] = False
                    component.append(w)
                    if w == v:
                        break
                components.append(component)

            if work:
                parent = work[-1][0]
                lowlink[parent] = min(lowlink[parent], lowlink[v])

    return components


def _cyclic_components(graph: DependencyGraph) -> list[list[str]]:
    out: list[list[str]] = []
    for component in strongly_connected_components(graph):
        if len(component) > 1 or graph.has_edge(component[0], component[0]):
            out.append(sorted((graph.names[i] for i in component), key=lambda s: s.encode("utf-8")))
    out.sort(key=lambda members: members[0].encode("utf-8"))
    return out


def detect(logic_text: str) -> bool:
    """True if the logic description contains a dependency cycle.

    Raises ParseError on invalid JSON text.
    """

    graph = build_graph(parse_json_strict(logic_text))
    return len(_cyclic_components(graph)) > 0


def find_cycles(logic_text: str) -> list[list[str]]:
    """Members of every cyclic component (sorted), for fraud-proof witness data.

    Raises ParseError on invalid JSON text.
    """

    return _cyclic_components(build_graph(parse_json_strict(logic_text)))
