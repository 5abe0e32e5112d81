"""Dependency graph over schemas and endpoints, for change-impact queries.

Nodes are schema names and endpoint keys (``"GET /users/{id}"``).  Edges point
from the dependent to the dependency:

* schema -> schema, for every name in :attr:`Schema.refs`
* endpoint -> schema, for every name in :attr:`Endpoint.schema_refs`

A referenced name that is not a defined schema still becomes a node, so a
dangling ``$ref`` shows up in queries rather than disappearing.

``upstream`` of a node is everything reachable along outgoing edges (what it
depends on); ``downstream`` is everything that reaches it (what depends on
it, the usual "if schema X changes, which endpoints break" question).  Both
are computed with :func:`networkx.descendants` / :func:`networkx.ancestors`,
which track visited nodes and terminate on circular schemas.
"""

from __future__ import annotations

import networkx as nx

from openapi_sync.models import Direction, GraphStats, ImpactResult, UnifiedSpec

NODE_SCHEMA = "schema"
NODE_ENDPOINT = "endpoint"


class DependencyGraph:
    """Directed reference graph built from a :class:`~openapi_sync.models.UnifiedSpec`.

    Build with :meth:`build`; the graph is cheap relative to parsing and is
    meant to be rebuilt per request rather than cached.

    Example::

        graph = DependencyGraph.build(spec)
        graph.query("Address", Direction.DOWNSTREAM)
        # {"User", "GET /users/{id}", "POST /users"}
    """

    def __init__(self, graph: nx.DiGraph | None = None) -> None:
        self.graph: nx.DiGraph = graph if graph is not None else nx.DiGraph()

    @classmethod
    def build(cls, spec: UnifiedSpec) -> DependencyGraph:
        graph = nx.DiGraph()

        for name in spec.schemas:
            graph.add_node(name, type=NODE_SCHEMA)
        for key in spec.endpoints:
            graph.add_node(key, type=NODE_ENDPOINT)

        for name, schema in spec.schemas.items():
            for target in schema.refs:
                if target not in graph:
                    graph.add_node(target, type=NODE_SCHEMA)
                graph.add_edge(name, target)
        for key, endpoint in spec.endpoints.items():
            for target in endpoint.schema_refs:
                if target not in graph:
                    graph.add_node(target, type=NODE_SCHEMA)
                graph.add_edge(key, target)

        return cls(graph)

    def __contains__(self, node: str) -> bool:
        return node in self.graph

    def node_type(self, node: str) -> str | None:
        if node not in self.graph:
            return None
        return self.graph.nodes[node].get("type")

    def upstream(self, anchor: str) -> set[str]:
        """Everything *anchor* depends on, transitively."""
        if anchor not in self.graph:
            return set()
        return set(nx.descendants(self.graph, anchor))

    def downstream(self, anchor: str) -> set[str]:
        """Everything that depends on *anchor*, transitively."""
        if anchor not in self.graph:
            return set()
        return set(nx.ancestors(self.graph, anchor))

    def query(self, anchor: str, direction: Direction | str) -> set[str]:
        """Return the node ids reachable from *anchor* in *direction*.

        The anchor itself is never part of the result.  Unknown anchors
        yield an empty set.

        Raises:
            ValueError: If *direction* is not a valid :class:`Direction`.
        """
        direction = Direction(direction)
        if direction is Direction.UPSTREAM:
            return self.upstream(anchor)
        if direction is Direction.DOWNSTREAM:
            return self.downstream(anchor)
        return (self.upstream(anchor) | self.downstream(anchor)) - {anchor}

    def impact(self, anchor: str, direction: Direction | str = Direction.DOWNSTREAM) -> ImpactResult:
        """Run :meth:`query` and split the result into schemas and endpoints."""
        direction = Direction(direction)
        affected = self.query(anchor, direction)
        schemas = sorted(n for n in affected if self.node_type(n) == NODE_SCHEMA)
        endpoints = sorted(n for n in affected if self.node_type(n) == NODE_ENDPOINT)
        return ImpactResult(
            anchor=anchor,
            direction=direction,
            affected_schemas=schemas,
            affected_endpoints=endpoints,
            stats=self.stats(),
        )

    def stats(self) -> GraphStats:
        """Node, edge and orphan counts.  An orphan has no incoming or outgoing edge."""
        orphans = sum(
            1
            for node in self.graph.nodes
            if self.graph.in_degree(node) == 0 and self.graph.out_degree(node) == 0
        )
        return GraphStats(
            node_count=self.graph.number_of_nodes(),
            edge_count=self.graph.number_of_edges(),
            orphan_count=orphans,
        )
