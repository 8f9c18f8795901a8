"""
Hand-off graph between skill documents using NetworkX.

Nodes are documents keyed by their ref ('<category>/<slug>'). Edges point
from a skill to the skills it hands work to or works well with. Cycles are
legal and kept: two skills that delegate to each other yield both edges.

References that match no document are still added, as nodes marked
``resolved=False`` keyed by the name as written, and reported as
UnresolvedReferenceWarning.
"""

from __future__ import annotations

import enum as _enum
import typing as _typing

import networkx as _nx

import skillcorpus.skills.document as document
import skillcorpus.skills.index as index_module
import skillcorpus.skills.validation as validation


class RelationType(_enum.Enum):
    """Why one skill points at another."""

    DELEGATES_TO = "delegates_to"
    WORKS_WELL_WITH = "works_well_with"
    RECEIVES_FROM = "receives_from"


class HandoffGraph:
    """Directed reference graph over a set of skill documents."""

    def __init__(self) -> None:
        self.graph = _nx.DiGraph()
        self._unresolved: list[validation.UnresolvedReferenceWarning] = []

    # -------------------------------------------------------------------------
    # Construction
    # -------------------------------------------------------------------------

    def add_document(self, doc: document.SkillDocument) -> None:
        """Add a resolved document node."""
        self.graph.add_node(
            doc.ref,
            title=doc.title,
            category=doc.category,
            resolved=True,
        )

    def add_unresolved(self, name: str) -> str:
        """Add a placeholder node for a name that matched nothing."""
        if name not in self.graph:
            self.graph.add_node(name, title=name, category=None, resolved=False)
        return name

    def add_reference(self, source: str, target: str, relation: RelationType) -> None:
        """Add an edge, merging relation types when the edge already exists."""
        if self.graph.has_edge(source, target):
            relations = self.graph.edges[source, target]["relations"]
            if relation.value not in relations:
                relations.append(relation.value)
            return
        self.graph.add_edge(source, target, relations=[relation.value])

    def record_unresolved(self, warning: validation.UnresolvedReferenceWarning) -> None:
        self._unresolved.append(warning)

    # -------------------------------------------------------------------------
    # Queries
    # -------------------------------------------------------------------------

    @property
    def unresolved(self) -> list[validation.UnresolvedReferenceWarning]:
        """References that did not match any document, in document order."""
        return list(self._unresolved)

    def __len__(self) -> int:
        return self.graph.number_of_nodes()

    def __contains__(self, ref: object) -> bool:
        return ref in self.graph

    def has_edge(self, source: str, target: str) -> bool:
        return self.graph.has_edge(source, target)

    def successors(self, ref: str) -> list[str]:
        """Refs this node points at, in insertion order."""
        if ref not in self.graph:
            return []
        return list(self.graph.successors(ref))

    def predecessors(self, ref: str) -> list[str]:
        """Refs that point at this node."""
        if ref not in self.graph:
            return []
        return list(self.graph.predecessors(ref))

    def relations(self, source: str, target: str) -> list[str]:
        """Relation types on an edge, or [] if there is no edge."""
        if not self.graph.has_edge(source, target):
            return []
        return list(self.graph.edges[source, target]["relations"])

    def title(self, ref: str) -> str:
        return self.graph.nodes[ref].get("title") or ref

    def is_resolved(self, ref: str) -> bool:
        return bool(self.graph.nodes[ref].get("resolved"))

    def edges(self) -> list[tuple[str, str, list[str]]]:
        """All edges as (source, target, relations) tuples."""
        return [
            (source, target, list(data["relations"]))
            for source, target, data in self.graph.edges(data=True)
        ]

    def adjacency(self) -> dict[str, list[str]]:
        """
        Title-keyed adjacency lists.

        Every node appears as a key, including those without outgoing
        edges. Titles shared by several nodes have their lists merged.
        """
        result: dict[str, list[str]] = {}
        for ref in self.graph.nodes:
            targets = result.setdefault(self.title(ref), [])
            for successor in self.graph.successors(ref):
                successor_title = self.title(successor)
                if successor_title not in targets:
                    targets.append(successor_title)
        return result

    def cycles(self) -> list[list[str]]:
        """Elementary cycles as lists of refs, sorted for stable output."""
        found = [list(cycle) for cycle in _nx.simple_cycles(self.graph)]
        for cycle in found:
            # Rotate so each cycle starts at its smallest ref
            start = cycle.index(min(cycle))
            cycle[:] = cycle[start:] + cycle[:start]
        return sorted(found)

    def to_dict(self) -> dict[str, _typing.Any]:
        """Convert to dictionary for JSON serialization."""
        return {
            "nodes": [
                {"ref": ref, **data} for ref, data in self.graph.nodes(data=True)
            ],
            "edges": [
                {"source": source, "target": target, "relations": relations}
                for source, target, relations in self.edges()
            ],
            "unresolved": [w.to_dict() for w in self._unresolved],
        }


def resolve_handoff_graph(
    documents: _typing.Iterable[document.SkillDocument],
    *,
    index: index_module.SkillIndex | None = None,
    include_receives_from: bool = True,
) -> HandoffGraph:
    """
    Build the reference graph implied by the documents' collaboration data.

    Args:
        documents: Loaded documents.
        index: Index used to resolve names (default: built from documents).
        include_receives_from: Also add an edge from each 'Receives Work
                               From' skill to the document listing it.

    Returns:
        HandoffGraph. Never raises for dangling references.
    """
    docs = list(documents)
    lookup = index if index is not None else index_module.SkillIndex(docs)
    graph = HandoffGraph()

    for doc in docs:
        graph.add_document(doc)

    def node_for(doc: document.SkillDocument, relation: RelationType, name: str) -> str:
        target = lookup.resolve(name)
        if target is not None:
            if target.ref not in graph:
                graph.add_document(target)
            return target.ref
        graph.record_unresolved(validation.unresolved_reference(doc, relation.value, name))
        return graph.add_unresolved(name.strip())

    for doc in docs:
        for trigger in doc.collaboration:
            target = node_for(doc, RelationType.DELEGATES_TO, trigger.delegate_to)
            graph.add_reference(doc.ref, target, RelationType.DELEGATES_TO)

        for name in doc.works_well_with:
            target = node_for(doc, RelationType.WORKS_WELL_WITH, name)
            graph.add_reference(doc.ref, target, RelationType.WORKS_WELL_WITH)

        if include_receives_from:
            for entry in doc.receives_from:
                source = node_for(doc, RelationType.RECEIVES_FROM, entry.skill)
                graph.add_reference(source, doc.ref, RelationType.RECEIVES_FROM)

    return graph
