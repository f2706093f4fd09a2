from __future__ import annotations

from functools import lru_cache

import rustworkx as rx
from typing_extensions import Dict, List, Optional, Tuple, Type

from .context import ResolutionContext
from .members import BeanProperty


def _next_views(view: Type) -> Tuple[Type, ...]:
    """
    The direct generalizations of a view class, ``object`` excluded.
    """
    return tuple(b for b in getattr(view, "__bases__", ()) if b is not object)


def view_hierarchy(view: Type) -> rx.PyDiGraph:
    """
    Build the graph of a view class and every view it generalizes to. Edges point from a view to its generalization.

    :param view: The active view class.
    :return: The hierarchy graph. Node 0 is `view`.
    """
    graph = rx.PyDiGraph()
    indices: Dict[Type, int] = {view: graph.add_node(view)}
    stack: List[Type] = [view]
    while stack:
        current = stack.pop()
        for base in _next_views(current):
            if base not in indices:
                indices[base] = graph.add_node(base)
                stack.append(base)
            graph.add_edge(indices[current], indices[base], None)
    return graph


@lru_cache(maxsize=None)
def expected_views(view: Optional[Type]) -> Tuple[Type, ...]:
    """
    :param view: The active view class or ``None``.
    :return: The view itself followed by everything it generalizes to, each class once.
    """
    if view is None:
        return ()
    graph = view_hierarchy(view)
    reachable = sorted(rx.descendants(graph, 0))
    return (view,) + tuple(graph[i] for i in reachable)


def should_include_due_to_view(bean_property: BeanProperty, context: ResolutionContext) -> bool:
    """
    Decide whether a property is documented under the view of the context.

    Without an active view every property is included. With an active view a property is included if one of its views
    is the active view or something the active view generalizes to, and excluded if it declares no view at all.
    """
    expected = expected_views(context.view)
    if not expected:
        return True
    return any(v in expected for v in bean_property.views)
