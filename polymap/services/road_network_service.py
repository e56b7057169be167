"""Road connectivity filtering.

Clipping a road network to a polygon leaves debris: short fragments that
enter across the boundary and connect to nothing inside. The graph here
keeps the main street network and drops such fragments.
"""

import logging
from collections import deque
from dataclasses import dataclass, field
from typing import Mapping, Optional, Sequence

import numpy as np

from ..models.features import FeatureSet
from ..models.settings import NetworkSettings
from ..utils.geometry import PolygonRegion
from .projection_service import Projection

logger = logging.getLogger(__name__)

Point = tuple[float, float]


class RoadNetworkGraph:
    """Bipartite road/node graph restricted to nodes inside the polygon."""

    def __init__(
        self,
        roads: Sequence[tuple[Sequence[int], str]],
        inside_nodes: set[int],
        node_points: Mapping[int, Point],
        polygon_points: Sequence[Point],
        settings: Optional[NetworkSettings] = None,
    ):
        """
        Args:
            roads: ``(node_ids, category)`` per road, indexed by position.
            inside_nodes: Ids of nodes lying inside the polygon.
            node_points: Projected point of every known node.
            polygon_points: Polygon vertices in the same pixel space.
            settings: Anchor categories and border thresholds.
        """
        self.settings = settings or NetworkSettings()
        self.inside_nodes = set(inside_nodes)
        self.node_points = node_points
        self.polygon_points = [(float(x), float(y)) for x, y in polygon_points]

        anchors = set(self.settings.anchor_categories)
        self.road_nodes: list[list[int]] = []
        self.is_anchor: list[bool] = []
        self.node_to_roads: dict[int, list[int]] = {}

        for index, (node_ids, category) in enumerate(roads):
            kept = [n for n in node_ids if n in self.inside_nodes]
            self.road_nodes.append(kept)
            self.is_anchor.append(category in anchors)
            for node_id in kept:
                self.node_to_roads.setdefault(node_id, []).append(index)

    def __len__(self) -> int:
        return len(self.road_nodes)

    # ------------------------------------------------------------------
    # Components
    # ------------------------------------------------------------------

    def _component_from(self, start: int, visited: set[int]) -> set[int]:
        component = {start}
        visited.add(start)
        queue = deque([start])
        while queue:
            road = queue.popleft()
            for node_id in self.road_nodes[road]:
                for neighbor in self.node_to_roads[node_id]:
                    if neighbor not in visited:
                        visited.add(neighbor)
                        component.add(neighbor)
                        queue.append(neighbor)
        return component

    def main_network_component(self) -> set[int]:
        """Largest connected set of roads containing at least one anchor road.

        Roads left without nodes inside the polygon take no part. Among
        equally large components the first one found wins.
        """
        visited: set[int] = set()
        best: set[int] = set()
        for index, nodes in enumerate(self.road_nodes):
            if index in visited or not nodes:
                continue
            component = self._component_from(index, visited)
            has_anchor = any(self.is_anchor[r] for r in component)
            if has_anchor and len(component) > len(best):
                best = component
        return best

    # ------------------------------------------------------------------
    # Border handling
    # ------------------------------------------------------------------

    def border_nodes(self, threshold: Optional[float] = None) -> set[int]:
        """Inside nodes lying within ``threshold`` pixels of a polygon vertex."""
        if threshold is None:
            threshold = self.settings.border_threshold
        if not self.polygon_points:
            return set()

        vertices = np.asarray(self.polygon_points, dtype=float)
        limit = threshold * threshold
        result: set[int] = set()
        for node_id in self.node_to_roads:
            point = self.node_points.get(node_id)
            if point is None:
                continue
            d2 = (vertices[:, 0] - point[0]) ** 2 + (vertices[:, 1] - point[1]) ** 2
            if bool((d2 < limit).any()):
                result.add(node_id)
        return result

    def prune_border_stubs(self, component: set[int], border_nodes: set[int]) -> set[int]:
        """Repeatedly drop short roads dangling off a border node.

        A road goes when it has at most ``max_stub_nodes`` nodes and its
        first or last node is a border node used by no other road of the
        component. Removing a road lowers its nodes' degrees, which can
        expose further stubs.
        """
        degree: dict[int, int] = {}
        for road in component:
            for node_id in self.road_nodes[road]:
                degree[node_id] = degree.get(node_id, 0) + 1

        def is_border_leaf(node_id: int) -> bool:
            return node_id in border_nodes and degree.get(node_id, 0) <= 1

        remaining = set(component)
        changed = True
        while changed:
            changed = False
            for road in sorted(remaining):
                nodes = self.road_nodes[road]
                if len(nodes) < 2 or len(nodes) > self.settings.max_stub_nodes:
                    continue
                if is_border_leaf(nodes[0]) or is_border_leaf(nodes[-1]):
                    remaining.discard(road)
                    for node_id in nodes:
                        degree[node_id] = max(0, degree.get(node_id, 0) - 1)
                    changed = True

        removed = len(component) - len(remaining)
        if removed:
            logger.debug("Pruned %d border stub road(s)", removed)
        return remaining

    def reachable_from_interior(self, roads: set[int], border_nodes: set[int]) -> set[int]:
        """Roads of ``roads`` connected to at least one non-border node."""
        seeds = [
            node_id
            for road in sorted(roads)
            for node_id in self.road_nodes[road]
            if node_id not in border_nodes
        ]
        seen_nodes = set(seeds)
        reached: set[int] = set()
        queue = deque(seeds)
        while queue:
            node_id = queue.popleft()
            for road in self.node_to_roads.get(node_id, ()):
                if road not in roads or road in reached:
                    continue
                reached.add(road)
                for neighbor in self.road_nodes[road]:
                    if neighbor not in seen_nodes:
                        seen_nodes.add(neighbor)
                        queue.append(neighbor)
        return reached

    def select_roads(self) -> set[int]:
        """Indices of the roads to draw and label."""
        component = self.main_network_component()
        if not component:
            return set()
        border = self.border_nodes()
        pruned = self.prune_border_stubs(component, border)
        return self.reachable_from_interior(pruned, border)


@dataclass
class NetworkSelection:
    """Which roads of a feature set end up on the map.

    ``selected`` roads touch the polygon and belong to the main network.
    ``context`` roads never enter the polygon; they are drawn under the
    outside mask but never labeled. Every other road is dropped.
    """

    selected: set[int] = field(default_factory=set)
    context: set[int] = field(default_factory=set)
    inside_nodes: set[int] = field(default_factory=set)

    @property
    def drawn(self) -> set[int]:
        return self.selected | self.context


class RoadNetworkService:
    """Projects the roads of a feature set and runs the network filter."""

    def __init__(self, settings: Optional[NetworkSettings] = None):
        self.settings = settings or NetworkSettings()

    def select(self, projection: Projection, features: FeatureSet) -> NetworkSelection:
        """Classify every road of ``features`` as selected, context or dropped.

        Work happens in working pixels so the border threshold is independent
        of the page scale.
        """
        node_ids = sorted(
            {n for road in features.roads for n in road.node_ids if n in features.nodes}
        )
        node_points: dict[int, Point] = {}
        if node_ids:
            pixels = projection.points_to_pixels(
                features.resolve(tuple(node_ids))
            )
            node_points = {n: (float(x), float(y)) for n, (x, y) in zip(node_ids, pixels)}

        polygon_pixels = projection.polygon_pixels()
        region = PolygonRegion(polygon_pixels)
        inside_nodes: set[int] = set()
        if node_ids:
            mask = region.contains_many(np.array([node_points[n] for n in node_ids]))
            inside_nodes = {n for n, inside in zip(node_ids, mask) if inside}

        context = {
            index
            for index, road in enumerate(features.roads)
            if not any(n in inside_nodes for n in road.node_ids)
        }

        graph = RoadNetworkGraph(
            [(road.node_ids, road.category) for road in features.roads],
            inside_nodes,
            node_points,
            [tuple(p) for p in polygon_pixels],
            self.settings,
        )
        selected = graph.select_roads()

        dropped = len(features.roads) - len(selected) - len(context)
        logger.info(
            "Road network: %d selected, %d context, %d dropped",
            len(selected),
            len(context),
            dropped,
        )
        return NetworkSelection(selected=selected, context=context, inside_nodes=inside_nodes)
