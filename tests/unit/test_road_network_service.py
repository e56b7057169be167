"""Tests for polymap.services.road_network_service."""

from polymap.models.features import FeatureSet, MapNode, Road
from polymap.models.settings import NetworkSettings
from polymap.services.projection_service import Projection
from polymap.services.road_network_service import (
    NetworkSelection,
    RoadNetworkGraph,
    RoadNetworkService,
)

SQUARE = [(0.0, 0.0), (100.0, 0.0), (100.0, 100.0), (0.0, 100.0)]

# Interior nodes on a loose grid; 5x are near the (0, 0) corner, 6x near (100, 0)
NODE_POINTS = {
    1: (20.0, 20.0),
    2: (40.0, 20.0),
    3: (60.0, 20.0),
    4: (60.0, 40.0),
    5: (60.0, 60.0),
    10: (20.0, 80.0),
    11: (40.0, 80.0),
    12: (60.0, 80.0),
    13: (80.0, 80.0),
    50: (0.5, 0.5),
    60: (99.5, 0.5),
    52: (2.0, 0.0),
    70: (30.0, 50.0),
    71: (40.0, 50.0),
}


def make_graph(roads, inside=None, settings=None):
    inside = set(NODE_POINTS) if inside is None else inside
    return RoadNetworkGraph(roads, inside, NODE_POINTS, SQUARE, settings)


class TestMainComponent:
    def test_anchored_component_beats_larger_unanchored(self):
        graph = make_graph(
            [
                ([1, 2, 3], "primary"),
                ([3, 4], "residential"),
                ([10, 11], "residential"),
                ([11, 12], "residential"),
                ([12, 13], "residential"),
            ]
        )
        assert graph.main_network_component() == {0, 1}

    def test_largest_anchored_component_wins(self):
        graph = make_graph(
            [
                ([1, 2], "secondary"),
                ([10, 11], "motorway"),
                ([11, 12], "residential"),
            ]
        )
        assert graph.main_network_component() == {1, 2}

    def test_first_component_wins_ties(self):
        graph = make_graph([([1, 2], "primary"), ([10, 11], "trunk")])
        assert graph.main_network_component() == {0}

    def test_no_anchor_selects_nothing(self):
        graph = make_graph([([1, 2], "residential"), ([2, 3], "service")])
        assert graph.main_network_component() == set()
        assert graph.select_roads() == set()

    def test_outside_nodes_do_not_connect(self):
        # Node 3 is outside: the two roads only met there
        graph = make_graph(
            [([1, 2, 3], "primary"), ([3, 4, 5], "primary")],
            inside=set(NODE_POINTS) - {3},
        )
        assert graph.road_nodes[0] == [1, 2]
        assert graph.main_network_component() == {0}

    def test_road_without_inside_nodes_takes_no_part(self):
        graph = make_graph([([1, 2], "primary")], inside={3, 4})
        assert graph.main_network_component() == set()

    def test_anchor_categories_are_configurable(self):
        settings = NetworkSettings(anchor_categories=("residential",))
        graph = make_graph([([1, 2], "primary"), ([10, 11, 12], "residential")], settings=settings)
        assert graph.main_network_component() == {1}

    def test_grid_with_cycles_stays_one_component(self):
        # 4 x 3 street grid; every block forms a cycle
        points = {100 + j * 4 + i: (10.0 + 20.0 * i, 10.0 + 20.0 * j) for i in range(4) for j in range(3)}
        points.update({900: (90.0, 90.0), 901: (95.0, 95.0)})
        roads = []
        for j in range(3):
            for i in range(3):
                roads.append(([100 + j * 4 + i, 100 + j * 4 + i + 1], "residential"))
        for j in range(2):
            for i in range(4):
                roads.append(([100 + j * 4 + i, 100 + (j + 1) * 4 + i], "residential"))
        roads[0] = (roads[0][0], "primary")
        grid = set(range(len(roads)))
        roads.append(([900, 901], "residential"))

        graph = RoadNetworkGraph(roads, set(points), points, SQUARE)

        assert graph.main_network_component() == grid
        assert graph.select_roads() == grid


class TestBorderNodes:
    def test_nodes_near_vertices(self):
        graph = make_graph([([50, 1], "primary"), ([60, 3], "primary"), ([2, 3], "primary")])
        assert graph.border_nodes() == {50, 60}

    def test_threshold_is_strict(self):
        graph = make_graph([([52, 1], "primary")])
        # 52 is exactly 2 px from the corner
        assert graph.border_nodes() == set()
        assert graph.border_nodes(threshold=2.5) == {52}


class TestPruning:
    def test_short_stub_off_border_removed(self):
        graph = make_graph([([1, 2, 3, 4], "primary"), ([50, 1], "residential")])
        border = graph.border_nodes()
        assert graph.prune_border_stubs({0, 1}, border) == {0}

    def test_long_road_touching_border_kept(self):
        graph = make_graph([([50, 1, 2, 3, 4], "primary")])
        assert graph.prune_border_stubs({0}, graph.border_nodes()) == {0}

    def test_shared_border_node_is_not_a_leaf(self):
        graph = make_graph(
            [([1, 2, 3, 4], "primary"), ([50, 1], "residential"), ([50, 2], "residential")]
        )
        assert graph.prune_border_stubs({0, 1, 2}, graph.border_nodes()) == {0, 1, 2}

    def test_pruning_is_iterative(self):
        # 50 is shared by two stubs; once the 60 stub goes, 50 becomes a leaf
        graph = make_graph(
            [
                ([1, 2, 3, 4], "primary"),
                ([50, 60], "residential"),
                ([50, 1], "residential"),
            ]
        )
        assert graph.prune_border_stubs({0, 1, 2}, graph.border_nodes()) == {0}

    def test_stub_size_is_configurable(self):
        settings = NetworkSettings(max_stub_nodes=5)
        graph = make_graph([([1, 2, 3, 4], "primary"), ([50, 70, 71, 1], "residential")], settings=settings)
        assert graph.prune_border_stubs({0, 1}, graph.border_nodes()) == {0}


class TestReachability:
    def test_border_only_island_dropped(self):
        graph = make_graph([([1, 2], "primary"), ([50, 60], "residential")])
        border = graph.border_nodes()
        assert graph.reachable_from_interior({0, 1}, border) == {0}

    def test_traversal_stays_within_given_roads(self):
        graph = make_graph([([1, 2], "primary"), ([2, 3], "primary")])
        assert graph.reachable_from_interior({0}, set()) == {0}

    def test_select_roads_end_to_end(self):
        graph = make_graph(
            [
                ([1, 2, 3, 4, 5], "primary"),
                ([50, 1], "residential"),
                ([10, 11, 12], "residential"),
                ([5, 71, 70], "tertiary"),
            ]
        )
        assert graph.select_roads() == {0, 3}


class TestRoadNetworkService:
    def test_select_classifies_roads(self, square_polygon, small_page):
        features = FeatureSet(
            nodes={
                1: MapNode(1, 0.002, 0.005),
                2: MapNode(2, 0.008, 0.005),
                3: MapNode(3, 0.005, 0.002),
                4: MapNode(4, 0.005, 0.008),
                # Outside the square
                5: MapNode(5, 0.015, 0.005),
                6: MapNode(6, 0.015, 0.009),
                # Inside but disconnected from the main network
                7: MapNode(7, 0.003, 0.003),
                8: MapNode(8, 0.003, 0.004),
            }
        )
        features.add(Road((1, 2), "primary", name="North Road"))
        features.add(Road((3, 1, 4), "secondary"))
        features.add(Road((5, 6), "primary"))
        features.add(Road((7, 8), "residential"))
        features.add(Road((2, 5), "tertiary"))

        projection = Projection.for_polygon(square_polygon, small_page)
        selection = RoadNetworkService().select(projection, features)

        assert selection.selected == {0, 1, 4}
        assert selection.context == {2}
        assert selection.drawn == {0, 1, 2, 4}
        assert selection.inside_nodes == {1, 2, 3, 4, 7, 8}

    def test_empty_feature_set(self, square_polygon, small_page):
        projection = Projection.for_polygon(square_polygon, small_page)
        selection = RoadNetworkService().select(projection, FeatureSet())
        assert selection == NetworkSelection()
