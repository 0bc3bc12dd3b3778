"""
IPWS Flood Early Warning - Station Clustering

Groups nearby monitoring stations into map clusters so that hundreds of
markers and buffer zones stay readable when zoomed out.

The clustering is hierarchical and greedy. Stations are projected to Web
Mercator and normalised to the unit square. Starting one level below the
deepest zoom, each level is built from the level beneath it: points are
visited in order and every not-yet-claimed neighbour within the pixel radius
is merged into a cluster at the weighted centroid. Because each level only
merges nodes of the finer level, a station's cluster at zoom z+1 is always
contained in its cluster at zoom z.

Key Classes:
- StationClusterer: load(), get_clusters(), get_children(), get_leaves(),
  get_cluster_expansion_zoom()
"""

import logging
import math

import numpy as np
from pyproj import Transformer
from shapely.geometry import Point, box
from shapely.strtree import STRtree

from ipws.stations import filter_by_area
from ipws.thresholds import RISK_LEVELS, get_risk_rank

logger = logging.getLogger(__name__)

# Half the width of the Web Mercator plane (m)
MERCATOR_HALF_EXTENT = 20037508.342789244

# Web Mercator is undefined beyond these latitudes
MAX_MERCATOR_LAT = 85.051129

# Cluster ids encode the origin index and zoom in 5 bits
ZOOM_BITS = 5

WGS84_TO_MERCATOR = Transformer.from_crs("EPSG:4326", "EPSG:3857", always_xy=True)
MERCATOR_TO_WGS84 = Transformer.from_crs("EPSG:3857", "EPSG:4326", always_xy=True)


def project(lons, lats):
    """
    Project lon/lat degrees to normalised Web Mercator in [0, 1].

    x grows eastwards and y grows southwards (tile convention).
    """
    lats = np.clip(np.asarray(lats, dtype=float), -MAX_MERCATOR_LAT, MAX_MERCATOR_LAT)
    mx, my = WGS84_TO_MERCATOR.transform(np.asarray(lons, dtype=float), lats)
    x = (np.asarray(mx) + MERCATOR_HALF_EXTENT) / (2 * MERCATOR_HALF_EXTENT)
    y = (MERCATOR_HALF_EXTENT - np.asarray(my)) / (2 * MERCATOR_HALF_EXTENT)
    return np.clip(x, 0.0, 1.0), np.clip(y, 0.0, 1.0)


def unproject(x, y):
    """Inverse of project() for a single point; returns (lon, lat)."""
    mx = x * 2 * MERCATOR_HALF_EXTENT - MERCATOR_HALF_EXTENT
    my = MERCATOR_HALF_EXTENT - y * 2 * MERCATOR_HALF_EXTENT
    lon, lat = MERCATOR_TO_WGS84.transform(mx, my)
    return float(lon), float(lat)


class _Node:
    """A point or cluster on one zoom level."""

    __slots__ = ('x', 'y', 'count', 'id', 'is_cluster', 'parent', 'zoom', 'max_rank')

    def __init__(self, x, y, count, id, is_cluster, max_rank):
        self.x = x
        self.y = y
        self.count = count
        self.id = id
        self.is_cluster = is_cluster
        self.parent = -1
        self.zoom = math.inf
        self.max_rank = max_rank


class StationClusterer:
    """
    Hierarchical clusterer for monitoring stations.

    Args:
        radius (float): Cluster radius in pixels
        extent (int): Tile extent the radius is measured against
        min_zoom (int): Lowest zoom level that is clustered
        max_zoom (int): Highest zoom level that is clustered; stations are
            returned individually above it
    """

    def __init__(self, radius=100, extent=512, min_zoom=0, max_zoom=16):
        if min_zoom < 0 or max_zoom < min_zoom:
            raise ValueError(f"Invalid zoom range {min_zoom}-{max_zoom}")
        if max_zoom + 1 >= 2 ** ZOOM_BITS:
            raise ValueError(f"max_zoom must be below {2 ** ZOOM_BITS - 1}, got {max_zoom}")
        if radius <= 0 or extent <= 0:
            raise ValueError("Cluster radius and extent must be positive")
        self.radius = radius
        self.extent = extent
        self.min_zoom = min_zoom
        self.max_zoom = max_zoom
        self.stations = []
        self.selected_area = None
        self._levels = {}
        self._trees = {}

    def radius_at(self, zoom):
        """Cluster radius at a zoom level, in normalised mercator units."""
        return self.radius / (self.extent * 2 ** zoom)

    def load(self, stations, selected_area=None):
        """
        Index a station set, optionally restricted to a city or district.

        Rebuilds every zoom level. Call again whenever the station set or the
        area filter changes.
        """
        self.selected_area = selected_area
        self.stations = filter_by_area(stations, selected_area)
        self._levels = {}
        self._trees = {}

        nodes = []
        if self.stations:
            xs, ys = project([s.longitude for s in self.stations],
                             [s.latitude for s in self.stations])
            nodes = [
                _Node(float(x), float(y), 1, i, False, get_risk_rank(s.risk_level))
                for i, (s, x, y) in enumerate(zip(self.stations, xs, ys))
            ]
        self._store_level(self.max_zoom + 1, nodes)

        for zoom in range(self.max_zoom, self.min_zoom - 1, -1):
            nodes = self._cluster(nodes, zoom)
            self._store_level(zoom, nodes)

        logger.info(f"Clustered {len(self.stations)} stations"
                    f"{' in ' + selected_area if selected_area else ''}: "
                    f"{len(self._levels[self.min_zoom])} nodes at zoom {self.min_zoom}")
        return self

    def _store_level(self, zoom, nodes):
        self._levels[zoom] = nodes
        self._trees[zoom] = STRtree([Point(n.x, n.y) for n in nodes]) if nodes else None

    def _cluster(self, nodes, zoom):
        r = self.radius_at(zoom)
        tree = self._trees[zoom + 1]
        clustered = []

        for i, node in enumerate(nodes):
            # Already claimed on this zoom
            if node.zoom <= zoom:
                continue
            node.zoom = zoom

            neighbour_ids = sorted(int(j) for j in tree.query(Point(node.x, node.y),
                                                              predicate='dwithin', distance=r))
            wx = node.x * node.count
            wy = node.y * node.count
            count = node.count
            max_rank = node.max_rank
            members = []

            for j in neighbour_ids:
                neighbour = nodes[j]
                if neighbour.zoom <= zoom:
                    continue
                neighbour.zoom = zoom
                wx += neighbour.x * neighbour.count
                wy += neighbour.y * neighbour.count
                count += neighbour.count
                max_rank = max(max_rank, neighbour.max_rank)
                members.append(neighbour)

            if not members:
                clustered.append(_Node(node.x, node.y, node.count, node.id,
                                       node.is_cluster, node.max_rank))
                continue

            cluster_id = (i << ZOOM_BITS) + (zoom + 1) + len(self.stations)
            node.parent = cluster_id
            for neighbour in members:
                neighbour.parent = cluster_id
            clustered.append(_Node(wx / count, wy / count, count, cluster_id, True, max_rank))

        return clustered

    def _limit_zoom(self, zoom):
        return max(self.min_zoom, min(int(math.floor(zoom)), self.max_zoom + 1))

    def _origin(self, cluster_id):
        offset = cluster_id - len(self.stations)
        if offset < 0:
            raise KeyError(f"No cluster with id {cluster_id}")
        return offset >> ZOOM_BITS, offset % (2 ** ZOOM_BITS)

    def _feature(self, node):
        lon, lat = unproject(node.x, node.y)
        if not node.is_cluster:
            station = self.stations[node.id]
            return {
                'type': 'Feature',
                'geometry': {'type': 'Point', 'coordinates': list(station.coordinates)},
                'properties': {
                    'cluster': False,
                    'stationId': station.id,
                    'riskLevel': station.risk_level,
                    'station': station.to_dict(),
                },
            }
        return {
            'type': 'Feature',
            'id': node.id,
            'geometry': {'type': 'Point', 'coordinates': [lon, lat]},
            'properties': {
                'cluster': True,
                'cluster_id': node.id,
                'point_count': node.count,
                'riskLevel': RISK_LEVELS[node.max_rank],
            },
        }

    def get_clusters(self, bbox, zoom):
        """
        Clusters and single stations inside a bounding box at a zoom level.

        Args:
            bbox (tuple): (west, south, east, north) in degrees
            zoom (float): Map zoom; clamped to [min_zoom, max_zoom + 1]

        Returns:
            list of dict: GeoJSON-like Point features
        """
        west, south, east, north = bbox
        if not self._levels:
            return []

        if east - west >= 360:
            west, east = -180.0, 180.0
        elif west > east:
            # Box crosses the antimeridian
            eastern = self.get_clusters((west, south, 180.0, north), zoom)
            western = self.get_clusters((-180.0, south, east, north), zoom)
            return eastern + western

        z = self._limit_zoom(zoom)
        nodes = self._levels[z]
        tree = self._trees[z]
        if tree is None:
            return []

        xs, ys = project([west, east], [north, south])
        query_box = box(float(xs[0]), float(ys[0]), float(xs[1]), float(ys[1]))
        hits = sorted(int(i) for i in tree.query(query_box, predicate='intersects'))
        return [self._feature(nodes[i]) for i in hits]

    def _cluster_children(self, cluster_id):
        origin_index, origin_zoom = self._origin(cluster_id)
        nodes = self._levels.get(origin_zoom)
        if nodes is None or origin_index >= len(nodes):
            raise KeyError(f"No cluster with id {cluster_id}")
        children = self._child_nodes(cluster_id, origin_zoom)
        if not children:
            raise KeyError(f"No cluster with id {cluster_id}")
        return children

    def get_children(self, cluster_id):
        """Nodes one zoom level below a cluster, as features."""
        return [self._feature(n) for n in self._cluster_children(cluster_id)]

    def _child_nodes(self, cluster_id, origin_zoom):
        return [n for n in self._levels[origin_zoom] if n.parent == cluster_id]

    def get_leaves(self, cluster_id):
        """Every station inside a cluster, in load order."""
        self._cluster_children(cluster_id)
        _, origin_zoom = self._origin(cluster_id)
        leaves = []
        pending = [(cluster_id, origin_zoom)]
        while pending:
            current, level = pending.pop()
            children = self._child_nodes(current, level)
            for child in children:
                if child.is_cluster:
                    pending.append((child.id, self._origin(child.id)[1]))
                else:
                    leaves.append(child.id)
        return [self.stations[i] for i in sorted(leaves)]

    def get_cluster_expansion_zoom(self, cluster_id):
        """Lowest zoom at which a cluster splits into more than one node."""
        self._cluster_children(cluster_id)
        expansion_zoom = self._origin(cluster_id)[1] - 1
        while expansion_zoom <= self.max_zoom:
            origin_zoom = self._origin(cluster_id)[1]
            children = self._child_nodes(cluster_id, origin_zoom)
            expansion_zoom += 1
            if len(children) != 1 or not children[0].is_cluster:
                break
            cluster_id = children[0].id
        return expansion_zoom
