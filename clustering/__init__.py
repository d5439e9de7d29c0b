"""Clustering: screen-space marker clusters and their lon/lat bounds."""

from clustering.bounds import Bounds
from clustering.projection import project, unproject
from clustering.markers import MarkerCluster, ClusterResult, cluster_incidents

__all__ = [
    "Bounds",
    "project",
    "unproject",
    "MarkerCluster",
    "ClusterResult",
    "cluster_incidents",
]
