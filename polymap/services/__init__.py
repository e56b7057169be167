"""Map rendering services."""

from .border_service import BorderService
from .cache_service import CacheService
from .collision_service import LabelBox, LabelIndex
from .document_service import DocumentService
from .job_service import JobInfo, JobService, JobStatus
from .kml_service import KmlService
from .label_service import LabelService
from .orientation_service import OrientationResult, OrientationService
from .osm_service import OSMService
from .projection_service import Projection
from .render_service import RenderResult, RenderService
from .road_network_service import NetworkSelection, RoadNetworkGraph, RoadNetworkService
from .typography_service import FontWeight, TypographyService

__all__ = [
    "BorderService",
    "CacheService",
    "LabelBox",
    "LabelIndex",
    "DocumentService",
    "JobInfo",
    "JobService",
    "JobStatus",
    "KmlService",
    "LabelService",
    "OrientationResult",
    "OrientationService",
    "OSMService",
    "Projection",
    "RenderResult",
    "RenderService",
    "NetworkSelection",
    "RoadNetworkGraph",
    "RoadNetworkService",
    "FontWeight",
    "TypographyService",
]
