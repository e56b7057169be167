"""Render job orchestration: one job per boundary file, run concurrently."""

import asyncio
import logging
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from pathlib import Path
from typing import Optional, Sequence, Union

from ..config import AppConfig
from ..exceptions import BoundaryError
from ..models.settings import RenderSettings
from ..models.style import MapStyleConfig
from ..utils.image_utils import save_image
from .document_service import DocumentService
from .kml_service import KmlService
from .osm_service import OSMService
from .render_service import RenderService

logger = logging.getLogger(__name__)


class JobStatus(str, Enum):
    PENDING = "pending"
    RUNNING = "running"
    COMPLETED = "completed"
    NO_BOUNDARY = "no_boundary"
    NO_FEATURES = "no_features"
    FAILED = "failed"


@dataclass
class JobInfo:
    """State and outcome of one render job."""

    path: Path
    status: JobStatus = JobStatus.PENDING
    created_at: datetime = field(default_factory=datetime.now)
    started_at: Optional[datetime] = None
    completed_at: Optional[datetime] = None
    outputs: list[Path] = field(default_factory=list)
    error: Optional[str] = None
    label_count: int = 0
    rotation: Optional[float] = None

    @property
    def succeeded(self) -> bool:
        return self.status == JobStatus.COMPLETED

    @property
    def duration(self) -> Optional[float]:
        if self.started_at is None or self.completed_at is None:
            return None
        return (self.completed_at - self.started_at).total_seconds()


class JobService:
    """Runs boundary files through download, render and output.

    Jobs are independent: each builds its own feature set, projection and
    image, and a failing job never affects the others.
    """

    def __init__(
        self,
        config: AppConfig,
        style: MapStyleConfig,
        settings: RenderSettings,
        osm_service: OSMService,
        render_service: Optional[RenderService] = None,
        document_service: Optional[DocumentService] = None,
        kml_service: Optional[KmlService] = None,
        write_png: bool = True,
        write_pdf: bool = True,
    ):
        self.config = config
        self.style = style
        self.settings = settings
        self.osm_service = osm_service
        self.render_service = render_service or RenderService(style, settings)
        self.document_service = document_service or DocumentService(typography=self.render_service.typography)
        self.kml_service = kml_service or KmlService()
        self.write_png = write_png
        self.write_pdf = write_pdf

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    @staticmethod
    def discover(path: Union[str, Path]) -> list[Path]:
        """KML files to process: the file itself or every ``.kml`` in a directory.

        Raises:
            BoundaryError: If the path is neither a KML file nor a directory.
        """
        path = Path(path)
        if path.is_dir():
            files = sorted(p for p in path.iterdir() if p.is_file() and p.suffix.lower() == ".kml")
            if not files:
                logger.warning("No .kml files found in %s", path)
            return files
        if path.is_file() and path.suffix.lower() == ".kml":
            return [path]
        raise BoundaryError(f"Not a .kml file or directory: {path}")

    def run_job(self, kml_path: Union[str, Path], osm_path: Optional[Union[str, Path]] = None) -> JobInfo:
        """Run one job synchronously.

        Args:
            kml_path: Boundary file.
            osm_path: Local OSM file to use instead of downloading.
        """
        info = JobInfo(path=Path(kml_path))
        self._execute(info, Path(osm_path) if osm_path else None)
        return info

    async def run_all(self, paths: Sequence[Union[str, Path]]) -> list[JobInfo]:
        """Run jobs concurrently, at most ``config.max_workers`` at a time."""
        semaphore = asyncio.Semaphore(self.config.max_workers)
        infos = [JobInfo(path=Path(p)) for p in paths]

        async def worker(info: JobInfo) -> None:
            async with semaphore:
                await asyncio.to_thread(self._execute, info, None)

        await asyncio.gather(*(worker(info) for info in infos))
        return infos

    def run(self, path: Union[str, Path]) -> list[JobInfo]:
        """Discover boundary files under ``path`` and run them all."""
        return asyncio.run(self.run_all(self.discover(path)))

    # ------------------------------------------------------------------
    # Job body
    # ------------------------------------------------------------------

    def _execute(self, info: JobInfo, osm_path: Optional[Path]) -> None:
        info.status = JobStatus.RUNNING
        info.started_at = datetime.now()
        try:
            info.status = self._render(info, osm_path)
        except Exception as e:
            logger.exception("Job failed for %s", info.path)
            info.status = JobStatus.FAILED
            info.error = str(e)
        finally:
            info.completed_at = datetime.now()

    def _render(self, info: JobInfo, osm_path: Optional[Path]) -> JobStatus:
        try:
            polygon = self.kml_service.parse_polygon(info.path)
        except BoundaryError as e:
            logger.error("No boundary in %s: %s", info.path, e)
            info.error = str(e)
            return JobStatus.NO_BOUNDARY

        page = self.settings.page
        working_box = polygon.bounding_box().expanded_for_render(
            polygon_padding=page.polygon_padding,
            context_padding=page.context_padding,
        )
        if osm_path is not None:
            features = self.osm_service.load(osm_path)
        else:
            features = self.osm_service.fetch(working_box)
        if not features.has_data():
            logger.error("No map features for %s", info.path)
            info.error = "No map features in the boundary area"
            return JobStatus.NO_FEATURES

        result = self.render_service.render(polygon, features)
        info.label_count = len(result.labels)
        info.rotation = result.orientation.angle

        output_dir = self.config.output_dir
        output_dir.mkdir(parents=True, exist_ok=True)
        stem = info.path.stem
        if self.write_png:
            png_path = output_dir / f"{stem}.png"
            save_image(result.image, png_path)
            info.outputs.append(png_path)
            logger.info("Wrote PNG: %s", png_path)
        if self.write_pdf:
            pdf_path = self.document_service.write_pdf(
                result.image, output_dir / f"{stem}.pdf", info.path.name
            )
            info.outputs.append(pdf_path)

        logger.info("Rendering completed for %s", info.path)
        return JobStatus.COMPLETED
