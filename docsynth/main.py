"""
Main orchestration module for the document image generator.
"""

import logging
import sys
import threading
from collections import OrderedDict
from concurrent.futures import ThreadPoolExecutor, as_completed
from dataclasses import asdict, dataclass, field
from datetime import datetime
from enum import Enum
from pathlib import Path
from typing import Callable, Dict, Iterator, List, Optional, Union

import numpy as np
from tqdm import tqdm

from .config import (
    Config,
    GenerationConfig,
    InputConfig,
    OutputConfig,
    load_config,
    parse_args,
)
from .modules.catalog import BackgroundCatalog, BackgroundDefinition, CatalogError
from .modules.compose import Compositor, Skipped, get_compositor
from .modules.freshness import OutputCache
from .modules.ingest import BaseImage, BaseImageIngester, DocumentType
from .modules.split import Split, SplitAssigner
from .utils import image_size, load_image_rgba, save_image, save_report, setup_logging

logger = logging.getLogger("docsynth")


class PairStatus(str, Enum):
    GENERATED = "generated"
    SKIPPED = "skipped"
    SKIPPED_ORIENTATION = "skipped-orientation"
    FAILED = "failed"


@dataclass
class PairTask:
    """One (base image, background) unit of work."""
    base: BaseImage
    entry: BackgroundDefinition
    background_path: Path
    output_path: Path
    split: Split

    @property
    def output_name(self) -> str:
        return self.output_path.name


@dataclass
class GenerationStats:
    start_time: Optional[str] = None
    end_time: Optional[str] = None
    base_images: int = 0
    backgrounds: int = 0
    images_generated: int = 0
    images_skipped: int = 0
    images_skipped_orientation: int = 0
    images_failed: int = 0
    train_images: int = 0
    test_images: int = 0
    failures: List[str] = field(default_factory=list)

    def record(self, task: PairTask, status: PairStatus, error: Optional[str] = None) -> None:
        if status == PairStatus.GENERATED:
            self.images_generated += 1
            if task.split == Split.TRAIN:
                self.train_images += 1
            else:
                self.test_images += 1
        elif status == PairStatus.SKIPPED:
            self.images_skipped += 1
        elif status == PairStatus.SKIPPED_ORIENTATION:
            self.images_skipped_orientation += 1
        else:
            self.images_failed += 1
            self.failures.append(f"{task.output_name}: {error}")


class BackgroundCache:
    """Bounded LRU cache of decoded backgrounds, shared by worker threads."""

    def __init__(self, loader: Callable[[Path], np.ndarray], max_size: int = 16):
        self.loader = loader
        self.max_size = max_size
        self._items: "OrderedDict[Path, np.ndarray]" = OrderedDict()
        self._lock = threading.Lock()

    def get(self, path: Path) -> np.ndarray:
        with self._lock:
            if path in self._items:
                self._items.move_to_end(path)
                return self._items[path]

        image = self.loader(path)

        if self.max_size > 0:
            with self._lock:
                self._items[path] = image
                self._items.move_to_end(path)
                while len(self._items) > self.max_size:
                    self._items.popitem(last=False)
        return image


class DocumentImageGenerator:
    """Composites base document images onto every catalog background."""

    REPORT_FILE = "generation_report.json"

    def __init__(
        self,
        config: Config,
        assigner: Optional[SplitAssigner] = None,
        cache: Optional[OutputCache] = None,
        compositor_factory: Callable[[str], Compositor] = get_compositor
    ):
        self.config = config
        self.document_type = DocumentType.parse(config.generation.document_type)
        self.output_dir = Path(config.output.output_dir)
        self.output_dir.mkdir(parents=True, exist_ok=True)

        self.logger = setup_logging(self.output_dir, verbose=config.verbose)

        self.assigner = assigner or SplitAssigner(config.generation.train_ratio)
        self.cache = cache or OutputCache()
        self.compositors: Dict[str, Compositor] = {}
        self.compositor_factory = compositor_factory
        self.backgrounds = BackgroundCache(
            load_image_rgba, config.generation.background_cache_size
        )

        self.ingester = BaseImageIngester(config.input.bases_dir)
        self.catalog: Optional[BackgroundCatalog] = None
        self.stats = GenerationStats()
        self._stats_lock = threading.Lock()

    def setup_directories(self) -> None:
        """Create output directories."""
        for split in Split:
            (self.output_dir / split.value).mkdir(parents=True, exist_ok=True)

    def load_catalog(self) -> BackgroundCatalog:
        self.catalog = BackgroundCatalog.load(
            self.config.input.catalog_path,
            self.config.input.background_dir
        )
        self.stats.backgrounds = len(self.catalog)
        return self.catalog

    def compositor_for(self, entry: BackgroundDefinition) -> Compositor:
        if entry.composite not in self.compositors:
            self.compositors[entry.composite] = self.compositor_factory(entry.composite)
        return self.compositors[entry.composite]

    def output_path_for(self, base: BaseImage, entry: BackgroundDefinition) -> Path:
        name = output_name(base.name, entry.key)
        return self.output_dir / self.assigner(name).value / name

    def iter_tasks(self, bases: List[BaseImage]) -> Iterator[PairTask]:
        """Yield pairs base-major, background-minor, in catalog order."""
        for base in bases:
            for entry, background_path in self.catalog.items():
                output_path = self.output_path_for(base, entry)
                yield PairTask(
                    base=base,
                    entry=entry,
                    background_path=background_path,
                    output_path=output_path,
                    split=Split(output_path.parent.name)
                )

    def process_pair(self, task: PairTask) -> PairStatus:
        """Generate one output image unless it is current or not applicable."""
        if self.cache.is_fresh(task.output_path, task.base.path):
            return PairStatus.SKIPPED

        compositor = self.compositor_for(task.entry)
        base = load_image_rgba(task.base.path)
        if compositor.accepts(image_size(base), task.entry) is not None:
            return PairStatus.SKIPPED_ORIENTATION

        background = self.backgrounds.get(task.background_path)
        result = compositor.compose(base, background, task.entry)
        if isinstance(result, Skipped):
            return PairStatus.SKIPPED_ORIENTATION

        save_image(result.image, task.output_path, jpeg_quality=self.config.output.jpeg_quality)
        return PairStatus.GENERATED

    def _run_task(self, task: PairTask) -> PairStatus:
        try:
            status = self.process_pair(task)
        except Exception as e:
            self.logger.error(
                f"Failed to generate {task.output_name} from {task.base.path} "
                f"and {task.background_path}: {e}"
            )
            with self._stats_lock:
                self.stats.record(task, PairStatus.FAILED, str(e))
            return PairStatus.FAILED

        self._report(task, status)
        with self._stats_lock:
            self.stats.record(task, status)
        return status

    def _report(self, task: PairTask, status: PairStatus) -> None:
        relative = self._relative(task.output_path)
        if status == PairStatus.GENERATED:
            self.logger.info(f"Generate {relative}")
        elif status == PairStatus.SKIPPED:
            self.logger.info(f"Skip {relative} because it already exists")
        else:
            self.logger.info(
                f"Skip {relative}: base orientation does not match "
                f"background {task.entry.filename} ({task.entry.orientation})"
            )

    def _relative(self, path: Path) -> str:
        try:
            return str(path.relative_to(self.output_dir.parent))
        except ValueError:
            return str(path)

    def generate(self) -> GenerationStats:
        """Generate images for every (base, background) pair."""
        self.stats.start_time = datetime.now().isoformat()

        bases = self.ingester.scan(self.document_type)
        self.stats.base_images = len(bases)
        if not bases:
            self.logger.warning(
                f"Base image not found in {self.ingester.pattern_for(self.document_type)}."
            )
            self.stats.end_time = datetime.now().isoformat()
            return self.stats

        if self.catalog is None:
            self.load_catalog()
        self.setup_directories()

        tasks = list(self.iter_tasks(bases))
        self.logger.info(
            f"Processing {len(tasks)} pairs "
            f"({len(bases)} base images x {len(self.catalog)} backgrounds)"
        )

        workers = self.config.generation.workers
        if workers > 1:
            with ThreadPoolExecutor(max_workers=workers) as executor:
                futures = [executor.submit(self._run_task, task) for task in tasks]
                for future in tqdm(as_completed(futures), total=len(futures), desc="Generating images"):
                    future.result()
        else:
            for task in tqdm(tasks, desc="Generating images"):
                self._run_task(task)

        self.stats.end_time = datetime.now().isoformat()
        self.logger.info(
            f"Done: {self.stats.images_generated} generated, "
            f"{self.stats.images_skipped} skipped, "
            f"{self.stats.images_skipped_orientation} orientation mismatches, "
            f"{self.stats.images_failed} failed"
        )
        return self.stats

    def save_report(self) -> Path:
        """Save generation report."""
        start = datetime.fromisoformat(self.stats.start_time)
        end = datetime.fromisoformat(self.stats.end_time)

        report = {
            "timestamp": self.stats.end_time,
            "config": {
                "document_type": self.document_type.value,
                "bases_dir": str(self.config.input.bases_dir),
                "catalog": str(self.config.input.catalog_path),
                "output_dir": str(self.output_dir),
                "train_ratio": self.assigner.train_ratio,
                "workers": self.config.generation.workers,
            },
            "stats": asdict(self.stats),
            "duration_seconds": (end - start).total_seconds(),
        }

        report_path = self.output_dir / self.REPORT_FILE
        save_report(report, report_path)
        self.logger.info(f"Report saved to {report_path}")

        print("\n" + "=" * 50)
        print("GENERATION SUMMARY")
        print("=" * 50)
        print(f"Base images: {self.stats.base_images}")
        print(f"Backgrounds: {self.stats.backgrounds}")
        print(f"Images generated: {self.stats.images_generated}")
        print(f"Images skipped (up to date): {self.stats.images_skipped}")
        print(f"Images skipped (orientation): {self.stats.images_skipped_orientation}")
        print(f"Images failed: {self.stats.images_failed}")
        print(f"Train set: {self.stats.train_images} new images")
        print(f"Test set: {self.stats.test_images} new images")
        print(f"Total time: {report['duration_seconds']:.1f} seconds")
        print("=" * 50)

        return report_path

    def run(self) -> GenerationStats:
        stats = self.generate()
        self.save_report()
        return stats


def output_name(base_name: str, background_key: str) -> str:
    """Output file name for a base image on a catalog entry."""
    return f"{base_name}_{background_key}.jpg"


def generate(
    document_type: Union[str, DocumentType],
    output_dir: Union[str, Path],
    train_ratio: float = 0.8,
    bases_dir: Union[str, Path] = "bases",
    background_dir: Union[str, Path] = "background",
    catalog: Optional[Union[str, Path]] = None,
    workers: int = 1
) -> GenerationStats:
    """Generate training images for a document type without a report file."""
    config = Config(
        input=InputConfig(
            bases_dir=Path(bases_dir),
            background_dir=Path(background_dir),
            catalog=Path(catalog) if catalog is not None else None
        ),
        output=OutputConfig(output_dir=Path(output_dir)),
        generation=GenerationConfig(
            document_type=document_type,
            train_ratio=train_ratio,
            workers=workers
        )
    ).validate()

    return DocumentImageGenerator(config).generate()


def main(argv: Optional[List[str]] = None) -> int:
    """Main entry point."""
    args = parse_args(argv)
    try:
        config = load_config(args)
    except ValueError as e:
        print(f"error: {e}", file=sys.stderr)
        return 2

    generator = DocumentImageGenerator(config)
    try:
        generator.run()
    except CatalogError as e:
        generator.logger.error(str(e))
        return 1

    return 0


if __name__ == "__main__":
    sys.exit(main())
