"""
Base image discovery for a document type.
"""

import logging
from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import List, Union

logger = logging.getLogger("docsynth.ingest")


class DocumentType(str, Enum):
    CASHCARD = "cashcard"
    DRIVERSLICENSE = "driverslicense"
    DRIVERSLICENSE_BACKSIDE = "driverslicense_backside"
    HEALTH_INSURANCE_CARD = "health_insurance_card"
    MYNUMBER = "mynumber"
    SAMPLE = "sample"

    @classmethod
    def choices(cls) -> List[str]:
        return [member.value for member in cls]

    @classmethod
    def parse(cls, value: Union[str, "DocumentType"]) -> "DocumentType":
        """Convert a string to a DocumentType, rejecting unsupported values."""
        try:
            return cls(value)
        except ValueError:
            raise ValueError(
                f"Unsupported document type: {value!r}. Available: {cls.choices()}"
            ) from None


@dataclass
class BaseImage:
    """A source document image."""
    path: Path

    @property
    def name(self) -> str:
        return self.path.stem


class BaseImageIngester:
    """Finds the base images of one document type."""

    SUPPORTED_IMAGE_EXTENSIONS = (".png", ".jpg")

    def __init__(self, bases_dir: Path):
        self.bases_dir = Path(bases_dir)

    def directory_for(self, document_type: DocumentType) -> Path:
        return self.bases_dir / DocumentType.parse(document_type).value

    def pattern_for(self, document_type: DocumentType) -> str:
        extensions = ",".join(ext.lstrip(".") for ext in self.SUPPORTED_IMAGE_EXTENSIONS)
        return str(self.directory_for(document_type) / f"*.{{{extensions}}}")

    def scan(self, document_type: DocumentType) -> List[BaseImage]:
        """List base images, sorted by file name. Missing directories yield nothing."""
        image_dir = self.directory_for(document_type)

        if not image_dir.is_dir():
            logger.debug(f"Base image directory does not exist: {image_dir}")
            return []

        paths = set()
        for ext in self.SUPPORTED_IMAGE_EXTENSIONS:
            paths.update(p for p in image_dir.glob(f"*{ext}") if p.is_file())

        images = [BaseImage(path=p) for p in sorted(paths)]
        logger.info(f"Found {len(images)} base images in {image_dir}")
        return images
