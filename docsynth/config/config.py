"""
Configuration management for the document image generator.
"""

import argparse
from dataclasses import dataclass
from pathlib import Path
from typing import List, Optional

import yaml

from ..modules.ingest import DocumentType
from ..modules.split import validate_ratio

DEFAULT_TRAIN_RATIO = 0.8


@dataclass
class InputConfig:
    bases_dir: Path = Path("bases")
    background_dir: Path = Path("background")
    catalog: Optional[Path] = None

    @property
    def catalog_path(self) -> Path:
        if self.catalog is not None:
            return self.catalog
        return self.background_dir / "background-meta.json"


@dataclass
class OutputConfig:
    output_dir: Path
    jpeg_quality: int = 80


@dataclass
class GenerationConfig:
    document_type: DocumentType
    train_ratio: float = DEFAULT_TRAIN_RATIO
    workers: int = 1
    background_cache_size: int = 16


@dataclass
class Config:
    input: InputConfig
    output: OutputConfig
    generation: GenerationConfig
    verbose: bool = False

    def validate(self) -> "Config":
        """Reject configurations that cannot run, before any processing."""
        self.generation.document_type = DocumentType.parse(self.generation.document_type)
        self.generation.train_ratio = validate_ratio(self.generation.train_ratio)

        if self.output.output_dir is None:
            raise ValueError("Output directory is required")
        if self.generation.workers < 1:
            raise ValueError(f"Workers must be at least 1, got {self.generation.workers}")
        if self.generation.background_cache_size < 0:
            raise ValueError("Background cache size must be non-negative")
        if not 0 <= self.output.jpeg_quality <= 100:
            raise ValueError(f"JPEG quality must be in 0-100, got {self.output.jpeg_quality}")
        return self


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="docsynth",
        description="Generate document detection training images",
        formatter_class=argparse.ArgumentDefaultsHelpFormatter
    )

    parser.add_argument(
        "-t", "--type", dest="document_type", required=True,
        choices=DocumentType.choices(),
        help="Document type"
    )
    parser.add_argument(
        "-o", "--output", dest="output_dir", type=Path, required=True,
        help="Training data image output directory"
    )
    parser.add_argument(
        "--train-ratio", type=float, default=None,
        help=f"Fraction of images assigned to train (default: {DEFAULT_TRAIN_RATIO})"
    )
    parser.add_argument(
        "--bases-dir", type=Path, default=None,
        help="Directory containing one subdirectory of base images per document type"
    )
    parser.add_argument(
        "--background-dir", type=Path, default=None,
        help="Directory containing background images"
    )
    parser.add_argument(
        "--catalog", type=Path, default=None,
        help="Background metadata JSON (default: <background-dir>/background-meta.json)"
    )
    parser.add_argument(
        "--workers", type=int, default=None,
        help="Number of parallel workers (default: 1)"
    )
    parser.add_argument(
        "--config", type=Path, default=None,
        help="YAML config file (CLI args override YAML)"
    )
    parser.add_argument(
        "-v", "--verbose", action="store_true",
        help="Log debug messages to the console"
    )

    return parser


def parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    """Parse command line arguments."""
    return build_parser().parse_args(argv)


def load_yaml_config(config_path: Path) -> dict:
    """Load configuration from YAML file."""
    with open(config_path, "r") as f:
        data = yaml.safe_load(f)

    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ValueError(f"Config file must contain a mapping: {config_path}")
    return data


def _pick(cli_value, section: dict, key: str, default):
    if cli_value is not None:
        return cli_value
    return section.get(key, default)


def _optional_path(value) -> Optional[Path]:
    return Path(value) if value is not None else None


def merge_configs(yaml_config: dict, args: argparse.Namespace) -> Config:
    """Merge YAML config with CLI arguments (CLI takes precedence)."""

    input_cfg = yaml_config.get("input", {})
    output_cfg = yaml_config.get("output", {})
    gen_cfg = yaml_config.get("generation", {})

    input_config = InputConfig(
        bases_dir=Path(_pick(args.bases_dir, input_cfg, "bases_dir", "bases")),
        background_dir=Path(_pick(args.background_dir, input_cfg, "background_dir", "background")),
        catalog=_optional_path(_pick(args.catalog, input_cfg, "catalog", None))
    )

    output_config = OutputConfig(
        output_dir=_optional_path(args.output_dir),
        jpeg_quality=int(output_cfg.get("jpeg_quality", 80))
    )

    generation_config = GenerationConfig(
        document_type=args.document_type,
        train_ratio=float(_pick(args.train_ratio, gen_cfg, "train_ratio", DEFAULT_TRAIN_RATIO)),
        workers=int(_pick(args.workers, gen_cfg, "workers", 1)),
        background_cache_size=int(gen_cfg.get("background_cache_size", 16))
    )

    return Config(
        input=input_config,
        output=output_config,
        generation=generation_config,
        verbose=bool(args.verbose or yaml_config.get("verbose", False))
    )


def load_config(args: Optional[argparse.Namespace] = None) -> Config:
    """Load configuration from CLI args and optional YAML file."""
    if args is None:
        args = parse_args()

    if args.config and args.config.exists():
        yaml_config = load_yaml_config(args.config)
    elif args.config:
        raise ValueError(f"Config file not found: {args.config}")
    else:
        yaml_config = {}

    return merge_configs(yaml_config, args).validate()
