"""
Incremental build check: an output is current when it is at least as new as its input.
"""

from pathlib import Path


class OutputCache:
    """Cache policy keyed by (output path, input mtime)."""

    def is_fresh(self, output_path: Path, source_path: Path) -> bool:
        """True if `output_path` exists and is not older than `source_path`."""
        try:
            output_mtime = Path(output_path).stat().st_mtime
        except FileNotFoundError:
            return False
        return Path(source_path).stat().st_mtime <= output_mtime
