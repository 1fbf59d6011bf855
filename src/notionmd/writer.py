"""Local persistence of rendered Markdown."""

from __future__ import annotations

from pathlib import Path


class ArtifactWriter:
    """Writes one UTF-8 text file per page into a single directory.

    :meth:`prepare` must run before the first :meth:`write`; it creates
    the directory and any missing parents.
    """

    def __init__(self, output_dir: str | Path) -> None:
        self.output_dir = Path(output_dir)

    def prepare(self) -> Path:
        self.output_dir.mkdir(parents=True, exist_ok=True)
        return self.output_dir

    def write(self, name: str, content: str) -> Path:
        """Write *content* to ``<output_dir>/<name>``, replacing any existing file."""
        target = self.output_dir / name
        # newline="" keeps "\n" as-is on Windows.
        with target.open("w", encoding="utf-8", newline="") as fh:
            fh.write(content)
        return target
