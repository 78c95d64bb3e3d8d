from pathlib import Path
from typing import BinaryIO, override

from ...application.ports.services import ByteSourcePort
from ..io.exceptions import DataSourceIOError, DataSourceNotFoundError


class LocalDirectorySource(ByteSourcePort):
    """Byte source over the files below one root directory.

    Source ids are paths relative to the root; ids that resolve outside
    the root are treated as missing.
    """

    def __init__(self, root: Path) -> None:
        super().__init__()
        self.root = Path(root)

    @override
    def fetch(self, source_id: str) -> BinaryIO:
        path = self._resolve(source_id)
        try:
            return path.open("rb")
        except OSError as e:
            raise DataSourceIOError(f"Cannot read {source_id}: {e}") from e

    @override
    def size(self, source_id: str) -> int | None:
        path = self._resolve(source_id)
        try:
            return path.stat().st_size
        except OSError as e:
            raise DataSourceIOError(f"Cannot stat {source_id}: {e}") from e

    def list_sources(self, pattern: str = "*") -> list[str]:
        if not self.root.is_dir():
            return []
        return sorted(
            path.relative_to(self.root).as_posix()
            for path in self.root.rglob(pattern)
            if path.is_file()
        )

    def _resolve(self, source_id: str) -> Path:
        root = self.root.resolve()
        path = (root / source_id).resolve()
        if not path.is_relative_to(root):
            raise DataSourceNotFoundError(f"Source not found: {source_id}")
        if not path.exists():
            raise DataSourceNotFoundError(f"Source not found: {source_id}")
        if not path.is_file():
            raise DataSourceNotFoundError(f"Not a file: {source_id}")
        return path
