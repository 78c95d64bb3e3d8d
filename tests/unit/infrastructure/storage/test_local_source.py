"""Tests for LocalDirectorySource."""

import pytest

from bronze_ingest.application.ports.services import ByteSourcePort
from bronze_ingest.infrastructure.io.exceptions import DataSourceNotFoundError
from bronze_ingest.infrastructure.storage import LocalDirectorySource


class TestLocalDirectorySource:
    """Tests for fetching files below a root directory."""

    def test_satisfies_port(self, byte_source):
        assert isinstance(byte_source, ByteSourcePort)

    def test_fetch_and_size(self, byte_source, write_text):
        """Files are opened in binary mode and sized from the file system."""
        write_text("nested/a.csv", "x,y\n")

        with byte_source.fetch("nested/a.csv") as handle:
            assert handle.read() == b"x,y\n"
        assert byte_source.size("nested/a.csv") == 4

    def test_missing_file(self, byte_source):
        """Unknown ids raise DataSourceNotFoundError."""
        with pytest.raises(DataSourceNotFoundError):
            byte_source.fetch("missing.csv")

    def test_directory_is_not_a_source(self, byte_source, source_dir):
        """Directories cannot be fetched."""
        (source_dir / "folder").mkdir()

        with pytest.raises(DataSourceNotFoundError, match="Not a file"):
            byte_source.size("folder")

    def test_ids_outside_root_are_missing(self, byte_source, source_dir):
        """Path traversal out of the root is refused."""
        (source_dir.parent / "secret.csv").write_text("x\n")

        with pytest.raises(DataSourceNotFoundError):
            byte_source.fetch("../secret.csv")

    def test_list_sources(self, byte_source, write_text):
        """Sources are listed relative to the root, sorted."""
        write_text("b.csv", "")
        write_text("sub/a.xlsx", "")

        assert byte_source.list_sources() == ["b.csv", "sub/a.xlsx"]
        assert byte_source.list_sources("*.csv") == ["b.csv"]

    def test_list_sources_of_missing_root(self, tmp_path):
        assert LocalDirectorySource(tmp_path / "nowhere").list_sources() == []
