"""
Unit tests for activity file discovery.
"""

import os

import pytest

from saraudit.telemetry.discovery import find_activity_files


def _touch(path, mtime):
    path.write_bytes(b"\x00")
    os.utime(path, (mtime, mtime))
    return path


@pytest.mark.unit
class TestFindActivityFiles:
    """Test cases for find_activity_files."""

    def test_newest_first_and_limited(self, temp_dir):
        _touch(temp_dir / "sa13", 1_000)
        _touch(temp_dir / "sa14", 2_000)
        _touch(temp_dir / "sa15", 3_000)
        _touch(temp_dir / "sar15", 4_000)

        files = find_activity_files([temp_dir], max_files=2)

        assert [f.name for f in files] == ["sa15", "sa14"]

    def test_several_directories(self, temp_dir):
        first, second = temp_dir / "sa", temp_dir / "sysstat"
        first.mkdir()
        second.mkdir()
        _touch(first / "sa01", 1_000)
        _touch(second / "sa20240102", 2_000)

        files = find_activity_files([first, second, temp_dir / "missing"], max_files=10)

        assert [f.name for f in files] == ["sa20240102", "sa01"]

    def test_same_mtime_sorted_by_name(self, temp_dir):
        _touch(temp_dir / "sa02", 1_000)
        _touch(temp_dir / "sa01", 1_000)

        files = find_activity_files([temp_dir], max_files=10)

        assert [f.name for f in files] == ["sa01", "sa02"]

    def test_directory_listed_twice(self, temp_dir):
        _touch(temp_dir / "sa01", 1_000)

        assert len(find_activity_files([temp_dir, temp_dir], max_files=10)) == 1

    def test_directories_are_skipped(self, temp_dir):
        (temp_dir / "sa99").mkdir()

        assert find_activity_files([temp_dir], max_files=10) == []

    def test_nothing_found(self, temp_dir):
        assert find_activity_files([temp_dir / "absent"], max_files=4) == []
