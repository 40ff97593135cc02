# Copyright 2025 TIER IV, INC. All rights reserved.
#
# Licensed under the Apache License, Version 2.0 (the "License");
# you may not use this file except in compliance with the License.
# You may obtain a copy of the License at
#
#     http://www.apache.org/licenses/LICENSE-2.0
#
# Unless required by applicable law or agreed to in writing, software
# distributed under the License is distributed on an "AS IS" BASIS,
# WITHOUT WARRANTIES OR CONDITIONS OF ANY KIND, either express or implied.
# See the License for the specific language governing permissions and
# limitations under the License.

import io
import logging
from pathlib import Path

from ecs_image_libs.common.io import cleanup_path, drain_stream


class TestDrainStream:
    def test_drain_stream(self):
        """Test the stream is read to its end and closed."""
        _stream = io.BytesIO(b"x" * 1000)
        assert drain_stream(_stream, chunk_size=64) == 1000
        assert _stream.closed

    def test_drain_empty_stream(self):
        _stream = io.BytesIO(b"")
        assert drain_stream(_stream) == 0
        assert _stream.closed


class TestCleanupPath:
    def test_cleanup_dir(self, temp_dir):
        test_dir = temp_dir / "workdir"
        (test_dir / "sub").mkdir(parents=True)
        (test_dir / "sub" / "layer.tar").write_bytes(b"data")

        assert cleanup_path(test_dir)
        assert not test_dir.exists()

    def test_cleanup_symlink_to_dir(self, temp_dir):
        """Test only the symlink is removed, not the dir it points to."""
        target = temp_dir / "target"
        target.mkdir()
        (target / "keep").write_text("keep")
        link = temp_dir / "link"
        link.symlink_to(target)

        assert cleanup_path(link)
        assert not link.is_symlink()
        assert (target / "keep").is_file()

    def test_cleanup_not_exist(self, temp_dir):
        assert cleanup_path(temp_dir / "not_exist")

    def test_cleanup_failure_warns(self, temp_dir, monkeypatch, caplog):
        """Test a failed removal is reported as warning instead of raised."""
        test_file = temp_dir / "out.tar.tmp"
        test_file.write_bytes(b"partial")

        def _unlink(self, missing_ok=False):
            raise PermissionError(f"permission denied: {self}")

        monkeypatch.setattr(Path, "unlink", _unlink)
        with caplog.at_level(logging.WARNING, logger="ecs_image_libs.common.io"):
            assert not cleanup_path(test_file)

        assert test_file.is_file()
        assert any(
            _r.levelno == logging.WARNING and "failed to cleanup" in _r.getMessage()
            for _r in caplog.records
        )
