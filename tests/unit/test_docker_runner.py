# Copyright 2024 Michael Maillet, Damien Davison, Sacha Davison
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

"""
Unit tests for the docker CLI adapter.
"""
import pytest

from dfiles.errors import EngineError
from dfiles.RUNNERS import docker_runner
from dfiles.RUNNERS.docker_runner import DockerEngine


class FakePopen:
    calls = []
    returncode = 0

    def __init__(self, command, stdin=None, shell=False):
        self.command = command
        self.stdin_data = stdin.read() if stdin is not None else None
        FakePopen.calls.append(self)

    def wait(self):
        return FakePopen.returncode


@pytest.fixture
def fake_popen(monkeypatch):
    FakePopen.calls = []
    FakePopen.returncode = 0
    monkeypatch.setattr(docker_runner.subprocess, "Popen", FakePopen)
    return FakePopen


class TestDockerEngine:
    """Tests for DockerEngine."""

    def test_build(self, tmp_path, fake_popen):
        """Test that the archive is piped to docker build with every tag."""
        archive = tmp_path / "context.tar"
        archive.write_bytes(b"archive bytes")
        DockerEngine().build(str(archive), ["app:1", "app:latest"])

        call = fake_popen.calls[0]
        assert call.command == [
            "docker", "build", "--file", "Dockerfile", "--tag", "app:1", "--tag", "app:latest", "-",
        ]
        assert call.stdin_data == b"archive bytes"

    def test_run(self, fake_popen):
        """Test docker run arguments."""
        DockerEngine("podman").run(["--rm", "app:1"])
        assert fake_popen.calls[0].command == ["podman", "run", "--rm", "app:1"]
        assert fake_popen.calls[0].stdin_data is None

    def test_failure(self, fake_popen):
        """Test that a non-zero exit is reported with its status."""
        fake_popen.returncode = 125
        with pytest.raises(EngineError) as exc:
            DockerEngine().run(["--rm", "app:1"])
        assert exc.value.returncode == 125
        assert "125" in str(exc.value)

    def test_missing_executable(self, tmp_path):
        """Test that a docker binary that cannot be started is an engine error."""
        with pytest.raises(EngineError) as exc:
            DockerEngine(str(tmp_path / "no-docker")).run(["--rm", "app:1"])
        assert exc.value.returncode is None
