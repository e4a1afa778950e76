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
Unit tests for layered configuration.
"""
import pytest
import yaml

from dfiles.ASPECTS.resources import Locale, Memory, Mount, Timezone
from dfiles.errors import ConfigError, InvalidLocale, InvalidMount
from dfiles.MODELS.config import Config, cli_args, merge_lists
from dfiles.UTILS.dirs import Dirs


@pytest.fixture
def dirs(tmp_path):
    return Dirs(config_root=tmp_path / "config", data_root=tmp_path / "data")


def mounts(*texts):
    return [Mount.parse(text) for text in texts]


class TestMergeLists:
    """Tests for merge_lists."""

    def test_absent(self):
        assert merge_lists(None, None, False) is None
        assert merge_lists(None, None, True) is None

    def test_append(self):
        assert merge_lists([1], [2], False) == [1, 2]
        assert merge_lists(None, [2], False) == [2]
        assert merge_lists([1], None, False) == [1]

    def test_overwrite(self):
        assert merge_lists([1], [2], True) == [2]
        assert merge_lists([1], None, True) == [1]

    def test_empty_becomes_absent(self):
        assert merge_lists([1], [], True) is None
        assert merge_lists([], [], False) is None


class TestConfigMerge:
    """Tests for Config.merge."""

    def test_scalars(self):
        """Test that present fields of the higher layer win."""
        low = Config(timezone=Timezone("UTC"), memory=Memory("1g"))
        high = Config(timezone=Timezone("Europe/Paris"))
        merged = low.merge(high)
        assert merged.timezone == Timezone("Europe/Paris")
        assert merged.memory == Memory("1g")

    def test_mounts_append(self):
        """Test that layer mounts accumulate lowest priority first."""
        merged = Config(mounts=mounts("X:/x")).merge(Config(mounts=mounts("Y:/y")))
        assert merged.mounts == mounts("X:/x", "Y:/y")

    def test_mounts_overwrite(self):
        """Test that overwrite replaces mounts."""
        merged = Config(mounts=mounts("X:/x")).merge(Config(mounts=mounts("Y:/y")), overwrite=True)
        assert merged.mounts == mounts("Y:/y")


class TestConfigLayers:
    """Tests for loading and saving layers."""

    def test_load_nothing(self, dirs):
        """Test that no files at all is an empty config."""
        config = Config.load(dirs, "firefox", "default")
        assert config == Config.empty()
        assert config.mounts is None
        assert config.to_aspects() == []

    def test_layer_paths(self, dirs):
        """Test where each layer lives."""
        root = dirs.config_root
        assert Config.layer_path(dirs) == root / "config.yaml"
        assert Config.layer_path(dirs, "firefox") == root / "applications" / "firefox" / "config.yaml"
        assert Config.layer_path(dirs, "firefox", "work") == (
            root / "applications" / "firefox" / "profiles" / "work" / "config.yaml"
        )

    def test_global_then_application(self, dirs):
        """Test that global mounts [X] and application mounts [Y] load as [X, Y]."""
        Config(mounts=mounts("X:/x")).save(dirs)
        Config(mounts=mounts("Y:/y")).save(dirs, "firefox")
        assert Config.load(dirs, "firefox").mounts == mounts("X:/x", "Y:/y")

    def test_profile_layer(self, dirs):
        """Test that the profile layer overrides scalars and adds mounts."""
        Config(timezone=Timezone("UTC"), mounts=mounts("X:/x")).save(dirs)
        Config(timezone=Timezone("America/Chicago"), mounts=mounts("P:/p")).save(dirs, "firefox", "work")

        work = Config.load(dirs, "firefox", "work")
        assert work.timezone.render() == "America/Chicago"
        assert work.mounts == mounts("X:/x", "P:/p")

        default = Config.load(dirs, "firefox", "default")
        assert default.timezone.render() == "UTC"
        assert default.mounts == mounts("X:/x")

    def test_save_idempotent(self, dirs):
        """Test that saving the same mounts twice does not duplicate them."""
        Config(mounts=mounts("A:B")).save(dirs, "firefox")
        path = Config(mounts=mounts("A:B")).save(dirs, "firefox")

        assert Config.load_layer(dirs, "firefox").mounts == mounts("A:B")
        with open(path) as f:
            assert yaml.safe_load(f) == {"mounts": [{"host_path": "A", "container_path": "B"}]}

    def test_save_keeps_other_fields(self, dirs):
        """Test that a save merges onto the stored layer."""
        Config(memory=Memory("2g"), locale=Locale.parse("en_US.UTF-8")).save(dirs, "firefox")
        Config(mounts=mounts("A:B")).save(dirs, "firefox")

        layer = Config.load_layer(dirs, "firefox")
        assert layer.memory == Memory("2g")
        assert layer.locale.render() == "en_US.UTF-8"
        assert layer.mounts == mounts("A:B")

    def test_save_replaces_mounts(self, dirs):
        """Test that an updated mount list replaces the stored one."""
        Config(mounts=mounts("A:B", "C:D")).save(dirs, "firefox")
        Config(mounts=mounts("E:F")).save(dirs, "firefox")
        assert Config.load_layer(dirs, "firefox").mounts == mounts("E:F")

    def test_empty_file(self, dirs):
        """Test that an empty file is an empty layer."""
        path = Config.layer_path(dirs)
        path.parent.mkdir(parents=True)
        path.write_text("")
        assert Config.load_layer(dirs) == Config.empty()

    @pytest.mark.parametrize("text", [
        "mounts: [",
        "- just\n- a list\n",
        "timezone: Mars/Olympus_Mons\n",
        "mounts:\n  - host_path: A\n",
        "mounts:\n  - host_path: \"\"\n    container_path: /data\n",
        "mounts:\n  - host_path: /srv\n    container_path: a:b:c\n",
        "locale:\n  language: en-US\n  territory: \"\"\n  codeset: \"\"\n",
        "locale:\n  language: en\n  territory: US\n  codeset: UTF 8\n",
    ])
    def test_invalid_file(self, dirs, text):
        """Test that broken layers name the file."""
        path = Config.layer_path(dirs, "firefox")
        path.parent.mkdir(parents=True)
        path.write_text(text)
        with pytest.raises(ConfigError) as exc:
            Config.load(dirs, "firefox")
        assert str(path) in str(exc.value)


class TestConfigFromMatches:
    """Tests for building a config from command line flags."""

    def test_flags(self):
        """Test every flag and the aspect order."""
        config = Config.from_matches({
            "mount": ("A:B", "C:D"),
            "timezone": "UTC",
            "memory": "3072mb",
            "cpu_shares": "512",
            "network": "host",
            "locale": "en_US.UTF-8",
            "profile": "work",
        })
        names = [type(aspect).__name__ for aspect in config.to_aspects()]
        assert names == ["Mount", "Mount", "Timezone", "Memory", "CPUShares", "Network", "Locale"]

    def test_no_flags(self):
        """Test that unset flags give an empty config."""
        assert Config.from_matches({"mount": (), "timezone": None}) == Config.empty()

    def test_invalid(self):
        """Test that malformed flags raise field specific errors."""
        with pytest.raises(InvalidMount):
            Config.from_matches({"mount": ("A",)})
        with pytest.raises(InvalidLocale):
            Config.from_matches({"locale": "en-US"})

    def test_cli_args(self):
        """Test the shared option names."""
        names = [option.name for option in cli_args()]
        assert names == ["mount", "timezone", "memory", "cpu_shares", "network", "locale", "profile"]
