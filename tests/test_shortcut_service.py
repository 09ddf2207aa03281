"""
Tests for ShortcutPlan.

Verifies download decisions, generated file contents and that batches only
hold records (no commands run here).
"""
import os

import pytest

from gogtiles.services.shortcut_service import ShortcutPlan
from gogtiles.stores.base import GameRecord
from gogtiles.utils.artwork import get_icon_path
from gogtiles.utils.powershell import CreateShortcut, DownloadIcon


@pytest.fixture
def games():
    return [
        GameRecord.from_row("gog_1207658924", "abc123.webp", '{"title":"Alpha"}'),
        GameRecord.from_row("steam_730", "def456.webp", '{"title":"Beta"}'),
    ]


@pytest.fixture
def start_dir(tmp_path):
    return str(tmp_path / "GameTiles")


def touch_icon(start_dir, file_key):
    path = get_icon_path(start_dir, file_key)
    os.makedirs(os.path.dirname(path), exist_ok=True)
    with open(path, "wb") as f:
        f.write(b"\x89PNG")


class TestBuild:
    def test_missing_icons_are_downloaded(self, games, start_dir):
        plan = ShortcutPlan.build(games, start_dir, tile_size=2, hide_name=False, force=False)

        assert len(plan.artifacts) == 2
        assert len(plan.downloads) == 2
        downloads = list(plan.downloads)
        assert all(isinstance(d, DownloadIcon) for d in downloads)
        assert downloads[0].url == "https://images.gog.com/abc123.png?namespace=gamesdb"
        assert downloads[0].target == get_icon_path(start_dir, "gog_1207658924")
        assert downloads[0].release_key == "gog_1207658924"

    def test_cached_icon_is_skipped(self, games, start_dir):
        touch_icon(start_dir, "gog_1207658924")

        plan = ShortcutPlan.build(games, start_dir, tile_size=2, hide_name=False, force=False)

        assert [d.release_key for d in plan.downloads] == ["steam_730"]
        assert plan.artifacts[0].needs_download is False
        assert plan.artifacts[1].needs_download is True

    def test_force_downloads_cached_icons(self, games, start_dir):
        touch_icon(start_dir, "gog_1207658924")
        touch_icon(start_dir, "steam_730")

        plan = ShortcutPlan.build(games, start_dir, tile_size=2, hide_name=False, force=True)

        assert len(plan.downloads) == 2

    def test_second_build_needs_no_downloads_once_icons_exist(self, games, start_dir):
        first = ShortcutPlan.build(games, start_dir, tile_size=1, hide_name=False, force=False)
        for command in first.downloads:
            touch_icon(start_dir, os.path.basename(command.target)[len("MediumIcon"):-len(".png")])

        second = ShortcutPlan.build(games, start_dir, tile_size=1, hide_name=False, force=False)

        assert len(second.downloads) == 0

    def test_one_shortcut_per_game(self, games, start_dir):
        plan = ShortcutPlan.build(games, start_dir, tile_size=2, hide_name=False, force=False)

        shortcuts = list(plan.shortcuts)
        assert all(isinstance(s, CreateShortcut) for s in shortcuts)
        assert [s.link_path for s in shortcuts] == [
            os.path.join(start_dir, "Alpha.lnk"),
            os.path.join(start_dir, "Beta.lnk"),
        ]
        assert shortcuts[0].target_path == os.path.join(start_dir, "gog_1207658924.bat")

    def test_custom_icon_base_url(self, games, start_dir):
        plan = ShortcutPlan.build(
            games, start_dir, 2, False, False, icon_base_url="http://localhost:8080/"
        )
        assert list(plan.downloads)[0].url == "http://localhost:8080/abc123.png?namespace=gamesdb"

    def test_build_writes_nothing(self, games, start_dir):
        ShortcutPlan.build(games, start_dir, 2, False, False)
        assert not os.path.exists(start_dir)


class TestArtifacts:
    def test_launcher_content(self, games, start_dir):
        plan = ShortcutPlan.build(games, start_dir, 2, False, False, galaxy_client=r"D:\GOG\GalaxyClient.exe")
        assert plan.artifacts[0].launcher_content(plan.galaxy_client) == (
            r'"D:\GOG\GalaxyClient.exe" /command=runGame /gameId=gog_1207658924'
        )

    @pytest.mark.parametrize("hide_name,expected", [(False, 'ShowNameOnSquare150x150Logo="on"'),
                                                     (True, 'ShowNameOnSquare150x150Logo="off"')])
    def test_manifest_name_overlay(self, games, start_dir, hide_name, expected):
        plan = ShortcutPlan.build(games, start_dir, 2, hide_name, False)
        manifest = plan.artifacts[0].manifest_content()
        assert expected in manifest
        assert 'Square150x150Logo="VisualElements\\MediumIcongog_1207658924.png"' in manifest
        assert 'Square70x70Logo="VisualElements\\MediumIcongog_1207658924.png"' in manifest

    def test_write_artifacts(self, games, start_dir):
        plan = ShortcutPlan.build(games, start_dir, 2, True, False)

        assert plan.write_artifacts() == 2

        assert os.path.isdir(os.path.join(start_dir, "VisualElements"))
        with open(os.path.join(start_dir, "steam_730.bat"), encoding="utf-8") as f:
            assert f.read().endswith("/gameId=steam_730")
        with open(os.path.join(start_dir, "steam_730.VisualElementsManifest.xml"), encoding="utf-8") as f:
            assert 'ShowNameOnSquare150x150Logo="off"' in f.read()

    def test_write_artifacts_overwrites(self, games, start_dir):
        ShortcutPlan.build(games, start_dir, 2, True, False).write_artifacts()
        ShortcutPlan.build(games, start_dir, 2, False, False).write_artifacts()

        with open(os.path.join(start_dir, "steam_730.VisualElementsManifest.xml"), encoding="utf-8") as f:
            assert 'ShowNameOnSquare150x150Logo="on"' in f.read()


def test_plan_summary_names_tile_size(games, start_dir, caplog):
    caplog.set_level("INFO", logger="gogtiles.services.shortcut_service")

    plan = ShortcutPlan.build(games, start_dir, tile_size=1, hide_name=False, force=False)

    assert plan.tile_size == 1
    assert "for 1x1 tiles" in caplog.text
