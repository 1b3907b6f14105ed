import logging

import numpy as np
import pytest
from PIL import Image

from conftest import FakeBackend, FakeSource, FakeTexture, solid
from icons_miner.config import MinerSettings
from icons_miner.models.raster_model import ColorSpace
from icons_miner.services.asset_service import DirectoryAssetSource, SoftwareRenderBackend
from icons_miner.services.catalog_service import CatalogService
from icons_miner.services.color_space import gamma_to_linear, linear_to_gamma
from icons_miner.services.miner_service import MinerService, assign_file_stems, display_size
from icons_miner.services.variant_grouper import VariantGrouper


class RecordingCatalog(CatalogService):
    def __init__(self, output_dir, settings=None):
        super().__init__(output_dir, settings)
        self.rendered = []

    def write_icon(self, rendered):
        self.rendered.append(rendered)
        return super().write_icon(rendered)


@pytest.mark.parametrize("size, expected", [
    ((128, 128), (64, 64)),
    ((32, 16), (32, 16)),
    ((256, 100), (64, 25)),
    ((1000, 1), (64, 1)),
    ((1, 1), (1, 1)),
    ((64, 200), (20, 64)),
])
def test_display_size(size, expected):
    assert display_size(*size) == expected


def test_warning_icon_end_to_end(tmp_path):
    # 64x64, 90% opaque at linear luminance 0.7, rest transparent
    grey = int(round(float(linear_to_gamma(0.7)) * 255))
    pixels = solid(64, 64, (0, 0, 0, 0)).reshape(-1, 4)
    opaque = int(64 * 64 * 0.9)
    pixels[:opaque] = (grey, grey, grey, 255)
    pixels = pixels.reshape(64, 64, 4)

    source = FakeSource({"d_Warning@2x.png": FakeTexture("d_Warning@2x", pixels)})
    settings = MinerSettings(color_space=ColorSpace.LINEAR)
    catalog = RecordingCatalog(tmp_path, settings)

    report = MinerService(source, catalog, settings).run()

    assert report.exported == 1
    assert len(report.entries) == 1
    rendered = catalog.rendered[0]
    assert rendered.is_light
    assert rendered.display_size == (64, 64)

    out = np.asarray(rendered.composite.image)
    dark = gamma_to_linear(np.array(settings.dark_color.as_tuple()))
    alpha = pixels[..., 3:4] / 255.0
    mixed = gamma_to_linear(pixels[..., :3] / 255.0) * alpha + dark * (1.0 - alpha)
    expected = np.clip(np.rint(linear_to_gamma(mixed) * 255.0), 0, 255).astype(np.uint8)
    np.testing.assert_array_equal(out, expected)

    with Image.open(tmp_path / report.entries[0].primary.png_path) as written:
        assert written.mode == "RGB"
        np.testing.assert_array_equal(np.asarray(written), out)


def test_dark_icon_goes_on_light_background(tmp_path):
    source = FakeSource({"Black.png": FakeTexture("Black", solid(4, 4, (0, 0, 0, 128)))})
    catalog = RecordingCatalog(tmp_path)
    MinerService(source, catalog).run()
    rendered = catalog.rendered[0]
    assert not rendered.is_light
    assert np.asarray(rendered.composite.image)[0, 0].tolist() != [13, 17, 23]


def test_pairs_are_processed_and_written_to_catalog(tmp_path):
    textures = {
        "Folder Icon.png": FakeTexture("Folder Icon", solid(16, 16, (255, 255, 255, 255))),
        "Folder Icon@2x.png": FakeTexture("Folder Icon@2x", solid(32, 32, (255, 255, 255, 255))),
        "d_Toolbar.png": FakeTexture("d_Toolbar", solid(8, 8, (0, 0, 0, 255))),
    }
    report = MinerService(FakeSource(textures), CatalogService(tmp_path)).run()

    assert report.exported == 3
    assert [e.primary.name.raw for e in report.entries] == ["d_Toolbar.png", "Folder Icon@2x.png"]
    folder = report.entries[1]
    assert folder.secondary.name.raw == "Folder Icon.png"
    assert folder.primary.display_size == (32, 32)
    assert folder.secondary.display_size is None
    readme = (tmp_path / "README.md").read_text(encoding="utf-8")
    assert "width=16 height=16" in readme
    assert report.readme_path == tmp_path / "README.md"


def test_missing_asset_is_skipped(tmp_path, caplog):
    textures = {
        "Gone@2x.png": None,
        "Here.png": FakeTexture("Here", solid(2, 2, (0, 0, 0, 255))),
    }
    with caplog.at_level(logging.WARNING):
        report = MinerService(FakeSource(textures), CatalogService(tmp_path)).run()

    assert report.missing == ["Gone@2x.png"]
    assert report.failed == []
    assert [e.primary.name.raw for e in report.entries] == ["Here.png"]
    assert "Gone@2x.png" in caplog.text


def test_failing_icon_does_not_abort_batch(tmp_path):
    bad = FakeTexture("Bad", solid(2, 2, (0, 0, 0, 255)), is_compressed=True)
    textures = {
        "Bad.png": bad,
        "Good.png": FakeTexture("Good", solid(2, 2, (0, 0, 0, 255))),
    }
    backend = FakeBackend(fail_on_blit=True)
    report = MinerService(FakeSource(textures), CatalogService(tmp_path), render_backend=backend).run()

    assert report.failed == ["Bad.png"]
    assert [e.primary.name.raw for e in report.entries] == ["Good.png"]
    assert backend.released == backend.acquired


def test_failed_secondary_keeps_row(tmp_path):
    textures = {
        "Cog@2x.png": FakeTexture("Cog@2x", solid(4, 4, (0, 0, 0, 255))),
        "Cog.png": FakeTexture("Cog", solid(2, 2, (0, 0, 0, 255)), is_readable=False),
    }
    report = MinerService(
        FakeSource(textures), CatalogService(tmp_path), render_backend=FakeBackend(fail_on_blit=True)
    ).run()
    assert report.failed == ["Cog.png"]
    assert report.entries[0].secondary is None


def test_enumeration_failure_is_fatal(tmp_path):
    service = MinerService(DirectoryAssetSource(tmp_path / "missing"), CatalogService(tmp_path / "out"))
    with pytest.raises(FileNotFoundError):
        service.run()


def test_all_variants_exports_every_member(tmp_path):
    textures = {name: FakeTexture(name, solid(2, 2, (0, 0, 0, 255)))
                for name in ("Tool.png", "Tool@2x.png", "tool.png")}
    settings = MinerSettings(export_all_variants=True)
    report = MinerService(FakeSource(textures), CatalogService(tmp_path, settings), settings).run()
    assert report.exported == 3  # secondary repeats the primary here
    assert len(report.entries) == 1


def test_worker_pool_keeps_catalog_order(tmp_path):
    names = [f"icon_{i:02d}.png" for i in range(12)]
    textures = {name: FakeTexture(name, solid(4, 4, (200, 10, 10, 255))) for name in names}
    settings = MinerSettings(max_workers=4)
    progress = []
    report = MinerService(FakeSource(textures), CatalogService(tmp_path, settings), settings).run(
        progress=lambda done, total, name: progress.append((done, total))
    )
    assert [e.primary.name.raw for e in report.entries] == names
    assert sorted(progress) == [(i, 12) for i in range(1, 13)]


def test_directory_pipeline_with_software_backend(tmp_path):
    root = tmp_path / "Icons"
    root.mkdir()
    Image.new("RGBA", (32, 32), (255, 255, 255, 255)).save(root / "Light@2x.png")
    Image.new("RGBA", (16, 16), (255, 255, 255, 255)).save(root / "Light.png")
    Image.new("LA", (8, 8), (0, 255)).save(root / "Shadow.png")
    backend = SoftwareRenderBackend()

    report = MinerService(
        DirectoryAssetSource(root), CatalogService(tmp_path / "out"), render_backend=backend
    ).run()

    assert report.exported == 3
    assert backend.active_targets == 0
    assert sorted(p.name for p in (tmp_path / "out" / "img").iterdir()) == ["Light.png", "Light@2x.png", "Shadow.png"]
    assert len(report.entries) == 2


def test_same_display_name_gets_distinct_files(tmp_path):
    root = tmp_path / "Icons"
    for folder in ("a", "b"):
        (root / folder).mkdir(parents=True)
        Image.new("RGBA", (4, 4), (255, 255, 255, 255)).save(root / folder / "Icon.png")
    Image.new("RGBA", (4, 4), (0, 0, 0, 255)).save(root / "Lock.png")
    Image.new("RGBA", (4, 4), (0, 0, 0, 255)).save(root / "Lock.asset", format="PNG")
    settings = MinerSettings(max_workers=4)

    report = MinerService(DirectoryAssetSource(root), CatalogService(tmp_path / "out", settings), settings).run()

    paths = [entry.primary.png_path for entry in report.entries]
    assert len(report.entries) == 4
    assert len(set(paths)) == 4
    assert len({entry.primary.description_path for entry in report.entries}) == 4
    assert report.exported == 4
    for path in paths:
        assert (tmp_path / "out" / path).is_file()
    assert sorted(p.name for p in (tmp_path / "out" / "img").iterdir()) == [
        "Icon.png", "Lock.png", "Lock_png.png", "b_Icon_png.png",
    ]


def test_assign_file_stems_is_case_insensitive():
    families = VariantGrouper().group(["Play.png", "play.asset", "x/PLAY.png"])
    stems = assign_file_stems(families)
    assert len({stem.lower() for stem in stems.values()}) == 3
    assert stems["play.asset"] == "play"
    assert stems["Play.png"] == "Play_png"
    assert stems["x/PLAY.png"] == "x_PLAY_png"


def test_assign_file_stems_covers_every_written_variant():
    families = VariantGrouper().group(["Tool.png", "Tool@2x.png", "tool.png"])
    assert assign_file_stems(families) == {"Tool@2x.png": "Tool@2x"}
    stems = assign_file_stems(families, all_variants=True)
    assert stems == {"Tool@2x.png": "Tool@2x", "tool.png": "tool", "Tool.png": "Tool_png"}
