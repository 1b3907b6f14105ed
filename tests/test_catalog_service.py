from pathlib import Path

import numpy as np
from PIL import Image

from icons_miner.config import MinerSettings
from icons_miner.models.icon_model import CatalogEntry, IconFamily, IconName, RenderedIcon
from icons_miner.models.raster_model import CompositeResult
from icons_miner.services.catalog_service import CatalogService


def _rendered(name: str, size, display_size=None, is_light=False) -> RenderedIcon:
    width, height = size
    image = Image.new("RGB", size, (1, 2, 3))
    return RenderedIcon(
        name=IconName(name),
        width=width,
        height=height,
        is_light=is_light,
        composite=CompositeResult(width, height, image),
        display_size=display_size,
    )


def test_write_icon_saves_png_and_description(tmp_path):
    catalog = CatalogService(tmp_path)
    catalog.prepare()

    record = catalog.write_icon(_rendered("icons/Folder Icon@2x.png", (32, 32), (32, 32)))

    assert record.png_path == Path("img") / "Folder Icon@2x.png"
    assert record.description_path == Path("meta") / "Folder Icon@2x.md"
    with Image.open(tmp_path / record.png_path) as img:
        assert img.mode == "RGB"
        assert np.asarray(img)[0, 0].tolist() == [1, 2, 3]

    text = (tmp_path / record.description_path).read_text(encoding="utf-8")
    assert text.splitlines() == [
        "# Folder Icon@2x `32x32`",
        '<img src="/img/Folder%20Icon@2x.png" width=32 height=32>',
        "",
        "``` CSharp",
        'EditorGUIUtility.IconContent("Folder Icon@2x")',
        "```",
        "```",
        "Folder Icon@2x",
        "```",
    ]


def test_description_preview_is_capped(tmp_path):
    catalog = CatalogService(tmp_path, MinerSettings(max_preview_size=512))
    catalog.prepare()
    record = catalog.write_icon(_rendered("Huge.png", (1024, 600)))
    first_lines = (tmp_path / record.description_path).read_text(encoding="utf-8").splitlines()[:2]
    assert first_lines[1] == '<img src="/img/Huge.png" width=512 height=512>'


def test_descriptions_do_not_leak_between_icons(tmp_path):
    catalog = CatalogService(tmp_path)
    catalog.prepare()
    first = catalog.write_icon(_rendered("A.png", (4, 4)))
    second = catalog.write_icon(_rendered("B.png", (4, 4)))
    assert "A" not in (tmp_path / second.description_path).read_text(encoding="utf-8").split("```")[-2]
    assert (tmp_path / first.description_path).read_text(encoding="utf-8").startswith("# A ")


def test_readme_rows(tmp_path):
    catalog = CatalogService(tmp_path, MinerSettings(host_version="2022.3.1f1"))
    catalog.prepare()
    primary = catalog.write_icon(_rendered("Folder Icon@2x.png", (128, 96), (64, 48), is_light=True))
    secondary = catalog.write_icon(_rendered("Folder Icon.png", (64, 48)))
    single = catalog.write_icon(_rendered("d_Toolbar.png", (15, 15), (15, 15)))
    family = IconFamily(key=IconName("Folder Icon.png").group_key, members=(), primary=primary.name)
    single_family = IconFamily(key=IconName("d_Toolbar.png").group_key, members=(), primary=single.name)

    readme = catalog.write_catalog([
        CatalogEntry(family, primary, secondary),
        CatalogEntry(single_family, single),
    ])

    lines = readme.read_text(encoding="utf-8").splitlines()
    assert lines[0] == "# Editor Built-in Icons"
    assert "Host version **2022.3.1f1**" in lines
    assert 'Load icons using `EditorGUIUtility.IconContent("<ICON NAME>")`' in lines
    assert lines[-3:] == [
        "|------|------|",
        '| [<img src="img/Folder%20Icon@2x.png" width=64 height=48 title="Folder Icon@2x">](meta/Folder%20Icon@2x.md)'
        ' [<img src="img/Folder%20Icon.png" width=32 height=24 title="Folder Icon">](meta/Folder%20Icon.md)'
        " | `Folder Icon@2x` `Folder Icon` |",
        '| [<img src="img/d_Toolbar.png" width=15 height=15 title="d_Toolbar">](meta/d_Toolbar.md) | `d_Toolbar` |',
    ]


def test_half_size_keeps_fractions(tmp_path):
    catalog = CatalogService(tmp_path)
    catalog.prepare()
    primary = catalog.write_icon(_rendered("Odd@2x.png", (15, 15), (15, 15)))
    secondary = catalog.write_icon(_rendered("Odd.png", (8, 8)))
    family = IconFamily(key=primary.name.group_key, members=(), primary=primary.name)
    row = catalog.write_catalog([CatalogEntry(family, primary, secondary)]).read_text(encoding="utf-8").splitlines()[-1]
    assert "width=7.5 height=7.5" in row


def test_load_preview(tmp_path):
    catalog = CatalogService(tmp_path)
    catalog.prepare()
    record = catalog.write_icon(_rendered("A.png", (3, 2)))
    preview = catalog.load_preview(record)
    assert preview.size == (3, 2)


def test_file_stem_overrides_output_paths_only(tmp_path):
    catalog = CatalogService(tmp_path)
    catalog.prepare()
    rendered = _rendered("b/Icon.png", (4, 4))
    record = catalog.write_icon(RenderedIcon(
        name=rendered.name,
        width=4,
        height=4,
        is_light=False,
        composite=rendered.composite,
        file_stem="b_Icon_png",
    ))

    assert record.png_path == Path("img") / "b_Icon_png.png"
    assert record.description_path == Path("meta") / "b_Icon_png.md"
    lines = (tmp_path / record.description_path).read_text(encoding="utf-8").splitlines()
    assert lines[0] == "# Icon `4x4`"
    assert lines[1] == '<img src="/img/b_Icon_png.png" width=4 height=4>'
    assert lines[4] == 'EditorGUIUtility.IconContent("Icon")'
