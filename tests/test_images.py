import pytest
from PIL import Image

from conftest import write_image
from inkwell.errors import ImageProcessingError
from inkwell.images import ImageSharp, target_widths


def test_target_widths_never_upscale():
    assert target_widths(100, 1000) == [25, 50, 100, 150, 200]
    assert target_widths(100, 120) == [25, 50, 100, 120]
    assert target_widths(800, 300) == [200, 300]


def test_fluid_writes_variants(tmp_path):
    source = write_image(tmp_path / "src" / "hero.jpg", size=(400, 200))
    out = tmp_path / "out"
    fluid = ImageSharp(out).fluid(source, 100)

    assert fluid.width == 100
    assert fluid.height == 50
    assert fluid.aspect_ratio == 2
    assert fluid.padding_bottom == "50.0000%"
    assert fluid.sizes == "(max-width: 100px) 100vw, 100px"
    assert fluid.src.startswith("/assets/images/")
    assert fluid.src.endswith("/100/hero.jpg")

    candidates = [c.split() for c in fluid.srcset.split(", ")]
    assert [c[1] for c in candidates] == ["25w", "50w", "100w", "150w", "200w"]
    for url, descriptor in candidates:
        written = out / url.lstrip("/")
        assert written.is_file()
        with Image.open(written) as img:
            assert img.width == int(descriptor[:-1])


def test_fluid_small_source_uses_its_own_width(tmp_path):
    source = write_image(tmp_path / "tiny.png", size=(60, 30))
    fluid = ImageSharp(tmp_path / "out").fluid(source, 100)
    assert fluid.width == 60
    assert fluid.srcset.endswith("60w")


def test_fluid_is_deterministic_and_cached(tmp_path):
    source = write_image(tmp_path / "hero.jpg")
    sharp = ImageSharp(tmp_path / "out")
    first = sharp.fluid(source, 100)
    assert sharp.fluid(source, 100) is first
    assert ImageSharp(tmp_path / "out").fluid(source, 100) == first
    assert ImageSharp(tmp_path / "other").fluid(source, 100) == first


def test_fluid_rejects_missing_and_broken_files(tmp_path):
    sharp = ImageSharp(tmp_path / "out")
    with pytest.raises(ImageProcessingError):
        sharp.fluid(tmp_path / "missing.jpg", 100)
    broken = tmp_path / "broken.jpg"
    broken.write_text("not an image", encoding="utf-8")
    with pytest.raises(ImageProcessingError) as info:
        sharp.fluid(broken, 100)
    assert info.value.source_path == broken
