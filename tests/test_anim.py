import io

import pytest
from PIL import Image

from gifanim import (
    AnimatedSourceError,
    AnimGif,
    BuildState,
    InvalidInput,
    UnsupportedSourceFormat,
    pad_durations,
)


def open_gif(data):
    return Image.open(io.BytesIO(data))


def frame_colors(data):
    img = open_gif(data)
    colors = []
    for n in range(img.n_frames):
        img.seek(n)
        colors.append(img.convert("RGB").getpixel((1, 1)))
    return colors


def delays(data):
    out = []
    pos = data.find(b"!\xf9\x04")
    while pos != -1:
        out.append(int.from_bytes(data[pos + 4:pos + 6], "little"))
        pos = data.find(b"!\xf9\x04", pos + 1)
    return out


@pytest.mark.parametrize("durations, expected", [
    (None, [10, 10, 10]),
    (5, [5, 5, 5]),
    ([5], [5, 5, 5]),
    ([5, 7], [5, 7, 7]),
    ([1, 2, 3, 4], [1, 2, 3, 4]),
    ([], [10, 10, 10]),
])
def test_pad_durations(durations, expected):
    assert pad_durations(durations, 3) == expected


def test_create_shared_palette(solid_png):
    anim = AnimGif()
    data = anim.create([solid_png("red")] * 3, [5], 0)

    assert data == anim.get()
    assert data.startswith(b"GIF89a") and data.endswith(b";")
    assert data.count(b"!\xf9\x04") == 3
    assert delays(data) == [5, 5, 5]
    assert data.count(b"NETSCAPE2.0") == 1

    img = open_gif(data)
    assert img.n_frames == 3
    assert img.info["loop"] == 0
    assert img.info["duration"] == 50

    # one 256 color palette for all three frames
    assert len(data) < 2 * 768


def test_create_distinct_palettes(solid_png):
    data = AnimGif().create([solid_png("red"), solid_png("lime"), solid_png("blue")])

    assert frame_colors(data) == [(255, 0, 0), (0, 255, 0), (0, 0, 255)]
    assert len(data) > 3 * 768


def test_create_pads_durations(solid_png):
    data = AnimGif().create([solid_png("red"), solid_png("lime"), solid_png("blue")], [4, 9])

    assert delays(data) == [4, 9, 9]


def test_create_disposal_methods(solid_png):
    data = AnimGif().create([solid_png("red")] * 3, 10, 0, [2, 3])

    packed = [data[pos + 3] for pos in range(len(data)) if data[pos:pos + 3] == b"!\xf9\x04"]
    assert packed == [0x09, 0x0D, 0x01]


def test_create_clamps_negative_loop(solid_png):
    data = AnimGif().create([solid_png("red")], loop=-3)

    assert b"NETSCAPE2.0\x03\x01\x00\x00\x00" in data


def test_create_bounded_loop(solid_png):
    data = AnimGif().create([solid_png("red")] * 2, loop=4)

    assert open_gif(data).info["loop"] == 4


def test_create_is_repeatable(solid_png):
    frames = [solid_png("red"), solid_png("lime")]

    assert AnimGif().create(frames, [3, 6], 2) == AnimGif().create(frames, [3, 6], 2)


def test_canvas_from_first_frame(solid_png):
    data = AnimGif().create([solid_png("red", (6, 4)), solid_png("lime", (3, 3))])
    img = open_gif(data)

    assert img.size == (6, 4)
    assert img.n_frames == 2


def test_canvas_size_setters(solid_png):
    anim = AnimGif().set_canvas_width(8).set_canvas_height(6)
    img = open_gif(anim.create([solid_png("red", (4, 4))]))

    assert img.size == (8, 6)


def test_create_from_directory(tmp_path, solid_png):
    (tmp_path / "b.png").write_bytes(solid_png("lime"))
    (tmp_path / "a.png").write_bytes(solid_png("red"))
    (tmp_path / ".hidden").write_bytes(b"not an image")

    data = AnimGif().create(tmp_path)

    assert frame_colors(data) == [(255, 0, 0), (0, 255, 0)]


def test_create_from_pillow_images():
    frames = [Image.new("RGB", (4, 4), "red"), Image.new("RGB", (4, 4), "blue")]
    data = AnimGif().create(frames)

    assert frame_colors(data) == [(255, 0, 0), (0, 0, 255)]


@pytest.mark.parametrize("frames", [[], None, 12, "just a string"])
def test_create_invalid_frames(frames):
    with pytest.raises(InvalidInput):
        AnimGif().create(frames)


def test_create_rejects_animated_source(solid_png):
    buf = io.BytesIO()
    Image.new("RGB", (4, 4), "red").save(
        buf, format="GIF", save_all=True, append_images=[Image.new("RGB", (4, 4), "blue")])

    with pytest.raises(AnimatedSourceError) as excinfo:
        AnimGif().create([solid_png("red"), solid_png("lime"), buf.getvalue()])

    assert excinfo.value.frame_index == 3


def test_failed_create_keeps_previous_result(solid_png):
    anim = AnimGif()
    data = anim.create([solid_png("red")])

    with pytest.raises(UnsupportedSourceFormat):
        anim.create([solid_png("red"), b"\x00garbage"])

    assert anim.get() == data
    assert anim.state is BuildState.FINALIZED


def test_get_before_create():
    anim = AnimGif()

    assert anim.get() == b""
    assert anim.state is BuildState.EMPTY


def test_reset(solid_png):
    anim = AnimGif()
    anim.create([solid_png("red")])
    anim.reset()

    assert anim.get() == b""
    assert anim.state is BuildState.EMPTY

    data = anim.create([solid_png("lime")])
    assert frame_colors(data) == [(0, 255, 0)]


def test_save(tmp_path, solid_png):
    anim = AnimGif()
    data = anim.create([solid_png("red")] * 2)
    path = tmp_path / "out.gif"

    assert anim.save(path) == len(data)
    assert path.read_bytes() == data


def test_save_error_passes_through(tmp_path, solid_png):
    anim = AnimGif()
    anim.create([solid_png("red")])

    with pytest.raises(FileNotFoundError):
        anim.save(tmp_path / "missing" / "out.gif")


@pytest.mark.parametrize("durations", [5.0, "10", -1, 0x10000])
def test_pad_durations_rejects_bad_scalars(durations):
    with pytest.raises(InvalidInput):
        pad_durations(durations, 2)


@pytest.mark.parametrize("kwargs", [
    {"durations": 5.0},
    {"loop": None},
    {"loop": "2"},
    {"loop": 0x10000},
])
def test_create_rejects_bad_timing(solid_png, kwargs):
    with pytest.raises(InvalidInput):
        AnimGif().create([solid_png("red")], **kwargs)


def test_create_rejects_oversized_canvas():
    anim = AnimGif().set_canvas_width(70000).set_canvas_height(1)

    with pytest.raises(InvalidInput):
        anim.create([Image.new("RGB", (4, 4), "red")])

    assert anim.get() == b""
