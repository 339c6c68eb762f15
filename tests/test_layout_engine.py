import pytest
from PIL import Image
from reportlab.pdfbase.pdfmetrics import stringWidth

from contract_builder.layout import ImageBlock, LayoutEngine, TextBlock, build_styles, wrap_text


@pytest.fixture
def engine():
    return LayoutEngine(build_styles())


def test_wrap_text_honours_newlines():
    assert wrap_text("prima\nseconda", "Helvetica", 8, 200) == ["prima", "seconda"]


def test_wrap_text_splits_words_wider_than_column():
    lines = wrap_text("x" * 200, "Helvetica", 8, 50)
    assert len(lines) > 1
    assert "".join(lines) == "x" * 200
    assert all(stringWidth(line, "Helvetica", 8) <= 50 for line in lines)


def test_ensure_space_breaks_page_only_when_needed(engine):
    assert engine.ensure_space(100, engine.top + 10) == engine.top + 10
    assert engine.page_number == 1

    y = engine.ensure_space(100, engine.bottom - 50)
    assert y == engine.top
    assert engine.page_number == 2


def test_oversized_block_at_top_of_page_does_not_loop(engine):
    assert engine.ensure_space(10_000, engine.top) == engine.top
    assert engine.page_number == 1


def test_long_text_flows_across_pages(engine):
    style = engine.styles["value"]
    text = "\n".join(f"riga {i}" for i in range(200))
    end = engine.place_text(text, engine.left, engine.top, engine.content_width, style)

    assert engine.page_number >= 3
    assert end <= engine.bottom
    for page in engine.pages:
        for block in page:
            assert block.y + block.height <= engine.bottom + 1e-6
    first = engine.text_blocks(0)[0]
    assert first.ends_paragraph is False
    assert "riga 199" in engine.all_text()


def test_justified_paragraphs_are_separate_blocks(engine):
    engine.place_text("uno due\ntre quattro", engine.left, engine.top, 200, engine.styles["small"], align="justify")
    blocks = engine.text_blocks()
    assert [b.text for b in blocks] == ["uno due", "tre quattro"]
    assert all(b.ends_paragraph for b in blocks)


def test_label_value_placeholder_for_empty_value(engine):
    y = engine.place_label_value("Targa", None, engine.left, 60, engine.top)
    assert y > engine.top
    assert engine.all_text() == "Targa:\nN/A"


def test_label_value_row_height_follows_taller_side(engine):
    value = "parola " * 80
    y = engine.place_label_value("Note", value, engine.left, 60, engine.top, width=200)
    assert y - engine.top == pytest.approx(engine.label_value_height("Note", value, 60, 200))
    assert y - engine.top > engine.styles["value"].line_height


def test_merge_columns_takes_tallest():
    assert LayoutEngine.merge_columns(100, 180, 140) == 180


@pytest.mark.parametrize(
    "size, expected",
    [
        ((400, 300), (240, 180)),
        ((300, 600), (90, 180)),
        ((0, 0), (240, 180)),
    ],
)
def test_fit_size_keeps_aspect_ratio(size, expected):
    assert LayoutEngine.fit_size(size, 240, 180) == pytest.approx(expected)


def test_load_image_rejects_bad_files(engine, tmp_path, make_png):
    gif = tmp_path / "photo.gif"
    gif.write_bytes(b"GIF89a")
    corrupt = tmp_path / "broken.png"
    corrupt.write_bytes(b"not an image")

    assert engine.load_image(gif) is None
    assert engine.load_image(tmp_path / "missing.jpg") is None
    assert engine.load_image(corrupt) is None
    assert engine.load_image(None) is None
    assert engine.load_image(make_png()).getSize() == (400, 300)


def test_load_image_rejects_truncated_pixel_data(engine, make_truncated_png):
    path = make_truncated_png()
    with Image.open(path) as header_only:
        assert header_only.size == (400, 300)
    assert engine.load_image(path) is None
    assert engine.place_image(path, engine.left, 100, 180, 140) == 100


def test_place_image_missing_file_leaves_cursor(engine, tmp_path):
    y = engine.place_image(tmp_path / "missing.png", engine.left, 200, 180, 140)
    assert y == 200
    assert engine.pages == [[]]


def test_place_image_scales_into_box(engine, make_png):
    y = engine.place_image(make_png(size=(800, 400)), engine.left, 100, 180, 140)
    image = engine.pages[0][0]
    assert isinstance(image, ImageBlock)
    assert (image.width, image.height) == pytest.approx((180, 90))
    assert y == pytest.approx(190)


def test_signature_line_is_right_aligned(engine):
    engine.draw_signature_line("Firma Cliente", engine.top)
    caption = [b for b in engine.text_blocks() if isinstance(b, TextBlock) and b.tag == "signature"]
    assert len(caption) == 1
    assert caption[0].x + caption[0].width == pytest.approx(engine.right)


def test_wrap_text_keeps_blank_paragraphs():
    assert wrap_text("uno\n\ndue", "Helvetica", 8, 200) == ["uno", "", "due"]
    assert wrap_text("", "Helvetica", 8, 200) == [""]


def test_page_break_reuses_page_opened_by_earlier_column(engine):
    engine.start_new_page()
    engine.goto_page(0)
    assert engine.start_new_page() == engine.top
    assert engine.current_page == 1
    assert len(engine.pages) == 2
