"""
PDF backend for the rental contract.

Page assembly runs the section builders against a LayoutEngine; drawing walks
the resulting positioned blocks onto a reportlab canvas. The canvas runs in
invariant mode so the same record always produces the same bytes.
"""

from __future__ import annotations

from io import BytesIO
from pathlib import Path
from typing import Any, List, Optional, Sequence, Tuple

from reportlab.lib.colors import HexColor
from reportlab.lib.pagesizes import A4
from reportlab.pdfbase import pdfmetrics
from reportlab.pdfbase.pdfmetrics import stringWidth
from reportlab.pdfbase.ttfonts import TTFont
from reportlab.pdfgen import canvas

from ..layout import FontSet, ImageBlock, LineBlock, RectBlock, TextBlock
from ..logging_utils import get_logger
from ..models import RentalContractInput
from .sections import CONTRACT_SECTIONS, SectionContext, build_photo_gallery, build_signature, build_terms_section

logger = get_logger(__name__)

ROBOTO_FILES = {
    "Roboto": "Roboto-Regular.ttf",
    "Roboto-Medium": "Roboto-Medium.ttf",
    "Roboto-Italic": "Roboto-Italic.ttf",
    "Roboto-MediumItalic": "Roboto-MediumItalic.ttf",
}


def register_fonts(fonts_dir: Optional[Path]) -> FontSet:
    """
    Register the Roboto family from `fonts_dir` when all four faces are
    there; otherwise stay on the built-in Helvetica.
    """
    if not fonts_dir:
        return FontSet()
    fonts_dir = Path(fonts_dir)
    files = {name: fonts_dir / filename for name, filename in ROBOTO_FILES.items()}
    missing = [str(p) for p in files.values() if not p.exists()]
    if missing:
        logger.info("Roboto fonts not found in %s, using Helvetica", fonts_dir)
        return FontSet()

    registered = set(pdfmetrics.getRegisteredFontNames())
    try:
        for name, path in files.items():
            if name not in registered:
                pdfmetrics.registerFont(TTFont(name, str(path)))
    except Exception as e:
        logger.warning("Could not register Roboto fonts from %s: %s", fonts_dir, e)
        return FontSet()
    pdfmetrics.registerFontFamily(
        "Roboto",
        normal="Roboto",
        bold="Roboto-Medium",
        italic="Roboto-Italic",
        boldItalic="Roboto-MediumItalic",
    )
    return FontSet(regular="Roboto", bold="Roboto-Medium")


def build_pages(ctx: SectionContext, rental: RentalContractInput) -> List[List[Any]]:
    """
    Lay out the whole contract in its fixed order: the contract page
    sections, then the general conditions on a fresh page, then one gallery
    per photo category that has photos, each starting its own page.
    """
    engine = ctx.engine
    y = engine.top
    for build in CONTRACT_SECTIONS:
        y = build(ctx, rental, y)

    y = engine.start_new_page()
    y = build_terms_section(ctx, rental, y)
    y = build_signature(ctx, rental, y)

    for category, photos in (("pickup", rental.pickup_photos), ("return", rental.return_photos)):
        if not photos:
            continue
        y = engine.start_new_page()
        y = build_photo_gallery(ctx, ctx.label(f"{category}_photos"), photos, y, category)
    return engine.pages


# ---------------------------------------------------------------------------
# Drawing
# ---------------------------------------------------------------------------

def _draw_text(c: canvas.Canvas, block: TextBlock, page_height: float) -> None:
    style = block.style
    c.setFont(style.font_name, style.font_size)
    c.setFillColor(HexColor(style.color))
    leading = style.line_height
    last_index = len(block.lines) - 1

    for i, line in enumerate(block.lines):
        if not line:
            continue
        baseline = page_height - (block.y + i * leading + style.font_size)
        if block.align == "center":
            c.drawCentredString(block.x + block.width / 2, baseline, line)
        elif block.align == "right":
            c.drawRightString(block.x + block.width, baseline, line)
        elif block.align == "justify" and not (i == last_index and block.ends_paragraph):
            _draw_justified(c, line, block.x, baseline, block.width, style.font_name, style.font_size)
        else:
            c.drawString(block.x, baseline, line)


def _draw_justified(c: canvas.Canvas, line: str, x: float, baseline: float, width: float, font_name: str, font_size: float) -> None:
    """Stretch a full line to the column width through the text word spacing."""
    spaces = line.count(" ")
    slack = width - stringWidth(line, font_name, font_size)
    text = c.beginText(x, baseline)
    text.setFont(font_name, font_size)
    if spaces and slack > 0:
        text.setWordSpace(slack / spaces)
    text.textOut(line)
    text.setWordSpace(0)
    c.drawText(text)


def _draw_rect(c: canvas.Canvas, block: RectBlock, page_height: float) -> None:
    c.setLineWidth(block.line_width)
    if block.fill_color:
        c.setFillColor(HexColor(block.fill_color))
    if block.stroke_color:
        c.setStrokeColor(HexColor(block.stroke_color))
    fill = 1 if block.fill_color else 0
    stroke = 1 if block.stroke_color else 0
    bottom = page_height - (block.y + block.height)
    if block.radius:
        c.roundRect(block.x, bottom, block.width, block.height, block.radius, stroke=stroke, fill=fill)
    else:
        c.rect(block.x, bottom, block.width, block.height, stroke=stroke, fill=fill)


def draw_block(c: canvas.Canvas, block: Any, page_height: float) -> None:
    if isinstance(block, TextBlock):
        _draw_text(c, block, page_height)
    elif isinstance(block, RectBlock):
        _draw_rect(c, block, page_height)
    elif isinstance(block, LineBlock):
        c.setStrokeColor(HexColor(block.color))
        c.setLineWidth(block.line_width)
        c.line(block.x1, page_height - block.y1, block.x2, page_height - block.y2)
    elif isinstance(block, ImageBlock):
        c.drawImage(
            block.image,
            block.x,
            page_height - (block.y + block.height),
            width=block.width,
            height=block.height,
            mask="auto",
        )
    else:
        raise TypeError(f"Unknown layout block: {type(block).__name__}")


def render_pdf_bytes(
    pages: Sequence[Sequence[Any]],
    page_size: Tuple[float, float] = A4,
    title: Optional[str] = None,
    author: Optional[str] = None,
) -> bytes:
    buffer = BytesIO()
    c = canvas.Canvas(buffer, pagesize=page_size, invariant=1)
    if title:
        c.setTitle(title)
    if author:
        c.setAuthor(author)

    page_height = page_size[1]
    for blocks in pages:
        for block in blocks:
            draw_block(c, block, page_height)
        c.showPage()
    c.save()
    return buffer.getvalue()


def render_pdf(
    pages: Sequence[Sequence[Any]],
    output_path: Path,
    page_size: Tuple[float, float] = A4,
    title: Optional[str] = None,
    author: Optional[str] = None,
) -> Path:
    """
    Draw the laid-out pages and write the PDF to `output_path`. The parent
    directory must already exist; write errors propagate to the caller.
    """
    output_path = Path(output_path)
    data = render_pdf_bytes(pages, page_size=page_size, title=title, author=author)
    with open(output_path, "wb") as f:
        f.write(data)
    return output_path


__all__ = ["register_fonts", "build_pages", "draw_block", "render_pdf", "render_pdf_bytes"]
