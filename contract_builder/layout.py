"""
Layout primitives for the rental contract PDF.

The engine only decides *where* things go: it keeps a vertical cursor on an
A4 page, wraps text, scales images and breaks pages, and records the result as
plain positioned blocks. Drawing those blocks is the renderer's job, which
keeps section layout testable without producing a PDF.

Coordinates are top-down: y grows towards the bottom of the page.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Optional, Tuple

from reportlab.lib.pagesizes import A4
from reportlab.lib.utils import ImageReader, simpleSplit
from reportlab.pdfbase.pdfmetrics import stringWidth

from .formatters import display
from .logging_utils import get_logger

logger = get_logger(__name__)

IMAGE_EXTENSIONS = {".png", ".jpg", ".jpeg"}


@dataclass(frozen=True)
class FontSet:
    regular: str = "Helvetica"
    bold: str = "Helvetica-Bold"


@dataclass(frozen=True)
class TextStyle:
    font_name: str
    font_size: float
    color: str
    leading: float = 0
    space_before: float = 0
    space_after: float = 0

    @property
    def line_height(self) -> float:
        return self.leading or self.font_size * 1.25


DEFAULT_PALETTE = {
    "primary": "#1a4d2e",
    "primary_light": "#4a7c59",
    "text": "#2c3e50",
    "text_light": "#6c757d",
    "border": "#dee2e6",
    "white": "#ffffff",
}


def build_styles(palette: Optional[Dict[str, str]] = None, fonts: Optional[FontSet] = None) -> Dict[str, TextStyle]:
    """
    Return the named text styles used by the contract sections.
    """
    colors = dict(DEFAULT_PALETTE)
    colors.update(palette or {})
    fonts = fonts or FontSet()
    return {
        "header_company": TextStyle(fonts.bold, 12, colors["white"], leading=15),
        "header_small": TextStyle(fonts.regular, 7, colors["white"], leading=9),
        "box_title": TextStyle(fonts.bold, 9, colors["white"], leading=11),
        "section_title": TextStyle(fonts.bold, 10, colors["primary"], leading=12, space_before=6, space_after=4),
        "label": TextStyle(fonts.bold, 8, colors["text_light"], leading=10.5),
        "value": TextStyle(fonts.regular, 8, colors["text"], leading=10.5),
        "terms_title": TextStyle(fonts.bold, 12, colors["primary"], leading=15, space_before=6, space_after=8),
        "small": TextStyle(fonts.regular, 8, colors["text_light"], leading=10),
        "tiny": TextStyle(fonts.regular, 7, colors["text_light"], leading=9),
    }


# ---------------------------------------------------------------------------
# Positioned blocks
# ---------------------------------------------------------------------------

@dataclass
class TextBlock:
    x: float
    y: float
    width: float
    lines: List[str]
    style: TextStyle
    align: str = "left"
    ends_paragraph: bool = True
    tag: str = ""

    @property
    def text(self) -> str:
        return "\n".join(self.lines)

    @property
    def height(self) -> float:
        return len(self.lines) * self.style.line_height


@dataclass
class ImageBlock:
    image: Any
    x: float
    y: float
    width: float
    height: float
    source: Optional[Path] = None
    tag: str = ""


@dataclass
class LineBlock:
    x1: float
    y1: float
    x2: float
    y2: float
    color: str
    line_width: float = 0.5


@dataclass
class RectBlock:
    x: float
    y: float
    width: float
    height: float
    fill_color: Optional[str] = None
    stroke_color: Optional[str] = None
    radius: float = 0
    line_width: float = 0.5


def wrap_text(text: str, font_name: str, font_size: float, max_width: float) -> List[str]:
    """
    Word wrap via reportlab's simpleSplit, one paragraph per explicit
    newline. Blank paragraphs keep an empty line; words wider than the
    column are split at the last character that still fits.
    """
    lines: List[str] = []
    for paragraph in str(text).split("\n"):
        words: List[str] = []
        for word in paragraph.split():
            words.extend(_split_long_word(word, font_name, font_size, max_width))
        lines.extend(simpleSplit(" ".join(words), font_name, font_size, max_width) or [""])
    return lines


def _split_long_word(word: str, font_name: str, font_size: float, max_width: float) -> List[str]:
    if max_width <= 0 or stringWidth(word, font_name, font_size) <= max_width:
        return [word]
    chunks = []
    remaining = word
    while remaining:
        lo, hi, fit = 1, len(remaining), 1
        while lo <= hi:
            mid = (lo + hi) // 2
            if stringWidth(remaining[:mid], font_name, font_size) <= max_width:
                fit = mid
                lo = mid + 1
            else:
                hi = mid - 1
        chunks.append(remaining[:fit])
        remaining = remaining[fit:]
    return chunks


class LayoutEngine:
    """
    Cursor-driven page layout. Every `place_*` call returns the y coordinate
    just below what it placed; when content does not fit in the remaining
    space the engine opens a new page and continues at the top margin.
    """

    def __init__(
        self,
        styles: Dict[str, TextStyle],
        palette: Optional[Dict[str, str]] = None,
        page_size: Tuple[float, float] = A4,
        margins: Tuple[float, float, float, float] = (40, 40, 40, 40),
    ):
        self.styles = styles
        self.palette = dict(DEFAULT_PALETTE)
        self.palette.update(palette or {})
        self.page_width, self.page_height = page_size
        self.margin_left, self.margin_top, self.margin_right, self.margin_bottom = margins
        self.pages: List[List[Any]] = [[]]
        self.current_page = 0

    # -- geometry -----------------------------------------------------------

    @property
    def top(self) -> float:
        return self.margin_top

    @property
    def bottom(self) -> float:
        return self.page_height - self.margin_bottom

    @property
    def left(self) -> float:
        return self.margin_left

    @property
    def right(self) -> float:
        return self.page_width - self.margin_right

    @property
    def content_width(self) -> float:
        return self.right - self.left

    @property
    def page_number(self) -> int:
        return len(self.pages)

    def add(self, block) -> None:
        self.pages[self.current_page].append(block)

    def start_new_page(self) -> float:
        """Move to the next page, creating it unless a column already did."""
        self.current_page += 1
        if self.current_page == len(self.pages):
            self.pages.append([])
        return self.top

    def goto_page(self, index: int) -> None:
        self.current_page = index

    def remaining_height(self, y: float) -> float:
        return self.bottom - y

    def ensure_space(self, height: float, y: float) -> float:
        """Break the page when `height` no longer fits below `y`."""
        if y + height > self.bottom and y > self.top:
            return self.start_new_page()
        return y

    @staticmethod
    def merge_columns(*column_ends: float) -> float:
        """Continue below the tallest of several side-by-side columns."""
        return max(column_ends)

    # -- text ---------------------------------------------------------------

    def measure_text(self, text: Any, width: float, style: TextStyle) -> float:
        return len(wrap_text(str(text), style.font_name, style.font_size, width)) * style.line_height

    def place_text(
        self,
        text: Any,
        x: float,
        y: float,
        width: float,
        style: TextStyle,
        align: str = "left",
        tag: str = "",
    ) -> float:
        """Wrap `text` inside `width`, continuing on a new page when needed."""
        text = str(text)
        if align == "justify" and "\n" in text:
            # one block per paragraph so each paragraph's last line stays ragged
            for paragraph in text.split("\n"):
                y = self.place_text(paragraph, x, y, width, style, align, tag)
            return y
        lines = wrap_text(text, style.font_name, style.font_size, width)
        leading = style.line_height
        chunk: List[str] = []
        chunk_y = y
        for line in lines:
            if chunk_y + (len(chunk) + 1) * leading > self.bottom and (chunk or chunk_y > self.top):
                if chunk:
                    self.add(TextBlock(x, chunk_y, width, chunk, style, align, ends_paragraph=False, tag=tag))
                chunk = []
                chunk_y = self.start_new_page()
            chunk.append(line)
        self.add(TextBlock(x, chunk_y, width, chunk, style, align, tag=tag))
        return chunk_y + len(chunk) * leading

    def place_label_value(
        self,
        label: str,
        value: Any,
        x: float,
        label_width: float,
        y: float,
        width: Optional[float] = None,
        value_align: str = "left",
        gap: float = 6,
    ) -> float:
        """
        Bold label on the left, value beside it. Empty values print as the
        placeholder. The row is as tall as the taller of the two.
        """
        width = width if width is not None else self.right - x
        value_width = max(width - label_width - gap, 1)
        text = display(value)

        y = self.ensure_space(self.label_value_height(label, value, label_width, width, gap), y)
        label_page = self.current_page
        label_end = self.place_text(f"{label}:", x, y, label_width, self.styles["label"])
        value_end = self.place_text(
            text, x + label_width + gap, y, value_width, self.styles["value"], align=value_align
        )
        if self.current_page != label_page:
            return value_end
        return self.merge_columns(label_end, value_end)

    def label_value_height(self, label: str, value: Any, label_width: float, width: float, gap: float = 6) -> float:
        label_style = self.styles["label"]
        value_width = max(width - label_width - gap, 1)
        return max(
            label_style.line_height,
            self.measure_text(f"{label}:", label_width, label_style),
            self.measure_text(display(value), value_width, self.styles["value"]),
        )

    # -- images -------------------------------------------------------------

    def load_image(self, path: Any) -> Optional[ImageReader]:
        """Open an image for drawing; unreadable or unsupported files give None."""
        if not path:
            return None
        path = Path(path)
        if path.suffix.lower() not in IMAGE_EXTENSIONS:
            logger.warning("Skipping unsupported image format: %s", path)
            return None
        if not path.exists():
            logger.warning("Image not found: %s", path)
            return None
        try:
            reader = ImageReader(str(path))
            reader.getSize()
            # decode the pixels now: a truncated body only fails here
            reader.getRGBData()
        except Exception as e:
            logger.warning("Could not read image %s: %s", path, e)
            return None
        return reader

    @staticmethod
    def fit_size(image_size: Tuple[float, float], max_width: float, max_height: float) -> Tuple[float, float]:
        img_w, img_h = image_size
        if img_w <= 0 or img_h <= 0:
            return max_width, max_height
        scale = min(max_width / img_w, max_height / img_h)
        return img_w * scale, img_h * scale

    def place_image(
        self,
        path: Any,
        x: float,
        y: float,
        max_width: float,
        max_height: float,
        tag: str = "",
        reader: Optional[ImageReader] = None,
    ) -> float:
        """
        Draw an image scaled to fit the box, keeping its aspect ratio. Returns
        `y` unchanged when the image cannot be loaded.
        """
        reader = reader or self.load_image(path)
        if reader is None:
            return y
        width, height = self.fit_size(reader.getSize(), max_width, max_height)
        y = self.ensure_space(height, y)
        self.add(ImageBlock(reader, x, y, width, height, source=Path(path) if path else None, tag=tag))
        return y + height

    # -- rules and boxes ----------------------------------------------------

    def draw_line(self, x1: float, y1: float, x2: float, y2: float, color: Optional[str] = None, line_width: float = 0.5):
        self.add(LineBlock(x1, y1, x2, y2, color or self.palette["border"], line_width))

    def draw_rect(self, x, y, width, height, fill_color=None, stroke_color=None, radius=0, line_width=0.5):
        self.add(RectBlock(x, y, width, height, fill_color, stroke_color, radius, line_width))

    def draw_signature_line(self, label: str, y: float, width: float = 220, space_before: float = 20) -> float:
        """Right-aligned signature rule with its caption underneath."""
        caption = self.styles["tiny"]
        y = self.ensure_space(space_before + 2 + caption.line_height, y)
        line_y = y + space_before
        x = self.right - width
        self.draw_line(x, line_y, x + width, line_y)
        return self.place_text(label, x, line_y + 2, width, caption, align="center", tag="signature")

    # -- inspection ---------------------------------------------------------

    def text_blocks(self, page: Optional[int] = None) -> List[TextBlock]:
        pages = self.pages if page is None else [self.pages[page]]
        return [b for p in pages for b in p if isinstance(b, TextBlock)]

    def all_text(self) -> str:
        return "\n".join(b.text for b in self.text_blocks())


__all__ = [
    "FontSet",
    "TextStyle",
    "TextBlock",
    "ImageBlock",
    "LineBlock",
    "RectBlock",
    "LayoutEngine",
    "build_styles",
    "wrap_text",
    "DEFAULT_PALETTE",
    "IMAGE_EXTENSIONS",
]
