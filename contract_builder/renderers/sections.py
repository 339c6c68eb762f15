"""
Section builders for the rental contract PDF.

Each builder takes the shared context, the rental record and the current
cursor position, lays its content out through the LayoutEngine and returns
the y coordinate where the next section should start. The assembly order
lives in pdf_renderer.build_pages.
"""

from dataclasses import dataclass
from typing import Any, Dict, List, Optional, Sequence, Tuple

from reportlab.lib.utils import ImageReader

from ..formatters import (
    format_currency,
    format_date,
    format_datetime,
    format_km,
    format_km_included,
    format_percent,
)
from ..layout import ImageBlock, LayoutEngine, TextStyle
from ..models import ContractConfig, PhotoEntry, RentalContractInput
from ..pricing import compute_pricing

SECTION_GAP = 10
HEADER_BAND_WIDTH = 320
HEADER_BAND_HEIGHT = 72
DIAGRAM_SIZE = (180, 140)
PHOTO_WIDTH = 240
PHOTO_HEIGHT = 180
PHOTO_GAP = 15
PHOTO_ROW_MARGIN = 10


@dataclass
class SectionContext:
    """Shared state for one document: engine, styles, config and loaded assets."""

    engine: LayoutEngine
    config: ContractConfig
    damage_diagram: Optional[ImageReader] = None

    @property
    def styles(self) -> Dict[str, TextStyle]:
        return self.engine.styles

    @property
    def palette(self) -> Dict[str, str]:
        return self.engine.palette

    def label(self, key: str, **kwargs) -> str:
        return self.config.label(key, **kwargs)


Row = Tuple[str, Any]


def _section_title(ctx: SectionContext, text: str, y: float) -> float:
    engine = ctx.engine
    style = ctx.styles["section_title"]
    y += style.space_before
    # keep the title together with at least two rows of its content
    y = engine.ensure_space(style.line_height + 2 * ctx.styles["value"].line_height, y)
    y = engine.place_text(text, engine.left, y, engine.content_width, style)
    return y + style.space_after


def _label_value_columns(
    ctx: SectionContext,
    columns: Sequence[Sequence[Row]],
    y: float,
    label_width: float,
    gap: float = 12,
    fractions: Optional[Sequence[float]] = None,
    value_align: str = "left",
) -> float:
    """
    Lay out side-by-side label/value columns starting at the same y and
    continue below the tallest one.
    """
    engine = ctx.engine
    usable = engine.content_width - gap * (len(columns) - 1)
    fractions = fractions or [1 / len(columns)] * len(columns)
    widths = [usable * f for f in fractions]

    tallest = max(
        sum(engine.label_value_height(label, value, label_width, width) for label, value in rows)
        for rows, width in zip(columns, widths)
    )
    y = engine.ensure_space(tallest, y)

    # every column starts on the same page even if an earlier one overflowed
    start_page = engine.current_page
    ends = []
    x = engine.left
    for rows, width in zip(columns, widths):
        engine.goto_page(start_page)
        column_y = y
        for label, value in rows:
            column_y = engine.place_label_value(
                label, value, x, label_width, column_y, width=width, value_align=value_align
            )
        ends.append((engine.current_page, column_y))
        x += width + gap

    last_page = max(page for page, _ in ends)
    engine.goto_page(last_page)
    return engine.merge_columns(*(end for page, end in ends if page == last_page))


def _text_block(ctx: SectionContext, heading: str, text: str, y: float) -> float:
    engine = ctx.engine
    y += 6
    y = engine.ensure_space(ctx.styles["label"].line_height + ctx.styles["small"].line_height, y)
    y = engine.place_text(f"{heading}:", engine.left, y, engine.content_width, ctx.styles["label"]) + 2
    y = engine.place_text(text, engine.left, y, engine.content_width, ctx.styles["small"])
    return y + 6


def _damage_details(ctx: SectionContext, damages: Optional[str], notes: Optional[str], y: float) -> float:
    if damages:
        y = _text_block(ctx, ctx.label("damages"), damages, y)
    else:
        y += 4
    if notes:
        y = _text_block(ctx, ctx.label("notes"), notes, y)
    if ctx.damage_diagram is not None:
        engine = ctx.engine
        y = engine.place_image(
            ctx.config.damage_diagram,
            engine.left,
            y,
            *DIAGRAM_SIZE,
            tag="damage-diagram",
            reader=ctx.damage_diagram,
        ) + 6
    return y


def _city_line(customer) -> str:
    parts = [customer.city, customer.zip_code, customer.province, customer.country]
    return ", ".join(str(p).strip() for p in parts if p and str(p).strip())


# ---------------------------------------------------------------------------
# Builders
# ---------------------------------------------------------------------------

def build_header(ctx: SectionContext, rental: RentalContractInput, y: float) -> float:
    """Company letterhead band on the left, contract reference box on the right."""
    engine = ctx.engine
    company = ctx.config.company
    styles = ctx.styles
    left = engine.left

    engine.draw_rect(left, y, HEADER_BAND_WIDTH, HEADER_BAND_HEIGHT, fill_color=ctx.palette["primary"], radius=4)
    text_x = left + 12
    text_w = HEADER_BAND_WIDTH - 24
    ty = engine.place_text(company.name, text_x, y + 10, text_w, styles["header_company"]) + 2
    for line in (
        company.address,
        ctx.label("company_city_line", zip=company.zip, city=company.city, province=company.province),
        ctx.label("company_tax_line", cf=company.cf, vat=company.vat),
        ctx.label("company_contact_line", phone=company.phone, email=company.email),
    ):
        ty = engine.place_text(line, text_x, ty, text_w, styles["header_small"])

    box_x = left + HEADER_BAND_WIDTH + 10
    box_w = engine.right - box_x
    title_h = 18
    engine.draw_rect(box_x, y, box_w, title_h, fill_color=ctx.palette["primary_light"])
    engine.place_text(ctx.label("contract_title"), box_x, y + 4, box_w, styles["box_title"], align="center")

    by = y + title_h + 6
    for key, value in (
        ("date", format_datetime(rental.rental_date or rental.pickup_date)),
        ("number", rental.rental_number),
        ("booking_code", rental.booking_code),
    ):
        by = engine.place_label_value(ctx.label(key), value, box_x + 8, 42, by, width=box_w - 16)
    box_h = max(HEADER_BAND_HEIGHT, by + 6 - y)
    engine.draw_rect(box_x, y, box_w, box_h, stroke_color=ctx.palette["border"])

    return engine.merge_columns(y + HEADER_BAND_HEIGHT, ty, y + box_h) + SECTION_GAP


def build_customer_section(ctx: SectionContext, rental: RentalContractInput, y: float) -> float:
    c = rental.customer
    label = ctx.label
    y = _section_title(ctx, label("customer_section"), y)

    identity: List[Row] = [(label("customer_name"), c.full_name)]
    if c.birth_place or c.birth_date:
        birth = " - ".join(p for p in (c.birth_place, format_date(c.birth_date) if c.birth_date else None) if p)
        identity.append((label("birth"), birth))
    identity += [
        (label("address"), c.address),
        (label("city"), _city_line(c)),
        (label("fiscal_code"), c.fiscal_code),
    ]
    if c.vat_number:
        identity.append((label("vat_number"), c.vat_number))

    contact: List[Row] = [
        (label("phone"), c.phone),
        (label("email"), c.email),
        (label("license_number"), c.license_number),
        (label("license_issued_by"), c.license_issued_by),
        (label("license_issue_date"), format_date(c.license_issue_date)),
        (label("license_expiry_date"), format_date(c.license_expiry_date)),
    ]
    return _label_value_columns(ctx, [identity, contact], y, label_width=110, gap=14) + SECTION_GAP


def build_vehicle_section(ctx: SectionContext, rental: RentalContractInput, y: float) -> float:
    v = rental.vehicle
    label = ctx.label
    y = _section_title(ctx, label("vehicle_section"), y)
    columns = [
        [(label("license_plate"), v.license_plate)],
        [(label("category"), rental.category_name)],
        [(label("brand"), v.brand)],
        [(label("model"), v.model)],
    ]
    return _label_value_columns(ctx, columns, y, label_width=48, gap=10) + SECTION_GAP


def build_pricing_section(ctx: SectionContext, rental: RentalContractInput, y: float) -> float:
    """
    Itemised charges over two columns plus a totals column. Subtotal, total
    and amount due are derived from the rate and charges, not read from the
    record.
    """
    label = ctx.label
    pricing = compute_pricing(rental)
    charges = pricing.surcharges
    default_method = label("default_payment_method")
    y = _section_title(ctx, label("pricing_section"), y)

    rates = [
        (label("daily_rate"), format_currency(pricing.daily_rate)),
        (label("total_days"), str(pricing.total_days)),
        (label("subtotal"), format_currency(pricing.subtotal)),
        (label("delivery_cost"), format_currency(charges["delivery_cost"])),
        (label("fuel_charge"), format_currency(charges["fuel_charge"])),
    ]
    extras = [
        (label("after_hours_charge"), format_currency(charges["after_hours_charge"])),
        (label("extras_charge"), format_currency(charges["extras_charge"])),
        (label("extra_km_charge"), format_currency(charges["extra_km_charge"])),
        (label("franchise_charge"), format_currency(charges["franchise_charge"])),
        (label("discount"), format_currency(pricing.discount)),
    ]
    totals = [
        (label("total_amount"), format_currency(pricing.total_amount)),
        (label("amount_paid"), format_currency(pricing.amount_paid)),
        (label("amount_due"), format_currency(pricing.amount_due)),
        (label("payment_method"), rental.payment_method or default_method),
        (label("deposit_amount"), format_currency(rental.deposit_amount)),
        (label("deposit_method"), rental.deposit_method or default_method),
    ]
    return _label_value_columns(
        ctx, [rates, extras, totals], y, label_width=96, gap=12, value_align="right"
    ) + SECTION_GAP


def build_franchise_section(ctx: SectionContext, rental: RentalContractInput, y: float) -> float:
    label = ctx.label
    y = _section_title(ctx, label("franchise_section"), y)
    columns = [
        [(label("franchise_theft"), format_currency(rental.franchise_theft))],
        [(label("franchise_damage"), format_currency(rental.franchise_damage))],
        [(label("franchise_rca"), format_currency(rental.franchise_rca))],
    ]
    return _label_value_columns(ctx, columns, y, label_width=104, gap=8) + SECTION_GAP


def build_services_section(ctx: SectionContext, rental: RentalContractInput, y: float) -> float:
    engine = ctx.engine
    y = _section_title(ctx, ctx.label("services_section"), y)
    km = format_km_included(rental.km_included, ctx.label("unlimited_km"))
    y = engine.place_text(
        ctx.label("km_included_notice", km=km), engine.left, y, engine.content_width, ctx.styles["value"]
    )
    return y + 6 + SECTION_GAP


def build_pickup_section(ctx: SectionContext, rental: RentalContractInput, y: float) -> float:
    label = ctx.label
    y = _section_title(ctx, label("pickup_section"), y)
    columns = [
        [
            (label("location"), rental.pickup_location),
            (label("date"), format_datetime(rental.pickup_date)),
        ],
        [
            (label("fuel_level"), format_percent(rental.pickup_fuel_level, missing="0%")),
            (label("pickup_km"), format_km(rental.pickup_km, missing="0")),
        ],
    ]
    y = _label_value_columns(ctx, columns, y, label_width=80, fractions=(0.6, 0.4))
    y = _damage_details(ctx, rental.pickup_damages, rental.pickup_notes, y)
    return y + SECTION_GAP


def build_return_section(ctx: SectionContext, rental: RentalContractInput, y: float) -> float:
    """
    Closed rentals show the recorded return values; open rentals show the
    expected return date and the km policy instead.
    """
    if rental.return_state is not None:
        return _build_actual_return(ctx, rental, y)
    return _build_expected_return(ctx, rental, y)


def _build_actual_return(ctx: SectionContext, rental: RentalContractInput, y: float) -> float:
    label = ctx.label
    state = rental.return_state
    y = _section_title(ctx, label("return_section"), y)
    columns = [
        [
            (label("location"), state.return_location or rental.pickup_location),
            (label("date"), format_datetime(state.return_date)),
        ],
        [
            (label("fuel_level"), format_percent(state.return_fuel_level)),
            (label("return_km"), format_km(state.return_km)),
        ],
    ]
    y = _label_value_columns(ctx, columns, y, label_width=80, fractions=(0.6, 0.4))
    y = _damage_details(ctx, state.return_damages, None, y)
    return y + SECTION_GAP


def _build_expected_return(ctx: SectionContext, rental: RentalContractInput, y: float) -> float:
    engine = ctx.engine
    label = ctx.label
    y = _section_title(ctx, label("expected_return_section"), y)
    columns = [
        [
            (label("location"), rental.pickup_location),
            (label("date"), format_datetime(rental.expected_return_date)),
        ],
        [(label("km_included"), format_km_included(rental.km_included, label("unlimited_km")))],
    ]
    y = _label_value_columns(ctx, columns, y, label_width=80, fractions=(0.6, 0.4)) + 6
    y = engine.place_text(
        label("expected_return_notice"), engine.left, y, engine.content_width, ctx.styles["small"], align="justify"
    )
    return y + SECTION_GAP


def build_signature(ctx: SectionContext, rental: RentalContractInput, y: float) -> float:
    return ctx.engine.draw_signature_line(ctx.label("signature"), y) + SECTION_GAP


def build_terms_section(ctx: SectionContext, rental: RentalContractInput, y: float) -> float:
    """General conditions: intro, numbered articles, consent block and attestation."""
    engine = ctx.engine
    terms = ctx.config.terms
    styles = ctx.styles
    small, label_style = styles["small"], styles["label"]
    left, width = engine.left, engine.content_width

    title_style = styles["terms_title"]
    y = engine.place_text(terms.title, left, y + title_style.space_before, width, title_style, align="center")
    y += title_style.space_after
    y = engine.place_text(terms.intro, left, y, width, small, align="justify") + 8

    for article in terms.articles:
        y += 6
        y = engine.ensure_space(label_style.line_height + 2 + 2 * small.line_height, y)
        y = engine.place_text(article.title, left, y, width, label_style) + 2
        y = engine.place_text(article.body, left, y, width, small, align="justify") + 6

    y = engine.place_text(terms.consent_clause, left, y + 6, width, small, align="justify") + 4

    options_width = 120
    text_x = left + options_width + 8
    text_width = width - options_width - 8
    options_height = len(terms.consent_options) * (label_style.line_height + 6)
    y = engine.ensure_space(
        max(options_height, engine.measure_text(terms.marketing_consent, text_width, small)), y + 4
    )
    options_y = y
    for i, option in enumerate(terms.consent_options):
        if i:
            options_y += 6
        options_y = engine.place_text(option, left, options_y, options_width, label_style)
    text_y = engine.place_text(terms.marketing_consent, text_x, y, text_width, small, align="justify")
    y = engine.merge_columns(options_y, text_y) + 8

    y = engine.place_text(terms.attestation, left, y + 6, width, small, align="justify")
    return y + 8


def photo_rows(photos: Sequence[PhotoEntry]) -> List[List[PhotoEntry]]:
    """Pair photos up for the two-per-row gallery grid."""
    return [list(photos[i:i + 2]) for i in range(0, len(photos), 2)]


def build_photo_gallery(
    ctx: SectionContext,
    title: str,
    photos: Sequence[PhotoEntry],
    y: float,
    category: str,
) -> float:
    """
    Two photos per row with their capture date underneath. A row that does
    not fit in the remaining space moves to a new page. Emits nothing for an
    empty photo list.
    """
    if not photos:
        return y
    engine = ctx.engine
    title_style = ctx.styles["terms_title"]
    caption_style = ctx.styles["tiny"]

    y = engine.place_text(title, engine.left, y + title_style.space_before, engine.content_width, title_style, align="center")
    y += title_style.space_after

    row_height = PHOTO_ROW_MARGIN + PHOTO_HEIGHT + 4 + caption_style.line_height + PHOTO_ROW_MARGIN
    for row in photo_rows(photos):
        y = engine.ensure_space(row_height, y)
        x = engine.left
        for photo in row:
            _photo_cell(ctx, photo, x, y + PHOTO_ROW_MARGIN, category)
            x += PHOTO_WIDTH + PHOTO_GAP
        y += row_height
    return y


def _photo_cell(ctx: SectionContext, photo: PhotoEntry, x: float, y: float, category: str) -> None:
    engine = ctx.engine
    tiny = ctx.styles["tiny"]
    tag = f"photo:{category}"
    reader = engine.load_image(photo.file_path) if photo.file_path else None
    if reader is not None:
        width, height = engine.fit_size(reader.getSize(), PHOTO_WIDTH, PHOTO_HEIGHT)
        engine.add(ImageBlock(reader, x + (PHOTO_WIDTH - width) / 2, y, width, height, source=photo.file_path, tag=tag))
    else:
        engine.draw_rect(x, y, PHOTO_WIDTH, PHOTO_HEIGHT, stroke_color=ctx.palette["border"])
        engine.place_text(ctx.label("image_unavailable"), x, y + 60, PHOTO_WIDTH, tiny, align="center", tag=f"{tag}:placeholder")

    caption = ctx.label("photo_caption", date=format_datetime(photo.uploaded_at))
    engine.place_text(caption, x, y + PHOTO_HEIGHT + 4, PHOTO_WIDTH, tiny, align="center", tag=f"{tag}:caption")


CONTRACT_SECTIONS = (
    build_header,
    build_customer_section,
    build_vehicle_section,
    build_pricing_section,
    build_franchise_section,
    build_services_section,
    build_pickup_section,
    build_return_section,
    build_signature,
)


__all__ = [
    "SectionContext",
    "CONTRACT_SECTIONS",
    "build_header",
    "build_customer_section",
    "build_vehicle_section",
    "build_pricing_section",
    "build_franchise_section",
    "build_services_section",
    "build_pickup_section",
    "build_return_section",
    "build_signature",
    "build_terms_section",
    "build_photo_gallery",
    "photo_rows",
]
