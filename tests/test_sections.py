import math

import pytest

from contract_builder.layout import ImageBlock, LayoutEngine
from contract_builder.models import PhotoEntry, RentalContractInput
from contract_builder.pipelines import ContractGenerator
from contract_builder.renderers import sections


def _tagged(engine, tag):
    return [b for b in engine.text_blocks() if b.tag == tag]


def test_open_rental_shows_expected_return(section_ctx, rental_data):
    rental = RentalContractInput.from_dict(rental_data)
    sections.build_return_section(section_ctx, rental, section_ctx.engine.top)
    text = section_ctx.engine.all_text()

    assert "Rientro Previsto" in text
    assert "04/03/2024, 10:00" in text
    assert "Illimitati" in text
    assert "Il veicolo dovrà essere riconsegnato" in text
    assert "Informazioni Rientro" not in text


def test_closed_rental_shows_actual_return(section_ctx, closed_rental_data):
    rental = RentalContractInput.from_dict(closed_rental_data)
    assert rental.is_closed
    sections.build_return_section(section_ctx, rental, section_ctx.engine.top)
    text = section_ctx.engine.all_text()

    assert "Informazioni Rientro" in text
    assert "04/03/2024, 09:30" in text
    assert "12450" in text
    assert "50%" in text
    # no return location recorded: falls back to the pickup location
    assert "Siracusa Centro" in text
    assert "Rientro Previsto" not in text


def test_customer_vat_row_only_when_present(section_ctx, config, rental_data):
    rental = RentalContractInput.from_dict(rental_data)
    sections.build_customer_section(section_ctx, rental, section_ctx.engine.top)
    text = section_ctx.engine.all_text()
    assert "P. IVA:" not in text
    assert "Siracusa - 15/06/1985" in text
    assert "Siracusa, 96100, SR, ITALIA" in text

    rental_data["customer"]["vat_number"] = "01234567890"
    ctx = sections.SectionContext(
        engine=LayoutEngine(section_ctx.styles, config.palette),
        config=config,
    )
    sections.build_customer_section(ctx, RentalContractInput.from_dict(rental_data), ctx.engine.top)
    assert "P. IVA:" in ctx.engine.all_text()


def test_pricing_section_derives_totals(section_ctx, rental_data):
    rental_data["total_amount"] = 1
    rental = RentalContractInput.from_dict(rental_data)
    sections.build_pricing_section(section_ctx, rental, section_ctx.engine.top)
    text = section_ctx.engine.all_text()

    assert "€ 150.00" in text
    assert "€ 50.00" in text
    assert "Carta di credito" in text
    # deposit method missing
    assert "Contanti" in text


def test_pickup_section_defaults(section_ctx, rental_data):
    rental_data.pop("pickup_fuel_level")
    rental_data.pop("pickup_km")
    rental = RentalContractInput.from_dict(rental_data)
    sections.build_pickup_section(section_ctx, rental, section_ctx.engine.top)
    text = section_ctx.engine.all_text()

    assert "Livello Carburante:\n0%" in text
    assert "Km in uscita:\n0" in text
    assert "Graffio paraurti posteriore" in text


def test_damage_diagram_drawn_when_loaded(section_ctx, rental_data, make_png):
    diagram = make_png("diagram.png", size=(360, 280))
    section_ctx.config.damage_diagram = diagram
    section_ctx.damage_diagram = section_ctx.engine.load_image(diagram)
    sections.build_pickup_section(section_ctx, RentalContractInput.from_dict(rental_data), section_ctx.engine.top)

    images = [b for b in section_ctx.engine.pages[0] if isinstance(b, ImageBlock)]
    assert len(images) == 1
    assert images[0].tag == "damage-diagram"
    assert (images[0].width, images[0].height) == pytest.approx((180, 140))


@pytest.mark.parametrize("count", [1, 2, 3, 5])
def test_photo_rows_pairs_photos(count):
    photos = [PhotoEntry(file_path=None) for _ in range(count)]
    assert len(sections.photo_rows(photos)) == math.ceil(count / 2)


def test_gallery_tiles_two_per_row(section_ctx, make_png):
    photos = [
        PhotoEntry(make_png(f"p{i}.png"), uploaded_at="2024-03-01T10:05:00")
        for i in range(3)
    ]
    sections.build_photo_gallery(section_ctx, "Foto veicolo in uscita", photos, section_ctx.engine.top, "pickup")
    engine = section_ctx.engine

    images = [b for b in engine.pages[0] if isinstance(b, ImageBlock)]
    assert len(images) == 3
    assert len({b.y for b in images}) == 2
    captions = _tagged(engine, "photo:pickup:caption")
    assert [c.text for c in captions] == ["Creata il 01/03/2024, 10:05"] * 3


def test_gallery_missing_photo_renders_placeholder(section_ctx, make_png, tmp_path):
    photos = [
        PhotoEntry(tmp_path / "gone.png"),
        PhotoEntry(make_png("ok.png"), uploaded_at="2024-03-04T09:00:00"),
        PhotoEntry(None),
    ]
    sections.build_photo_gallery(section_ctx, "Foto veicolo al rientro", photos, section_ctx.engine.top, "return")
    engine = section_ctx.engine

    assert len(_tagged(engine, "photo:return:placeholder")) == 2
    assert _tagged(engine, "photo:return:placeholder")[0].text == "Immagine non disponibile"
    assert len([b for b in engine.pages[0] if isinstance(b, ImageBlock)]) == 1
    captions = [c.text for c in _tagged(engine, "photo:return:caption")]
    assert captions == ["Creata il N/A", "Creata il 04/03/2024, 09:00", "Creata il N/A"]


def test_gallery_breaks_page_when_row_overflows(section_ctx, make_png):
    photo = make_png()
    photos = [PhotoEntry(photo) for _ in range(7)]
    sections.build_photo_gallery(section_ctx, "Foto", photos, section_ctx.engine.top, "pickup")
    engine = section_ctx.engine

    assert engine.page_number == 2
    images = [b for page in engine.pages for b in page if isinstance(b, ImageBlock)]
    assert len(images) == 7
    assert all(b.y + b.height <= engine.bottom for b in images)
    assert len([b for b in engine.pages[1] if isinstance(b, ImageBlock)]) == 1


def test_empty_gallery_emits_nothing(section_ctx):
    y = sections.build_photo_gallery(section_ctx, "Foto", [], 123, "pickup")
    assert y == 123
    assert section_ctx.engine.pages == [[]]


def test_document_order_and_pages(config, rental_data, make_png):
    generator = ContractGenerator(config)
    engine = generator.layout(rental_data)
    first_page = "\n".join(b.text for b in engine.text_blocks(0))

    assert first_page.index("BNC Energy Rent Car") < first_page.index("Informazioni Cliente")
    order = [
        "Informazioni Cliente",
        "Informazioni Veicolo",
        "Dettagli Tariffari",
        "Franchigie Assicurative",
        "Servizi & Extra",
        "Informazioni Uscita",
        "Rientro Previsto",
    ]
    text = engine.all_text()
    positions = [text.index(heading) for heading in order]
    assert positions == sorted(positions)
    assert "CONDIZIONI GENERALI DI NOLEGGIO" not in first_page
    assert len(_tagged(engine, "signature")) == 2
    assert "Foto veicolo" not in text

    terms_pages = engine.page_number
    rental_data["pickup_photos"] = [{"file_path": str(make_png()), "uploaded_at": "2024-03-01T10:00:00"}]
    rental_data["return_photos"] = [{"file_path": str(make_png("r.png"))}]
    engine = generator.layout(rental_data)

    assert engine.page_number == terms_pages + 2
    assert engine.text_blocks(terms_pages)[0].text == "Foto veicolo in uscita"
    assert engine.text_blocks(terms_pages + 1)[0].text == "Foto veicolo al rientro"


def test_terms_section_lists_every_article(section_ctx, rental_data):
    sections.build_terms_section(section_ctx, RentalContractInput.from_dict(rental_data), section_ctx.engine.top)
    text = section_ctx.engine.all_text()
    for article in section_ctx.config.terms.articles:
        assert article.title in text
    assert "[ X ] acconsente" in text


def _page_of(engine, text):
    for index, page in enumerate(engine.pages):
        if any(getattr(b, "text", None) == text for b in page):
            return index
    return None


def test_columns_stay_together_when_one_overflows_a_page(section_ctx, rental_data):
    rental_data["customer"]["address"] = "Via " + "lunghissima " * 2500
    rental = RentalContractInput.from_dict(rental_data)
    engine = section_ctx.engine
    y = sections.build_customer_section(section_ctx, rental, engine.top)

    start = _page_of(engine, "Cliente/Azienda:")
    assert _page_of(engine, "Telefono:") == start
    assert _page_of(engine, "Data Scadenza:") == start
    assert engine.page_number > start + 1
    # the section ends below the overflowing column, on the last page
    assert engine.current_page == engine.page_number - 1
    assert y > engine.top
