"""
Shared fixtures. Run with: pytest services/api/tests -v
"""
import os
import sys

sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

# The app must never reach the network or a real database file from tests
os.environ["DB_URL"] = "sqlite://"
os.environ["STRUCTURAL_FLOOR_TEMPLATE_URL"] = ""
os.environ["UNDERLAYMENT_TEMPLATE_URL"] = ""
os.environ["LOGO_URL"] = ""
os.environ["LOGO_WHITE_URL"] = ""

import base64
import io

import pytest
from fpdf import FPDF
from pypdf import PdfWriter
from pypdf.generic import (
    ArrayObject,
    DecodedStreamObject,
    DictionaryObject,
    FloatObject,
    NameObject,
    TextStringObject,
)

from settings import Settings


def make_pdf(pages: int = 1, label: str = "Sample") -> bytes:
    """Uncompressed multi-page PDF, comfortably above the 1 KB upload minimum."""
    pdf = FPDF(unit="pt", format="Letter")
    pdf.set_compression(False)
    pdf.set_font("Helvetica", size=12)
    for n in range(1, pages + 1):
        pdf.add_page()
        for line in range(20):
            pdf.text(72, 100 + line * 20, f"{label} page {n} line {line + 1}")
    return bytes(pdf.output())


CHECKED_APPEARANCE = b"0 0 1 rg 2 2 16 16 re f"
UNCHECKED_APPEARANCE = b"0 G 0.5 0.5 19 19 re S"


def _appearance(writer: PdfWriter, data: bytes):
    stream = DecodedStreamObject()
    stream.update({
        NameObject("/Type"): NameObject("/XObject"),
        NameObject("/Subtype"): NameObject("/Form"),
        NameObject("/BBox"): ArrayObject([FloatObject(0), FloatObject(0), FloatObject(20), FloatObject(20)]),
    })
    stream.set_data(data)
    return writer._add_object(stream)


def make_fillable_template(field_names, checkbox_names=()) -> bytes:
    """
    One Letter page with a text field per name and an AcroForm using Helvetica.
    Checkbox fields get /Yes and /Off appearances and start unchecked.
    """
    writer = PdfWriter()
    page = writer.add_blank_page(612, 792)

    font = writer._add_object(DictionaryObject({
        NameObject("/Type"): NameObject("/Font"),
        NameObject("/Subtype"): NameObject("/Type1"),
        NameObject("/BaseFont"): NameObject("/Helvetica"),
        NameObject("/Encoding"): NameObject("/WinAnsiEncoding"),
    }))

    fields = ArrayObject()
    for i, name in enumerate(field_names):
        top = 720 - 30 * i
        widget = writer._add_object(DictionaryObject({
            NameObject("/Type"): NameObject("/Annot"),
            NameObject("/Subtype"): NameObject("/Widget"),
            NameObject("/FT"): NameObject("/Tx"),
            NameObject("/T"): TextStringObject(name),
            NameObject("/V"): TextStringObject(""),
            NameObject("/DA"): TextStringObject("/Helv 10 Tf 0 g"),
            NameObject("/Rect"): ArrayObject(
                [FloatObject(200), FloatObject(top - 20), FloatObject(500), FloatObject(top)]
            ),
        }))
        fields.append(widget)

    for i, name in enumerate(checkbox_names):
        top = 300 - 30 * i
        widget = writer._add_object(DictionaryObject({
            NameObject("/Type"): NameObject("/Annot"),
            NameObject("/Subtype"): NameObject("/Widget"),
            NameObject("/FT"): NameObject("/Btn"),
            NameObject("/T"): TextStringObject(name),
            NameObject("/V"): NameObject("/Off"),
            NameObject("/AS"): NameObject("/Off"),
            NameObject("/Rect"): ArrayObject(
                [FloatObject(100), FloatObject(top - 20), FloatObject(120), FloatObject(top)]
            ),
            NameObject("/AP"): DictionaryObject({
                NameObject("/N"): DictionaryObject({
                    NameObject("/Yes"): _appearance(writer, CHECKED_APPEARANCE),
                    NameObject("/Off"): _appearance(writer, UNCHECKED_APPEARANCE),
                }),
            }),
        }))
        fields.append(widget)

    page[NameObject("/Annots")] = ArrayObject(list(fields))
    writer._root_object[NameObject("/AcroForm")] = DictionaryObject({
        NameObject("/Fields"): fields,
        NameObject("/DA"): TextStringObject("/Helv 10 Tf 0 g"),
        NameObject("/DR"): DictionaryObject({
            NameObject("/Font"): DictionaryObject({NameObject("/Helv"): font}),
        }),
    })

    out = io.BytesIO()
    writer.write(out)
    return out.getvalue()


def b64(content: bytes) -> str:
    return base64.b64encode(content).decode("ascii")


@pytest.fixture
def offline_settings():
    """Settings with no template, no logos and a fake document host."""
    return Settings(
        db_url="sqlite://",
        structural_floor_template_url="",
        underlayment_template_url="",
        logo_url="",
        logo_white_url="",
        document_base_url="https://docs.example.test/public/",
    )


@pytest.fixture
def sample_pdf():
    return make_pdf(pages=2, label="Sample")
