# tests/test_parsing.py
from io import BytesIO

import docx
import pytest

from resumepro.errors import DocumentParseError
from resumepro.parsing import TextLine, classify_sections, is_heading, parse_document, segment
from resumepro.parsing.extract import resolve_kind
from resumepro.parsing.headings import keyword_category, label_category
from resumepro.parsing.sections import CandidateSection, context_window


def make_pdf(lines):
    """Single-page PDF; lines are (x, y, size, font, text) with F1=Helvetica, F2=Helvetica-Bold."""
    content = "".join(
        f"BT /{font} {size} Tf {x} {y} Td ({text}) Tj ET\n" for x, y, size, font, text in lines
    ).encode("latin-1")
    objs = [
        b"<< /Type /Catalog /Pages 2 0 R >>",
        b"<< /Type /Pages /Kids [3 0 R] /Count 1 >>",
        b"<< /Type /Page /Parent 2 0 R /MediaBox [0 0 612 792] /Contents 4 0 R "
        b"/Resources << /Font << /F1 5 0 R /F2 6 0 R >> >> >>",
        b"<< /Length %d >>\nstream\n" % len(content) + content + b"\nendstream",
        b"<< /Type /Font /Subtype /Type1 /BaseFont /Helvetica >>",
        b"<< /Type /Font /Subtype /Type1 /BaseFont /Helvetica-Bold >>",
    ]
    out = bytearray(b"%PDF-1.4\n")
    offsets = []
    for i, body in enumerate(objs, 1):
        offsets.append(len(out))
        out += b"%d 0 obj\n" % i + body + b"\nendobj\n"
    xref = len(out)
    out += b"xref\n0 %d\n0000000000 65535 f \n" % (len(objs) + 1)
    for off in offsets:
        out += b"%010d 00000 n \n" % off
    out += b"trailer\n<< /Size %d /Root 1 0 R >>\nstartxref\n%d\n%%%%EOF\n" % (len(objs) + 1, xref)
    return bytes(out)


def make_docx():
    d = docx.Document()
    d.add_paragraph("John Smith")
    d.add_paragraph("john@example.com | 555 123 4567")
    d.add_heading("Professional Summary", level=1)
    d.add_paragraph("Backend engineer with ten years of experience.")
    d.add_heading("Work History", level=1)
    d.add_paragraph("Engineer, Acme  Jan 2019 – Present")
    d.add_paragraph("• Built billing APIs")
    p = d.add_paragraph()
    p.add_run("Volunteering").bold = True
    d.add_paragraph("Food bank driver")
    buf = BytesIO()
    d.save(buf)
    return buf.getvalue()


# ---------- heading detection ----------
@pytest.mark.parametrize("text", ["EXPERIENCE", "Skills", "Work History:", "TECHNICAL SKILLS", "PROJECTS"])
def test_headings_detected(text):
    assert is_heading(text)


@pytest.mark.parametrize("text", [
    "jane@example.com",
    "(555) 123-4567",
    "Built APIs for payments.",
    "ACME CORP 2019",
    "Responsible for leading a large team of engineers",
    "",
])
def test_non_headings(text):
    assert not is_heading(text)


def test_bold_short_line_is_heading():
    assert is_heading(TextLine(text="Leadership Roles", bold=True))
    assert not is_heading(TextLine(text="Leadership Roles"))


def test_larger_font_is_heading():
    assert is_heading(TextLine(text="Odd Title", font_size=14), body_font_size=10)
    assert not is_heading(TextLine(text="Odd Title", font_size=10.5), body_font_size=10)


def test_heading_style_wins():
    assert is_heading(TextLine(text="Things I Have Done Over The Years", style="Heading 2"))


def test_heading_style_does_not_admit_dated_lines():
    assert not is_heading(TextLine(text="Acme Corp 2019", style="Heading 2"))


def test_keyword_category():
    assert keyword_category("Work Experience") == ("Experience", 1.0)
    assert keyword_category("Relevant Work Experience & Projects") == ("Experience", 0.8)
    assert keyword_category("Hobbies") == ("Miscellaneous", 1.0)
    assert keyword_category("Stuff") == (None, 0.0)


def test_label_category():
    assert label_category("Contact Information") == "Header"
    assert label_category("Professional Summary") == "Summary"
    assert label_category("Certifications") == "Miscellaneous"
    assert label_category("Header") == "Header"
    assert label_category(None) == "Miscellaneous"


# ---------- segmentation / classification ----------
def _lines(*texts):
    return [TextLine(text=t) for t in texts]


def test_segment_leading_lines_form_header():
    cands = segment(_lines("JANE DOE", "jane@example.com", "SKILLS", "Python, SQL"))
    assert [c.heading for c in cands] == [None, "SKILLS"]
    assert cands[0].lines == ["JANE DOE", "jane@example.com"]


def test_keyword_sections_skip_classifier():
    calls = []

    def classifier(text, context):
        calls.append(text)
        return {"sectionType": "Skills", "confidence": 0.9}

    sections = classify_sections(segment(_lines("Jane", "SKILLS", "Python")), classifier)
    assert [s.category for s in sections] == ["Header", "Skills"]
    assert calls == []


def test_confident_label_accepted():
    cands = [CandidateSection(None, ["Jane"]), CandidateSection("Toolbox", ["Python, Go"])]
    sections = classify_sections(cands, lambda t, c: {"sectionType": "Technical Skills", "confidence": 0.75})
    assert sections[1].category == "Skills"
    assert sections[1].confidence == 0.75


def test_medium_confidence_needs_agreement_with_previous():
    cands = [
        CandidateSection(None, ["Jane"]),
        CandidateSection("EXPERIENCE", ["Engineer, Acme"]),
        CandidateSection("Earlier Roles", ["Intern, Beta"]),
        CandidateSection("Misc Notes", ["Some text"]),
    ]
    replies = {
        "Earlier Roles": {"sectionType": "Work Experience", "confidence": 0.6},
        "Misc Notes": {"sectionType": "Education", "confidence": 0.6},
    }
    sections = classify_sections(cands, lambda text, ctx: replies[text.splitlines()[0]])
    # agreeing label merges into Experience; disagreeing one falls back
    assert [s.category for s in sections] == ["Header", "Experience", "Miscellaneous"]
    assert "Earlier Roles" in sections[1].lines
    assert "Intern, Beta" in sections[1].lines


def test_low_confidence_falls_back():
    cands = [CandidateSection(None, ["Jane"]), CandidateSection("Toolbox", ["Python"])]
    sections = classify_sections(cands, lambda t, c: {"sectionType": "Skills", "confidence": 0.4})
    assert sections[1].category == "Miscellaneous"


def test_classifier_error_falls_back():
    def boom(text, context):
        raise RuntimeError("provider down")

    cands = [CandidateSection(None, ["Jane"]), CandidateSection("Toolbox", ["Python"])]
    sections = classify_sections(cands, boom)
    assert sections[1].category == "Miscellaneous"


def test_no_classifier_uses_keywords_only():
    cands = [CandidateSection(None, ["Jane"]), CandidateSection("Toolbox", ["Python"])]
    assert classify_sections(cands)[1].category == "Miscellaneous"


def test_context_window_is_bounded():
    cands = [
        CandidateSection("A", ["x" * 1000]),
        CandidateSection("B", ["middle"]),
        CandidateSection("C", ["y" * 1000]),
    ]
    ctx = context_window(cands, 1)
    assert "x" * 250 in ctx and "x" * 251 not in ctx
    assert "y" * 250 in ctx and "y" * 251 not in ctx
    assert "middle" not in ctx


def test_adjacent_same_category_merged():
    cands = [
        CandidateSection(None, ["Jane"]),
        CandidateSection("Projects", ["Thing one"]),
        CandidateSection("Awards", ["Prize"]),
    ]
    sections = classify_sections(cands)
    assert [s.category for s in sections] == ["Header", "Miscellaneous"]
    assert sections[1].heading == "Projects"
    assert sections[1].content == "Thing one\nAwards\nPrize"


# ---------- extraction ----------
def test_resolve_kind_prefers_mime_then_extension():
    assert resolve_kind("cv.bin", "application/pdf") == "pdf"
    assert resolve_kind("cv.docx", "application/octet-stream") == "docx"
    assert resolve_kind("cv.TXT", None) == "txt"
    with pytest.raises(DocumentParseError) as exc:
        resolve_kind("cv.png", "image/png")
    assert "Unsupported file type: image/png" in str(exc.value)


def test_parse_txt_document():
    raw = b"Jane Doe\njane@example.com | 5551234567\n\nSKILLS\nPython, SQL, python\n\nEDUCATION\nBSc Maths 2012 - 2015\n"
    result = parse_document("cv.txt", "text/plain", raw)
    cats = [s["category"] for s in result["sections"]]
    assert cats == ["Header", "Skills", "Education"]
    assert result["sections"][0]["content"] == "Jane Doe\njane@example.com\n(555) 123-4567"
    assert result["sections"][1]["content"] == "Python, SQL"
    assert result["sections"][2]["content"] == "BSc Maths 2012 - 2015"
    assert result["metadata"] == {"totalSections": 3, "sectionsList": cats, "source": "txt"}


def test_parse_docx_document():
    result = parse_document("cv.docx", None, make_docx())
    by_cat = {s["category"]: s for s in result["sections"]}
    assert list(by_cat) == ["Header", "Summary", "Experience", "Miscellaneous"]
    assert "(555) 123-4567" in by_cat["Header"]["content"]
    assert "Jan 2019 - Present" in by_cat["Experience"]["content"]
    assert "- Built billing APIs" in by_cat["Experience"]["content"]
    assert by_cat["Miscellaneous"]["heading"] == "Volunteering"


def test_parse_pdf_document():
    raw = make_pdf([
        (72, 720, 16, "F2", "JANE DOE"),
        (72, 700, 10, "F1", "jane@example.com | 555-123-4567"),
        (72, 670, 12, "F2", "EXPERIENCE"),
        (72, 655, 10, "F1", "Acme Corp Jan 2020 - Present"),
        (72, 610, 12, "F2", "SKILLS"),
        (72, 595, 10, "F1", "Python, SQL, Python"),
    ])
    result = parse_document("cv.pdf", "application/pdf", raw)
    cats = [s["category"] for s in result["sections"]]
    assert cats == ["Header", "Experience", "Skills"]
    assert result["sections"][2]["content"] == "Python, SQL"
    assert "(555) 123-4567" in result["sections"][0]["content"]
    assert result["metadata"]["source"] == "pdf"


def test_pdf_classifier_is_consulted_for_unknown_headings():
    raw = make_pdf([
        (72, 720, 12, "F1", "Jane Doe"),
        (72, 690, 12, "F2", "TOOLBOX"),
        (72, 675, 10, "F1", "Python and Go"),
    ])
    seen = []

    def classifier(text, context):
        seen.append(text)
        return {"sectionType": "Skills", "confidence": 0.95}

    result = parse_document("cv.pdf", "application/pdf", raw, classifier=classifier)
    assert [s["category"] for s in result["sections"]] == ["Header", "Skills"]
    assert seen and seen[0].startswith("TOOLBOX")


def test_doc_failure_message():
    with pytest.raises(DocumentParseError) as exc:
        parse_document("old.doc", "application/msword", b"\xd0\xcf\x11\xe0 not really a doc")
    assert "converting it to .docx or PDF" in str(exc.value)


def test_empty_text_document_rejected():
    with pytest.raises(DocumentParseError):
        parse_document("cv.txt", "text/plain", b"   \n\n")
