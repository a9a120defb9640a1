"""
Extractor dispatch tests
"""
import asyncio
import sys

import httpx
import pytest
from docx import Document
from pypdf import PdfWriter

from app.core.errors import CollaboratorError, CollaboratorTimeout
from app.services.collaborators import OcrClient, VideoCaptioner
from app.services.extractors import (
    DOCX_TYPE,
    OCR_FAILED,
    VIDEO_FAILED,
    ExtractorDispatch,
    ExtractorKind,
    resolve_extractor,
)
from app.services.file_storage import UploadedFile

from conftest import OCR_URL


def text_pdf(pages):
    """Smallest PDF with one Helvetica text line per page."""
    objects = [
        "<< /Type /Catalog /Pages 2 0 R >>",
        None,
        "<< /Type /Font /Subtype /Type1 /BaseFont /Helvetica >>",
    ]
    kids = []
    for text in pages:
        stream = f"BT /F1 12 Tf 20 100 Td ({text}) Tj ET"
        objects.append(f"<< /Length {len(stream)} >>\nstream\n{stream}\nendstream")
        contents = len(objects)
        objects.append(
            "<< /Type /Page /Parent 2 0 R /MediaBox [0 0 300 200] "
            f"/Resources << /Font << /F1 3 0 R >> >> /Contents {contents} 0 R >>"
        )
        kids.append(f"{len(objects)} 0 R")
    objects[1] = f"<< /Type /Pages /Kids [{' '.join(kids)}] /Count {len(kids)} >>"

    out = b"%PDF-1.4\n"
    offsets = []
    for number, body in enumerate(objects, 1):
        offsets.append(len(out))
        out += f"{number} 0 obj\n{body}\nendobj\n".encode()
    xref = len(out)
    out += f"xref\n0 {len(objects) + 1}\n0000000000 65535 f \n".encode()
    for offset in offsets:
        out += f"{offset:010d} 00000 n \n".encode()
    out += f"trailer\n<< /Size {len(objects) + 1} /Root 1 0 R >>\nstartxref\n{xref}\n%%EOF\n".encode()
    return out


def make_file(path, media_type, original_name=None):
    return UploadedFile(
        path=path,
        filename=path.name,
        original_name=original_name or path.name,
        media_type=media_type,
        size=path.stat().st_size,
    )


class CountingOcr:
    def __init__(self, text="ocr text"):
        self.calls = 0
        self.text = text

    async def read_text(self, path, media_type=None):
        self.calls += 1
        return self.text


class CountingCaptioner:
    def __init__(self, text="caption text"):
        self.calls = 0
        self.text = text

    async def caption(self, path):
        self.calls += 1
        return self.text


class TestResolveExtractor:
    @pytest.mark.parametrize(
        "media_type, kind",
        [
            ("application/pdf", ExtractorKind.PDF),
            (DOCX_TYPE, ExtractorKind.DOCX),
            ("text/plain", ExtractorKind.TEXT),
            ("image/png", ExtractorKind.IMAGE),
            ("image/jpeg", ExtractorKind.IMAGE),
            ("video/mp4", ExtractorKind.VIDEO),
        ],
    )
    def test_known_types(self, media_type, kind):
        assert resolve_extractor(media_type) is kind

    @pytest.mark.parametrize("media_type", ["application/zip", "audio/mpeg", "text/csv", "", None])
    def test_unknown_types(self, media_type):
        assert resolve_extractor(media_type) is None


class TestDocumentExtractors:
    def test_plain_text_is_read_verbatim(self, tmp_path):
        path = tmp_path / "notes.txt"
        path.write_text("Grüße aus Köln\nsecond line\n", encoding="utf-8")
        dispatch = ExtractorDispatch(CountingOcr(), CountingCaptioner())

        text = asyncio.run(dispatch.extract(make_file(path, "text/plain")))

        assert text == "Grüße aus Köln\nsecond line\n"

    def test_docx_paragraph_text(self, tmp_path):
        path = tmp_path / "report.docx"
        document = Document()
        document.add_heading("Quarterly report", level=1)
        document.add_paragraph("Revenue went up.")
        document.save(str(path))
        dispatch = ExtractorDispatch(CountingOcr(), CountingCaptioner())

        text = asyncio.run(dispatch.extract(make_file(path, DOCX_TYPE)))

        assert "Quarterly report" in text
        assert "Revenue went up." in text

    def test_blank_pdf_gives_empty_text(self, tmp_path):
        path = tmp_path / "blank.pdf"
        writer = PdfWriter()
        writer.add_blank_page(width=200, height=200)
        with open(path, "wb") as fh:
            writer.write(fh)
        dispatch = ExtractorDispatch(CountingOcr(), CountingCaptioner())

        text = asyncio.run(dispatch.extract(make_file(path, "application/pdf")))

        assert text.strip() == ""

    def test_pdf_page_text_is_joined(self, tmp_path):
        path = tmp_path / "minutes.pdf"
        path.write_bytes(text_pdf(["Board meeting minutes", "Budget approved"]))
        dispatch = ExtractorDispatch(CountingOcr(), CountingCaptioner())

        text = asyncio.run(dispatch.extract(make_file(path, "application/pdf")))

        assert "Board meeting minutes" in text
        assert "Budget approved" in text
        assert text.index("Board meeting minutes") < text.index("Budget approved")
        assert "\n" in text

    def test_broken_pdf_raises(self, tmp_path):
        path = tmp_path / "broken.pdf"
        path.write_bytes(b"this is not a pdf at all")
        dispatch = ExtractorDispatch(CountingOcr(), CountingCaptioner())

        with pytest.raises(Exception):
            asyncio.run(dispatch.extract(make_file(path, "application/pdf")))

    def test_invalid_utf8_text_raises(self, tmp_path):
        path = tmp_path / "latin1.txt"
        path.write_bytes("caf\xe9".encode("latin-1"))
        dispatch = ExtractorDispatch(CountingOcr(), CountingCaptioner())

        with pytest.raises(UnicodeDecodeError):
            asyncio.run(dispatch.extract(make_file(path, "text/plain")))


class TestSinglePath:
    def test_image_only_calls_ocr(self, tmp_path):
        path = tmp_path / "scan.png"
        path.write_bytes(b"\x89PNG fake")
        ocr, captioner = CountingOcr(), CountingCaptioner()

        text = asyncio.run(ExtractorDispatch(ocr, captioner).extract(make_file(path, "image/png")))

        assert text == "ocr text"
        assert (ocr.calls, captioner.calls) == (1, 0)

    def test_video_only_calls_captioner(self, tmp_path):
        path = tmp_path / "clip.mp4"
        path.write_bytes(b"fake video")
        ocr, captioner = CountingOcr(), CountingCaptioner()

        text = asyncio.run(ExtractorDispatch(ocr, captioner).extract(make_file(path, "video/mp4")))

        assert text == "caption text"
        assert (ocr.calls, captioner.calls) == (0, 1)

    def test_unknown_type_calls_nothing(self, tmp_path):
        path = tmp_path / "archive.zip"
        path.write_bytes(b"PK")
        ocr, captioner = CountingOcr(), CountingCaptioner()

        text = asyncio.run(ExtractorDispatch(ocr, captioner).extract(make_file(path, "application/zip")))

        assert text is None
        assert (ocr.calls, captioner.calls) == (0, 0)


class TestOcr:
    def test_ocr_sends_image_field(self, tmp_path, extractors, fake_services):
        path = tmp_path / "receipt.jpg"
        path.write_bytes(b"jpeg bytes")

        text = asyncio.run(extractors.extract(make_file(path, "image/jpeg")))

        assert text == fake_services.ocr_text
        request = fake_services.calls_to(OCR_URL)[0]
        assert b'name="image"' in request.content
        assert b"jpeg bytes" in request.content

    def test_ocr_failure_degrades_to_marker(self, tmp_path, extractors, fake_services):
        fake_services.ocr_status = 503
        path = tmp_path / "receipt.jpg"
        path.write_bytes(b"jpeg bytes")

        text = asyncio.run(extractors.extract(make_file(path, "image/jpeg")))

        assert text == OCR_FAILED

    def test_ocr_timeout_is_its_own_error(self, tmp_path):
        def handler(request):
            raise httpx.ReadTimeout("too slow", request=request)

        client = OcrClient(OCR_URL, timeout=0.5, transport=httpx.MockTransport(handler))
        path = tmp_path / "receipt.jpg"
        path.write_bytes(b"jpeg bytes")

        with pytest.raises(CollaboratorTimeout) as exc:
            asyncio.run(client.read_text(path, "image/jpeg"))
        assert exc.value.timeout == 0.5

    def test_ocr_timeout_degrades_to_marker(self, tmp_path):
        def handler(request):
            raise httpx.ConnectTimeout("too slow", request=request)

        dispatch = ExtractorDispatch(
            OcrClient(OCR_URL, timeout=0.5, transport=httpx.MockTransport(handler)),
            CountingCaptioner(),
        )
        path = tmp_path / "receipt.jpg"
        path.write_bytes(b"jpeg bytes")

        assert asyncio.run(dispatch.extract(make_file(path, "image/jpeg"))) == OCR_FAILED


class TestVideoCaptioner:
    def test_stdout_is_the_transcript(self, tmp_path, extractors):
        path = tmp_path / "clip.mp4"
        path.write_bytes(b"fake video")

        text = asyncio.run(extractors.extract(make_file(path, "video/mp4")))

        assert text == f"caption of {path}"

    def test_non_zero_exit_carries_stderr(self, tmp_path):
        captioner = VideoCaptioner(
            [sys.executable, "-c", "import sys; sys.stderr.write('no audio track'); sys.exit(3)"],
            timeout=30,
        )

        with pytest.raises(CollaboratorError, match="no audio track"):
            asyncio.run(captioner.caption(tmp_path / "clip.mp4"))

    def test_non_zero_exit_degrades_to_marker(self, tmp_path):
        captioner = VideoCaptioner([sys.executable, "-c", "import sys; sys.exit(1)"], timeout=30)
        dispatch = ExtractorDispatch(CountingOcr(), captioner)
        path = tmp_path / "clip.mp4"
        path.write_bytes(b"fake video")

        assert asyncio.run(dispatch.extract(make_file(path, "video/mp4"))) == VIDEO_FAILED

    def test_slow_process_times_out(self, tmp_path):
        captioner = VideoCaptioner([sys.executable, "-c", "import time; time.sleep(30)"], timeout=0.5)

        with pytest.raises(CollaboratorTimeout):
            asyncio.run(captioner.caption(tmp_path / "clip.mp4"))

    def test_missing_command_is_a_collaborator_error(self, tmp_path):
        captioner = VideoCaptioner(["/nonexistent/caption-binary"], timeout=5)

        with pytest.raises(CollaboratorError):
            asyncio.run(captioner.caption(tmp_path / "clip.mp4"))
