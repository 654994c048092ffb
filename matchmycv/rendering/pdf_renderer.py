# matchmycv/rendering/pdf_renderer.py
from __future__ import annotations
import logging, os, shutil, subprocess, tempfile

from .docx_renderer import render_docx
from .html_renderer import render_html
from .layout import Layout

logger = logging.getLogger(__name__)

PDF_FAILED_MESSAGE = "PDF export failed. Please export as DOCX while we fix this."

PDF_CSS_OVERRIDES = """
* { box-shadow: none !important; }
html, body { background: white !important; }
.section_title, .entry_title { page-break-after: avoid; }
p { orphans: 2; widows: 2; }
"""


class PDFRenderError(Exception):
    pass


def soffice_binary() -> str | None:
    return shutil.which("soffice") or shutil.which("libreoffice")


def convert_docx_to_pdf(docx_bytes: bytes, timeout: int = 60) -> bytes:
    binary = soffice_binary()
    if not binary:
        raise PDFRenderError("LibreOffice is not installed")
    with tempfile.TemporaryDirectory(prefix="matchmycv-") as tmp:
        src = os.path.join(tmp, "cv.docx")
        with open(src, "wb") as f:
            f.write(docx_bytes)
        proc = subprocess.run(
            [binary, "--headless", "--convert-to", "pdf", "--outdir", tmp, src],
            capture_output=True, timeout=timeout, check=False,
        )
        out = os.path.join(tmp, "cv.pdf")
        if proc.returncode != 0 or not os.path.exists(out):
            raise PDFRenderError(f"LibreOffice conversion failed: {proc.stderr.decode(errors='ignore')[:300]}")
        with open(out, "rb") as f:
            return f.read()


def html_to_pdf(html: str, base_url: str | None = None) -> bytes:
    # imported here so a missing Pango only breaks PDF export, not app startup
    from weasyprint import HTML, CSS
    return HTML(string=html, base_url=base_url).write_pdf(stylesheets=[CSS(string=PDF_CSS_OVERRIDES)])


def render_pdf(layout: Layout, engine: str = "auto", timeout: int = 60) -> bytes:
    """LibreOffice conversion of the DOCX when available, WeasyPrint otherwise.

    "libreoffice" only changes the preference; a missing or failing
    soffice still falls back to WeasyPrint.
    """
    if engine in ("auto", "libreoffice") and soffice_binary():
        try:
            return convert_docx_to_pdf(render_docx(layout), timeout=timeout)
        except (PDFRenderError, OSError, subprocess.SubprocessError) as e:
            logger.warning("LibreOffice PDF conversion failed, falling back to WeasyPrint: %s", e)

    try:
        return html_to_pdf(render_html(layout, for_pdf=True))
    except Exception:
        logger.exception("WeasyPrint PDF render failed")

    raise PDFRenderError(PDF_FAILED_MESSAGE)
