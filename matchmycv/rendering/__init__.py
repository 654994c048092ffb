# matchmycv/rendering/__init__.py
from .layout import Block, Layout, PageGeometry, build_layout
from .pagination import Page, page_breaks, paginate, paginate_layout
from .docx_renderer import DOCX_MIME, render_docx
from .html_renderer import render_html
from .pdf_renderer import PDFRenderError, render_pdf
