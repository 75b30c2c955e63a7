import fitz  # PyMuPDF
import io
import logging

logger = logging.getLogger(__name__)

MAX_PAGES = 10


def pdf_to_text(source) -> str:
    """
    Extract text from a project brief PDF.
    Accepts a file path, raw bytes, or a file-like object (FastAPI/Streamlit uploads).
    Returns "" when nothing can be read.
    """
    try:
        if isinstance(source, str):
            doc = fitz.open(source)
        else:
            file_bytes = source if isinstance(source, bytes) else source.read()
            doc = fitz.open(stream=io.BytesIO(file_bytes), filetype="pdf")

        text = "\n".join(page.get_text("text") for i, page in enumerate(doc) if i < MAX_PAGES)
        doc.close()
        return text.strip()

    except Exception as e:
        logger.warning(f"PDF extraction failed: {e}")
        return ""
