import logging
import re
from pathlib import Path

from pypdf import PdfWriter

from edubase_export.errors import ExportError

logger = logging.getLogger(__name__)

PAGE_RX = re.compile(r"^page(\d+)\.pdf$")


def sorted_page_files(pages_dir) -> list:
    """page<N>.pdf files in numeric page order (page2 before page10)."""
    found = []
    for p in Path(pages_dir).iterdir():
        m = PAGE_RX.match(p.name)
        if m:
            found.append((int(m.group(1)), p))
    return [p for _, p in sorted(found)]


def merge_pages(pages_dir, out_path=None) -> Path:
    pages_dir = Path(pages_dir)
    out_path = Path(out_path) if out_path else pages_dir / "merged.pdf"
    files = sorted_page_files(pages_dir)
    if not files:
        raise ExportError(f"no page PDFs found in {pages_dir}")

    writer = PdfWriter()
    for f in files:
        writer.append(str(f))
    with open(out_path, "wb") as fh:
        writer.write(fh)
    writer.close()
    logger.info("merged %d page files into %s", len(files), out_path)
    return out_path
