import re
from pathlib import Path

SVG_NS = "http://www.w3.org/2000/svg"
XLINK_NS = "http://www.w3.org/1999/xlink"
XML_DECLARATION = '<?xml version="1.0" standalone="no"?>\r\n'

HAS_SVG_NS = re.compile(r'^<svg[^>]+xmlns="http://www\.w3\.org/2000/svg"')
HAS_XLINK_NS = re.compile(r'^<svg[^>]+"http://www\.w3\.org/1999/xlink"')
SVG_OPEN = re.compile(r"^<svg")

HTML_TEMPLATE = """<html>
  <style>
    img {{
      background-image: url("{background}");
    }}
  </style>
  <img src="./{svg_name}" alt="" height="{height}" width="{width}" />
</html>
"""


def add_namespaces(source: str) -> str:
    """Make sure the root <svg> declares the SVG and xlink namespaces."""
    if not HAS_SVG_NS.match(source):
        source = SVG_OPEN.sub(f'<svg xmlns="{SVG_NS}"', source, count=1)
    if not HAS_XLINK_NS.match(source):
        source = SVG_OPEN.sub(f'<svg xmlns:xlink="{XLINK_NS}"', source, count=1)
    return source


def svg_document(source: str) -> str:
    return XML_DECLARATION + add_namespaces(source)


def svg_filename(page: int) -> str:
    return f"page-{page}.svg"


def html_filename(page: int) -> str:
    return f"page-{page}.html"


def html_wrapper(page: int, background_url, height=2721, width=1928) -> str:
    """HTML page showing the SVG layer on top of the page's background image."""
    background = (background_url or "").replace('"', "%22")
    return HTML_TEMPLATE.format(background=background, svg_name=svg_filename(page),
                                height=height, width=width)


def write_page_files(out_dir, page: int, svg_source: str, background_url,
                     height=2721, width=1928):
    out_dir = Path(out_dir)
    out_dir.mkdir(parents=True, exist_ok=True)
    svg_path = out_dir / svg_filename(page)
    html_path = out_dir / html_filename(page)
    svg_path.write_text(svg_document(svg_source), encoding="utf-8", newline="")
    html_path.write_text(html_wrapper(page, background_url, height, width), encoding="utf-8")
    return svg_path, html_path
