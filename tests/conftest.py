"""Shared fixtures: small EPUB files built on the fly."""

import zipfile

import pytest

CONTAINER = """<?xml version="1.0" encoding="UTF-8"?>
<container version="1.0" xmlns="urn:oasis:names:tc:opendocument:xmlns:container">
  <rootfiles>
    <rootfile full-path="OEBPS/content.opf" media-type="application/oebps-package+xml"/>
  </rootfiles>
</container>
"""

XHTML = """<?xml version="1.0" encoding="utf-8"?>
<!DOCTYPE html>
<html xmlns="http://www.w3.org/1999/xhtml">
<head><title>ignored</title><style>p {{ margin: 0 }}</style></head>
<body>
{body}
</body>
</html>
"""


def build_epub(path, chapters, title="Test Book", creator="Jane Austen",
               toc="nav", version="3.0"):
    """Write an EPUB with one spine entry per (toc label, body markup) pair.

    toc is "nav" for an EPUB 3 navigation document, "ncx" for an EPUB 2
    NCX file, or None for no table of contents. A None label leaves the
    chapter out of the table of contents.
    """
    manifest = []
    spine = []
    for i, _ in enumerate(chapters, start=1):
        manifest.append(
            f'<item id="ch{i}" href="text/ch{i}.xhtml" media-type="application/xhtml+xml"/>')
        spine.append(f'<itemref idref="ch{i}"/>')

    nav_links = "".join(
        f'<li><a href="text/ch{i}.xhtml#start">{label}</a></li>'
        for i, (label, _) in enumerate(chapters, start=1) if label)
    nav_points = "".join(
        f'<navPoint id="np{i}"><navLabel><text>{label}</text></navLabel>'
        f'<content src="text/ch{i}.xhtml"/></navPoint>'
        for i, (label, _) in enumerate(chapters, start=1) if label)

    spine_attr = ""
    if toc == "nav":
        manifest.append('<item id="nav" href="nav.xhtml" media-type="application/xhtml+xml" properties="nav"/>')
    elif toc == "ncx":
        manifest.append('<item id="ncx" href="toc.ncx" media-type="application/x-dtbncx+xml"/>')
        spine_attr = ' toc="ncx"'

    opf = f"""<?xml version="1.0" encoding="UTF-8"?>
<package xmlns="http://www.idpf.org/2007/opf" version="{version}" unique-identifier="id">
  <metadata xmlns:dc="http://purl.org/dc/elements/1.1/">
    <dc:title>{title}</dc:title>
    <dc:creator>{creator}</dc:creator>
    <dc:language>en</dc:language>
    <dc:identifier id="id">urn:uuid:1234</dc:identifier>
  </metadata>
  <manifest>{"".join(manifest)}</manifest>
  <spine{spine_attr}>{"".join(spine)}</spine>
</package>
"""

    with zipfile.ZipFile(path, "w") as zf:
        zf.writestr("mimetype", "application/epub+zip")
        zf.writestr("META-INF/container.xml", CONTAINER)
        zf.writestr("OEBPS/content.opf", opf)
        for i, (_, body) in enumerate(chapters, start=1):
            zf.writestr(f"OEBPS/text/ch{i}.xhtml", XHTML.format(body=body))
        if toc == "nav":
            zf.writestr("OEBPS/nav.xhtml", XHTML.format(
                body=f'<nav epub:type="toc"><ol>{nav_links}</ol></nav>'))
        elif toc == "ncx":
            zf.writestr("OEBPS/toc.ncx", (
                '<?xml version="1.0" encoding="UTF-8"?>'
                '<ncx xmlns="http://www.daisy.org/z3986/2005/ncx/" version="2005-1">'
                f'<navMap>{nav_points}</navMap></ncx>'))
    return path


@pytest.fixture
def make_epub(tmp_path):
    """Factory fixture: make_epub(chapters, name="book.epub", **kwargs) -> Path."""
    def factory(chapters, name="book.epub", **kwargs):
        return build_epub(tmp_path / name, chapters, **kwargs)
    return factory


@pytest.fixture
def sample_chapters():
    return [
        ("Loomings", "<h1>Chapter 1</h1><p>Call me <em>Ishmael</em>.</p><p>Some years ago.</p>"),
        ("The Carpet-Bag", "<p>I stuffed a shirt or two.</p>"),
        ("The Spouter-Inn", "<div>Entering that gable-ended<br/>Spouter-Inn.</div>"),
    ]
