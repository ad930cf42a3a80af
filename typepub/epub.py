"""EPUB loading: container, OPF package, table of contents, chapter text.

Only what typing practice needs is read: metadata for display and search,
the spine for chapter order, the nav/NCX for chapter titles, and the text
of each spine document split into block-level chunks.
"""

from __future__ import annotations

import logging
import posixpath
import sys
import xml.etree.ElementTree as ET
import zipfile
from dataclasses import dataclass, field
from pathlib import Path
from typing import Iterator, Optional
from urllib.parse import unquote

import platformdirs
from bs4 import BeautifulSoup, Comment, Declaration, Doctype, NavigableString, ProcessingInstruction, Tag

from .constants import TypingConstants
from .errors import DecodeError, LoadError

logger = logging.getLogger(__name__)

CONTAINER_PATH = "META-INF/container.xml"

NS = {
    "c": "urn:oasis:names:tc:opendocument:xmlns:container",
    "opf": "http://www.idpf.org/2007/opf",
    "dc": "http://purl.org/dc/elements/1.1/",
    "ncx": "http://www.daisy.org/z3986/2005/ncx/",
}

# Elements whose start and end separate chunks of text
BLOCK_TAGS = frozenset({
    "address", "article", "aside", "blockquote", "br", "caption", "dd", "div",
    "dl", "dt", "figcaption", "figure", "footer", "h1", "h2", "h3", "h4", "h5",
    "h6", "header", "hr", "li", "main", "ol", "p", "pre", "section", "table",
    "td", "th", "tr", "ul",
})

# Elements with nothing worth typing inside
SKIP_TAGS = frozenset({"head", "img", "image", "math", "script", "style", "svg", "title"})

HEADING_TAGS = ["h1", "h2", "h3", "h4", "h5", "h6"]


def default_books_dir() -> Path:
    """Where books are looked for when no directory is given (~/books)."""
    if sys.platform == "win32":
        return Path(platformdirs.user_documents_dir()) / TypingConstants.BOOKS_DIRNAME
    return Path.home() / TypingConstants.BOOKS_DIRNAME


@dataclass(frozen=True)
class Author:
    first: str
    middles: Optional[str]
    surname: str

    @classmethod
    def parse(cls, raw: str) -> Optional["Author"]:
        """Parse a creator string into a display-ready name.

        Handles "Surname, Given" order, initials with or without dots,
        run-together initials ("JRR Tolkien") and block capitals. Returns
        None for empty or "Unknown" creators.
        """
        raw = raw.strip()
        if not raw or raw == "Unknown":
            return None

        if any(ch.islower() for ch in raw):
            # Split run-together initials: "JRR" -> "J R R"
            buf = []
            for a, b in zip(raw, raw[1:]):
                buf.append(a)
                if a.isupper() and b.isupper():
                    buf.append(" ")
            buf.append(raw[-1])
            raw = "".join(buf)

        name = raw.lower().replace(". ", " ").replace(".", " ").strip()
        commas = name.count(",")
        if commas == 0:
            if " " in name:
                given, _, surname = name.rpartition(" ")
            else:
                given, surname = name, ""
        elif commas % 2 == 1:
            # "Surname, Given"
            surname, _, given = name.partition(",")
        else:
            given, _, surname = name.partition(",")

        given = given.strip()
        surname = surname.strip()
        middles = None
        if " " in surname:
            middles, _, surname = surname.rpartition(" ")
        elif " " in given:
            given, _, middles = given.partition(" ")

        return cls(
            first=_capitalise(given),
            middles=_capitalise(middles) if middles is not None else None,
            surname=_capitalise(surname.strip(",")),
        )

    def __str__(self) -> str:
        return " ".join(part for part in (self.first, self.middles, self.surname) if part)


def _capitalise(text: str) -> str:
    words = []
    for word in text.split():
        words.append(word[0].upper() + ("." if len(word) == 1 else word[1:]))
    return " ".join(words)


def parse_creators(raw: str) -> list[Author]:
    """Split a creator field holding several names and parse each one."""
    names = raw.split("&") if "&" in raw else raw.split(" and ")
    return [author for author in map(Author.parse, names) if author is not None]


@dataclass
class Metadata:
    title: str
    authors: list[Author] = field(default_factory=list)
    language: Optional[str] = None
    identifier: Optional[str] = None
    version: Optional[str] = None

    @property
    def author(self) -> Optional[Author]:
        return self.authors[0] if self.authors else None


@dataclass
class Chapter:
    """One spine document, as text chunks ready for normalization."""
    title: str
    chunks: list[str]
    href: str


@dataclass
class _ManifestItem:
    href: str
    media_type: str
    properties: str


def _read_text(archive: zipfile.ZipFile, name: str) -> str:
    try:
        data = archive.read(name)
    except KeyError as e:
        raise LoadError(f"missing file in EPUB: {name}") from e
    except (zipfile.BadZipFile, OSError) as e:
        raise LoadError(f"cannot read {name}: {e}") from e
    try:
        return data.decode("utf-8-sig")
    except UnicodeDecodeError as e:
        raise DecodeError(f"{name} is not valid UTF-8: {e}") from e


def _parse_xml(archive: zipfile.ZipFile, name: str) -> ET.Element:
    try:
        return ET.fromstring(_read_text(archive, name))
    except ET.ParseError as e:
        raise LoadError(f"malformed XML in {name}: {e}") from e


def _open_archive(path: Path) -> zipfile.ZipFile:
    try:
        return zipfile.ZipFile(path)
    except (zipfile.BadZipFile, OSError) as e:
        raise LoadError(f"cannot open {path}: {e}") from e


def _rootfile_path(archive: zipfile.ZipFile) -> str:
    container = _parse_xml(archive, CONTAINER_PATH)
    rootfile = container.find(".//c:rootfile", NS)
    if rootfile is None or not rootfile.get("full-path"):
        raise LoadError("container.xml has no rootfile")
    return rootfile.get("full-path")


def _resolve(base_file: str, href: str) -> str:
    """Resolve href relative to the archive member base_file."""
    href = unquote(href.split("#", 1)[0])
    return posixpath.normpath(posixpath.join(posixpath.dirname(base_file), href))


def _text(element: Optional[ET.Element]) -> Optional[str]:
    if element is None:
        return None
    text = "".join(element.itertext()).strip()
    return text or None


def _parse_metadata(package: ET.Element, fallback_title: str) -> Metadata:
    meta = package.find("opf:metadata", NS)
    if meta is None:
        raise LoadError("package document has no metadata")

    authors: list[Author] = []
    for creator in meta.findall("dc:creator", NS):
        raw = creator.get(f"{{{NS['opf']}}}file-as") or _text(creator)
        if raw:
            authors.extend(parse_creators(raw))

    return Metadata(
        title=_text(meta.find("dc:title", NS)) or fallback_title,
        authors=authors,
        language=_text(meta.find("dc:language", NS)),
        identifier=_text(meta.find("dc:identifier", NS)),
        version=package.get("version"),
    )


def read_metadata(path: Path) -> Metadata:
    """Read only the metadata of the EPUB at path.

    Cheaper than Epub.open since no manifest or table of contents is
    processed; used when searching a directory of books.
    """
    path = Path(path)
    with _open_archive(path) as archive:
        package = _parse_xml(archive, _rootfile_path(archive))
        return _parse_metadata(package, path.stem)


def html_to_chunks(markup: str) -> list[str]:
    """Strip markup from a chapter document, one chunk per text block.

    Block-level elements start and end chunks; inline elements (em, span,
    a, ...) are transparent. Whitespace is left as found; the normalizer
    collapses it.
    """
    soup = BeautifulSoup(markup, "html.parser")
    root = soup.body or soup
    chunks: list[str] = []
    buf: list[str] = []

    def flush():
        text = "".join(buf)
        buf.clear()
        if text.strip():
            chunks.append(text)

    def visit(node: Tag):
        for child in node.children:
            if isinstance(child, (Comment, Declaration, Doctype, ProcessingInstruction)):
                continue
            if isinstance(child, NavigableString):
                buf.append(str(child))
                continue
            if not isinstance(child, Tag):
                continue
            name = child.name.lower().rsplit(":", 1)[-1]
            if name in SKIP_TAGS:
                continue
            if name in BLOCK_TAGS:
                flush()
                visit(child)
                flush()
            else:
                visit(child)

    visit(root)
    flush()
    return chunks


def _first_heading(markup: str) -> Optional[str]:
    soup = BeautifulSoup(markup, "html.parser")
    heading = soup.find(HEADING_TAGS)
    if heading is None:
        return None
    return " ".join(heading.get_text(" ").split()) or None


class Epub:
    """An opened EPUB book.

    Use Epub.open(path); the zip archive stays open until close() is
    called or the context manager exits.
    """

    def __init__(self, path: Path, archive: zipfile.ZipFile, metadata: Metadata,
                 spine: list[str], toc: dict[str, str]):
        self.path = path
        self.metadata = metadata
        self.spine = spine
        self.toc = toc
        self._archive = archive

    @classmethod
    def open(cls, path) -> "Epub":
        """Open and index the EPUB at path.

        Raises:
            LoadError: The file is not a zip, lacks container.xml or the
                package document, or its spine is empty.
        """
        path = Path(path)
        archive = _open_archive(path)
        try:
            opf_path = _rootfile_path(archive)
            package = _parse_xml(archive, opf_path)
            metadata = _parse_metadata(package, path.stem)
            manifest = cls._parse_manifest(package, opf_path)
            spine_el = package.find("opf:spine", NS)
            if spine_el is None:
                raise LoadError("package document has no spine")
            spine = []
            for itemref in spine_el.findall("opf:itemref", NS):
                item = manifest.get(itemref.get("idref", ""))
                if item is None:
                    raise LoadError(f"spine entry {itemref.get('idref')!r} not in manifest")
                spine.append(item.href)
            if not spine:
                raise LoadError("spine is empty")
            toc = cls._parse_toc(archive, manifest, spine_el.get("toc"))
        except Exception:
            archive.close()
            raise
        logger.info("Opened %s: %r, %d spine entries", path, metadata.title, len(spine))
        return cls(path, archive, metadata, spine, toc)

    @staticmethod
    def _parse_manifest(package: ET.Element, opf_path: str) -> dict[str, _ManifestItem]:
        manifest = {}
        for item in package.findall("opf:manifest/opf:item", NS):
            item_id, href = item.get("id"), item.get("href")
            if item_id and href:
                manifest[item_id] = _ManifestItem(
                    href=_resolve(opf_path, href),
                    media_type=item.get("media-type", ""),
                    properties=item.get("properties", ""),
                )
        return manifest

    @staticmethod
    def _parse_toc(archive: zipfile.ZipFile, manifest: dict[str, _ManifestItem],
                   ncx_id: Optional[str]) -> dict[str, str]:
        """Map spine document paths to their first table-of-contents label.

        EPUB 3 nav documents are preferred; EPUB 2 NCX files are the
        fallback. A broken table of contents only costs chapter titles, so
        it is logged and ignored.
        """
        toc: dict[str, str] = {}
        nav = next((i for i in manifest.values() if "nav" in i.properties.split()), None)
        ncx = manifest.get(ncx_id or "") or next(
            (i for i in manifest.values() if i.media_type == "application/x-dtbncx+xml"), None)
        try:
            if nav is not None:
                soup = BeautifulSoup(_read_text(archive, nav.href), "html.parser")
                for anchor in soup.select("nav a[href]"):
                    label = " ".join(anchor.get_text(" ").split())
                    if label:
                        toc.setdefault(_resolve(nav.href, anchor["href"]), label)
            elif ncx is not None:
                root = _parse_xml(archive, ncx.href)
                for point in root.iter(f"{{{NS['ncx']}}}navPoint"):
                    label = _text(point.find("ncx:navLabel/ncx:text", NS))
                    content = point.find("ncx:content", NS)
                    if label and content is not None and content.get("src"):
                        toc.setdefault(_resolve(ncx.href, content.get("src")), label)
        except (LoadError, DecodeError) as e:
            logger.warning("Ignoring unreadable table of contents: %s", e)
        return toc

    @property
    def title(self) -> str:
        return self.metadata.title

    @property
    def author(self) -> Optional[Author]:
        return self.metadata.author

    def __len__(self) -> int:
        return len(self.spine)

    def chapter(self, index: int) -> Chapter:
        """Read spine entry index and split it into text chunks.

        Raises:
            LoadError: index is not in the spine or the document is missing.
            DecodeError: The document is not valid UTF-8.
        """
        if not 0 <= index < len(self.spine):
            raise LoadError(f"chapter {index} not in book (it has {len(self.spine)})")
        href = self.spine[index]
        markup = _read_text(self._archive, href)
        title = self.toc.get(href) or _first_heading(markup) or f"Chapter {index + 1}"
        return Chapter(title=title, chunks=html_to_chunks(markup), href=href)

    def chapters(self) -> list[Chapter]:
        return [self.chapter(i) for i in range(len(self.spine))]

    def chapter_titles(self) -> list[str]:
        """Titles of all chapters, without extracting their text."""
        titles = []
        for index, href in enumerate(self.spine):
            title = self.toc.get(href)
            if title is None:
                title = _first_heading(_read_text(self._archive, href)) or f"Chapter {index + 1}"
            titles.append(title)
        return titles

    def close(self) -> None:
        self._archive.close()

    def __enter__(self) -> "Epub":
        return self

    def __exit__(self, *exc) -> None:
        self.close()


class Library:
    """A directory of .epub files that can be searched by title."""

    def __init__(self, directory):
        self.directory = Path(directory)

    @classmethod
    def from_home(cls) -> "Library":
        return cls(default_books_dir())

    def books(self) -> Iterator[Path]:
        if not self.directory.is_dir():
            raise LoadError(f"book directory not found: {self.directory}")
        for path in sorted(self.directory.iterdir()):
            if path.suffix.lower() == ".epub" and path.is_file():
                yield path

    def search(self, term: str) -> Optional[Epub]:
        """Open the first book whose title contains term, ignoring case.

        Books that cannot be read are logged and skipped.
        """
        needle = term.lower()
        for path in self.books():
            try:
                metadata = read_metadata(path)
            except (LoadError, DecodeError) as e:
                logger.warning("Failed to parse %s: %s", path, e)
                continue
            if needle in metadata.title.lower():
                return Epub.open(path)
        return None
