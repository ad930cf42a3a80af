"""Test EPUB loading, chapter extraction and library search."""

import zipfile

import pytest
from typepub.epub import Author, Epub, Library, html_to_chunks, parse_creators, read_metadata
from typepub.errors import DecodeError, LoadError


def copy_without(src, dst, member):
    """Copy an EPUB leaving out one archive member."""
    with zipfile.ZipFile(src) as zin, zipfile.ZipFile(dst, "w") as zout:
        for item in zin.infolist():
            if item.filename != member:
                zout.writestr(item, zin.read(item.filename))
    return dst


def replace_member(src, dst, member, data):
    with zipfile.ZipFile(src) as zin, zipfile.ZipFile(dst, "w") as zout:
        for item in zin.infolist():
            zout.writestr(item, data if item.filename == member else zin.read(item.filename))
    return dst


class TestEpub:

    def test_metadata(self, make_epub, sample_chapters):
        with Epub.open(make_epub(sample_chapters, creator="Melville, Herman")) as book:
            assert book.title == "Test Book"
            assert str(book.author) == "Herman Melville"
            assert book.metadata.language == "en"
            assert book.metadata.version == "3.0"
            assert len(book) == 3

    def test_chapters_in_spine_order(self, make_epub, sample_chapters):
        with Epub.open(make_epub(sample_chapters)) as book:
            chapters = book.chapters()
        assert [c.title for c in chapters] == ["Loomings", "The Carpet-Bag", "The Spouter-Inn"]
        assert chapters[0].chunks == ["Chapter 1", "Call me Ishmael.", "Some years ago."]
        assert chapters[2].chunks == ["Entering that gable-ended", "Spouter-Inn."]

    def test_ncx_titles(self, make_epub, sample_chapters):
        path = make_epub(sample_chapters, toc="ncx", version="2.0")
        with Epub.open(path) as book:
            assert book.chapter_titles() == ["Loomings", "The Carpet-Bag", "The Spouter-Inn"]

    def test_titles_fall_back_to_heading_then_number(self, make_epub, sample_chapters):
        with Epub.open(make_epub(sample_chapters, toc=None)) as book:
            assert book.chapter_titles() == ["Chapter 1", "Chapter 2", "Chapter 3"]
            assert book.chapter(0).title == "Chapter 1"

    def test_chapter_index_out_of_range(self, make_epub, sample_chapters):
        with Epub.open(make_epub(sample_chapters)) as book:
            with pytest.raises(LoadError):
                book.chapter(3)

    def test_not_a_zip(self, tmp_path):
        path = tmp_path / "bad.epub"
        path.write_text("not a zip")
        with pytest.raises(LoadError):
            Epub.open(path)

    def test_missing_file(self, tmp_path):
        with pytest.raises(LoadError):
            Epub.open(tmp_path / "nowhere.epub")

    def test_missing_container(self, make_epub, sample_chapters, tmp_path):
        path = copy_without(make_epub(sample_chapters), tmp_path / "broken.epub",
                            "META-INF/container.xml")
        with pytest.raises(LoadError):
            Epub.open(path)

    def test_missing_chapter_document(self, make_epub, sample_chapters, tmp_path):
        path = copy_without(make_epub(sample_chapters), tmp_path / "broken.epub",
                            "OEBPS/text/ch2.xhtml")
        with Epub.open(path) as book:
            book.chapter(0)
            with pytest.raises(LoadError):
                book.chapter(1)

    def test_spine_entry_missing_from_manifest(self, make_epub, sample_chapters, tmp_path):
        src = make_epub(sample_chapters)
        with zipfile.ZipFile(src) as zf:
            opf = zf.read("OEBPS/content.opf").decode()
        opf = opf.replace('<itemref idref="ch2"/>', '<itemref idref="missing"/>')
        path = replace_member(src, tmp_path / "broken.epub", "OEBPS/content.opf", opf.encode())
        with pytest.raises(LoadError):
            Epub.open(path)

    def test_malformed_chapter_encoding(self, make_epub, sample_chapters, tmp_path):
        path = replace_member(make_epub(sample_chapters), tmp_path / "latin1.epub",
                              "OEBPS/text/ch1.xhtml", "<p>caf\u00e9</p>".encode("latin-1"))
        with Epub.open(path) as book:
            with pytest.raises(DecodeError):
                book.chapter(0)

    def test_read_metadata_falls_back_to_file_name(self, make_epub, sample_chapters):
        path = make_epub(sample_chapters, name="moby-dick.epub", title="")
        assert read_metadata(path).title == "moby-dick"


class TestHtmlToChunks:

    def test_inline_markup_is_transparent(self):
        assert html_to_chunks("<p>one <b>two</b> <i>three</i></p>") == ["one two three"]

    def test_blocks_split_chunks(self):
        markup = "<blockquote>quoted</blockquote><p>after</p><ul><li>a</li><li>b</li></ul>"
        assert html_to_chunks(markup) == ["quoted", "after", "a", "b"]

    def test_skips_scripts_images_and_comments(self):
        markup = '<p>text<img src="x.png" alt="img"/><!-- note --></p><script>var x;</script>'
        assert html_to_chunks(markup) == ["text"]

    def test_nested_blocks(self):
        assert html_to_chunks("<div>outer<p>inner</p>tail</div>") == ["outer", "inner", "tail"]


class TestAuthor:

    @pytest.mark.parametrize("raw, expected", [
        ("Jane Austen", "Jane Austen"),
        ("Tolkien, J. R. R.", "J. R. R. Tolkien"),
        ("J.R.R. Tolkien", "J. R. R. Tolkien"),
        ("JRR Tolkien", "J. R. R. Tolkien"),
        ("HERMAN MELVILLE", "Herman Melville"),
        ("Melville, Herman", "Herman Melville"),
    ])
    def test_parse(self, raw, expected):
        assert str(Author.parse(raw)) == expected

    def test_unknown_and_empty(self):
        assert Author.parse("Unknown") is None
        assert Author.parse("  ") is None

    def test_middle_names(self):
        author = Author.parse("Arthur Conan Doyle")
        assert author.first == "Arthur"
        assert author.middles == "Conan"
        assert author.surname == "Doyle"

    def test_parse_creators(self):
        names = [str(a) for a in parse_creators("Neil Gaiman & Terry Pratchett")]
        assert names == ["Neil Gaiman", "Terry Pratchett"]
        names = [str(a) for a in parse_creators("Neil Gaiman and Terry Pratchett")]
        assert names == ["Neil Gaiman", "Terry Pratchett"]


class TestLibrary:

    def test_search_by_title(self, make_epub, sample_chapters, tmp_path):
        make_epub(sample_chapters, name="a.epub", title="Moby-Dick")
        make_epub(sample_chapters, name="b.epub", title="Pride and Prejudice")
        book = Library(tmp_path).search("pride")
        assert book is not None
        with book:
            assert book.title == "Pride and Prejudice"

    def test_search_no_match(self, make_epub, sample_chapters, tmp_path):
        make_epub(sample_chapters, title="Moby-Dick")
        assert Library(tmp_path).search("emma") is None

    def test_search_skips_unreadable_books(self, make_epub, sample_chapters, tmp_path):
        (tmp_path / "0-broken.epub").write_bytes(b"garbage")
        make_epub(sample_chapters, name="1-good.epub", title="Emma")
        book = Library(tmp_path).search("Emma")
        assert book is not None
        book.close()

    def test_books_ignores_other_files(self, make_epub, sample_chapters, tmp_path):
        make_epub(sample_chapters, name="a.epub")
        (tmp_path / "notes.txt").write_text("hi")
        assert [p.name for p in Library(tmp_path).books()] == ["a.epub"]

    def test_missing_directory(self, tmp_path):
        with pytest.raises(LoadError):
            list(Library(tmp_path / "nope").books())
