"""Integration tests for the build pipeline (preprocess -> parse -> localize -> expand -> export)"""

import asyncio
import json

import pytest
from PIL import Image as PILImage

from mdmedia.config import Settings
from mdmedia.core.expand import MediaExpander
from mdmedia.core.localize import AssetLocalizer
from mdmedia.core.pipeline import build_docs, process_source, run_build
from mdmedia.core.render import render_html
from mdmedia.core.utils.hashing import sha1_file
from mdmedia.ledger.store import JsonLedgerStore, MemoryLedgerStore


@pytest.fixture(name="site")
def site_fixture(tmp_path):
    """A content tree with one 100x80 image next to the posts."""
    posts = tmp_path / "src" / "content" / "blog"
    posts.mkdir(parents=True)
    PILImage.new("RGB", (100, 80), "red").save(posts / "cat.png", format="PNG")
    return posts


@pytest.fixture(name="settings")
def settings_fixture(tmp_path):
    return Settings(
        public_dir=str(tmp_path / "public"),
        output_dir=str(tmp_path / "dist"),
        usage_log_path=str(tmp_path / ".asset-usage.json"),
    )


def _process(raw, path, store, **kwargs):
    localizer = AssetLocalizer(store, **kwargs)
    return asyncio.run(process_source(raw, path, localizer, MediaExpander()))


def test_legacy_block_in_markdown(site, tmp_path):
    """A trailing block on a plain .md image decorates the localized image."""
    digest = sha1_file(site / "cat.png")
    doc = _process(
        '![](cat.png){.rounded style="border:1px"}\n',
        site / "post.md", MemoryLedgerStore(), public_dir=tmp_path / "public",
    )
    para = doc.tree.children[0]
    assert len(para.children) == 1
    image = para.children[0]
    assert image.url == f"/assets/hash/{digest}.png"
    assert image.alt == "cat"
    assert image.data["hProperties"] == {
        "alt": "cat", "class": "rounded", "style": "border:1px", "width": 100, "height": 80,
    }
    assert render_html(doc.tree) == (
        f'<p><img src="/assets/hash/{digest}.png" alt="cat" class="rounded" '
        f'style="border:1px" width="100" height="80"></p>\n'
    )
    assert (tmp_path / "public" / "assets" / "hash" / f"{digest}.png").is_file()


def test_mdx_image_attrs_take_directive_path(site, tmp_path):
    """In .mdx the same syntax is rewritten to a directive before parsing."""
    doc = _process(
        '![Cat](cat.png){.rounded style="border:1px"}\n',
        site / "post.mdx", MemoryLedgerStore(), public_dir=tmp_path / "public",
    )
    image = doc.tree.children[0].children[0]
    assert image.alt == "Cat"
    assert image.url.startswith("/assets/hash/")
    assert image.data["hProperties"]["class"] == "rounded"
    assert image.data["hProperties"]["width"] == 100


def test_video_directive_localized_and_expanded(site, tmp_path):
    (site / "clip.webm").write_bytes(b"\x1aE\xdf\xa3webm")
    doc = _process(
        '::video{src="clip.webm" .hero autoplay loop}\n',
        site / "post.md", MemoryLedgerStore(), public_dir=tmp_path / "public",
    )
    html = render_html(doc.tree)
    assert html.startswith('<video class="hero" autoplay loop>')
    assert 'type="video/webm"' in html
    assert '<source src="/assets/hash/' in html


def test_mdx_component_gets_public_src_and_size(site, tmp_path):
    doc = _process(
        '<Figure src="cat.png" caption="A cat" />\n',
        site / "post.mdx", MemoryLedgerStore(), public_dir=tmp_path / "public",
    )
    html = render_html(doc.tree)
    assert html.startswith('<Figure src="/assets/hash/')
    assert 'width="100" height="80"' in html


def test_per_post_paths(site, tmp_path):
    doc = _process(
        "![Cat](cat.png)\n", site / "hello.md", MemoryLedgerStore(),
        public_dir=tmp_path / "public", dedupe_mode="perPost",
    )
    assert doc.tree.children[0].children[0].url.startswith("/assets/images/blog/hello/")


def test_build_docs_shares_one_ledger(site, settings):
    """Documents built together all record their assets in the same store."""
    (site / "a.md").write_text("![](cat.png)\n")
    (site / "b.md").write_text("---\nimage: cat.png\n---\nText\n")
    store = MemoryLedgerStore()
    docs = asyncio.run(build_docs([site / "a.md", site / "b.md"], settings, store))
    assert len(store.load()) == 1
    assert docs[1].frontmatter["image"] == docs[0].tree.children[0].children[0].url


def test_build_docs_wraps_failures(site, settings):
    bad = site / "bad.md"
    bad.write_text("---\n- not a mapping\n---\n")
    with pytest.raises(RuntimeError, match="Failed to build"):
        asyncio.run(build_docs([bad], settings, MemoryLedgerStore()))


def test_run_build_writes_html_sidecar_and_ledger(site, settings, tmp_path):
    """run_build mirrors the source tree into output_dir and persists the ledger file."""
    (site / "hello.md").write_text("---\ntitle: Hello\nimage: cat.png\n---\n# Hello\n\n![](cat.png){.wide}\n")
    root = tmp_path / "src" / "content"

    results = run_build(str(root), settings)

    html_path = tmp_path / "dist" / "blog" / "hello.html"
    assert results == [(site / "hello.md", html_path)]
    assert 'class="wide"' in html_path.read_text()

    sidecar = json.loads((tmp_path / "dist" / "blog" / "hello.json").read_text())
    assert sidecar["slug"] == "hello"
    assert sidecar["frontmatter"]["image"].startswith("/assets/hash/")
    assert sidecar["media"][0]["width"] == 100

    ledger = JsonLedgerStore(settings.usage_log_path).load()
    assert [e.path for e in ledger.values()] == [sidecar["frontmatter"]["image"]]


def test_run_build_is_idempotent(site, settings, tmp_path):
    (site / "hello.md").write_text("![](cat.png)\n")
    first = run_build(str(site), settings)[0][1].read_text()
    second = run_build(str(site), settings)[0][1].read_text()
    assert first == second
    assert len(list((tmp_path / "public" / "assets" / "hash").iterdir())) == 1


def test_run_build_empty_directory(tmp_path, settings):
    assert run_build(str(tmp_path), settings) == []
