"""Asset localizer: copy local media into the public directory under content-hash names"""

import asyncio
import logging
import re
import shutil
from pathlib import Path
from typing import Any, Awaitable, Callable, Optional
from urllib.parse import unquote

from PIL import Image as PILImage

from mdmedia.core.models import LocalizedAsset, MediaMeta
from mdmedia.core.nodes import DIRECTIVE_TYPES, JSX_TYPES, JsxAttribute, JsxElement, Root
from mdmedia.core.utils.hashing import sha1_bytes
from mdmedia.core.utils.media import IMAGE_EXTS, MEDIA_EXTS, media_kind
from mdmedia.core.visit import iter_nodes
from mdmedia.ledger.models import LedgerEntry
from mdmedia.ledger.store import LedgerStore


logger = logging.getLogger("mdmedia.localize")

DEDUPE_MODES = ("global", "perPost")

REMOTE_RE = re.compile(r'^(https?:)?//', re.IGNORECASE)
EMBEDDED_MEDIA_RE = re.compile(
    r'''([^\s"'()<>]+?\.(?:png|jpe?g|webp|gif|bmp|tiff|avif|mp4|webm|ogg))''', re.IGNORECASE
)
SOURCE_EXT_RE = re.compile(r'\.(md|mdx|markdown)$', re.IGNORECASE)
STRING_LITERAL_RE = re.compile(r'''^['"]([^'"]+)['"]$''')


def is_external(ref: str) -> bool:
    """True for remote (`http(s)://`, `//`) and site-rooted (`/...`) references."""
    return ref.startswith("/") or bool(REMOTE_RE.match(ref))


def extract_local_path(raw: str | None) -> str | None:
    """Pull a local media path out of a possibly decorated reference.

    'book.png class="wide"' -> 'book.png'; '<a.png>' -> 'a.png'; remote or
    rooted references -> None.
    """
    if not raw:
        return None
    s = raw.strip()
    if s.startswith("<") and s.endswith(">"):
        s = s[1:-1].strip()
    if not s or is_external(s):
        return None
    if Path(s).suffix.lower() in MEDIA_EXTS and not re.search(r'\s', s):
        return s
    m = EMBEDDED_MEDIA_RE.search(s)
    return m.group(1) if m else None


def derive_post_id(path: Path | str, content_root: str = "src/content") -> str:
    """Document id: path below the content root, markdown extension stripped, '/' separated."""
    p = str(path).replace("\\", "/")
    marker = f"/{content_root.strip('/')}/"
    i = p.rfind(marker)
    rel = p[i + len(marker):] if i >= 0 else p.rsplit("/", 1)[-1]
    return SOURCE_EXT_RE.sub("", rel)


def public_path(digest: str, ext: str, dedupe_mode: str, post_id: str, public_base: str = "assets") -> str:
    """Content-addressed URL path for an asset."""
    name = f"{digest}{ext}"
    base = public_base.strip("/")
    if dedupe_mode == "global":
        return f"/{base}/hash/{name}"
    return f"/{base}/images/{post_id}/{name}"


def probe_dimensions(path: Path) -> tuple[Optional[int], Optional[int]]:
    """Pixel (width, height) of an image file, or (None, None) if it cannot be read."""
    try:
        with PILImage.open(path) as im:
            width, height = im.size
            return width, height
    except (OSError, ValueError, PILImage.DecompressionBombError):
        return None, None


def _copy_file(src: Path, target: Path) -> None:
    target.parent.mkdir(parents=True, exist_ok=True)
    shutil.copyfile(src, target)


class AssetLocalizer:
    """Rewrites local media references in a document tree to hashed public paths.

    The ledger is loaded from `store` once and saved after every document.
    One instance may serve several documents concurrently; saves go through
    a single lock.
    """

    def __init__(
        self,
        store: LedgerStore,
        public_dir: Path | str = "public",
        public_base: str = "assets",
        dedupe_mode: str = "global",
        get_post_id: Callable[[Path], str] | None = None,
        content_root: str = "src/content",
        ):
        if dedupe_mode not in DEDUPE_MODES:
            raise ValueError(f"Unknown dedupe mode {dedupe_mode!r}; expected one of {DEDUPE_MODES}")
        self.store = store
        self.public_dir = Path(public_dir)
        self.public_base = public_base
        self.dedupe_mode = dedupe_mode
        self.get_post_id = get_post_id or (lambda p: derive_post_id(p, content_root))
        self.ledger = store.load()
        self._copies: dict[Path, asyncio.Task] = {}
        self._lock: asyncio.Lock | None = None
        self._lock_loop: asyncio.AbstractEventLoop | None = None

    @classmethod
    def from_settings(cls, settings, store: LedgerStore, get_post_id=None) -> "AssetLocalizer":
        return cls(
            store,
            public_dir=settings.public_dir,
            public_base=settings.public_base,
            dedupe_mode=settings.dedupe_mode,
            get_post_id=get_post_id,
            content_root=settings.content_root,
        )

    # --- per reference ---

    def _schedule_copy(self, src: Path, target: Path, jobs: list[Awaitable]) -> None:
        """Add the copy of src to this document's jobs, sharing one task per target.

        A document that finds the target already being copied awaits the same
        task, so it never finishes before the file exists and sees the same failure.
        """
        task = self._copies.get(target)
        if task is not None and task.done() and not task.cancelled():
            # finished in an earlier batch; re-raise if that copy failed
            task.result()
            logger.debug("Reusing %s for %s", target, src)
            return
        if task is None and target.exists():
            logger.debug("Reusing %s for %s", target, src)
            return
        if task is None or task.cancelled():
            task = asyncio.create_task(asyncio.to_thread(_copy_file, src, target))
            self._copies[target] = task
            logger.debug("Copying %s -> %s", src, target)
        jobs.append(task)

    def _materialize(self, src: Path, ref: str, post_id: str, jobs: list[Awaitable]) -> LocalizedAsset | None:
        ext = src.suffix.lower()
        try:
            data = src.read_bytes()
        except OSError as e:
            logger.warning("Skipping unreadable asset %s: %s", src, e)
            return None

        digest = sha1_bytes(data)
        rel = public_path(digest, ext, self.dedupe_mode, post_id, self.public_base)
        target = self.public_dir / rel.lstrip("/")

        self.ledger[digest] = LedgerEntry(ext=ext, path=rel)
        self._schedule_copy(src, target, jobs)

        width = height = None
        if ext in IMAGE_EXTS:
            width, height = probe_dimensions(src)
        meta = MediaMeta(kind=media_kind(ext), ext=ext, width=width, height=height, source=ref)
        return LocalizedAsset(public_path=rel, target=target, hash=digest, meta=meta)

    def _rewrite(self, raw: Any, doc_dir: Path, post_id: str, jobs: list[Awaitable]) -> LocalizedAsset | None:
        if not isinstance(raw, str):
            return None
        rel = extract_local_path(raw)
        if rel is None:
            return None
        for candidate in dict.fromkeys((rel, unquote(rel))):
            src = doc_dir / candidate
            if src.is_file():
                return self._materialize(src, rel, post_id, jobs)
        logger.debug("No local file for %r in %s", raw, doc_dir)
        return None

    # --- surfaces ---

    @staticmethod
    def _jsx_src(attr: JsxAttribute) -> str | None:
        if isinstance(attr.value, str):
            return attr.value
        if attr.value is not None:
            m = STRING_LITERAL_RE.match(attr.value.value.strip())
            return m.group(1) if m else None
        return None

    @staticmethod
    def _add_dimensions(node: JsxElement, meta: MediaMeta) -> None:
        if meta.kind != "image" or not (meta.width and meta.height):
            return
        if node.get_attribute("width") or node.get_attribute("height"):
            return
        node.jsx_attributes.append(JsxAttribute(name="width", value=str(meta.width)))
        node.jsx_attributes.append(JsxAttribute(name="height", value=str(meta.height)))

    async def localize(
        self,
        tree: Root,
        path: Path | str,
        frontmatter: Optional[dict[str, Any]] = None,
        ) -> list[LocalizedAsset]:
        """Localize every media reference in one document; returns the assets found.

        Surfaces run in a fixed order: frontmatter image, img/video directives,
        Markdown images, JSX elements with a src attribute.
        """
        path = Path(path)
        doc_dir = path.parent
        post_id = self.get_post_id(path)
        jobs: list[Awaitable] = []
        assets: list[LocalizedAsset] = []

        def rewrite(raw: Any) -> LocalizedAsset | None:
            asset = self._rewrite(raw, doc_dir, post_id, jobs)
            if asset:
                assets.append(asset)
            return asset

        if frontmatter is not None and isinstance(frontmatter.get("image"), str):
            asset = rewrite(frontmatter["image"])
            if asset:
                frontmatter["image"] = asset.public_path

        for node in iter_nodes(tree, DIRECTIVE_TYPES):
            if node.name not in ("img", "video"):
                continue
            asset = rewrite(node.attributes.get("src"))
            if asset:
                node.attributes["src"] = asset.public_path
                node.data["media"] = asset.meta

        for node in iter_nodes(tree, "image"):
            asset = rewrite(node.url)
            if asset:
                node.url = asset.public_path
                node.data["media"] = asset.meta

        for node in iter_nodes(tree, JSX_TYPES):
            attr = node.get_attribute("src")
            if attr is None:
                continue
            asset = rewrite(self._jsx_src(attr))
            if asset:
                attr.value = asset.public_path
                node.data["media"] = asset.meta
                self._add_dimensions(node, asset.meta)

        if jobs:
            await asyncio.gather(*jobs)
        await self.persist()
        return assets

    def _persist_lock(self) -> asyncio.Lock:
        # an asyncio.Lock belongs to one event loop; each asyncio.run gets its own
        loop = asyncio.get_running_loop()
        if self._lock is None or self._lock_loop is not loop:
            self._lock = asyncio.Lock()
            self._lock_loop = loop
        return self._lock

    async def persist(self) -> None:
        """Write the in-memory ledger through the store (single writer)."""
        async with self._persist_lock():
            snapshot = dict(self.ledger)
            await asyncio.to_thread(self.store.save, snapshot)

    async def __call__(self, tree: Root, path: Path | str, frontmatter: Optional[dict[str, Any]] = None):
        return await self.localize(tree, path, frontmatter)
