"""
View state for the image carousel, the full-screen preview and the admin
image staging area.
"""
import logging
import tempfile
import uuid
from dataclasses import dataclass
from typing import Dict, Iterable, List, Optional

from storefront.models.product import PLACEHOLDER_IMAGE

logger = logging.getLogger(__name__)


def wrap_index(index: int, count: int) -> int:
    if count <= 0:
        return 0
    return index % count


@dataclass
class ImageCarousel:
    """Product card image slider"""
    AUTO_HIDE_SECONDS = 3.0

    images: List[str]
    index: int = 0
    in_stock: Optional[bool] = None
    controls_visible: bool = False
    hide_at: Optional[float] = None

    @property
    def count(self) -> int:
        return len(self.images)

    @property
    def has_multiple_images(self) -> bool:
        return self.count > 1

    @property
    def current_image(self) -> str:
        if not self.images:
            return PLACEHOLDER_IMAGE
        return self.images[self.index]

    @property
    def counter_label(self) -> str:
        return f"{self.index + 1} / {self.count}"

    @property
    def stock_label(self) -> Optional[str]:
        if self.in_stock is None:
            return None
        return 'In Stock' if self.in_stock else 'Out of Stock'

    def next(self) -> int:
        self.index = wrap_index(self.index + 1, self.count)
        return self.index

    def previous(self) -> int:
        self.index = wrap_index(self.index - 1, self.count)
        return self.index

    def go_to(self, index: int) -> int:
        if 0 <= index < self.count:
            self.index = index
        return self.index

    def show_controls(self):
        self.controls_visible = True
        self.hide_at = None

    def hide_controls(self):
        self.controls_visible = False
        self.hide_at = None

    def touch_end(self, now: float):
        self.hide_at = now + self.AUTO_HIDE_SECONDS

    def refresh(self, now: float) -> bool:
        """Apply a pending auto-hide; returns whether controls are visible"""
        if self.hide_at is not None and now >= self.hide_at:
            self.hide_controls()
        return self.controls_visible


@dataclass
class ImagePreview:
    """Full-screen image viewer"""
    KEY_BINDINGS = {
        'ArrowLeft': 'previous',
        'ArrowRight': 'next',
        'Escape': 'close',
    }

    images: List[str]
    index: int = 0
    is_open: bool = True

    def __post_init__(self):
        self.index = wrap_index(self.index, len(self.images))

    @property
    def current_image(self) -> str:
        if not self.images:
            return PLACEHOLDER_IMAGE
        return self.images[self.index]

    @property
    def has_navigation(self) -> bool:
        return len(self.images) > 1

    @property
    def next_index(self) -> int:
        return wrap_index(self.index + 1, len(self.images))

    @property
    def previous_index(self) -> int:
        return wrap_index(self.index - 1, len(self.images))

    def next(self) -> int:
        self.index = self.next_index
        return self.index

    def previous(self) -> int:
        self.index = self.previous_index
        return self.index

    def close(self):
        self.is_open = False

    def handle_key(self, key: str) -> Optional[str]:
        action = self.KEY_BINDINGS.get(key)
        if action:
            getattr(self, action)()
        return action

    def backdrop_click(self, on_backdrop: bool):
        # Clicks on the image itself bubble up but must not close
        if on_backdrop:
            self.close()


class LocalPreview:
    """A staged file spooled to a local temporary file, addressable by a local URL"""

    def __init__(self, file):
        self.url = f"local:{uuid.uuid4().hex}"
        self.filename = file.filename
        self.mimetype = getattr(file, 'mimetype', None)
        self._spool = tempfile.SpooledTemporaryFile(max_size=1024 * 1024)
        self._spool.write(file.read())
        self._spool.seek(0)

    @property
    def released(self) -> bool:
        return self._spool is None

    def read(self) -> bytes:
        self._spool.seek(0)
        return self._spool.read()

    def release(self):
        if self._spool is not None:
            self._spool.close()
            self._spool = None


class StagedImages:
    """
    Image list of the admin product form.

    Holds the product's persisted URLs plus newly staged files. Only previews
    created here are ever released; persisted URLs are never touched.
    """

    def __init__(self, original_urls: Iterable[str] = ()):
        self.original_urls: List[str] = list(original_urls)
        self.retained_urls: List[str] = list(self.original_urls)
        self._previews: Dict[str, LocalPreview] = {}

    @property
    def preview_urls(self) -> List[str]:
        return self.retained_urls + list(self._previews)

    @property
    def staged(self) -> List[LocalPreview]:
        return list(self._previews.values())

    def retain(self, kept_urls: Iterable[str]):
        """Keep only the persisted URLs still present in the submitted preview list"""
        kept = set(kept_urls)
        self.retained_urls = [url for url in self.original_urls if url in kept]

    def stage(self, file) -> str:
        preview = LocalPreview(file)
        self._previews[preview.url] = preview
        return preview.url

    def is_local(self, url: str) -> bool:
        return url in self._previews and url not in self.original_urls

    def release(self, url: str) -> bool:
        """Release a local preview; returns False when there is nothing to release"""
        if not self.is_local(url):
            return False
        preview = self._previews.pop(url)
        preview.release()
        return True

    def remove(self, url: str):
        """Drop an entry from the preview list"""
        if url in self.retained_urls:
            self.retained_urls.remove(url)
        else:
            self.release(url)

    def release_all(self):
        for url in list(self._previews):
            self.release(url)

    def compose(self, uploaded_urls: Iterable[str]) -> List[str]:
        """Retained persisted URLs in their original order, then new uploads"""
        return list(self.retained_urls) + list(uploaded_urls)

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_value, tb):
        self.release_all()
        return False
