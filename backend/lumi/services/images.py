import base64
import logging
import time
import uuid
from typing import Callable, Dict, Iterable, List, Optional

from lumi.exceptions import ImageNotFound, InvalidImage

logger = logging.getLogger(__name__)

IMAGE_SETS = {
    'default': [(f"default_{n}", f"{n}.webp", f"/puzzles/{n}.webp") for n in range(1, 8)],
    'test': [('test_1', '1.webp', '/puzzles-test/1.webp')],
}


class ImageStore:
    """In-memory, ordered collection of puzzle images.

    Bundled image sets are referenced by static path; uploads are kept as
    base64 data URLs. ``notify`` is called after every change so connected
    clients can refetch the list.
    """

    def __init__(
        self,
        notify: Optional[Callable[[], None]] = None,
        allowed_types: Iterable[str] = ('image/jpeg', 'image/png', 'image/webp'),
        max_bytes: int = 5 * 1024 * 1024,
        image_set: str = 'default',
        clock: Callable[[], float] = time.time,
    ):
        self._notify = notify or (lambda: None)
        self.allowed_types = tuple(allowed_types)
        self.max_bytes = max_bytes
        self._clock = clock
        self._images: Dict[str, dict] = {}
        self._seed(image_set)

    def _seed(self, image_set: str) -> None:
        if image_set not in IMAGE_SETS:
            raise InvalidImage(f"Unknown image set: {image_set}")
        self._images.clear()
        now = int(self._clock() * 1000)
        for image_id, filename, url in IMAGE_SETS[image_set]:
            self._images[image_id] = {
                'id': image_id,
                'filename': filename,
                'url': url,
                'mimeType': 'image/webp',
                'createdAt': now,
                'isDefault': True,
            }

    def list(self) -> List[dict]:
        return [
            {'id': img['id'], 'filename': img['filename'], 'url': img['url']}
            for img in self._images.values()
        ]

    def get(self, image_id: str) -> dict:
        try:
            return self._images[image_id]
        except KeyError:
            raise ImageNotFound(image_id)

    def add(self, filename: str, mime_type: str, data: bytes) -> dict:
        if mime_type not in self.allowed_types:
            raise InvalidImage('Only JPEG, PNG, and WebP images are allowed')
        if len(data) > self.max_bytes:
            raise InvalidImage(f"Image size must be less than {self.max_bytes // (1024 * 1024)}MB")
        image_id = f"puzzle_{uuid.uuid4().hex[:8]}"
        ext = filename.rsplit('.', 1)[-1] if '.' in filename else 'jpg'
        encoded = base64.b64encode(data).decode('ascii')
        image = {
            'id': image_id,
            'filename': f"{image_id}.{ext}",
            'url': f"data:{mime_type};base64,{encoded}",
            'mimeType': mime_type,
            'createdAt': int(self._clock() * 1000),
            'isDefault': False,
        }
        self._images[image_id] = image
        logger.info(f"[image-add] id={image_id} bytes={len(data)}")
        self._notify()
        return {'id': image_id, 'filename': image['filename'], 'url': image['url']}

    def remove(self, image_id: str) -> None:
        if image_id not in self._images:
            raise ImageNotFound(image_id)
        del self._images[image_id]
        logger.info(f"[image-remove] id={image_id}")
        self._notify()

    def load_set(self, image_set: str) -> List[dict]:
        """Replace the whole collection with a bundled set."""
        self._seed(image_set)
        logger.info(f"[image-set] set={image_set} count={len(self._images)}")
        self._notify()
        return self.list()

    def __len__(self) -> int:
        return len(self._images)
