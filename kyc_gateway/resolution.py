"""
Per-endpoint image resolution.

Each endpoint declares its image slots. A slot lists the request fields it
accepts, in priority order: inline base64 fields first, then remote URL
fields. The first field that yields a non-empty value wins. The field
names are a compatibility surface; older clients still send every alias
listed here.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, List, Mapping, Optional, Tuple, Union

from .errors import MissingImage
from .images.encoding import as_image_data_uri, normalize_base64
from .images.fetcher import RemoteImageFetcher
from .images.url_guard import normalize_remote_url

INLINE = "inline"
URL = "url"


@dataclass(frozen=True)
class InlineBase64:
    value: str


@dataclass(frozen=True)
class RemoteUrl:
    url: str


ImageSource = Union[InlineBase64, RemoteUrl]


@dataclass(frozen=True)
class Candidate:
    """One request field that may carry an image for a slot."""

    name: str
    kind: str

    def extract(self, body: Mapping[str, Any]) -> Optional[ImageSource]:
        raw = body.get(self.name)
        # Only strings can carry an image; false, 0 or objects count as absent.
        if not isinstance(raw, str):
            return None
        if self.kind == INLINE:
            value = normalize_base64(raw)
            return InlineBase64(value) if value else None
        url = normalize_remote_url(raw)
        return RemoteUrl(url) if url else None


@dataclass(frozen=True)
class ImageSlot:
    key: str
    label: str
    inline_fields: Tuple[str, ...]
    url_fields: Tuple[str, ...]

    @property
    def candidates(self) -> List[Candidate]:
        return [Candidate(f, INLINE) for f in self.inline_fields] + [
            Candidate(f, URL) for f in self.url_fields
        ]

    @property
    def data_uri_key(self) -> str:
        return f"{self.key}DataUri"

    def extract(self, body: Mapping[str, Any]) -> Optional[ImageSource]:
        for candidate in self.candidates:
            source = candidate.extract(body)
            if source is not None:
                return source
        return None


@dataclass(frozen=True)
class VerificationRoute:
    path: str
    upstream_path: str
    missing_message: str
    slots: Tuple[ImageSlot, ...] = field(default_factory=tuple)


async def resolve_image(
    source: ImageSource, slot: ImageSlot, fetcher: RemoteImageFetcher
) -> Optional[str]:
    if isinstance(source, InlineBase64):
        return source.value
    return normalize_base64(await fetcher.fetch(source.url, slot.label))


async def resolve_payload(
    route: VerificationRoute,
    body: Optional[Mapping[str, Any]],
    fetcher: RemoteImageFetcher,
) -> Dict[str, Optional[str]]:
    """
    Resolve every slot of `route` and build the upstream payload.

    Slots with no usable field fail before any download starts. Remote
    sources are fetched one slot at a time, so the first failure stops
    the rest.
    """
    body = body or {}

    sources: List[Tuple[ImageSlot, ImageSource]] = []
    for slot in route.slots:
        source = slot.extract(body)
        if source is None:
            raise MissingImage(route.missing_message)
        sources.append((slot, source))

    images: Dict[str, str] = {}
    for slot, source in sources:
        image = await resolve_image(source, slot, fetcher)
        if not image:
            # Remote host answered with an empty body.
            raise MissingImage(route.missing_message)
        images[slot.key] = image

    payload: Dict[str, Optional[str]] = dict(images)
    for slot in route.slots:
        payload[slot.data_uri_key] = as_image_data_uri(images[slot.key])
    return payload


# -----------------------------------------------------------------------------
# Endpoint definitions
# -----------------------------------------------------------------------------
VERIFY_CNIC = VerificationRoute(
    path="/verify-cnic",
    upstream_path="/verify-cnic",
    missing_message=(
        'Missing CNIC image. Provide "image" (base64) or "cnicFrontUrl" '
        "(Cloudinary https URL)."
    ),
    slots=(
        ImageSlot(
            key="image",
            label="CNIC image",
            inline_fields=("image", "cnicFrontBase64", "cnicFrontImageBase64"),
            url_fields=("cnicFrontUrl", "imageUrl", "cnicImageUrl"),
        ),
    ),
)

FACE_VERIFY = VerificationRoute(
    path="/face-verify",
    upstream_path="/face-verify",
    missing_message=(
        'Missing face images. Provide "image1" and "image2" (base64) or '
        '"cnicImageUrl" + "selfieImageUrl" (Cloudinary https URLs).'
    ),
    slots=(
        ImageSlot(
            key="image1",
            label="CNIC image",
            inline_fields=("image1", "img1"),
            url_fields=("image1Url", "cnicImageUrl"),
        ),
        ImageSlot(
            key="image2",
            label="selfie image",
            inline_fields=("image2", "img2"),
            url_fields=("image2Url", "selfieImageUrl"),
        ),
    ),
)

SHOP_VERIFY = VerificationRoute(
    path="/shop-verify",
    upstream_path="/shop-verify",
    missing_message=(
        'Missing shop image. Provide "image" (base64) or "shopImageUrl" '
        "(Cloudinary https URL)."
    ),
    slots=(
        ImageSlot(
            key="image",
            label="shop image",
            inline_fields=("image", "shopImage", "shopImageBase64"),
            url_fields=("shopImageUrl", "imageUrl"),
        ),
    ),
)

ROUTES: Tuple[VerificationRoute, ...] = (VERIFY_CNIC, FACE_VERIFY, SHOP_VERIFY)
