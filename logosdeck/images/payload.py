from __future__ import annotations

from dataclasses import dataclass, field, replace
from io import BytesIO

from PIL import Image, UnidentifiedImageError

from logosdeck.errors import ImageUnavailable

# Formats both python-pptx and reportlab embed directly.
_PASSTHROUGH = {"PNG": "image/png", "JPEG": "image/jpeg"}


@dataclass(frozen=True)
class ImagePayload:
    data: bytes
    mime: str
    width: int
    height: int
    source: str
    reference: str | None = None


@dataclass(frozen=True)
class AssetOutcome:
    ref: str
    payload: ImagePayload | None = None
    condition: str | None = None
    detail: str = ""

    @property
    def ok(self) -> bool:
        return self.payload is not None


@dataclass(frozen=True)
class AssetBundle:
    payloads: dict[str, ImagePayload] = field(default_factory=dict)
    outcomes: tuple[AssetOutcome, ...] = ()

    def get(self, ref: str | None) -> ImagePayload | None:
        if ref is None:
            return None
        return self.payloads.get(ref)

    def condition(self, ref: str) -> str | None:
        for o in self.outcomes:
            if o.ref == ref:
                return o.condition
        return None

    def with_outcome(self, outcome: AssetOutcome) -> "AssetBundle":
        payloads = dict(self.payloads)
        if outcome.payload is not None:
            payloads[outcome.ref] = outcome.payload
        return replace(self, payloads=payloads, outcomes=self.outcomes + (outcome,))

    @classmethod
    def from_outcomes(cls, outcomes: list[AssetOutcome]) -> "AssetBundle":
        payloads = {o.ref: o.payload for o in outcomes if o.payload is not None}
        return cls(payloads=payloads, outcomes=tuple(outcomes))


def payload_from_bytes(data: bytes, *, source: str, reference: str | None = None) -> ImagePayload:
    """Inspect encoded image bytes; anything other than PNG/JPEG is re-encoded as PNG."""
    try:
        img = Image.open(BytesIO(data))
        img.load()
    except (UnidentifiedImageError, Image.DecompressionBombError, OSError, ValueError) as exc:
        raise ImageUnavailable(f"Undecodable image data ({source})") from exc

    fmt = (img.format or "").upper()
    if fmt in _PASSTHROUGH:
        return ImagePayload(data, _PASSTHROUGH[fmt], img.width, img.height, source, reference)

    if img.mode not in ("RGB", "RGBA"):
        img = img.convert("RGBA")
    buf = BytesIO()
    img.save(buf, format="PNG")
    return ImagePayload(buf.getvalue(), "image/png", img.width, img.height, source, reference)
