"""Pure image and OCR-result helpers used before and after recognition."""

from __future__ import annotations

import io
from dataclasses import dataclass
from typing import Any


@dataclass(frozen=True)
class OcrPreprocessOptions:
    """Fixed image cleanup applied before OCR."""

    target_height: int = 1600  # downscale only, never enlarge
    greyscale: bool = True
    normalize: bool = True
    sharpen: bool = True
    threshold: int | None = 128  # None disables binarization
    output_format: str = "PNG"


DEFAULT_PREPROCESS_OPTIONS = OcrPreprocessOptions()

# Leading bytes of the formats a receipt photo usually arrives in.
IMAGE_SIGNATURES: tuple[tuple[bytes, str], ...] = (
    (b"\x89PNG\r\n\x1a\n", ".png"),
    (b"\xff\xd8\xff", ".jpg"),
    (b"GIF87a", ".gif"),
    (b"GIF89a", ".gif"),
    (b"BM", ".bmp"),
    (b"II*\x00", ".tif"),
    (b"MM\x00*", ".tif"),
)

MIN_DETECTION_CONFIDENCE = 0.5
LINE_OVERLAP_RATIO = 0.5


def preprocess_for_ocr(image_bytes: bytes, options: OcrPreprocessOptions = DEFAULT_PREPROCESS_OPTIONS) -> bytes:
    """
    Prepare a receipt photo for text recognition.

    Steps (each controlled by ``options``):
    - apply EXIF orientation
    - resize to ``target_height`` keeping aspect ratio, without enlarging
    - convert to greyscale and stretch contrast
    - sharpen
    - binarize at ``threshold``

    Args:
        image_bytes: Encoded image data (any format Pillow can open)
        options: Preprocessing parameters

    Returns:
        Encoded image bytes in ``options.output_format``

    Raises:
        PIL.UnidentifiedImageError / OSError: If the bytes are not an image
    """
    from PIL import Image, ImageFilter, ImageOps

    img = Image.open(io.BytesIO(image_bytes))
    img = ImageOps.exif_transpose(img)

    width, height = img.size
    if height > options.target_height:
        new_width = max(1, int(width * (options.target_height / height)))
        img = img.resize((new_width, options.target_height), Image.Resampling.LANCZOS)

    if options.greyscale:
        img = img.convert("L")
    elif img.mode not in ("RGB", "L"):
        img = img.convert("RGB")

    if options.normalize:
        img = ImageOps.autocontrast(img)

    if options.sharpen:
        img = img.filter(ImageFilter.SHARPEN)

    if options.threshold is not None:
        cutoff = options.threshold
        img = img.convert("L").point(lambda value: 255 if value >= cutoff else 0)

    buffer = io.BytesIO()
    img.save(buffer, format=options.output_format)
    return buffer.getvalue()


def image_suffix(image_bytes: bytes) -> str:
    """File suffix matching the image format of ``image_bytes``, or ``.bin``."""
    for signature, suffix in IMAGE_SIGNATURES:
        if image_bytes.startswith(signature):
            return suffix
    if image_bytes[:4] == b"RIFF" and image_bytes[8:12] == b"WEBP":
        return ".webp"
    return ".bin"


def _vertical_overlap(det: dict[str, Any], line: list[dict[str, Any]]) -> float:
    """Overlap between a detection and a line's Y span, relative to the smaller height."""
    line_min = min(d["y_min"] for d in line)
    line_max = max(d["y_max"] for d in line)
    overlap = min(det["y_max"], line_max) - max(det["y_min"], line_min)
    if overlap <= 0:
        return 0.0
    smaller = min(det["y_max"] - det["y_min"], line_max - line_min)
    return overlap / smaller if smaller > 0 else 0.0


def _group_into_lines(detections: list[dict[str, Any]]) -> list[list[dict[str, Any]]]:
    """Group detections top to bottom into rows, each row ordered left to right."""
    lines: list[list[dict[str, Any]]] = []
    for det in sorted(detections, key=lambda d: (d["center_y"], d["min_x"])):
        best_line = None
        best_overlap = LINE_OVERLAP_RATIO
        for line in lines:
            overlap = _vertical_overlap(det, line)
            if overlap >= best_overlap:
                best_line, best_overlap = line, overlap
        if best_line is None:
            lines.append([det])
        else:
            best_line.append(det)

    for line in lines:
        line.sort(key=lambda d: d["min_x"])
    lines.sort(key=lambda line: sum(d["center_y"] for d in line) / len(line))
    return lines


def detections_to_text(raw_result: dict[str, Any]) -> tuple[str, float]:
    """
    Convert PaddleOCR-style detections into reading-order text.

    ``raw_result["detections"]`` holds ``[bbox, [text, confidence]]`` entries
    where bbox is four ``[x, y]`` points and confidence is 0-1.

    Returns:
        (text with one row per line, mean confidence scaled to 0-100)
    """
    detection_data: list[dict[str, Any]] = []
    for detection in raw_result.get("detections") or []:
        bbox, (text, confidence) = detection
        text = str(text).strip()
        if not text or confidence < MIN_DETECTION_CONFIDENCE:
            continue

        y_coords = [point[1] for point in bbox]
        detection_data.append(
            {
                "text": text,
                "confidence": float(confidence),
                "center_y": sum(y_coords) / len(y_coords),
                "y_min": min(y_coords),
                "y_max": max(y_coords),
                "min_x": min(point[0] for point in bbox),
            }
        )

    if not detection_data:
        return "", 0.0

    lines = _group_into_lines(detection_data)
    text = "\n".join(" ".join(d["text"] for d in line) for line in lines)
    confidence = sum(d["confidence"] for d in detection_data) / len(detection_data) * 100
    return text, round(confidence, 2)
