from typing import List, Tuple
from urllib.parse import quote


PLACEHOLDER_HOST = "https://via.placeholder.com"
COLORS = ["4F46E5", "7C3AED", "DB2777", "DC2626", "EA580C", "059669"]

_DIMENSIONS = {
    "1:1": (512, 512),
    "16:9": (896, 512),
    "9:16": (512, 896),
    "2:3": (512, 768),
    "3:2": (768, 512),
    "4:5": (512, 640),
    "4:3": (683, 512),
    "3:4": (512, 683),
}


def dimensions_from_ratio(ratio: str) -> Tuple[int, int]:
    return _DIMENSIONS.get(ratio, (512, 512))


def placeholder_urls(count: int, ratio: str, prompt: str) -> List[str]:
    """Картинки-заглушки, чтобы интерфейсу всегда было что показать."""
    width, height = dimensions_from_ratio(ratio)
    text = quote(prompt[:50], safe="")
    return [
        f"{PLACEHOLDER_HOST}/{width}x{height}/{COLORS[i % len(COLORS)]}/FFFFFF?text={text}"
        for i in range(count)
    ]
