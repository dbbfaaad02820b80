import time
from dataclasses import dataclass, field
from typing import List, Optional


ASPECT_RATIOS = ("1:1", "16:9", "9:16", "4:3", "3:4", "2:3", "3:2", "4:5")
MAX_IMAGES = 4


@dataclass(frozen=True)
class GenerationRequest:
    """
    Запрос на генерацию. После создания не меняется.
    """
    prompt: str
    aspect_ratio: str = "1:1"
    image_count: int = 1
    style: Optional[str] = None

    def __post_init__(self):
        if not isinstance(self.prompt, str) or not self.prompt.strip():
            raise ValueError("Prompt is required")
        if self.aspect_ratio not in ASPECT_RATIOS:
            raise ValueError(f"Unsupported aspect ratio: {self.aspect_ratio}")
        if isinstance(self.image_count, bool) or not isinstance(self.image_count, int):
            raise ValueError("Number of images must be an integer")
        if not 1 <= self.image_count <= MAX_IMAGES:
            raise ValueError(f"Number of images must be between 1 and {MAX_IMAGES}")

    def to_payload(self) -> dict:
        """Тело запроса в формате удалённых функций."""
        payload = {
            "prompt": self.prompt,
            "imageDimensions": self.aspect_ratio,
            "numberOfImages": self.image_count,
        }
        if self.style:
            payload["style"] = self.style
        return payload


@dataclass
class GenerationResult:
    success: bool
    image_urls: List[str] = field(default_factory=list)
    error: Optional[str] = None
    provider: str = ""

    def to_dict(self) -> dict:
        data = {
            "success": self.success,
            "imageUrls": list(self.image_urls),
            "provider": self.provider,
        }
        if self.error is not None:
            data["error"] = self.error
        return data


@dataclass
class ProviderOperation:
    """Асинхронная задача провайдера. Живёт только внутри одного поллинга."""
    operation_id: str
    submitted_at: float = field(default_factory=time.monotonic)
    attempts: int = 0
    status: str = "pending"  # pending | done | error
