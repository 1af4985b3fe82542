from io import BytesIO
from pathlib import Path

from PIL import Image, UnidentifiedImageError

from civicbot.config import Settings
from civicbot.errors import TransientIOFailure


class MediaStorageService:
    def __init__(self, settings: Settings) -> None:
        self.media_dir = Path(settings.media_dir)
        self.public_base_url = settings.public_base_url

    def _ensure_dir(self) -> Path:
        if not self.media_dir.is_absolute():
            base = Path(__file__).resolve().parents[2]
            path = base / self.media_dir
        else:
            path = self.media_dir
        path.mkdir(parents=True, exist_ok=True)
        return path

    def resolve(self, filename: str) -> Path | None:
        directory = self._ensure_dir().resolve()
        candidate = (directory / filename).resolve()
        if candidate.parent != directory or not candidate.is_file():
            return None
        return candidate

    def save_image(self, media_id: str, payload: bytes) -> str:
        filename = f"{Path(media_id).name}.png"
        target = self._ensure_dir() / filename

        try:
            with Image.open(BytesIO(payload)) as image:
                image.convert("RGB").save(target, format="PNG")
        except (UnidentifiedImageError, OSError) as exc:
            raise TransientIOFailure(f"Could not store image {media_id}: {exc}") from exc

        return f"{self.public_base_url}/media/{filename}"
