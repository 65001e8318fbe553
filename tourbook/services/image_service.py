"""이미지 서비스 — 업로드 이미지 리사이즈 및 로컬 저장.

Image Service — Resizes uploaded user photos and tour images with Pillow
and stores them under PUBLIC_DIR/img/{users,tours}, served at /img.
"""

import io
from pathlib import Path

from PIL import Image, ImageOps, UnidentifiedImageError
from starlette.concurrency import run_in_threadpool

from tourbook.config import settings
from tourbook.utils.dates import utcnow
from tourbook.utils.exceptions import BadRequestError

USER_PHOTO_SIZE: tuple[int, int] = (500, 500)
TOUR_IMAGE_SIZE: tuple[int, int] = (2000, 1333)
JPEG_QUALITY: int = 90
MAX_TOUR_IMAGES: int = 3


class ImageService:
    """업로드 이미지 처리 서비스."""

    @property
    def img_dir(self) -> Path:
        return Path(settings.PUBLIC_DIR) / "img"

    def ensure_dirs(self) -> None:
        for folder in ("users", "tours"):
            (self.img_dir / folder).mkdir(parents=True, exist_ok=True)

    def _resize_and_save(self, data: bytes, size: tuple[int, int], path: Path) -> None:
        try:
            image = Image.open(io.BytesIO(data))
            image.load()
        except (UnidentifiedImageError, OSError):
            raise BadRequestError("Not an image! Please upload only images.")
        # 비율 유지 후 중앙 크롭 — Cover-fit: scale then center crop
        fitted = ImageOps.fit(image.convert("RGB"), size, Image.LANCZOS)
        path.parent.mkdir(parents=True, exist_ok=True)
        fitted.save(path, format="JPEG", quality=JPEG_QUALITY)

    def check_image(self, content_type: str | None) -> None:
        if not content_type or not content_type.startswith("image/"):
            raise BadRequestError("Not an image! Please upload only images.")

    async def save_user_photo(self, user_id: str, data: bytes, content_type: str | None) -> str:
        """사용자 사진 500x500 JPEG 저장. 파일명을 반환합니다."""
        self.check_image(content_type)
        filename = f"user-{user_id}-{int(utcnow().timestamp() * 1000)}.jpeg"
        await run_in_threadpool(self._resize_and_save, data, USER_PHOTO_SIZE, self.img_dir / "users" / filename)
        return filename

    async def save_tour_cover(self, tour_id: str, data: bytes, content_type: str | None) -> str:
        """투어 커버 2000x1333 JPEG 저장."""
        self.check_image(content_type)
        filename = f"tour-{tour_id}-{int(utcnow().timestamp() * 1000)}-cover.jpeg"
        await run_in_threadpool(self._resize_and_save, data, TOUR_IMAGE_SIZE, self.img_dir / "tours" / filename)
        return filename

    async def save_tour_images(
        self,
        tour_id: str,
        files: list[tuple[bytes, str | None]],
    ) -> list[str]:
        """투어 갤러리 이미지(최대 3장) 저장 — tour-{id}-{ts}-{n}.jpeg."""
        if len(files) > MAX_TOUR_IMAGES:
            raise BadRequestError(f"A tour can have at most {MAX_TOUR_IMAGES} images.")
        timestamp = int(utcnow().timestamp() * 1000)
        filenames: list[str] = []
        for index, (data, content_type) in enumerate(files, start=1):
            self.check_image(content_type)
            filename = f"tour-{tour_id}-{timestamp}-{index}.jpeg"
            await run_in_threadpool(self._resize_and_save, data, TOUR_IMAGE_SIZE, self.img_dir / "tours" / filename)
            filenames.append(filename)
        return filenames


image_service: ImageService = ImageService()
