"""
Storage service for reference image files in a Supabase storage bucket
"""
from typing import Any, Dict, Iterable, List, Optional

import structlog

logger = structlog.get_logger(__name__)


class StorageService:
    """Upload, resolve and remove files in the reference image bucket"""

    def __init__(self, supabase_client, bucket_name: str = "reference-images"):
        self.supabase = supabase_client
        self.bucket_name = bucket_name

    def _bucket(self):
        return self.supabase.storage.from_(self.bucket_name)

    def upload_file(self, path: str, data: bytes, content_type: str) -> str:
        """Upload bytes and return the public URL"""
        self._bucket().upload(path, data, file_options={"content-type": content_type})
        logger.info(f"✅ Uploaded {path} ({len(data)} bytes)")
        return self.get_public_url(path)

    def get_public_url(self, path: str) -> str:
        return self._bucket().get_public_url(path)

    def path_from_url(self, url: Optional[str]) -> Optional[str]:
        """Extract the object path from a public URL (the part after the bucket name)"""
        if not url:
            return None
        marker = f"{self.bucket_name}/"
        if marker not in url:
            return None
        path = url.split(marker, 1)[1].split("?", 1)[0]
        return path or None

    def remove_paths(self, paths: Iterable[str]) -> int:
        paths = [p for p in paths if p]
        if not paths:
            return 0
        self._bucket().remove(paths)
        logger.info(f"🗑️ Removed {len(paths)} files from {self.bucket_name}")
        return len(paths)

    def remove_image_files(self, images: List[Dict[str, Any]]) -> int:
        """Remove original and thumbnail files for image rows

        Storage failures are logged and do not stop the caller from
        deleting database rows.
        """
        paths = []
        for image in images:
            for field in ("storage_path", "thumbnail_path"):
                path = self.path_from_url(image.get(field))
                if path:
                    paths.append(path)
        try:
            return self.remove_paths(paths)
        except Exception as e:
            logger.warning(f"⚠️ Failed to remove {len(paths)} storage files: {e}")
            return 0
