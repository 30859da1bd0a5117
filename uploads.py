import logging
import os
import time
import uuid
from typing import List

from fastapi import APIRouter, Depends, File, UploadFile

from config import MAX_UPLOAD_BYTES, UPLOAD_DIR
from errors import BadRequest
from security import get_current_user

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/upload", tags=["upload"], dependencies=[Depends(get_current_user)])


async def read_image(file: UploadFile) -> bytes:
    if not file.content_type or not file.content_type.startswith("image/"):
        raise BadRequest("Only image files are allowed")
    content = await file.read(MAX_UPLOAD_BYTES + 1)
    if len(content) > MAX_UPLOAD_BYTES:
        raise BadRequest(f"File too large, max {MAX_UPLOAD_BYTES // (1024 * 1024)}MB")
    return content


def store(content: bytes, original_name: str, unique_suffix: bool = False) -> str:
    os.makedirs(UPLOAD_DIR, exist_ok=True)
    base = os.path.basename(original_name or "upload")
    timestamp = int(time.time() * 1000)
    if unique_suffix:
        filename = f"{timestamp}-{uuid.uuid4().hex[:9]}-{base}"
    else:
        filename = f"{timestamp}-{base}"
    with open(os.path.join(UPLOAD_DIR, filename), "wb") as fh:
        fh.write(content)
    logger.info("Stored upload %s (%d bytes)", filename, len(content))
    return filename


@router.post("")
async def upload_file(file: UploadFile = File(...)):
    content = await read_image(file)
    filename = store(content, file.filename)
    return {"message": "File uploaded successfully", "url": f"/uploads/{filename}", "filename": filename}


@router.post("/multiple")
async def upload_multiple(files: List[UploadFile] = File(...)):
    if not files:
        raise BadRequest("No files uploaded")
    # validate everything before writing anything
    contents = [await read_image(f) for f in files]
    urls = [f"/uploads/{store(content, f.filename, unique_suffix=True)}" for f, content in zip(files, contents)]
    return {"message": "Files uploaded successfully", "urls": urls}
