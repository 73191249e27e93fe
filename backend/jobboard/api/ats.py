from pathlib import Path
import logging

from fastapi import APIRouter, Depends, File, Form, HTTPException, UploadFile
from starlette.concurrency import run_in_threadpool

from ..config import MAX_ATS_BYTES
from ..services.ats import check_cv_against_job
from ..services.resume_text import extract_cv_text
from ..utils.dependencies import get_current_user
from ..utils.error_handlers import FileUploadError, get_error_message

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/ats", tags=["ATS"])

ALLOWED_ATS_EXTENSIONS = {".pdf", ".doc", ".docx", ".txt"}
ALLOWED_ATS_CONTENT_TYPES = {
    "application/pdf",
    "application/msword",
    "application/vnd.openxmlformats-officedocument.wordprocessingml.document",
    "text/plain",
    "application/octet-stream",
}


@router.post("/check")
async def check_ats(
    cv: UploadFile | None = File(default=None),
    jobDescription: str | None = Form(default=None),
    user=Depends(get_current_user),
):
    if cv is None or not cv.filename:
        raise HTTPException(status_code=400, detail=get_error_message("cv_required"))

    ext = Path(cv.filename).suffix.lower()
    content_type = (cv.content_type or "").split(";", 1)[0].strip()
    if ext not in ALLOWED_ATS_EXTENSIONS or (content_type and content_type not in ALLOWED_ATS_CONTENT_TYPES):
        raise FileUploadError(get_error_message("invalid_ats_type"))

    if not (jobDescription or "").strip():
        raise HTTPException(status_code=400, detail=get_error_message("job_description_required"))

    # Nothing is persisted; the upload only lives for this request.
    try:
        data = await cv.read(MAX_ATS_BYTES + 1)
    finally:
        await cv.close()
    if len(data) > MAX_ATS_BYTES:
        raise FileUploadError(
            get_error_message("file_too_large", limit=MAX_ATS_BYTES // (1024 * 1024)),
            status_code=413,
        )

    # pypdf and python-docx are synchronous; keep them off the event loop.
    cv_text = await run_in_threadpool(extract_cv_text, data, ext=ext)
    analysis = await check_cv_against_job(cv_text=cv_text, job_description=jobDescription.strip())
    return {"success": True, "analysis": analysis}
