"""Image upload endpoints.

Endpoints:
    POST /search:  one image in field ``photo``
    POST /compare: several images in field ``photos``

Both endpoints stage and validate the upload and then hand it to the matching
service. The matching service lives elsewhere; the hand-off answers with a
receipt describing what was staged. Staged files are gone once the response
is sent.
"""
import logging

from fastapi import APIRouter, Depends

from ..upload import UploadContext, UploadReceipt, upload_multiple_files, upload_single_file

logger = logging.getLogger(__name__)

router = APIRouter(tags=["identigraf"])

SEARCH_FIELD = "photo"
COMPARE_FIELD = "photos"
COMPARE_MIN_FILES = 2


@router.post("/search", response_model=UploadReceipt)
async def search(uploads: UploadContext = Depends(upload_single_file(SEARCH_FIELD))) -> UploadReceipt:
    """Accept a single photo for a face search.

    Returns:
        UploadReceipt describing the staged photo.
    """
    receipt = UploadReceipt.from_context(uploads)
    logger.info(f"Search upload accepted: {receipt.files[0].original_filename}")
    return receipt


@router.post("/compare", response_model=UploadReceipt)
async def compare(
    uploads: UploadContext = Depends(upload_multiple_files(COMPARE_FIELD, COMPARE_MIN_FILES)),
) -> UploadReceipt:
    """Accept two or more photos for comparison.

    The upper bound is the configured ``max_file_count``.

    Returns:
        UploadReceipt listing the staged photos in upload order.
    """
    receipt = UploadReceipt.from_context(uploads)
    logger.info(f"Compare upload accepted: {len(receipt.files)} files")
    return receipt
