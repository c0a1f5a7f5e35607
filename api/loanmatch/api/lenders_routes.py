from typing import List

from fastapi import APIRouter, Depends, HTTPException

from loanmatch.api.dependencies import get_lenders
from loanmatch.core.errors import LenderNotFoundError
from loanmatch.models.lenders import LenderProfile
from loanmatch.services.lender_directory import LenderDirectory

router = APIRouter(prefix="/lenders", tags=["lenders"])


@router.get("", response_model=List[LenderProfile])
def list_active_lenders(directory: LenderDirectory = Depends(get_lenders)) -> List[LenderProfile]:
    return directory.active()


@router.get("/{lender_id}", response_model=LenderProfile)
def get_lender(lender_id: str, directory: LenderDirectory = Depends(get_lenders)) -> LenderProfile:
    try:
        return directory.get(lender_id)
    except LenderNotFoundError as ex:
        raise HTTPException(status_code=404, detail=str(ex))
