from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from pos.api.deps import get_current_user, get_db
import pos.repositories.role as role_repo
from pos.schemas.role import Role

router = APIRouter(prefix="/roles", tags=["roles"])


@router.get("", response_model=list[Role])
def get_roles(db: Session = Depends(get_db), current_user=Depends(get_current_user)):
    roles = role_repo.get_all_roles(db)
    return roles
