from fastapi import APIRouter, Depends, HTTPException
from sqlmodel import Session, select

from crackcheck.api.deps import CurrentUser, get_current_user
from crackcheck.constants import MAX_IMAGES_PER_ANALYSIS
from crackcheck.core.database import get_db
from crackcheck.models import CrackRecord
from crackcheck.schemas import CrackCreate, CrackUpdate

router = APIRouter(prefix="/api/cracks", tags=["cracks"])

# Columns that cannot hold NULL; a partial update may omit them but not clear them
NON_NULLABLE_FIELDS = ("description", "image_urls")


def _get_owned_crack(db: Session, crack_id: int, user: CurrentUser) -> CrackRecord:
    crack = db.get(CrackRecord, crack_id)
    if not crack or crack.user_id != user.id:
        raise HTTPException(status_code=404, detail="Crack not found")
    return crack


@router.get("")
def list_cracks(user: CurrentUser = Depends(get_current_user), db: Session = Depends(get_db)):
    stmt = (
        select(CrackRecord)
        .where(CrackRecord.user_id == user.id)
        .order_by(CrackRecord.created_at.desc(), CrackRecord.id.desc())
    )
    return {"cracks": [c.model_dump(mode="json") for c in db.exec(stmt).all()]}


@router.post("", status_code=201)
def create_crack(
    body: CrackCreate,
    user: CurrentUser = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    if not body.image_urls:
        raise HTTPException(status_code=400, detail="At least one image is required")
    if len(body.image_urls) > MAX_IMAGES_PER_ANALYSIS:
        raise HTTPException(status_code=400, detail=f"Maximum {MAX_IMAGES_PER_ANALYSIS} images allowed")
    crack = CrackRecord(user_id=user.id, **body.model_dump())
    db.add(crack)
    db.commit()
    db.refresh(crack)
    return {"crack": crack.model_dump(mode="json")}


@router.get("/{crack_id}")
def get_crack(crack_id: int, user: CurrentUser = Depends(get_current_user), db: Session = Depends(get_db)):
    return {"crack": _get_owned_crack(db, crack_id, user).model_dump(mode="json")}


@router.put("/{crack_id}")
def update_crack(
    crack_id: int,
    body: CrackUpdate,
    user: CurrentUser = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    if body.image_urls is not None and len(body.image_urls) > MAX_IMAGES_PER_ANALYSIS:
        raise HTTPException(status_code=400, detail=f"Maximum {MAX_IMAGES_PER_ANALYSIS} images allowed")
    changes = body.model_dump(exclude_unset=True)
    for key in NON_NULLABLE_FIELDS:
        if key in changes and changes[key] is None:
            raise HTTPException(status_code=400, detail=f"{key} cannot be null")
    crack = _get_owned_crack(db, crack_id, user)
    for key, value in changes.items():
        setattr(crack, key, value)
    db.add(crack)
    db.commit()
    db.refresh(crack)
    return {"crack": crack.model_dump(mode="json")}


@router.delete("/{crack_id}")
def delete_crack(crack_id: int, user: CurrentUser = Depends(get_current_user), db: Session = Depends(get_db)):
    crack = _get_owned_crack(db, crack_id, user)
    db.delete(crack)
    db.commit()
    return {"message": "Crack deleted successfully"}
