from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session
from typing import List
from .. import models, schemas
from ..auth import Principal, get_current_principal
from ..database import get_db

router = APIRouter(prefix="/parties", tags=["parties"])


@router.get("/", response_model=List[schemas.Party])
def list_parties(
    db: Session = Depends(get_db),
    principal: Principal = Depends(get_current_principal),
):
    rows = db.query(models.Party).order_by(models.Party.company_name).all()
    return [schemas.Party(id=row.id, company_name=row.company_name) for row in rows]
