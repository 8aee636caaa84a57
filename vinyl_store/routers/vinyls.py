from datetime import datetime, timezone
from typing import List
from uuid import uuid4

from fastapi import APIRouter, Depends, HTTPException, Query

from ..dependencies import get_vinyl_repository
from ..models import Vinyl
from ..repositories import VinylRepository
from ..schemas import ResponseJSON, VinylCreate, VinylRead, VinylUpdate
from ..security import require_admin

router = APIRouter(prefix="/api/vinyls", tags=["vinyls"])


@router.get("", response_model=ResponseJSON[List[VinylRead]])
async def list_vinyls(vinyls: VinylRepository = Depends(get_vinyl_repository)):
    found = await vinyls.find_all()
    return ResponseJSON(status="Listed successfully", data=[VinylRead.model_validate(v) for v in found])


@router.get("/search", response_model=ResponseJSON[List[VinylRead]])
async def search_vinyls(term: str = Query(...), vinyls: VinylRepository = Depends(get_vinyl_repository)):
    found = await vinyls.search(term)
    return ResponseJSON(status="Search results", data=[VinylRead.model_validate(v) for v in found])


@router.get("/principal", response_model=ResponseJSON[VinylRead])
async def get_principal(
    vinyl_id: str = Query(..., alias="vinylId"),
    is_principal: bool = Query(..., alias="isPrincipal"),
    vinyls: VinylRepository = Depends(get_vinyl_repository),
):
    if not is_principal:
        raise HTTPException(status_code=400, detail="Vinyl is not principal")
    vinyl = await vinyls.get(vinyl_id)
    if not vinyl:
        raise HTTPException(status_code=404, detail="Vinyl not found")
    return ResponseJSON(status="Principal vinyl found", data=VinylRead.model_validate(vinyl))


@router.get("/{vinyl_id}", response_model=ResponseJSON[VinylRead])
async def get_vinyl(vinyl_id: str, vinyls: VinylRepository = Depends(get_vinyl_repository)):
    vinyl = await vinyls.get(vinyl_id)
    if not vinyl:
        raise HTTPException(status_code=404, detail="Vinyl not found")
    return ResponseJSON(status="Listed one successfully", data=VinylRead.model_validate(vinyl))


@router.post("", response_model=ResponseJSON[VinylRead], status_code=201, dependencies=[Depends(require_admin)])
async def create_vinyl(vinyl_data: VinylCreate, vinyls: VinylRepository = Depends(get_vinyl_repository)):
    now = datetime.now(timezone.utc)
    vinyl = Vinyl(
        id=str(uuid4()),
        title=vinyl_data.title,
        artist=vinyl_data.artist,
        price=vinyl_data.price,
        stock=vinyl_data.stock,
        cover_path=vinyl_data.cover_path,
        gallery=vinyl_data.gallery,
        is_principal=False,
        created_at=now,
        updated_at=now,
    )
    saved = await vinyls.save(vinyl)
    return ResponseJSON(status="Created Successfully", data=VinylRead.model_validate(saved))


@router.patch("/{vinyl_id}", response_model=ResponseJSON[VinylRead], dependencies=[Depends(require_admin)])
async def update_vinyl(
    vinyl_id: str,
    vinyl_data: VinylUpdate,
    vinyls: VinylRepository = Depends(get_vinyl_repository),
):
    vinyl = await vinyls.get(vinyl_id)
    if not vinyl:
        raise HTTPException(status_code=404, detail="Vinyl not found")
    for name, value in vinyl_data.model_dump(exclude_none=True).items():
        setattr(vinyl, name, value)
    vinyl.updated_at = datetime.now(timezone.utc)
    saved = await vinyls.save(vinyl)
    return ResponseJSON(status="Edited Successfully", data=VinylRead.model_validate(saved))


@router.delete("/{vinyl_id}", response_model=ResponseJSON[str], dependencies=[Depends(require_admin)])
async def delete_vinyl(vinyl_id: str, vinyls: VinylRepository = Depends(get_vinyl_repository)):
    if not await vinyls.exists(vinyl_id):
        raise HTTPException(status_code=404, detail="Vinyl not found")
    await vinyls.delete(vinyl_id)
    return ResponseJSON(status="Deleted Successfully", data=vinyl_id)
