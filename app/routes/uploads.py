"""Equipment document upload routes (admin only)."""
from fastapi import APIRouter, Depends, File, Form, UploadFile
from sqlalchemy.orm import Session

from app.auth import require_admin
from app.database import get_db
from app.models.equipment import DocumentKind
from app.models.user import User
from app.schemas.upload import UploadResponse
from app.services import equipment_registry
from app.services.storage import LocalStorage, content_type_for, get_storage

router = APIRouter(prefix="/uploads", tags=["Uploads"])


@router.post("/equipment/{equipment_id}", response_model=UploadResponse)
async def upload_equipment_document(
    equipment_id: int,
    kind: DocumentKind = Form(...),
    file: UploadFile = File(...),
    db: Session = Depends(get_db),
    storage: LocalStorage = Depends(get_storage),
    current_user: User = Depends(require_admin)
):
    """Store a brochure, manual, quick guide or image and record its URL."""
    equipment = equipment_registry.get_equipment(db, equipment_id)
    previous = getattr(equipment, kind.column)

    content = await file.read()
    url = storage.save(equipment_id, kind, file.filename, content)
    equipment_registry.set_document_url(db, equipment_id, kind, url)
    if previous and previous != url:
        storage.delete(previous)

    return UploadResponse(
        equipment_id=equipment_id,
        kind=kind,
        url=url,
        size=len(content),
        content_type=content_type_for(file.filename),
    )


@router.delete("/equipment/{equipment_id}/{kind}")
async def delete_equipment_document(
    equipment_id: int,
    kind: DocumentKind,
    db: Session = Depends(get_db),
    storage: LocalStorage = Depends(get_storage),
    current_user: User = Depends(require_admin)
):
    """Remove a document: delete the stored file and clear the URL."""
    equipment = equipment_registry.get_equipment(db, equipment_id)
    storage.delete(getattr(equipment, kind.column))
    equipment_registry.set_document_url(db, equipment_id, kind, None)
    return {"message": "File deleted", "equipment_id": equipment_id, "kind": kind.value}
