from fastapi import APIRouter, Depends, File, UploadFile
from pydantic import BaseModel

from menuhub.core.errors import ValidationError
from menuhub.deps import MENU_EDITOR_ROLES, get_admin_tenant_id, require_role
from menuhub.models.admin_user import AdminUser
from menuhub.services.object_storage import ALLOWED_FOLDERS, ObjectStorage, get_object_storage

router = APIRouter(prefix="/api/admin/uploads", tags=["uploads"])


class UploadResponse(BaseModel):
    url: str
    folder: str


@router.post("/{folder}", response_model=UploadResponse)
def upload_image(
    folder: str,
    file: UploadFile = File(...),
    tenant_id: int = Depends(get_admin_tenant_id),
    storage: ObjectStorage = Depends(get_object_storage),
    _user: AdminUser = Depends(require_role(MENU_EDITOR_ROLES)),
):
    if folder not in ALLOWED_FOLDERS:
        raise ValidationError(f"Unknown upload folder: {folder}", allowed=sorted(ALLOWED_FOLDERS))
    url = storage.upload(file, tenant_id=tenant_id, folder=folder)
    return UploadResponse(url=url, folder=folder)
