from fastapi import APIRouter, Depends

from opticare.auth.dependencies import get_current_user
from opticare.models.user import User

router = APIRouter(tags=['auth'])


@router.get("/me")
def me(current_user: User = Depends(get_current_user)):
    return {"email": current_user.email, "full_name": current_user.full_name, "role": current_user.role}
