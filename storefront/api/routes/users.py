"""Users: account CRUD. Responses never include the password hash."""
from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from storefront.api.deps import get_db
from storefront.schemas.user import UserCreate, UserResponse, UserUpdate
from storefront.services import user_service

router = APIRouter()


@router.post("", response_model=UserResponse, status_code=201)
def create_user(data: UserCreate, db: Session = Depends(get_db)):
    """409 when the username is taken."""
    return user_service.create_user(db, data)


@router.get("", response_model=list[UserResponse])
def list_users(db: Session = Depends(get_db)):
    return user_service.list_users(db)


@router.get("/{user_id}", response_model=UserResponse)
def get_user(user_id: int, db: Session = Depends(get_db)):
    return user_service.get_user(db, user_id)


@router.put("/{user_id}", response_model=UserResponse)
def update_user(user_id: int, data: UserUpdate, db: Session = Depends(get_db)):
    return user_service.update_user(db, user_id, data)


@router.delete("/{user_id}")
def delete_user(user_id: int, db: Session = Depends(get_db)):
    return {"success": user_service.delete_user(db, user_id), "id": user_id}
