"""Categories: CRUD. Deletion is refused while products reference the category."""
from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from storefront.api.deps import get_category_guard, get_db
from storefront.schemas.category import CategoryCreate, CategoryResponse, CategoryUpdate
from storefront.schemas.product import ProductResponse
from storefront.services import catalog_service
from storefront.services.category_guard import CategoryGuard

router = APIRouter()


@router.post("", response_model=CategoryResponse, status_code=201)
def create_category(data: CategoryCreate, db: Session = Depends(get_db)):
    return catalog_service.create_category(db, data)


@router.get("", response_model=list[CategoryResponse])
def list_categories(db: Session = Depends(get_db)):
    return catalog_service.list_categories(db)


@router.get("/{category_id}", response_model=CategoryResponse)
def get_category(category_id: int, db: Session = Depends(get_db)):
    return catalog_service.get_category(db, category_id)


@router.get("/{category_id}/products", response_model=list[ProductResponse])
def list_category_products(category_id: int, db: Session = Depends(get_db)):
    return catalog_service.products_by_category(db, category_id)


@router.get("/{category_id}/deletable")
def can_delete_category(category_id: int, guard: CategoryGuard = Depends(get_category_guard)):
    return {"id": category_id, "deletable": guard.can_delete(category_id)}


@router.put("/{category_id}", response_model=CategoryResponse)
def update_category(category_id: int, data: CategoryUpdate, db: Session = Depends(get_db)):
    return catalog_service.update_category(db, category_id, data)


@router.delete("/{category_id}")
def delete_category(category_id: int, guard: CategoryGuard = Depends(get_category_guard)):
    """409 while products still reference the category."""
    return {"success": guard.delete_category(category_id), "id": category_id}
