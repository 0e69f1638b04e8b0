# File: app/routers/taxonomy.py
# Reference data for the report form: categories, cities, wards, departments.

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session
from app.core.errors import NotFound
from app.db.session import get_db
from app.models.category import Category
from app.models.region import City, Department, Ward
from app.schemas.common import ok

router = APIRouter(tags=["taxonomy"])


def _active_city(db: Session, city_id: int) -> City:
    city = db.get(City, city_id)
    if not city or not city.is_active:
        raise NotFound("City not found", "CITY_NOT_FOUND")
    return city


@router.get("/categories")
def list_categories(db: Session = Depends(get_db)):
    rows = (
        db.query(Category)
        .filter(Category.is_active.is_(True))
        .order_by(Category.sort_order.asc(), Category.name.asc())
        .all()
    )
    return ok([
        {"id": r.id, "name": r.name, "slug": r.slug, "description": r.description, "icon": r.icon}
        for r in rows
    ])


@router.get("/cities")
def list_cities(db: Session = Depends(get_db)):
    rows = db.query(City).filter(City.is_active.is_(True)).order_by(City.name.asc()).all()
    return ok([
        {"id": c.id, "name": c.name, "state": {"id": c.state.id, "name": c.state.name, "code": c.state.code}}
        for c in rows
    ])


@router.get("/cities/{city_id}/wards")
def list_wards(city_id: int, db: Session = Depends(get_db)):
    city = _active_city(db, city_id)
    rows = db.query(Ward).filter(Ward.city_id == city.id).order_by(Ward.name.asc()).all()
    return ok([{"id": w.id, "name": w.name, "number": w.number} for w in rows])


@router.get("/cities/{city_id}/departments")
def list_departments(city_id: int, db: Session = Depends(get_db)):
    city = _active_city(db, city_id)
    rows = db.query(Department).filter(Department.city_id == city.id).order_by(Department.name.asc()).all()
    return ok([{"id": d.id, "name": d.name, "code": d.code} for d in rows])
