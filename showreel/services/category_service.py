# showreel/services/category_service.py
import re
from typing import List

from sqlalchemy import func, select
from sqlalchemy.orm import Session

from showreel.errors import ConflictError, NotFoundError, ValidationError
from showreel.models.category import Category
from showreel.schemas.content import CategoryCreate, CategoryUpdate


def slugify(name: str) -> str:
    slug = re.sub(r"[^a-z0-9]+", "-", name.strip().lower()).strip("-")
    return slug[:50]


class CategoryService:
    """
    Admin-managed categories.
    Projects reference categories by free text only, so nothing here reads
    or writes the projects table.
    """

    def __init__(self, db: Session):
        self.db = db

    def _get_or_404(self, category_id: int) -> Category:
        category = self.db.get(Category, category_id)
        if category is None:
            raise NotFoundError(f"Category {category_id} not found")
        return category

    def _ensure_unique(self, *, name: str, slug: str, exclude_id=None) -> None:
        stmt = select(Category).where(
            (func.lower(Category.name) == name.lower()) | (Category.slug == slug)
        )
        if exclude_id is not None:
            stmt = stmt.where(Category.id != exclude_id)
        if self.db.scalar(stmt) is not None:
            raise ConflictError(f"Category '{name}' ({slug}) already exists")

    def list_categories(self) -> List[Category]:
        return list(self.db.scalars(
            select(Category).order_by(Category.display_order.asc(), Category.name.asc())
        ))

    def create_category(self, data: CategoryCreate) -> Category:
        slug = slugify(data.slug or data.name)
        if not slug:
            raise ValidationError("Slug must contain letters or digits", field="slug")
        self._ensure_unique(name=data.name, slug=slug)

        category = Category(name=data.name, slug=slug, display_order=data.display_order)
        self.db.add(category)
        self.db.flush()
        return category

    def update_category(self, category_id: int, data: CategoryUpdate) -> Category:
        category = self._get_or_404(category_id)
        fields = data.model_dump(exclude_unset=True, exclude_none=True)

        name = fields.get("name", category.name).strip()
        slug = slugify(fields["slug"]) if "slug" in fields else category.slug
        if not name:
            raise ValidationError("Category name must be 1-50 characters", field="name")
        if not slug:
            raise ValidationError("Slug must contain letters or digits", field="slug")
        self._ensure_unique(name=name, slug=slug, exclude_id=category.id)

        category.name = name
        category.slug = slug
        if "display_order" in fields:
            category.display_order = fields["display_order"]
        self.db.flush()
        return category

    def delete_category(self, category_id: int) -> None:
        # 已引用该分类的项目保持原样（悬空引用可读）
        category = self._get_or_404(category_id)
        self.db.delete(category)
        self.db.flush()
