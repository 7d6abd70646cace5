from showreel.models.category import Category
from showreel.schemas.base import BaseDTO


class CategoryDTO(BaseDTO):
    id: int
    name: str
    slug: str
    display_order: int

    @classmethod
    def from_orm_model(cls, category: Category) -> "CategoryDTO":
        return cls(
            id=category.id,
            name=category.name,
            slug=category.slug,
            display_order=category.display_order or 0,
        )
