# showreel/schemas/base.py
from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel


class CamelModel(BaseModel):
    """
    Wire format is camelCase (videoUrl, displayOrder, ...);
    Python side stays snake_case. Both spellings are accepted on input.
    """
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        from_attributes=True,
    )

    def to_json(self) -> dict:
        return self.model_dump(mode="json", by_alias=True)


class BaseDTO(CamelModel):

    @classmethod  # 强制所有 DTO 显式定义映射
    def from_orm_model(cls, orm_obj, **kwargs):
        """
        子类应 override
        """
        raise NotImplementedError(
            f"{cls.__name__}.from_orm_model() must be implemented"
        )
