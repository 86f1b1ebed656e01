from pydantic import BaseModel, ConfigDict


class CategoryOut(BaseModel):
    id: int
    name: str
    parent_id: int | None = None
    status: str

    model_config = ConfigDict(from_attributes=True)


class CategoryClosureOut(BaseModel):
    """Categoria pedida + todos os descendentes ativos."""

    id: int
    category_ids: list[int]
