from pydantic import BaseModel, field_validator


class LayoutTemplate(BaseModel):
    """Structural class strings for one page: container, image panel, text panel, title."""

    container: str
    image_class: str
    text_class: str
    title_class: str

    @field_validator("container", "image_class", "text_class", "title_class")
    @classmethod
    def must_not_be_blank(cls, v: str) -> str:
        if not v.strip():
            raise ValueError("layout class strings must not be empty")
        return v

    @property
    def is_grid(self) -> bool:
        return "grid" in self.container.split()
