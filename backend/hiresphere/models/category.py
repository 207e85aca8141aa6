from sqlalchemy import Column, Integer, String
from sqlalchemy.orm import relationship, validates

from ..database import Base
from ..utils.validation import CATEGORY_NAME_PATTERN, generate_slug


class Category(Base):
    __tablename__ = "categories"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String(100), unique=True, nullable=False, index=True)
    slug = Column(String(120), unique=True, nullable=False, index=True)

    jobs = relationship("Job", back_populates="category")

    @validates("name")
    def _validate_name(self, key, value):  # noqa: ANN001
        value = (value or "").strip()
        if len(value) < 2 or len(value) > 100:
            raise ValueError("Category name must be between 2 and 100 characters.")
        if not CATEGORY_NAME_PATTERN.match(value):
            raise ValueError("Category name can only contain letters, numbers, spaces and hyphens.")
        self.slug = generate_slug(value)
        return value

    def update_name(self, name: str) -> None:
        self.name = name

    def __repr__(self) -> str:
        return f"<Category(id={self.id}, slug={self.slug})>"
