from decimal import Decimal
from typing import Any, List

from pydantic import AliasChoices, BaseModel, Field, field_validator


class ImportRow(BaseModel):
    """
    One normalized catalog row, as produced by a parser or sent as JSON.

    Fields are deliberately loose: a malformed value must fail only its own
    row inside ImportReconciler, never the whole request.
    """
    # Any JSON value is accepted here; the reconciler validates each row
    name: Any = None
    description: Any = None
    price: Any = None
    stock: Any = None
    image: Any = None
    category_name: Any = Field(
        default=None,
        validation_alias=AliasChoices("category_name", "categoryName", "category"),
    )

    @field_validator("name", "description", "image", "category_name", mode="before")
    @classmethod
    def scalar_to_text(cls, v):
        # Spreadsheets and JSON clients send numeric names and categories ("2024", 42)
        if isinstance(v, (bool, int, float, Decimal)):
            return str(v)
        return v


class ImportRequest(BaseModel):
    rows: List[ImportRow]


class ImportReport(BaseModel):
    imported: int = 0
    failed: int = 0
    errors: List[str] = Field(default_factory=list)

    def record_success(self) -> None:
        self.imported += 1

    def record_failure(self, row_number: int, message: str) -> None:
        self.failed += 1
        self.errors.append(f"row {row_number} failed: {message}")
