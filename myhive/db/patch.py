"""Generic partial updates driven by the fields present in a request."""

from typing import Any

from pydantic import BaseModel
from sqlalchemy import update
from sqlalchemy.orm import Session

from myhive.errors import NoFieldsToUpdate


def patch_values(data: BaseModel) -> dict[str, Any]:
    """Collect the column values a patch request carries.

    Fields the client left out are absent from the result; fields sent as
    explicit ``null`` are present with ``None``.

    Args:
        data: Parsed request body.

    Returns:
        dict: Column name to new value.

    Raises:
        NoFieldsToUpdate: If no recognized field was sent.
    """
    values = data.model_dump(exclude_unset=True)
    if not values:
        raise NoFieldsToUpdate()
    return values


def apply_patch(db: Session, model, values: dict[str, Any], *criteria) -> int:
    """Apply one UPDATE statement to the rows matching ``criteria``.

    Args:
        db: Database session (not committed here).
        model: Mapped class to update.
        values: Column values from ``patch_values``.
        *criteria: WHERE clauses.

    Returns:
        int: Number of rows matched.
    """
    stmt = (
        update(model)
        .where(*criteria)
        .values(**values)
        .execution_options(synchronize_session=False)
    )
    result = db.execute(stmt)
    return result.rowcount
