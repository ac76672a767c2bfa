"""crackcheck baseline

Creates every table in the SQLModel metadata: analyses, PDF exports, credits,
conversations, crack records, articles, products, professionals and error logs.
Tables that already exist are left untouched.

"""
from typing import Sequence, Union

from alembic import op
from sqlmodel import SQLModel

from crackcheck import models  # noqa: F401

revision: str = "0001_initial_models"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    SQLModel.metadata.create_all(op.get_bind(), checkfirst=True)


def downgrade() -> None:
    SQLModel.metadata.drop_all(op.get_bind(), checkfirst=True)
