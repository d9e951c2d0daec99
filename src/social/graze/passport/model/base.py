from datetime import datetime

from sqlalchemy import DateTime, String, orm
from sqlalchemy.orm import mapped_column

from typing_extensions import Annotated

str64 = Annotated[str, 64]
str512 = Annotated[str, 512]
guidpk = Annotated[str, mapped_column(String(512), primary_key=True)]
timestamptz = Annotated[datetime, mapped_column(DateTime(timezone=True), nullable=False)]


class Base(orm.DeclarativeBase):
    type_annotation_map = {
        str64: String(64),
        str512: String(512),
        guidpk: String(512),
    }
