from sqlalchemy import Integer, String
from sqlalchemy.orm import Mapped, mapped_column

from vivaplan.db.base import Base


class IdSequence(Base):
    __tablename__ = "id_sequences"

    category: Mapped[str] = mapped_column(String(64), primary_key=True)
    last_value: Mapped[int] = mapped_column(Integer, nullable=False)
