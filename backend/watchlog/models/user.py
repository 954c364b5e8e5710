from sqlalchemy import String, Integer
from sqlalchemy.orm import Mapped, mapped_column
from watchlog.database import Base


class User(Base):
    __tablename__ = "users"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    name: Mapped[str] = mapped_column(String(255), nullable=False)
