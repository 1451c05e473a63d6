from datetime import datetime

from sqlalchemy import DateTime, String, Text
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column


class Base(DeclarativeBase):
	pass


class RateStoreEntryDB(Base):
	__tablename__ = 'rate_store_entries'

	namespace: Mapped[str] = mapped_column(String(100), primary_key=True)
	key: Mapped[str] = mapped_column(String(32), primary_key=True)
	value: Mapped[str] = mapped_column(Text, nullable=False)
	updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
