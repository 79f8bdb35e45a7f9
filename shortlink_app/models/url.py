import uuid

from sqlalchemy import Column, Integer, String, Text, DateTime
from sqlalchemy.orm import relationship
from shortlink_app.config import MAX_SHORT_CODE_LENGTH
from shortlink_app.database.connection import Base


class URL(Base):
    """
    URL model for transactional data.

    Short code and alias are both unique at the database level; the
    constraints, not the service pre-checks, decide concurrent inserts.
    """
    __tablename__ = "urls"

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    original_url = Column(Text, nullable=False)
    # unique=True also creates the index
    short_code = Column(String(MAX_SHORT_CODE_LENGTH), unique=True, nullable=False, index=True)
    alias = Column("custom_alias", String(20), unique=True, nullable=True, index=True)
    click_count = Column(Integer, nullable=False, default=0)  # Aggregate count for quick stats
    created_at = Column(DateTime(timezone=True), nullable=False)
    updated_at = Column(DateTime(timezone=True), nullable=False)
    expires_at = Column(DateTime(timezone=True), nullable=True)

    clicks = relationship(
        "ClickEvent",
        back_populates="url",
        cascade="all, delete-orphan",
    )

    def __repr__(self):
        return f"<URL {self.short_code} -> {self.original_url}>"
