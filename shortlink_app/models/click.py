import uuid

from sqlalchemy import Column, String, Text, DateTime, ForeignKey
from sqlalchemy.orm import relationship
from shortlink_app.database.connection import Base


class ClickEvent(Base):
    """One recorded visit through a short code or alias"""
    __tablename__ = "click_events"

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    url_id = Column(
        String(36),
        ForeignKey("urls.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    ip_address = Column(String(45), nullable=False, index=True)  # IPv4 or IPv6
    user_agent = Column(Text, nullable=True)
    referrer = Column(String(2048), nullable=True)
    country_code = Column(String(10), nullable=True)
    clicked_at = Column(DateTime(timezone=True), nullable=False, index=True)

    url = relationship("URL", back_populates="clicks")

    def __repr__(self):
        return f"<ClickEvent {self.id} for url {self.url_id}>"
