from sqlalchemy import Boolean, Column, Index, Integer, String, Text

from persister.database import Base


class ClientSessionEntry(Base):
    __tablename__ = "client_sessions"

    client_session_id = Column(String(36), primary_key=True)
    offline = Column(Boolean, primary_key=True, default=False)
    client_id = Column(String(36), nullable=False)
    # Logical parent reference; cascades are applied by the persister, not the database.
    user_session_id = Column(String(36), nullable=False)
    timestamp = Column(Integer, nullable=False, default=0)
    data = Column(Text, nullable=True)

    __table_args__ = (
        Index("ix_client_sessions_user_session", "user_session_id", "offline"),
        Index("ix_client_sessions_client_id", "client_id"),
    )

    def __repr__(self) -> str:
        return f"<ClientSessionEntry {self.client_session_id} offline={self.offline}>"
