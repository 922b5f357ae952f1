from sqlalchemy import Boolean, Column, Index, Integer, String, Text

from persister.database import Base


class UserSessionEntry(Base):
    __tablename__ = "user_sessions"

    user_session_id = Column(String(36), primary_key=True)
    offline = Column(Boolean, primary_key=True, default=False)
    realm_id = Column(String(36), nullable=False)
    user_id = Column(String(255), nullable=False)
    last_session_refresh = Column(Integer, nullable=False, default=0)
    data = Column(Text, nullable=True)

    __table_args__ = (
        Index("ix_user_sessions_realm_id", "realm_id"),
        Index("ix_user_sessions_user_id", "user_id"),
    )

    def __repr__(self) -> str:
        return f"<UserSessionEntry {self.user_session_id} offline={self.offline}>"
